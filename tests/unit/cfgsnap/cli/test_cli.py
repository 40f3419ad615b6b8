"""Tests for the cfgsnap command line."""

from __future__ import annotations

import json
import logging
import textwrap
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from cfgsnap.cli import main
from cfgsnap.distribution.models import PublishResult, SnapshotCounts
from cfgsnap.errors import TransmissionError
from cfgsnap.logger import JsonFormatter

V1 = """
namespace demo;
enum Right : ubyte { CALL = 0, PUT = 1 }
table OptionMeta { instrument_id: uint; right: Right; }
"""

V2_APPEND = V1.replace("PUT = 1 }", "PUT = 1, UNKNOWN = 2 }")
V2_SWAP = V1.replace("CALL = 0, PUT = 1", "PUT = 0, CALL = 1")


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def paths(tmp_path) -> dict[str, Path]:
    schema = tmp_path / "config_snapshot.fbs"
    schema.write_text(V1)
    return {"schema": schema, "baseline": tmp_path / "abi" / "config_snapshot.abi.json"}


def _gate_args(paths) -> list[str]:
    return ["--schema", str(paths["schema"]), "--baseline", str(paths["baseline"])]


# ---------------------------------------------------------------------------
# schema
# ---------------------------------------------------------------------------


class TestSchemaCheck:
    def test_without_baseline(self, runner, paths):
        result = runner.invoke(main, ["schema", "check", *_gate_args(paths)])
        assert result.exit_code == 0
        assert "nothing to compare against" in result.output
        assert not paths["baseline"].exists()

    def test_compatible_append(self, runner, paths):
        runner.invoke(main, ["schema", "update", "--baseline-only", *_gate_args(paths)])
        paths["schema"].write_text(V2_APPEND)

        result = runner.invoke(main, ["schema", "check", *_gate_args(paths)])

        assert result.exit_code == 0
        assert "Schema compatibility OK" in result.output

    def test_incompatible_change_fails(self, runner, paths):
        runner.invoke(main, ["schema", "update", "--baseline-only", *_gate_args(paths)])
        before = paths["baseline"].read_text()
        paths["schema"].write_text(V2_SWAP)

        result = runner.invoke(main, ["schema", "check", *_gate_args(paths)])

        assert result.exit_code == 1
        assert result.output.count("GATE FAIL: ") == 2
        assert "2 violation(s)" in result.output
        assert paths["baseline"].read_text() == before

    def test_schema_parse_error(self, runner, paths):
        paths["schema"].write_text('table T { name: string = "oops }')
        result = runner.invoke(main, ["schema", "check", *_gate_args(paths)])
        assert result.exit_code == 1
        assert "Error: " in result.output

    def test_missing_schema_file(self, runner, tmp_path):
        result = runner.invoke(main, [
            "schema", "check",
            "--schema", str(tmp_path / "absent.fbs"),
            "--baseline", str(tmp_path / "b.json"),
        ])
        assert result.exit_code == 1
        assert "Error: " in result.output


    def test_malformed_yaml_baseline(self, runner, paths):
        baseline = paths["baseline"].with_suffix(".yaml")
        baseline.parent.mkdir(parents=True)
        baseline.write_text("enums: [unclosed\n")

        result = runner.invoke(main, [
            "schema", "check", "--schema", str(paths["schema"]), "--baseline", str(baseline),
        ])

        assert result.exit_code == 1
        assert "Error: " in result.output
        assert isinstance(result.exception, SystemExit)

    def test_malformed_gate_file(self, runner, tmp_path):
        gate_file = tmp_path / "schema-gate.yaml"
        gate_file.write_text("schema_path: [config_snapshot.fbs\n")

        result = runner.invoke(main, ["schema", "check", "--config", str(gate_file)])

        assert result.exit_code == 1
        assert "Error: " in result.output
        assert isinstance(result.exception, SystemExit)


class TestSchemaUpdate:
    def test_baseline_only_writes_baseline(self, runner, paths):
        result = runner.invoke(main, ["schema", "update", "--baseline-only", *_gate_args(paths)])

        assert result.exit_code == 0, result.output
        assert "accepted as new baseline" in result.output
        saved = json.loads(paths["baseline"].read_text())
        assert "enums" in saved

    def test_incompatible_update_writes_nothing(self, runner, paths):
        runner.invoke(main, ["schema", "update", "--baseline-only", *_gate_args(paths)])
        before = paths["baseline"].read_text()
        paths["schema"].write_text(V2_SWAP)

        result = runner.invoke(main, ["schema", "update", "--baseline-only", *_gate_args(paths)])

        assert result.exit_code == 1
        assert paths["baseline"].read_text() == before

    def test_full_mode_runs_codegen(self, runner, paths):
        with patch("cfgsnap.cli.schema.FlatcCodegen") as codegen_cls:
            codegen_cls.return_value.generate.return_value = ["ts", "python"]
            result = runner.invoke(main, ["schema", "update", *_gate_args(paths)])

        assert result.exit_code == 0, result.output
        assert "Generated bindings: ts, python" in result.output
        codegen_cls.return_value.generate.assert_called_once_with(paths["schema"])

    def test_gate_file(self, runner, tmp_path):
        protocol = tmp_path / "protocol"
        protocol.mkdir()
        (protocol / "config_snapshot.fbs").write_text(V1)
        gate_file = protocol / "schema-gate.yaml"
        gate_file.write_text(textwrap.dedent("""\
            schema_path: config_snapshot.fbs
            baseline_path: abi/config_snapshot.abi.json
        """))

        result = runner.invoke(
            main, ["schema", "update", "--baseline-only", "--config", str(gate_file)]
        )

        assert result.exit_code == 0, result.output
        assert (protocol / "abi" / "config_snapshot.abi.json").exists()


# ---------------------------------------------------------------------------
# publish
# ---------------------------------------------------------------------------


class TestPublishOnce:
    def test_requires_database_url(self, runner):
        result = runner.invoke(main, ["publish", "once"])
        assert result.exit_code == 1
        assert "CFGSNAP_DATABASE_URL not set" in result.output

    def test_requires_engine_url(self, runner, monkeypatch):
        monkeypatch.setenv("CFGSNAP_DATABASE_URL", "sqlite://")
        result = runner.invoke(main, ["publish", "once"])
        assert result.exit_code == 1
        assert "CFGSNAP_ENGINE_CONTROL_URL not set" in result.output

    def test_success(self, runner):
        publisher = MagicMock()
        publisher.publish_once.return_value = PublishResult(
            version=4,
            size_bytes=300,
            ts_nanos=1,
            counts=SnapshotCounts(instruments=2),
        )
        with patch("cfgsnap.cli.publish._build_publisher", return_value=publisher):
            result = runner.invoke(main, ["publish", "once"])

        assert result.exit_code == 0
        assert "Published ConfigSnapshot v4 (300 bytes)" in result.output

    def test_failure(self, runner):
        publisher = MagicMock()
        publisher.publish_once.side_effect = TransmissionError("Engine responded 400: bad snapshot")
        with patch("cfgsnap.cli.publish._build_publisher", return_value=publisher):
            result = runner.invoke(main, ["publish", "once"])

        assert result.exit_code == 1
        assert "Error: Engine responded 400: bad snapshot" in result.output


# ---------------------------------------------------------------------------
# global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "version" in result.output

    def test_json_log_format(self, runner, paths):
        result = runner.invoke(
            main, ["--log-format", "json", "--log-level", "debug", "schema", "check", *_gate_args(paths)]
        )

        assert result.exit_code == 0
        root = logging.getLogger("cfgsnap")
        handlers = [h for h in root.handlers if getattr(h, "_cfgsnap_handler", False)]
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, JsonFormatter)
        assert root.level == logging.DEBUG
