"""Tests for flatc invocation."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from cfgsnap.errors import CodegenError
from cfgsnap.schema_compat.codegen import DEFAULT_TARGETS, CodegenTarget, FlatcCodegen


def _completed(returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout="", stderr=stderr)


@pytest.fixture
def targets() -> list[CodegenTarget]:
    return [
        CodegenTarget(language="ts", out_dir="sdk-ts/gen", args=["--gen-object-api"]),
        CodegenTarget(language="python", out_dir="sdk-py/gen"),
    ]


class TestDefaults:
    def test_default_targets(self):
        assert [t.language for t in DEFAULT_TARGETS] == ["ts", "python", "java", "cpp"]
        assert DEFAULT_TARGETS[0].args == ["--gen-object-api"]

    def test_flatc_from_path_when_unset(self):
        assert FlatcCodegen().flatc_bin == "flatc"


class TestGenerate:
    def test_runs_flatc_per_target(self, tmp_path, targets):
        schema = tmp_path / "config_snapshot.fbs"
        codegen = FlatcCodegen(targets, flatc_bin="/opt/flatc", root=tmp_path)

        with patch("cfgsnap.schema_compat.codegen.subprocess.run", return_value=_completed()) as run:
            generated = codegen.generate(schema)

        assert generated == ["ts", "python"]
        first_cmd = run.call_args_list[0].args[0]
        assert first_cmd == [
            "/opt/flatc", "--ts", "--gen-object-api",
            "-o", str(tmp_path / "sdk-ts/gen"), str(schema),
        ]
        assert run.call_args_list[1].args[0][:2] == ["/opt/flatc", "--python"]

    def test_output_directories_are_cleared(self, tmp_path, targets):
        stale = tmp_path / "sdk-ts" / "gen" / "removed_table.ts"
        stale.parent.mkdir(parents=True)
        stale.write_text("stale")

        with patch("cfgsnap.schema_compat.codegen.subprocess.run", return_value=_completed()):
            FlatcCodegen(targets, root=tmp_path).generate(tmp_path / "s.fbs")

        assert not stale.exists()
        assert (tmp_path / "sdk-ts" / "gen").is_dir()
        assert (tmp_path / "sdk-py" / "gen").is_dir()

    def test_nonzero_exit_stops_the_run(self, tmp_path, targets):
        run = MagicMock(return_value=_completed(1, "error: bad schema"))
        with patch("cfgsnap.schema_compat.codegen.subprocess.run", run):
            with pytest.raises(CodegenError) as exc_info:
                FlatcCodegen(targets, root=tmp_path).generate(tmp_path / "s.fbs")

        assert exc_info.value.language == "ts"
        assert "exited with code 1: error: bad schema" in str(exc_info.value)
        assert run.call_count == 1

    def test_missing_binary(self, tmp_path, targets):
        with patch(
            "cfgsnap.schema_compat.codegen.subprocess.run",
            side_effect=FileNotFoundError("flatc"),
        ):
            with pytest.raises(CodegenError, match="cannot launch"):
                FlatcCodegen(targets, root=tmp_path).generate(tmp_path / "s.fbs")

    def test_timeout(self, tmp_path, targets):
        with patch(
            "cfgsnap.schema_compat.codegen.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="flatc", timeout=3),
        ):
            with pytest.raises(CodegenError, match="timed out after 3s"):
                FlatcCodegen(targets, root=tmp_path, timeout_s=3).generate(tmp_path / "s.fbs")

    def test_absolute_out_dir_ignores_root(self, tmp_path):
        out = tmp_path / "abs"
        target = CodegenTarget(language="cpp", out_dir=str(out))
        with patch("cfgsnap.schema_compat.codegen.subprocess.run", return_value=_completed()) as run:
            FlatcCodegen([target], root=Path("/nonexistent")).generate(tmp_path / "s.fbs")
        assert str(out) in run.call_args.args[0]
