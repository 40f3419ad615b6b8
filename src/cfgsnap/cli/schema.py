"""cfgsnap CLI - Schema compatibility gate commands."""

import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from cfgsnap.config import get_config
from cfgsnap.errors import CfgSnapError
from cfgsnap.schema_compat.baseline import FileBaselineStore
from cfgsnap.schema_compat.codegen import FlatcCodegen
from cfgsnap.schema_compat.gate import SchemaGate
from cfgsnap.schema_compat.loader import GateConfigLoader


def _build_gate(
    gate_file: Optional[str],
    schema_file: Optional[str],
    baseline_file: Optional[str],
) -> tuple[SchemaGate, Path]:
    """Resolve paths and codegen targets from settings, gate file and flags."""
    settings = get_config()
    gate_file = gate_file or settings.gate_config_path

    if gate_file:
        gate_config = GateConfigLoader().load(Path(gate_file))
        schema_path = gate_config.schema_file
        baseline_path = gate_config.baseline_file
        codegen = FlatcCodegen(
            gate_config.targets,
            flatc_bin=gate_config.flatc_bin or settings.flatc_bin,
            root=gate_config.codegen_root,
            timeout_s=gate_config.codegen_timeout_s,
        )
    else:
        schema_path = settings.get_schema_path()
        baseline_path = settings.get_baseline_path()
        codegen = FlatcCodegen(flatc_bin=settings.flatc_bin, timeout_s=settings.codegen_timeout_s)

    if schema_file:
        schema_path = Path(schema_file)
    if baseline_file:
        baseline_path = Path(baseline_file)

    return SchemaGate(FileBaselineStore(baseline_path), codegen=codegen), schema_path


def _run_gate(gate_file, schema_file, baseline_file, mode: str) -> None:
    try:
        gate, schema_path = _build_gate(gate_file, schema_file, baseline_file)
        result = gate.run(schema_path, mode=mode)
    except (CfgSnapError, OSError, ValueError, TypeError, yaml.YAMLError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not result.passed:
        for violation in result.violations:
            click.echo(f"GATE FAIL: {violation.describe()}", err=True)
        click.echo(result.message, err=True)
        sys.exit(1)

    click.echo(result.message)
    if result.generated:
        click.echo(f"Generated bindings: {', '.join(result.generated)}")


_gate_options = [
    click.option("--config", "gate_file", type=click.Path(exists=True, dir_okay=False),
                 help="YAML gate file (schema, baseline, codegen targets)"),
    click.option("--schema", "schema_file", type=click.Path(dir_okay=False),
                 help="Schema file (overrides settings and gate file)"),
    click.option("--baseline", "baseline_file", type=click.Path(dir_okay=False),
                 help="Baseline file (overrides settings and gate file)"),
]


def gate_options(fn):
    for option in reversed(_gate_options):
        fn = option(fn)
    return fn


@click.group()
def schema():
    """Schema compatibility gate."""
    pass


@schema.command("check")
@gate_options
def schema_check_cmd(gate_file, schema_file, baseline_file):
    """Check the schema against the accepted baseline.

    Never writes. Exits 1 and prints every violation when the schema
    breaks wire compatibility.

    Example:
        cfgsnap schema check --schema protocol/config_snapshot.fbs \\
            --baseline protocol/abi/config_snapshot.abi.json
    """
    _run_gate(gate_file, schema_file, baseline_file, mode="check")


@schema.command("update")
@gate_options
@click.option("--baseline-only", is_flag=True, help="Save the baseline but skip codegen")
def schema_update_cmd(gate_file, schema_file, baseline_file, baseline_only: bool):
    """Accept the schema as the new baseline and regenerate bindings.

    The compatibility check runs first; nothing is written when it fails.
    """
    _run_gate(gate_file, schema_file, baseline_file, mode="baseline" if baseline_only else "full")
