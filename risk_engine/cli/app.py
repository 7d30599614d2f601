"""risk-engine CLI application -- Typer-based operator interface.

Provides commands to evaluate a change, simulate a what-if variation,
rank suggested alternatives, and list the scoring policies.  Human-readable
output goes to *stderr* via Rich; ``--json`` writes machine-readable
results to *stdout* so that pipelines can compose cleanly.

A change file looks like::

    {
      "pull_request_id": "PR-123",
      "environment": "PRODUCTION",
      "change_type": "HOTFIX",
      "policy_version": "v2",
      "changed_files": [{"path": "src/billing/invoice.py", "lines_changed": 120}]
    }
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import typer
from pydantic import BaseModel
from rich.console import Console

from risk_engine.catalog.rule_catalog import RuleCatalog, load_catalog
from risk_engine.cli.display import display_policies, display_result, display_suggestions, display_what_if
from risk_engine.config import EngineSettings, load_settings
from risk_engine.errors import InvalidInputError, SimulationError
from risk_engine.models.change import ChangeRequest, ChangeType, Environment, ScenarioVariation
from risk_engine.policy.rule_sets import available_policies
from risk_engine.simulation.engine import RiskEngine, build_request
from risk_engine.telemetry.json_formatter import configure_logging


# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="risk-engine",
    help="Change risk decision engine - score, simulate, and suggest safer alternatives.",
    no_args_is_help=True,
)
console = Console(stderr=True)

# Mutable global options populated by the Typer callback.
_json_output: bool = False
_verbose: bool = False


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit structured JSON to stdout instead of human-readable output.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log engine activity to stderr at DEBUG level.",
    ),
) -> None:
    """Global options applied to every command."""
    global _json_output, _verbose  # noqa: PLW0603
    _json_output = json_mode
    _verbose = verbose


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _settings() -> EngineSettings:
    settings = load_settings(debug=True) if _verbose else load_settings()
    if _verbose:
        configure_logging(settings)
    return settings


def _read_json(path: Path, label: str) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        console.print(f"[red]Cannot read {label} file {path}: {exc}[/red]")
        raise typer.Exit(code=3) from exc
    if not isinstance(data, dict):
        console.print(f"[red]{label.capitalize()} file {path} must contain a JSON object.[/red]")
        raise typer.Exit(code=3)
    return data


def _load_request(change_file: Path) -> ChangeRequest:
    data = _read_json(change_file, "change")
    try:
        return build_request(
            data.get("changed_files"),
            data.get("environment"),
            data.get("change_type"),
            data.get("policy_version"),
            data.get("pull_request_id"),
        )
    except InvalidInputError as exc:
        console.print(f"[red]Invalid change request: {exc}[/red]")
        raise typer.Exit(code=3) from exc


def _load_engine(catalog_file: Path | None) -> RiskEngine:
    settings = _settings()
    if catalog_file is None:
        return RiskEngine(RuleCatalog(), settings)
    try:
        catalog = load_catalog(catalog_file)
    except (OSError, InvalidInputError) as exc:
        console.print(f"[red]Invalid rule catalog: {exc}[/red]")
        raise typer.Exit(code=3) from exc
    return RiskEngine(catalog, settings)


def _write_json(model: BaseModel) -> None:
    sys.stdout.write(model.model_dump_json(indent=2) + "\n")


_CHANGE_ARG = typer.Argument(
    ...,
    help="Path to the change request JSON file.",
    exists=True,
    dir_okay=False,
    resolve_path=True,
)
_CATALOG_OPT = typer.Option(
    None,
    "--catalog",
    "-c",
    help="Path to the rule catalog JSON file.",
    exists=True,
    dir_okay=False,
    resolve_path=True,
)


# ---------------------------------------------------------------------------
# evaluate
# ---------------------------------------------------------------------------


@app.command()
def evaluate(
    change_file: Path = _CHANGE_ARG,
    catalog_file: Path | None = _CATALOG_OPT,
) -> None:
    """Evaluate a change request as submitted."""
    request = _load_request(change_file)
    engine = _load_engine(catalog_file)
    result = engine.evaluate(request)

    if _json_output:
        _write_json(result)
    else:
        display_result(console, result)


# ---------------------------------------------------------------------------
# simulate
# ---------------------------------------------------------------------------


@app.command()
def simulate(
    change_file: Path = _CHANGE_ARG,
    catalog_file: Path | None = _CATALOG_OPT,
    environment: Environment | None = typer.Option(
        None,
        "--environment",
        "-e",
        help="Override the deployment environment.",
        case_sensitive=False,
    ),
    change_type: ChangeType | None = typer.Option(
        None,
        "--change-type",
        "-t",
        help="Override the change type.",
        case_sensitive=False,
    ),
    exclude: list[str] | None = typer.Option(
        None,
        "--exclude",
        "-x",
        help="File path to drop from the change (repeatable).",
    ),
    description: str = typer.Option("", "--description", "-d", help="Label for the variation."),
) -> None:
    """Compare the change as submitted against a what-if variation."""
    request = _load_request(change_file)
    engine = _load_engine(catalog_file)
    variation = ScenarioVariation(
        description=description or "Manual what-if",
        override_environment=environment,
        override_change_type=change_type,
        exclude_files=tuple(exclude or ()),
    )

    try:
        report = engine.compare(request, variation)
    except SimulationError as exc:
        console.print(f"[red]Simulation failed: {exc}[/red]")
        raise typer.Exit(code=3) from exc

    if _json_output:
        _write_json(report)
    else:
        display_what_if(console, report)


# ---------------------------------------------------------------------------
# suggest
# ---------------------------------------------------------------------------


@app.command()
def suggest(
    change_file: Path = _CHANGE_ARG,
    catalog_file: Path | None = _CATALOG_OPT,
    max_scenarios: int | None = typer.Option(
        None,
        "--max",
        "-n",
        help="Number of scenarios to return (default from RISK_ENGINE_DEFAULT_MAX_SCENARIOS).",
    ),
) -> None:
    """Suggest and rank lower-risk alternatives to the change."""
    request = _load_request(change_file)
    engine = _load_engine(catalog_file)

    try:
        report = engine.suggest_scenarios(request, max_scenarios)
    except InvalidInputError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=3) from exc

    if _json_output:
        _write_json(report)
    else:
        display_suggestions(console, report)


# ---------------------------------------------------------------------------
# policies
# ---------------------------------------------------------------------------


@app.command()
def policies() -> None:
    """List the available scoring policies and their constants."""
    available = available_policies()
    if _json_output:
        rows = [p.model_dump(mode="json") for p in available]
        sys.stdout.write(json.dumps(rows, indent=2) + "\n")
    else:
        display_policies(console, available)
