"""Rich output formatting for the risk-engine CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from risk_engine.models.risk import FinalDecision, RiskLevel

if TYPE_CHECKING:
    from risk_engine.models.result import ScenarioSuggestionReport, SimulationResult, WhatIfReport
    from risk_engine.policy.rule_sets import ScoringPolicy


# ---------------------------------------------------------------------------
# Colour mapping
# ---------------------------------------------------------------------------

_LEVEL_COLOURS: dict[RiskLevel, str] = {
    RiskLevel.BAIXO: "green",
    RiskLevel.MEDIO: "yellow",
    RiskLevel.ALTO: "dark_orange",
    RiskLevel.CRITICO: "bold red",
}

_DECISION_COLOURS: dict[FinalDecision, str] = {
    FinalDecision.APROVADO: "green",
    FinalDecision.APROVADO_COM_RESTRICOES: "yellow",
    FinalDecision.BLOQUEADO: "bold red",
}


def _level(level: RiskLevel) -> str:
    colour = _LEVEL_COLOURS[level]
    return f"[{colour}]{level.value}[/{colour}]"


def _decision(decision: FinalDecision) -> str:
    colour = _DECISION_COLOURS[decision]
    return f"[{colour}]{decision.value}[/{colour}]"


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def display_result(console: Console, result: SimulationResult, title: str = "Risk Evaluation") -> None:
    """Render a single evaluation with its impacted rules.

    Parameters
    ----------
    console:
        Rich console to write to (typically stderr).
    result:
        The evaluation or simulation to display.
    title:
        Panel title.
    """
    lines = [
        f"[bold]Risk:[/bold]         {_level(result.risk_level)}  (score {result.score}, policy {result.policy_version})",
        f"[bold]Decision:[/bold]     {_decision(result.final_decision)}",
        f"[bold]SLA:[/bold]          {'triggered' if result.sla_triggered else 'not required'}",
        f"[bold]Teams:[/bold]        {', '.join(result.notified_teams) or '-'}",
        f"[bold]Restrictions:[/bold] {'; '.join(result.restrictions) or '-'}",
    ]
    console.print(Panel("\n".join(lines), title=title, border_style="blue"))

    if not result.impacts:
        console.print("[dim]No business rules impacted.[/dim]")
        return

    table = Table(title=f"Impacted Rules ({result.impacted_rule_count})", show_lines=False)
    table.add_column("Rule", style="bold")
    table.add_column("Impact")
    table.add_column("Risk")
    table.add_column("Depth", justify="right")
    table.add_column("Path")
    for impact in result.impacts:
        table.add_row(
            impact.rule_id,
            impact.classification.value,
            _level(impact.risk_level),
            str(impact.depth),
            " -> ".join(impact.path),
        )
    console.print(table)


def display_what_if(console: Console, report: WhatIfReport) -> None:
    """Render a baseline-vs-simulation comparison."""
    table = Table(title=report.variation.description or "What-if", show_lines=False)
    table.add_column("", style="bold")
    table.add_column("Baseline")
    table.add_column("Simulated")
    table.add_row("Risk", _level(report.baseline.risk_level), _level(report.simulation.risk_level))
    table.add_row(
        "Decision",
        _decision(report.baseline.final_decision),
        _decision(report.simulation.final_decision),
    )
    table.add_row("SLA", str(report.baseline.sla_triggered), str(report.simulation.sla_triggered))
    table.add_row("Teams", str(len(report.baseline.notified_teams)), str(len(report.simulation.notified_teams)))
    table.add_row("Rules", str(report.baseline.impacted_rule_count), str(report.simulation.impacted_rule_count))
    console.print(table)

    rec = report.recommendation
    console.print(
        Panel(
            f"[bold]{rec.headline}[/bold] (confidence {rec.confidence})\n{rec.summary}",
            title="Recommendation",
            border_style="cyan",
        )
    )


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


def display_suggestions(console: Console, report: ScenarioSuggestionReport) -> None:
    """Render ranked scenarios after the baseline."""
    display_result(console, report.baseline, title="Baseline")

    if not report.scenarios:
        console.print("[yellow]No alternative scenarios found.[/yellow]")
    else:
        table = Table(title=f"Suggested Scenarios ({len(report.scenarios)})", show_lines=True)
        table.add_column("ID", style="bold")
        table.add_column("Score", justify="right")
        table.add_column("Scenario")
        table.add_column("Risk")
        table.add_column("Decision")
        table.add_column("Explanation")
        for scenario in report.scenarios:
            table.add_row(
                scenario.scenario_id,
                str(scenario.score),
                scenario.description,
                _level(scenario.risk_level),
                _decision(scenario.decision),
                scenario.explanation,
            )
        console.print(table)

    for description in report.failed_variations:
        console.print(f"[dim]Skipped (simulation failed): {description}[/dim]")


def display_policies(console: Console, policies: list[ScoringPolicy]) -> None:
    """Render the scoring constants of every policy side by side."""
    table = Table(title="Scoring Policies", show_lines=False)
    table.add_column("Constant", style="bold")
    for policy in policies:
        table.add_column(policy.version.value.upper(), justify="right")

    rows: list[tuple[str, str]] = [
        ("Critical file", "critical_file_score"),
        ("Semi-critical file", "semi_critical_file_score"),
        ("> 100 lines", "lines_over_100_score"),
        ("50-100 lines", "lines_50_to_100_score"),
        ("No test", "no_test_score"),
        ("Per incident", "incident_score"),
        ("Incident cap", "max_incident_score"),
        ("Max score", "max_score"),
    ]
    for label, attr in rows:
        table.add_row(label, *(str(getattr(p, attr)) for p in policies))
    table.add_row("Semi-critical keywords", *(", ".join(p.semi_critical_keywords) or "-" for p in policies))
    console.print(table)
