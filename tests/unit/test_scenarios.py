"""Tests for risk_engine.scenarios -- variation generation, scoring, and ranking."""

from __future__ import annotations

import logging

import pytest

from risk_engine.catalog.rule_catalog import RuleCatalog
from risk_engine.config import EngineSettings
from risk_engine.errors import InvalidInputError, SimulationError
from risk_engine.models.change import ChangeType, Environment, ScenarioVariation
from risk_engine.models.result import SimulationDelta, SimulationResult
from risk_engine.models.risk import FinalDecision, RiskLevel
from risk_engine.policy.rule_sets import POLICY_V1
from risk_engine.scenarios.generator import generate_variations
from risk_engine.scenarios.ranker import rank_scenarios, score_scenario
from risk_engine.simulation.delta import build_explanation
from risk_engine.simulation.engine import RiskEngine

# ================================================================== #
# Helpers
# ================================================================== #


def _delta(
    risk_before: RiskLevel = RiskLevel.CRITICO,
    risk_after: RiskLevel = RiskLevel.CRITICO,
    sla_before: bool = True,
    sla_after: bool = True,
    teams_before: int = 2,
    teams_after: int = 2,
    decision_before: FinalDecision = FinalDecision.BLOQUEADO,
    decision_after: FinalDecision = FinalDecision.BLOQUEADO,
    rules_no_longer_impacted: int = 0,
    restrictions_before: int = 2,
    restrictions_after: int = 2,
) -> SimulationDelta:
    return SimulationDelta(
        risk_before=risk_before,
        risk_after=risk_after,
        sla_before=sla_before,
        sla_after=sla_after,
        rules_no_longer_impacted=rules_no_longer_impacted,
        teams_before=teams_before,
        teams_after=teams_after,
        restrictions_before=restrictions_before,
        restrictions_after=restrictions_after,
        decision_before=decision_before,
        decision_after=decision_after,
    )


def _result(level: RiskLevel = RiskLevel.CRITICO) -> SimulationResult:
    return SimulationResult(risk_level=level, final_decision=FinalDecision.BLOQUEADO, sla_triggered=True)


# ================================================================== #
# Generator
# ================================================================== #


class TestGenerator:
    def test_production_hotfix(self, make_request):
        variations = generate_variations(make_request(), POLICY_V1)
        assert [(v.override_environment, v.override_change_type, len(v.exclude_files)) for v in variations] == [
            (Environment.STAGING, None, 0),
            (Environment.DEV, None, 0),
            (None, ChangeType.FEATURE, 0),
            (None, None, 1),
            (Environment.STAGING, ChangeType.FEATURE, 0),
        ]

    def test_exclude_critical_files_when_mixed(self, make_request):
        request = make_request(
            files=[
                ("src/billing/InvoiceService.java", 10, True),
                ("src/util/strings.py", 10, True),
                ("src/payment/PaymentService.java", 10, True),
            ],
            environment=Environment.STAGING,
            change_type=ChangeType.FEATURE,
        )
        variations = generate_variations(request, POLICY_V1)
        assert variations[0].override_change_type == ChangeType.REFACTOR
        assert variations[1].exclude_files == ("src/billing/InvoiceService.java", "src/payment/PaymentService.java")
        assert variations[2].exclude_files == ("src/payment/PaymentService.java",)
        assert len(variations) == 3

    def test_split_defers_second_half(self, make_request):
        files = [(f"src/mod{i}.py", 1, True) for i in range(5)]
        request = make_request(files=files, environment=Environment.DEV, change_type=ChangeType.CONFIG)
        variations = generate_variations(request, POLICY_V1)
        assert len(variations) == 1
        assert variations[0].exclude_files == ("src/mod3.py", "src/mod4.py")

    def test_single_file_dev_feature(self, make_request):
        request = make_request(
            files=[("src/billing/InvoiceService.java", 10, True)],
            environment=Environment.DEV,
            change_type=ChangeType.FEATURE,
        )
        variations = generate_variations(request, POLICY_V1)
        assert [v.override_change_type for v in variations] == [ChangeType.REFACTOR]

    def test_at_most_seven(self, make_request):
        files = [("src/billing/a.py", 1, True), ("src/b.py", 1, True), ("src/c.py", 1, True)]
        variations = generate_variations(make_request(files=files), POLICY_V1)
        assert len(variations) == 6
        assert len(variations) <= 7

    def test_deterministic(self, make_request):
        request = make_request()
        assert generate_variations(request, POLICY_V1) == generate_variations(request, POLICY_V1)


# ================================================================== #
# Scoring and explanation
# ================================================================== #


class TestScoreScenario:
    @pytest.mark.parametrize(
        "after,expected",
        [
            (RiskLevel.CRITICO, 0),
            (RiskLevel.ALTO, 20),
            (RiskLevel.MEDIO, 30),
            (RiskLevel.BAIXO, 40),
        ],
        ids=["no-drop", "drop-1", "drop-2", "drop-3"],
    )
    def test_risk_reduction_points(self, after, expected):
        assert score_scenario(_delta(risk_after=after)) == expected

    def test_increase_scores_zero(self):
        assert score_scenario(_delta(risk_before=RiskLevel.BAIXO, risk_after=RiskLevel.ALTO)) == 0

    def test_concrete_example_scores_90(self):
        delta = _delta(
            risk_after=RiskLevel.MEDIO,
            sla_after=False,
            teams_after=1,
            decision_after=FinalDecision.APROVADO_COM_RESTRICOES,
        )
        assert score_scenario(delta) == 90

    def test_clamped_to_100(self):
        delta = _delta(
            risk_after=RiskLevel.BAIXO,
            sla_after=False,
            teams_after=0,
            decision_after=FinalDecision.APROVADO,
        )
        assert score_scenario(delta) == 100

    def test_equal_teams_score_nothing(self):
        assert score_scenario(_delta(teams_before=1, teams_after=1)) == 0


class TestExplanation:
    def test_reduction_sentences(self):
        delta = _delta(
            risk_after=RiskLevel.MEDIO,
            sla_after=False,
            teams_after=1,
            rules_no_longer_impacted=2,
            restrictions_after=0,
        )
        assert build_explanation(delta) == (
            "Reduces risk from CRITICO to MEDIO. SLA no longer required. Removes impact on 2 rule(s). "
            "Reduces notifications from 2 to 1 team(s). Removes 2 operational restriction(s)."
        )

    def test_increase_sentences(self):
        delta = _delta(risk_before=RiskLevel.BAIXO, risk_after=RiskLevel.ALTO, sla_before=False)
        assert build_explanation(delta) == "Increases risk from BAIXO to ALTO. SLA now required."

    def test_stable(self):
        assert build_explanation(_delta()) == "Keeps risk level stable at CRITICO."


# ================================================================== #
# Ranking
# ================================================================== #


class TestRanking:
    def test_concrete_example_through_engine(self, settings, make_request):
        engine = RiskEngine(RuleCatalog(), settings)
        report = engine.suggest_scenarios(make_request(), max_scenarios=7)

        assert report.baseline.final_decision == FinalDecision.BLOQUEADO
        assert len(report.baseline.notified_teams) == 2

        staging = next(s for s in report.scenarios if s.scenario_id == "SC-1")
        assert staging.risk_level == RiskLevel.MEDIO
        assert staging.sla_removed is True
        assert len(staging.teams) == 1
        assert staging.score == 90

    def test_ranked_descending_and_stable(self, settings, make_request):
        engine = RiskEngine(RuleCatalog(), settings)
        report = engine.suggest_scenarios(make_request(), max_scenarios=7)
        assert [(s.scenario_id, s.score) for s in report.scenarios] == [
            ("SC-2", 100),
            ("SC-1", 90),
            ("SC-5", 90),
            ("SC-3", 0),
            ("SC-4", 0),
        ]

    def test_truncation_keeps_highest(self, settings, make_request):
        engine = RiskEngine(RuleCatalog(), settings)
        report = engine.suggest_scenarios(make_request(), max_scenarios=1)
        assert len(report.scenarios) == 1
        assert report.scenarios[0].scenario_id == "SC-2"
        assert report.scenarios[0].variation.override_environment == Environment.DEV

    def test_default_limit_from_settings(self, settings, make_request):
        report = RiskEngine(RuleCatalog(), settings).suggest_scenarios(make_request())
        assert len(report.scenarios) == settings.default_max_scenarios

    def test_sequential_and_parallel_agree(self, make_request):
        request = make_request()
        sequential = RiskEngine(RuleCatalog(), EngineSettings(simulation_workers=1)).suggest_scenarios(request, 7)
        parallel = RiskEngine(RuleCatalog(), EngineSettings(simulation_workers=4)).suggest_scenarios(request, 7)
        assert sequential == parallel

    def test_failed_simulation_is_dropped(self, caplog):
        variations = [
            ScenarioVariation(description="ok", override_environment=Environment.DEV),
            ScenarioVariation(description="broken"),
        ]

        def simulate(variation: ScenarioVariation) -> SimulationResult:
            if variation.description == "broken":
                raise SimulationError("boom", variation=variation.description)
            return _result(RiskLevel.BAIXO)

        with caplog.at_level(logging.WARNING, logger="risk_engine.scenarios.ranker"):
            report = rank_scenarios(_result(), variations, simulate, max_scenarios=3, workers=2)

        assert [s.scenario_id for s in report.scenarios] == ["SC-1"]
        assert report.failed_variations == ("broken",)
        assert "Dropping scenario 'broken'" in caplog.text

    def test_all_excluded_variation_dropped_through_engine(self, settings, make_request):
        engine = RiskEngine(RuleCatalog(), settings)
        request = make_request()
        baseline = engine.evaluate(request)
        variations = [ScenarioVariation(description="drop everything", exclude_files=tuple(request.paths))]
        report = rank_scenarios(baseline, variations, lambda v: engine.simulate(request, v))
        assert report.scenarios == ()
        assert report.failed_variations == ("drop everything",)

    @pytest.mark.parametrize("workers", [1, 2], ids=["sequential", "parallel"])
    def test_collaborator_error_is_dropped(self, workers, caplog):
        variations = [
            ScenarioVariation(description="boom", override_environment=Environment.STAGING),
            ScenarioVariation(description="ok", override_environment=Environment.DEV),
        ]

        def simulate(variation: ScenarioVariation) -> SimulationResult:
            if variation.description == "boom":
                raise KeyError("collaborator failure")
            return _result(RiskLevel.BAIXO)

        with caplog.at_level(logging.WARNING, logger="risk_engine.scenarios.ranker"):
            report = rank_scenarios(_result(), variations, simulate, workers=workers)

        assert [s.description for s in report.scenarios] == ["ok"]
        assert report.scenarios[0].scenario_id == "SC-2"
        assert report.failed_variations == ("boom",)
        assert "Dropping scenario 'boom' after unexpected KeyError" in caplog.text
        assert any(record.exc_info for record in caplog.records)

    def test_engine_suggestions_survive_failing_incident_reader(self, settings, make_request):
        class FlakyIncidents:
            def incident_count_for(self, path_or_rule_id: str) -> int:
                raise RuntimeError("incident store unavailable")

        engine = RiskEngine(RuleCatalog(), settings, incident_reader=FlakyIncidents())
        request = make_request()
        report = rank_scenarios(
            _result(),
            generate_variations(request, POLICY_V1),
            lambda v: engine.simulate(request, v),
            max_scenarios=7,
        )
        assert report.scenarios == ()
        assert len(report.failed_variations) == 5

    @pytest.mark.parametrize("limit", [0, -1], ids=["zero", "negative"])
    def test_invalid_limit(self, limit):
        with pytest.raises(InvalidInputError):
            rank_scenarios(_result(), [], lambda v: _result(), max_scenarios=limit)
