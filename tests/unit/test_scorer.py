"""Tests for risk_engine.policy.scorer.

Covers critical / semi-critical file points, line bands, the no-test
penalty, incident points (capped per file), clamping to the policy max,
score -> level thresholds, and the test-presence heuristic.
"""

from __future__ import annotations

import pytest

from risk_engine.models.change import ChangedFile
from risk_engine.models.risk import RiskLevel
from risk_engine.policy.rule_sets import POLICY_V1, POLICY_V2
from risk_engine.policy.scorer import infer_has_test, is_test_path, level_for_score, score_files
from risk_engine.telemetry.profiling import ProfileCollector

# ================================================================== #
# Helpers
# ================================================================== #


def _file(path: str = "src/util/strings.py", lines: int = 10, has_test: bool | None = True) -> ChangedFile:
    return ChangedFile(path=path, lines_changed=lines, has_test=has_test)


class _FixedIncidents:
    def __init__(self, count: int) -> None:
        self.count = count

    def incident_count_for(self, path_or_rule_id: str) -> int:
        return self.count


# ================================================================== #
# Per-file scoring
# ================================================================== #


class TestFileFactors:
    def test_plain_tested_small_file_scores_zero(self):
        report = score_files([_file()], POLICY_V1)
        assert report.score == 0
        assert report.risk_level == RiskLevel.BAIXO
        assert report.files[0].factors == ()

    def test_critical_billing_file_v1(self):
        report = score_files([_file("src/billing/InvoiceService.java", 120, False)], POLICY_V1)
        # 30 critical + 20 lines + 20 no test + min(5*3, 20) incidents
        assert report.score == 85
        assert report.files[0].critical is True
        assert report.files[0].incident_count == 3

    def test_critical_billing_file_v2(self):
        report = score_files([_file("src/billing/InvoiceService.java", 120, False)], POLICY_V2)
        # 30 critical + 20 lines + 25 no test + min(5*4, 20) incidents
        assert report.score == 95

    def test_controller_only_scores_under_v2(self):
        controller = _file("src/api/UserController.java", 10, True)
        assert score_files([controller], POLICY_V1).score == 0
        v2 = score_files([controller], POLICY_V2)
        assert v2.score == 15
        assert v2.files[0].semi_critical is True

    def test_critical_wins_over_semi_critical(self):
        report = score_files([_file("src/payment/PaymentController.java", 10, True)], POLICY_V2)
        # 30 critical + min(5*3, 20) incidents, no semi-critical bonus
        assert report.score == 45
        assert report.files[0].semi_critical is False

    @pytest.mark.parametrize(
        "lines,expected",
        [(0, 0), (49, 0), (50, 10), (100, 10), (101, 20), (5000, 20)],
        ids=["zero", "49", "50-inclusive", "100-inclusive", "101", "huge"],
    )
    def test_line_bands(self, lines, expected):
        assert score_files([_file(lines=lines)], POLICY_V1).score == expected

    def test_no_test_penalty(self):
        assert score_files([_file(has_test=False)], POLICY_V1).score == 20
        assert score_files([_file(has_test=False)], POLICY_V2).score == 25

    def test_incident_points_capped_per_file(self):
        report = score_files([_file()], POLICY_V1, incident_reader=_FixedIncidents(10))
        assert report.score == 20
        assert report.files[0].incident_count == 10

    def test_incident_reader_overrides_policy_table(self):
        report = score_files([_file("src/billing/a.py")], POLICY_V1, incident_reader=_FixedIncidents(0))
        assert report.score == 30

    def test_factors_are_human_readable(self):
        report = score_files([_file("src/order/Checkout.java", 60, False)], POLICY_V1)
        assert report.files[0].factors == (
            "Critical file (+30)",
            "60 lines changed (+10)",
            "No associated test (+20)",
            "1 past incident(s) (+5)",
        )


# ================================================================== #
# Aggregation
# ================================================================== #


class TestAggregation:
    def test_sum_is_clamped_to_max_score(self):
        files = [
            _file("src/billing/InvoiceService.java", 120, False),
            _file("src/payment/PaymentService.java", 120, False),
        ]
        report = score_files(files, POLICY_V1)
        assert report.raw_score == 165
        assert report.score == 100
        assert report.risk_level == RiskLevel.CRITICO

    def test_policy_version_recorded(self):
        assert score_files([_file()], POLICY_V2).policy_version == "v2"

    def test_deterministic(self):
        files = [_file("src/billing/x.py", 70, None), _file("tests/test_x.py", 5, None)]
        assert score_files(files, POLICY_V1) == score_files(files, POLICY_V1)

    def test_records_profile_timing(self):
        score_files([_file()], POLICY_V1)
        stats = ProfileCollector.get_instance().get_stats("policy.score")
        assert stats is not None
        assert stats["count"] == 1


class TestLevelForScore:
    @pytest.mark.parametrize(
        "score,expected",
        [
            (0, RiskLevel.BAIXO),
            (29, RiskLevel.BAIXO),
            (30, RiskLevel.MEDIO),
            (59, RiskLevel.MEDIO),
            (60, RiskLevel.ALTO),
            (79, RiskLevel.ALTO),
            (80, RiskLevel.CRITICO),
            (100, RiskLevel.CRITICO),
        ],
        ids=["0", "29", "30", "59", "60", "79", "80", "100"],
    )
    def test_thresholds(self, score, expected):
        assert level_for_score(score) == expected


# ================================================================== #
# Test-presence heuristic
# ================================================================== #


class TestHeuristics:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("tests/test_invoice.py", True),
            ("src/test/java/InvoiceServiceTest.java", True),
            ("src/FooTest.java", True),
            ("src/FooTests.cs", True),
            ("pkg/invoice_test.go", True),
            ("web/invoice.spec.ts", True),
            ("web/invoice.test.js", True),
            ("src/latest.py", False),
            ("src/contest/entry.py", False),
            ("src/billing/Invoice.java", False),
        ],
        ids=[
            "tests-dir",
            "test-dir",
            "java-suffix",
            "java-suffix-plural",
            "go-suffix",
            "spec-ts",
            "test-js",
            "latest-not-test",
            "contest-dir-not-test",
            "source",
        ],
    )
    def test_is_test_path(self, path, expected):
        assert is_test_path(path) is expected

    def test_explicit_flag_wins(self):
        source = ChangedFile(path="src/billing/Invoice.java", has_test=False)
        sibling = ChangedFile(path="tests/InvoiceTest.java")
        assert infer_has_test(source, [source, sibling]) is False

    def test_sibling_test_in_change_set(self):
        source = ChangedFile(path="src/billing/Invoice.java")
        sibling = ChangedFile(path="src/test/InvoiceTest.java")
        assert infer_has_test(source, [source, sibling]) is True

    def test_unrelated_test_does_not_count(self):
        source = ChangedFile(path="src/billing/Invoice.java")
        sibling = ChangedFile(path="tests/test_payment.py")
        assert infer_has_test(source, [source, sibling]) is False

    def test_test_file_counts_as_tested(self):
        test_file = ChangedFile(path="tests/test_payment.py")
        assert infer_has_test(test_file, [test_file]) is True

    def test_inferred_flag_feeds_score(self):
        files = [ChangedFile(path="src/util/strings.py"), ChangedFile(path="tests/test_strings.py")]
        report = score_files(files, POLICY_V1)
        assert report.score == 0
