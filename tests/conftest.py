"""Shared fixtures for risk engine tests.

Provides a small payment/billing rule catalog, change request factories,
and deterministic engine settings so that individual test modules stay
concise and self-contained.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import pytest

from risk_engine.catalog.rule_catalog import RuleCatalog
from risk_engine.config import EngineSettings
from risk_engine.models.change import ChangedFile, ChangeRequest, ChangeType, Environment
from risk_engine.models.risk import Criticality, ImpactType
from risk_engine.models.rule import BusinessRule, DependencyType, Domain, FileRuleMapping, RuleDependencyEdge
from risk_engine.telemetry.profiling import ProfileCollector

PAYMENT_FILE = "src/payment/PaymentService.java"
INVOICE_FILE = "src/billing/InvoiceService.java"
CONTROLLER_FILE = "src/user/UserController.java"
README_FILE = "docs/README.md"


# ------------------------------------------------------------------ #
# Catalog
# ------------------------------------------------------------------ #


@pytest.fixture()
def payment_catalog() -> RuleCatalog:
    """PAY-001 -> BIL-002 -> ORD-003 -> USR-004, with two DIRECT files and one INDIRECT file."""
    return RuleCatalog(
        rules=[
            BusinessRule(
                rule_id="BR-PAY-001",
                name="Card capture",
                domain=Domain.PAYMENT,
                criticality=Criticality.CRITICA,
                owner_team="Payments Team",
            ),
            BusinessRule(
                rule_id="BR-BIL-002",
                name="Invoice generation",
                domain=Domain.BILLING,
                criticality=Criticality.ALTA,
                owner_team="Billing Team",
            ),
            BusinessRule(
                rule_id="BR-ORD-003",
                name="Order confirmation",
                domain=Domain.ORDER,
                criticality=Criticality.MEDIA,
            ),
            BusinessRule(
                rule_id="BR-USR-004",
                name="Customer notification",
                domain=Domain.USER,
                criticality=Criticality.BAIXA,
            ),
        ],
        dependencies=[
            RuleDependencyEdge(
                source_rule_id="BR-PAY-001",
                target_rule_id="BR-BIL-002",
                dependency_type=DependencyType.FEEDS,
                rationale="captured amount is invoiced",
            ),
            RuleDependencyEdge(source_rule_id="BR-BIL-002", target_rule_id="BR-ORD-003"),
            RuleDependencyEdge(source_rule_id="BR-ORD-003", target_rule_id="BR-USR-004"),
        ],
        mappings=[
            FileRuleMapping(file_path=PAYMENT_FILE, rule_id="BR-PAY-001"),
            FileRuleMapping(file_path=INVOICE_FILE, rule_id="BR-BIL-002"),
            FileRuleMapping(file_path=CONTROLLER_FILE, rule_id="BR-USR-004", impact_type=ImpactType.INDIRECT),
        ],
    )


# ------------------------------------------------------------------ #
# Requests
# ------------------------------------------------------------------ #


@pytest.fixture()
def make_request() -> Callable[..., ChangeRequest]:
    """Factory for change requests; files are ``(path, lines_changed, has_test)`` tuples."""

    def _make(
        files: list[tuple[str, int, bool | None]] | None = None,
        environment: Environment = Environment.PRODUCTION,
        change_type: ChangeType = ChangeType.HOTFIX,
        policy_version: str | None = None,
        pull_request_id: str | None = "PR-42",
    ) -> ChangeRequest:
        if files is None:
            files = [(PAYMENT_FILE, 120, False), (INVOICE_FILE, 60, False)]
        return ChangeRequest(
            changed_files=tuple(ChangedFile(path=p, lines_changed=n, has_test=t) for p, n, t in files),
            environment=environment,
            change_type=change_type,
            policy_version=policy_version,
            pull_request_id=pull_request_id,
        )

    return _make


# ------------------------------------------------------------------ #
# Settings / global state
# ------------------------------------------------------------------ #


@pytest.fixture()
def settings() -> EngineSettings:
    return EngineSettings(simulation_workers=2)


@pytest.fixture(autouse=True)
def _reset_profile_collector():
    ProfileCollector.reset()
    yield
    ProfileCollector.reset()


@pytest.fixture()
def restore_engine_logger():
    """Undo handler and level changes made to the ``risk_engine`` logger."""
    root = logging.getLogger("risk_engine")
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
