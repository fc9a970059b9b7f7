"""
Root-level test fixtures shared across all tests.

This module provides:
- Deterministic clock and id generator
- Stub plan-contract evaluators (passing, failing clause, violation)
- Factories for recovery actions, plans, steps and intents
"""
from datetime import datetime, timezone

import pytest

from recovery_lab.core.decision.policy import register_contract_evaluator
from recovery_lab.core.runtime import FixedClock, SequentialIdGenerator
from recovery_lab.schemas.contract import (
    ContractClause,
    ContractClauseResult,
    PlanContractVerdict,
)
from recovery_lab.schemas.intent import RecoveryIntent, RecoveryStep
from recovery_lab.schemas.plan import RecoveryAction, RecoveryPlan

FROZEN_NOW = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


# ============================================================================
# Runtime Fixtures
# ============================================================================


@pytest.fixture
def fixed_clock() -> FixedClock:
    """Clock pinned to 2024-05-01 09:00 UTC."""
    return FixedClock(FROZEN_NOW)


@pytest.fixture
def sequential_ids() -> SequentialIdGenerator:
    """Deterministic id generator starting at 0001."""
    return SequentialIdGenerator()


@pytest.fixture(autouse=True)
def reset_contract_evaluator():
    """Make sure no test leaks a registered contract evaluator into another."""
    register_contract_evaluator(None)
    yield
    register_contract_evaluator(None)


# ============================================================================
# Contract Evaluator Fixtures
# ============================================================================


def _verdict(result: str, score: float, clauses: list[tuple[str, bool, tuple[str, ...]]]):
    return PlanContractVerdict(
        result=result,
        score=score,
        clauses=tuple(
            ContractClauseResult(
                clause=ContractClause(kind=kind, title=kind.replace("-", " ").title()),
                passed=passed,
                reasons=reasons,
            )
            for kind, passed, reasons in clauses
        ),
    )


@pytest.fixture
def passing_contract_evaluator():
    """Evaluator whose clauses all pass with a score of 90."""

    def evaluate(plan: RecoveryPlan) -> PlanContractVerdict:
        return _verdict(
            "pass",
            90.0,
            [("sla-bound", True, ()), ("retry-coverage", True, ())],
        )

    return evaluate


@pytest.fixture
def failing_clause_contract_evaluator():
    """Evaluator returning a warning with one failed clause."""

    def evaluate(plan: RecoveryPlan) -> PlanContractVerdict:
        return _verdict(
            "warning",
            65.0,
            [
                ("sla-bound", True, ()),
                ("retry-coverage", False, ("promote-db has no retries",)),
            ],
        )

    return evaluate


@pytest.fixture
def violating_contract_evaluator():
    """Evaluator reporting a contract violation even though clauses pass."""

    def evaluate(plan: RecoveryPlan) -> PlanContractVerdict:
        return _verdict("violation", 80.0, [("sla-bound", True, ())])

    return evaluate


@pytest.fixture
def counting_contract_evaluator(passing_contract_evaluator):
    """Passing evaluator that records the plan id of every call in .calls."""

    def evaluate(plan: RecoveryPlan) -> PlanContractVerdict:
        evaluate.calls.append(plan.plan_id)
        return passing_contract_evaluator(plan)

    evaluate.calls = []
    return evaluate


# ============================================================================
# Plan / Intent Factories
# ============================================================================


@pytest.fixture
def make_action():
    """Factory for RecoveryAction with sensible defaults."""

    def factory(action_id: str, duration: float = 10, **overrides) -> RecoveryAction:
        fields = {
            "id": action_id,
            "service_code": f"svc-{action_id}",
            "region": "us-east-1",
            "desired_state": "up",
            "expected_duration_minutes": duration,
            "dependencies": (),
            "tags": (),
            "retries_allowed": 0,
        }
        fields.update(overrides)
        return RecoveryAction(**fields)

    return factory


@pytest.fixture
def make_plan():
    """Factory for RecoveryPlan."""

    def factory(actions, plan_id: str = "plan-test", **overrides) -> RecoveryPlan:
        fields = {
            "plan_id": plan_id,
            "actions": tuple(actions),
            "is_safe": False,
            "sla_minutes": 90,
            "mode": "automated",
        }
        fields.update(overrides)
        return RecoveryPlan(**fields)

    return factory


@pytest.fixture
def healthy_plan(make_action, make_plan) -> RecoveryPlan:
    """
    Ten 6-minute actions chained in one region.

    Bottlenecks stay at 2 of 10 nodes and the action risk score is 97, so the
    policy gate allows it with a passing contract.
    """
    actions = [
        make_action(
            f"act-{i}",
            duration=6,
            dependencies=(f"act-{i - 1}",) if i else (),
        )
        for i in range(10)
    ]
    return make_plan(actions, plan_id="plan-healthy", is_safe=True)


@pytest.fixture
def make_step():
    """Factory for RecoveryStep."""

    def factory(key: str, **overrides) -> RecoveryStep:
        fields = {
            "key": key,
            "action": f"Restart {key}",
            "operator": "sre-oncall",
            "service": f"svc-{key}",
            "expected_minutes": 10,
            "required_capabilities": ("telemetry",),
            "risk_adjustment": 0,
        }
        fields.update(overrides)
        return RecoveryStep(**fields)

    return factory


@pytest.fixture
def make_intent():
    """Factory for RecoveryIntent requested at the frozen test time."""

    def factory(steps=(), intent_id: str = "intent-test", **overrides) -> RecoveryIntent:
        fields = {
            "intent_id": intent_id,
            "title": "Test intent",
            "scope": "service",
            "priority": "medium",
            "mode": "automated",
            "status": "draft",
            "operator": "sre-oncall",
            "zone": "us-east-1a",
            "requested_at": FROZEN_NOW,
            "start_at": None,
            "steps": tuple(steps),
            "tags": (),
            "notes": (),
        }
        fields.update(overrides)
        return RecoveryIntent(**fields)

    return factory
