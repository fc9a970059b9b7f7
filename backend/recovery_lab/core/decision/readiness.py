"""
Readiness scoring and run-state mapping.

The run state is recomputed from the plan on every call. There is no stored
transition history: the same plan always maps to the same state.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from recovery_lab.core.decision.policy import (
    ConstraintLevel,
    PolicyDecision,
    PolicyEvaluator,
)
from recovery_lab.core.normalization import clamp, round_to
from recovery_lab.schemas.contract import ContractEvaluator
from recovery_lab.schemas.plan import RecoveryPlan

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    """Run state of a recovery scenario."""

    QUEUED = "queued"
    READY = "ready"
    BLOCKED = "blocked"
    RUNNING = "running"  # Reported by executors, never derived here
    NEEDS_REVIEW = "needs-review"


@dataclass(frozen=True)
class ScenarioRunState:
    """Readiness snapshot for a plan."""

    plan_id: str
    state: RunState
    readiness_score: float  # 10-100
    policy_allowed: bool
    risk_score: float
    policy_recommendations: tuple[str, ...]


class ReadinessEngine:
    """
    Computes a single readiness score and maps it onto a run state.

    readiness = clamp((baseline + risk band) / 2, 10, 100)

    baseline penalizes plan size, regional spread and long SLAs and rewards
    plans flagged safe; the risk band rewards good contract scores, low action
    risk and wide regional lanes.
    """

    READY_THRESHOLD = 85.0
    QUEUED_THRESHOLD = 55.0

    def __init__(self, policy_evaluator: Optional[PolicyEvaluator] = None):
        """
        Initialize readiness engine.

        Args:
            policy_evaluator: Policy evaluator (defaults to one using the registered contract evaluator)
        """
        self.policy_evaluator = policy_evaluator or PolicyEvaluator()

    def build_run_state(
        self, plan: RecoveryPlan, decision: Optional[PolicyDecision] = None
    ) -> ScenarioRunState:
        """
        Build the run state for a plan.

        Args:
            plan: Recovery plan
            decision: Policy decision already made for this plan (enforced here if omitted)

        Returns:
            ScenarioRunState

        Raises:
            ValueError: If decision belongs to a different plan
        """
        if decision is None:
            decision = self.policy_evaluator.enforce(plan)
        elif decision.plan_id != plan.plan_id:
            raise ValueError(
                f"Policy decision for plan {decision.plan_id} cannot score plan {plan.plan_id}"
            )
        readiness = self.readiness_score(plan, decision)
        state = self._state_for(decision.allowed, readiness)

        logger.info(
            f"Plan {plan.plan_id} readiness {readiness:.2f} -> {state.value} "
            f"(policy_allowed={decision.allowed})"
        )

        return ScenarioRunState(
            plan_id=plan.plan_id,
            state=state,
            readiness_score=readiness,
            policy_allowed=decision.allowed,
            risk_score=decision.profile.risk_score,
            policy_recommendations=self._recommendations(decision),
        )

    def readiness_score(self, plan: RecoveryPlan, decision: PolicyDecision) -> float:
        """
        Combine the plan baseline and the policy risk band.

        Args:
            plan: Recovery plan
            decision: Policy decision for the same plan

        Returns:
            Readiness score in [10, 100]
        """
        region_count = len({action.region for action in plan.actions})
        baseline = (
            100
            - min(30.0, len(plan.actions) * 1.5 + region_count * 4)
            - max(0.0, plan.sla_minutes - 120) * 0.15
            + (40 if plan.is_safe else 0)
        )

        profile = decision.profile
        if not profile.constraints:
            risk_band = 100.0
        else:
            risk_band = min(
                100.0,
                profile.score + (90 - profile.risk_score) + profile.lane_count * 2,
            )

        return round_to(clamp((baseline + risk_band) / 2, 10, 100), 2)

    def _state_for(self, policy_allowed: bool, readiness: float) -> RunState:
        if not policy_allowed:
            return RunState.NEEDS_REVIEW
        if readiness >= self.READY_THRESHOLD:
            return RunState.READY
        if readiness >= self.QUEUED_THRESHOLD:
            return RunState.QUEUED
        return RunState.BLOCKED

    def _recommendations(self, decision: PolicyDecision) -> tuple[str, ...]:
        messages = [
            constraint.message
            for constraint in decision.profile.constraints
            if constraint.level != ConstraintLevel.GREEN
        ]
        messages.extend(decision.reasons)
        return tuple(dict.fromkeys(messages))


def build_scenario_run_state(
    plan: RecoveryPlan,
    contract_evaluator: Optional[ContractEvaluator] = None,
) -> ScenarioRunState:
    """Build the run state for a plan."""
    engine = ReadinessEngine(PolicyEvaluator(contract_evaluator=contract_evaluator))
    return engine.build_run_state(plan)
