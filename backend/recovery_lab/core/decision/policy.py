"""
Policy gate for recovery plans.

Blends three independently computed signals into one allow/deny decision:
- Clause-level verdict from the external plan-contract evaluator
- Topology-derived constraints (bottleneck density, timeline length)
- Action risk score derived from tags, durations and dependency counts

The contract evaluator is consumed, never reimplemented here. Pass one in
explicitly or register a process-wide one with register_contract_evaluator().
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from recovery_lab.config import settings
from recovery_lab.core.normalization import clamp, round_int, round_to, safe_mean
from recovery_lab.core.topology.builder import (
    ScenarioTopology,
    TopologyBuilder,
    get_topology_builder,
)
from recovery_lab.core.topology.risk_profile import NodeRisk, topology_risk_profile
from recovery_lab.schemas.contract import ContractEvaluator, PlanContractVerdict
from recovery_lab.schemas.plan import RecoveryPlan

logger = logging.getLogger(__name__)

RECOMMEND_PROCEED = "proceed"
RECOMMEND_MONITOR = "monitor"
RECOMMEND_ADDRESS = "address-before-run"

GATE_BLOCKED_REASON = "Risk policy gate blocked execution"


class ConstraintLevel(str, Enum):
    """Traffic-light severity of a policy constraint."""

    GREEN = "green"
    YELLOW = "yellow"
    AMBER = "amber"
    RED = "red"


class ContractEvaluatorNotConfiguredError(RuntimeError):
    """Raised when policy evaluation runs without a contract evaluator."""


@dataclass(frozen=True)
class PolicyConstraint:
    """A single policy finding."""

    key: str
    level: ConstraintLevel
    message: str
    recommendation: str

    @property
    def is_blocking(self) -> bool:
        return self.level == ConstraintLevel.RED or self.recommendation == RECOMMEND_ADDRESS


@dataclass(frozen=True)
class PolicyProfile:
    """Merged view of contract clauses and topology constraints for a plan."""

    plan_id: str
    contract: PlanContractVerdict
    score: float
    risk_score: float  # 0-100, higher is safer
    constraints: tuple[PolicyConstraint, ...]
    risk_profile: tuple[NodeRisk, ...]
    lane_count: int

    @property
    def blocking_constraints(self) -> tuple[PolicyConstraint, ...]:
        return tuple(c for c in self.constraints if c.is_blocking)


@dataclass(frozen=True)
class PolicyDecision:
    """Allow/deny outcome of the policy gate."""

    plan_id: str
    allowed: bool
    reasons: tuple[str, ...]
    profile: PolicyProfile


_contract_evaluator: Optional[ContractEvaluator] = None


def register_contract_evaluator(evaluator: Optional[ContractEvaluator]) -> None:
    """Register (or clear, with None) the process-wide contract evaluator."""
    global _contract_evaluator
    _contract_evaluator = evaluator


def get_contract_evaluator() -> ContractEvaluator:
    """Get the registered contract evaluator."""
    if _contract_evaluator is None:
        raise ContractEvaluatorNotConfiguredError(
            "No plan-contract evaluator registered. Pass contract_evaluator "
            "explicitly or call register_contract_evaluator() at startup."
        )
    return _contract_evaluator


def score_to_level(score: float) -> ConstraintLevel:
    """Map a rounded contract score onto the traffic-light scale."""
    rounded = round_int(score)
    if rounded >= 75:
        return ConstraintLevel.GREEN
    if rounded >= 60:
        return ConstraintLevel.YELLOW
    if rounded >= 40:
        return ConstraintLevel.AMBER
    return ConstraintLevel.RED


class PolicyEvaluator:
    """
    Builds policy profiles and enforces the run gate.

    A plan is allowed to run only when all of these hold:
    - The contract verdict is not a violation
    - The action risk score is at least the configured minimum (30)
    - No constraint is red or asks to be addressed before running
    """

    CRITICAL_PENALTY = 15.0
    DURATION_PENALTY_RATE = 0.2
    DURATION_PENALTY_CAP = 25.0
    DEPENDENCY_PENALTY = 2.0

    def __init__(
        self,
        contract_evaluator: Optional[ContractEvaluator] = None,
        topology_builder: Optional[TopologyBuilder] = None,
        min_risk_score: Optional[float] = None,
        timeline_threshold_minutes: Optional[float] = None,
        risk_smoothing_window: Optional[int] = None,
    ):
        """
        Initialize policy evaluator.

        Args:
            contract_evaluator: External contract evaluator (defaults to the registered one)
            topology_builder: Topology builder (defaults to global instance)
            min_risk_score: Risk score below which the gate blocks
            timeline_threshold_minutes: Readiness window above which the timeline turns amber
            risk_smoothing_window: Moving-average window for the node risk profile
        """
        self._contract_evaluator = contract_evaluator
        self.topology_builder = topology_builder or get_topology_builder()
        self.min_risk_score = (
            settings.policy_min_risk_score if min_risk_score is None else min_risk_score
        )
        self.timeline_threshold_minutes = (
            settings.timeline_window_threshold_minutes
            if timeline_threshold_minutes is None
            else timeline_threshold_minutes
        )
        self.risk_smoothing_window = (
            settings.risk_smoothing_window
            if risk_smoothing_window is None
            else risk_smoothing_window
        )

    @property
    def contract_evaluator(self) -> ContractEvaluator:
        return self._contract_evaluator or get_contract_evaluator()

    def build_profile(
        self, plan: RecoveryPlan, topology: Optional[ScenarioTopology] = None
    ) -> PolicyProfile:
        """
        Build the policy profile for a plan.

        Args:
            plan: Recovery plan to evaluate
            topology: Topology already built for this plan (built here if omitted)

        Returns:
            PolicyProfile with contract clauses followed by topology constraints
        """
        contract = self.contract_evaluator(plan)
        if topology is None:
            topology = self.topology_builder.build(plan)

        constraints = list(self._clause_constraints(contract))
        constraints.extend(self._topology_constraints(topology))

        return PolicyProfile(
            plan_id=plan.plan_id,
            contract=contract,
            score=round_to(contract.score, 2),
            risk_score=self.derive_action_risk_score(plan),
            constraints=tuple(constraints),
            risk_profile=topology_risk_profile(topology, self.risk_smoothing_window),
            lane_count=len(topology.regional_concurrency),
        )

    def derive_action_risk_score(self, plan: RecoveryPlan) -> float:
        """
        Score plan actions on a 0-100 scale (100 = no risk).

        Per-action penalty:
            15 if critical + min(25, duration * 0.2) + 2 * dependency count

        Args:
            plan: Recovery plan

        Returns:
            100 minus the mean penalty, clamped to [0, 100]; 100 for empty plans
        """
        if not plan.actions:
            return 100.0

        penalties = [
            (self.CRITICAL_PENALTY if action.is_critical else 0.0)
            + min(self.DURATION_PENALTY_CAP, action.expected_duration_minutes * self.DURATION_PENALTY_RATE)
            + self.DEPENDENCY_PENALTY * len(action.dependencies)
            for action in plan.actions
        ]
        return round_to(clamp(100 - safe_mean(penalties), 0, 100), 2)

    def enforce(
        self, plan: RecoveryPlan, topology: Optional[ScenarioTopology] = None
    ) -> PolicyDecision:
        """
        Run the policy gate.

        Args:
            plan: Recovery plan
            topology: Topology already built for this plan (built here if omitted)

        Returns:
            PolicyDecision; reasons list blocking constraint messages, plus a
            generic gate line whenever the plan is not allowed
        """
        profile = self.build_profile(plan, topology)
        blocking = profile.blocking_constraints

        allowed = (
            profile.contract.result != "violation"
            and profile.risk_score >= self.min_risk_score
            and not blocking
        )

        reasons = [constraint.message for constraint in blocking]
        if not allowed:
            reasons.append(GATE_BLOCKED_REASON)
            logger.warning(
                f"Policy gate blocked plan {plan.plan_id}: contract={profile.contract.result}, "
                f"risk_score={profile.risk_score:.2f}, blocking={len(blocking)}"
            )
        else:
            logger.info(f"Policy gate allowed plan {plan.plan_id} (risk_score={profile.risk_score:.2f})")

        return PolicyDecision(
            plan_id=plan.plan_id,
            allowed=allowed,
            reasons=tuple(reasons),
            profile=profile,
        )

    def _clause_constraints(self, contract: PlanContractVerdict) -> list[PolicyConstraint]:
        level = score_to_level(contract.score)
        constraints = []
        for result in contract.clauses:
            title = result.clause.title or result.clause.kind
            message = f"{title}: {'; '.join(result.reasons)}" if result.reasons else title
            constraints.append(
                PolicyConstraint(
                    key=result.clause.kind,
                    level=level,
                    message=message,
                    recommendation=RECOMMEND_PROCEED if result.passed else RECOMMEND_ADDRESS,
                )
            )
        return constraints

    def _topology_constraints(self, topology: ScenarioTopology) -> list[PolicyConstraint]:
        node_count = len(topology.nodes)
        density = len(topology.bottlenecks) / node_count if node_count else 0.0
        if density > 0.7:
            density_level = ConstraintLevel.RED
        elif density > 0.35:
            density_level = ConstraintLevel.AMBER
        else:
            density_level = ConstraintLevel.GREEN

        window_minutes = topology.total_minutes
        if window_minutes > self.timeline_threshold_minutes:
            window_level = ConstraintLevel.AMBER
        else:
            window_level = ConstraintLevel.GREEN

        return [
            PolicyConstraint(
                key="topology-density",
                level=density_level,
                message=(
                    f"Bottleneck density {density:.2f} "
                    f"({len(topology.bottlenecks)} of {node_count} nodes)"
                ),
                recommendation=_recommendation_for(density_level),
            ),
            PolicyConstraint(
                key="timeline-window",
                level=window_level,
                message=f"Readiness window spans {window_minutes:.0f} minutes",
                recommendation=_recommendation_for(window_level),
            ),
        ]


def _recommendation_for(level: ConstraintLevel) -> str:
    if level == ConstraintLevel.RED:
        return RECOMMEND_ADDRESS
    if level == ConstraintLevel.GREEN:
        return RECOMMEND_PROCEED
    return RECOMMEND_MONITOR


def build_policy_profile(
    plan: RecoveryPlan,
    contract_evaluator: Optional[ContractEvaluator] = None,
) -> PolicyProfile:
    """Build a policy profile for a plan."""
    return PolicyEvaluator(contract_evaluator=contract_evaluator).build_profile(plan)


def derive_action_risk_score(plan: RecoveryPlan) -> float:
    """Derive the 0-100 action risk score for a plan (100 = no risk)."""
    return PolicyEvaluator().derive_action_risk_score(plan)


def enforce_policy(
    plan: RecoveryPlan,
    contract_evaluator: Optional[ContractEvaluator] = None,
) -> PolicyDecision:
    """Run the policy gate for a plan."""
    return PolicyEvaluator(contract_evaluator=contract_evaluator).enforce(plan)
