"""
One-call assessment of a recovery plan.

Runs every plan-based component against the same plan snapshot and bundles
the results, so report layers don't have to wire the pieces together.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from recovery_lab.config import Settings, settings as default_settings
from recovery_lab.core.decision.policy import PolicyDecision, PolicyEvaluator
from recovery_lab.core.decision.readiness import ReadinessEngine, ScenarioRunState
from recovery_lab.core.runtime import Clock, get_clock
from recovery_lab.core.scheduling.tempo import ExecutionTempo, TempoDecision, TempoPlanner
from recovery_lab.core.topology.builder import ScenarioTopology, TopologyBuilder
from recovery_lab.core.topology.risk_profile import NodeRisk
from recovery_lab.schemas.contract import ContractEvaluator
from recovery_lab.schemas.plan import RecoveryPlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanAssessment:
    """Everything the planning core knows about one plan."""

    plan_id: str
    topology: ScenarioTopology
    risk_profile: tuple[NodeRisk, ...]
    policy: PolicyDecision
    run_state: ScenarioRunState
    tempo: ExecutionTempo
    tempo_decision: TempoDecision

    @property
    def can_run(self) -> bool:
        return self.policy.allowed and self.tempo_decision.allowed


class PlanAssessor:
    """Facade over topology, policy, readiness and tempo for one plan."""

    def __init__(
        self,
        contract_evaluator: Optional[ContractEvaluator] = None,
        clock: Optional[Clock] = None,
        config: Optional[Settings] = None,
    ):
        """
        Initialize plan assessor.

        Args:
            contract_evaluator: External contract evaluator (defaults to the registered one)
            clock: Clock anchoring tempo windows
            config: Settings for thresholds (defaults to global settings)
        """
        self.config = config or default_settings
        self.topology_builder = TopologyBuilder()
        self.policy_evaluator = PolicyEvaluator(
            contract_evaluator=contract_evaluator,
            topology_builder=self.topology_builder,
            min_risk_score=self.config.policy_min_risk_score,
            timeline_threshold_minutes=self.config.timeline_window_threshold_minutes,
            risk_smoothing_window=self.config.risk_smoothing_window,
        )
        self.readiness_engine = ReadinessEngine(self.policy_evaluator)
        self.tempo_planner = TempoPlanner(
            clock=clock or get_clock(),
            horizon_minutes=self.config.tempo_horizon_minutes,
        )

    def assess(self, plan: RecoveryPlan, budget_minutes: Optional[float] = None) -> PlanAssessment:
        """
        Assess a plan end to end.

        Args:
            plan: Recovery plan
            budget_minutes: Tempo budget (defaults to settings, then the plan SLA)

        Returns:
            PlanAssessment
        """
        if budget_minutes is None:
            budget_minutes = self.config.default_tempo_budget_minutes
        if budget_minutes is None:
            budget_minutes = plan.sla_minutes

        # Shared inputs are computed once per assessment
        topology = self.topology_builder.build(plan)
        policy = self.policy_evaluator.enforce(plan, topology)
        tempo = self.tempo_planner.forecast(plan)
        assessment = PlanAssessment(
            plan_id=plan.plan_id,
            topology=topology,
            risk_profile=policy.profile.risk_profile,
            policy=policy,
            run_state=self.readiness_engine.build_run_state(plan, policy),
            tempo=tempo,
            tempo_decision=self.tempo_planner.can_run(plan, budget_minutes, tempo),
        )

        logger.info(
            f"Assessed plan {plan.plan_id}: state={assessment.run_state.state.value}, "
            f"policy_allowed={assessment.policy.allowed}, "
            f"tempo_allowed={assessment.tempo_decision.allowed}"
        )
        return assessment


# Global instance
_plan_assessor: Optional[PlanAssessor] = None


def get_plan_assessor() -> PlanAssessor:
    """Get global plan assessor instance."""
    global _plan_assessor
    if _plan_assessor is None:
        _plan_assessor = PlanAssessor()
    return _plan_assessor
