"""
Decision subsystem: policy gate and readiness scoring for recovery plans.
"""
from recovery_lab.core.decision.policy import (
    ConstraintLevel,
    ContractEvaluatorNotConfiguredError,
    PolicyConstraint,
    PolicyDecision,
    PolicyEvaluator,
    PolicyProfile,
    build_policy_profile,
    derive_action_risk_score,
    enforce_policy,
    get_contract_evaluator,
    register_contract_evaluator,
    score_to_level,
)
from recovery_lab.core.decision.readiness import (
    ReadinessEngine,
    RunState,
    ScenarioRunState,
    build_scenario_run_state,
)

__all__ = [
    "ConstraintLevel",
    "ContractEvaluatorNotConfiguredError",
    "PolicyConstraint",
    "PolicyDecision",
    "PolicyEvaluator",
    "PolicyProfile",
    "ReadinessEngine",
    "RunState",
    "ScenarioRunState",
    "build_policy_profile",
    "build_scenario_run_state",
    "derive_action_risk_score",
    "enforce_policy",
    "get_contract_evaluator",
    "register_contract_evaluator",
    "score_to_level",
]
