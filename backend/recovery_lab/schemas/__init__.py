"""Input schemas produced by the plan/intent authoring surfaces."""
from recovery_lab.schemas.contract import (
    ContractClause,
    ContractClauseResult,
    ContractEvaluator,
    ContractResult,
    PlanContractVerdict,
)
from recovery_lab.schemas.intent import RecoveryIntent, RecoveryStep
from recovery_lab.schemas.plan import CRITICAL_TAG, RecoveryAction, RecoveryPlan

__all__ = [
    "CRITICAL_TAG",
    "ContractClause",
    "ContractClauseResult",
    "ContractEvaluator",
    "ContractResult",
    "PlanContractVerdict",
    "RecoveryAction",
    "RecoveryIntent",
    "RecoveryPlan",
    "RecoveryStep",
]
