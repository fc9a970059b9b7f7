"""Pydantic schemas for the plan-contract verdict consumed by the policy gate."""
from typing import Callable, Literal

from pydantic import BaseModel, ConfigDict, Field

from recovery_lab.schemas.plan import RecoveryPlan

ContractResult = Literal["pass", "warning", "violation"]


class ContractClause(BaseModel):
    """Identifies one clause of a plan contract."""

    model_config = ConfigDict(frozen=True)

    kind: str = Field(..., min_length=1)
    title: str = ""


class ContractClauseResult(BaseModel):
    """Outcome of evaluating a single clause against a plan."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    clause: ContractClause
    passed: bool = Field(..., alias="pass")
    reasons: tuple[str, ...] = Field(default_factory=tuple)


class PlanContractVerdict(BaseModel):
    """Verdict returned by the external plan-contract evaluator."""

    model_config = ConfigDict(frozen=True)

    result: ContractResult
    score: float
    clauses: tuple[ContractClauseResult, ...] = Field(default_factory=tuple)


ContractEvaluator = Callable[[RecoveryPlan], PlanContractVerdict]
