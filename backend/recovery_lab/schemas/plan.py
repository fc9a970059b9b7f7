"""Pydantic schemas for recovery plans and their remediation actions."""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CRITICAL_TAG = "critical"


class RecoveryAction(BaseModel):
    """A single remediation action inside a recovery plan."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., min_length=1)
    service_code: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)
    desired_state: str = Field(default="up")
    expected_duration_minutes: float = Field(..., ge=0)
    dependencies: tuple[str, ...] = Field(default_factory=tuple)
    tags: tuple[str, ...] = Field(default_factory=tuple)
    retries_allowed: int = Field(default=0, ge=0)

    @property
    def is_critical(self) -> bool:
        return CRITICAL_TAG in self.tags


class RecoveryPlan(BaseModel):
    """Declarative recovery plan: an ordered set of actions plus run metadata."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    plan_id: str = Field(..., min_length=1)
    actions: tuple[RecoveryAction, ...] = Field(default_factory=tuple)
    is_safe: bool = False
    sla_minutes: float = Field(default=120, ge=0)
    mode: str = Field(default="automated", description="automated, semi, or other")
