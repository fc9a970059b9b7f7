"""Pydantic schemas for recovery intents authored as ordered steps."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RecoveryStep(BaseModel):
    """One step of a recovery intent."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    key: str = Field(..., min_length=1)
    action: str = Field(..., description="Free-text description of what the step does")
    operator: str = ""
    service: str = ""
    expected_minutes: float = Field(default=0, ge=0)
    required_capabilities: tuple[str, ...] = Field(default_factory=tuple)
    risk_adjustment: float = Field(default=0, ge=0, le=100)


class RecoveryIntent(BaseModel):
    """Higher-level recovery request, independent of the plan/action model."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    intent_id: str = Field(..., min_length=1)
    title: str = ""
    scope: str = Field(default="service", description="service, zone, region, platform, global")
    priority: str = Field(default="medium", description="critical, high, medium, low")
    mode: str = "automated"
    status: str = "draft"
    operator: str = ""
    zone: str = ""
    requested_at: datetime
    start_at: Optional[datetime] = None
    steps: tuple[RecoveryStep, ...] = Field(default_factory=tuple)
    tags: tuple[str, ...] = Field(default_factory=tuple)
    notes: tuple[str, ...] = Field(default_factory=tuple)
