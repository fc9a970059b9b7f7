"""
Six-dimension risk assessment for recovery intents.

Dimensions are scored independently from the intent's steps, tags and
schedule, then blended into a composite score weighted by priority and
scope:

    composite = mean(levels) * priority_weight * log2(1 + scope_multiplier)

The scope term is skipped for intents without steps.
"""
import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from recovery_lab.core.normalization import clamp, round_to, safe_mean
from recovery_lab.core.runtime import Clock, ensure_utc, get_clock
from recovery_lab.schemas.intent import RecoveryIntent

logger = logging.getLogger(__name__)

DESTRUCTIVE_ACTION_PATTERN = re.compile(r"revoke|reimage|wipe", re.IGNORECASE)
TELEMETRY_CAPABILITY = "telemetry"
APPROVAL_TAGS = frozenset({"needs-approval", "hotfix"})


class RiskCategory(str, Enum):
    """Risk dimensions scored for every intent."""

    CAPACITY = "capacity"
    DEPENDENCY = "dependency"
    SECURITY = "security"
    OBSERVABILITY = "observability"
    POLICY = "policy"
    TIMING = "timing"


class RiskRecommendation(str, Enum):
    """Recommendation derived from the composite score."""

    EXECUTE = "execute"
    THROTTLE = "throttle"
    ESCALATE = "escalate"
    BLOCK = "block"


@dataclass(frozen=True)
class RiskDimension:
    """Score and context for one risk category."""

    category: RiskCategory
    level: float  # 1-100
    rationale: str
    mitigations: tuple[str, ...]


@dataclass(frozen=True)
class RiskVector:
    """All six dimensions plus the weights used to blend them."""

    dimensions: tuple[RiskDimension, ...]
    priority_weight: float
    scope_multiplier: float
    confidence: float  # 0.0-1.0

    def level_of(self, category: RiskCategory) -> float:
        for dimension in self.dimensions:
            if dimension.category == category:
                return dimension.level
        return 0.0


@dataclass(frozen=True)
class RiskAssessment:
    """Composite risk assessment for an intent."""

    intent_id: str
    vector: RiskVector
    composite_score: float  # 0-100
    recommendation: RiskRecommendation
    assessed_at: datetime


class IntentRiskAssessor:
    """
    Scores recovery intents across six risk dimensions.

    Priority weights and scope multipliers fall back to 1.0 for values the
    tables do not know.
    """

    PRIORITY_WEIGHTS = {
        "critical": 1.35,
        "high": 1.15,
        "medium": 1.0,
        "low": 0.85,
    }
    SCOPE_MULTIPLIERS = {
        "service": 1.0,
        "zone": 1.25,
        "region": 1.5,
        "platform": 2.0,
        "global": 2.5,
    }
    NEAR_START_WINDOW = timedelta(minutes=60)

    def __init__(self, clock: Optional[Clock] = None):
        """
        Initialize intent risk assessor.

        Args:
            clock: Clock used to judge how close the scheduled start is
        """
        self.clock = clock or get_clock()

    def evaluate_vector(self, intent: RecoveryIntent) -> RiskVector:
        """
        Score the six risk dimensions for an intent.

        Args:
            intent: Recovery intent

        Returns:
            RiskVector with every level clamped to [1, 100]
        """
        steps = intent.steps
        total_minutes = sum(step.expected_minutes for step in steps)
        max_capabilities = max((len(step.required_capabilities) for step in steps), default=0)
        destructive = [step.key for step in steps if DESTRUCTIVE_ACTION_PATTERN.search(step.action)]
        fully_observed = all(TELEMETRY_CAPABILITY in step.required_capabilities for step in steps)
        approval_tags = sorted(APPROVAL_TAGS.intersection(intent.tags))
        starts_later = self._starts_later(intent)

        dimensions = (
            self._dimension(
                RiskCategory.CAPACITY,
                15 + total_minutes / 8,
                f"{total_minutes:.0f} expected minutes across {len(steps)} steps",
                ("Pre-scale target services", "Split long steps into checkpoints"),
            ),
            self._dimension(
                RiskCategory.DEPENDENCY,
                16 * max_capabilities,
                f"Widest step requires {max_capabilities} capabilities",
                ("Verify capability owners are on call",),
            ),
            self._dimension(
                RiskCategory.SECURITY,
                25 * len(destructive),
                (
                    f"Destructive steps: {', '.join(destructive)}"
                    if destructive
                    else "No destructive steps"
                ),
                ("Require dual approval for destructive steps", "Snapshot state before wipe/reimage"),
            ),
            self._dimension(
                RiskCategory.OBSERVABILITY,
                max(10, 100 - len(steps) * 2 - (35 if fully_observed else 0)),
                (
                    "Telemetry attached to every step"
                    if fully_observed
                    else "Some steps run without telemetry"
                ),
                ("Attach telemetry capability to each step",),
            ),
            self._dimension(
                RiskCategory.POLICY,
                30 if approval_tags else 5,
                (
                    f"Approval-gated tags: {', '.join(approval_tags)}"
                    if approval_tags
                    else "No approval-gated tags"
                ),
                ("Collect approvals before the change window",),
            ),
            self._dimension(
                RiskCategory.TIMING,
                12 if starts_later else 55,
                (
                    "Scheduled start leaves more than an hour of lead time"
                    if starts_later
                    else "Start is imminent or unscheduled"
                ),
                ("Schedule the start at least an hour out",),
            ),
        )

        high_dimensions = sum(1 for dimension in dimensions if dimension.level >= 70)
        confidence = clamp(0.45 + 0.08 * len(steps) - 0.05 * high_dimensions, 0.1, 1.0)

        return RiskVector(
            dimensions=dimensions,
            priority_weight=self.priority_weight(intent.priority),
            scope_multiplier=self.scope_multiplier(intent.scope),
            confidence=round_to(confidence, 2),
        )

    def evaluate(self, intent: RecoveryIntent) -> RiskAssessment:
        """
        Assess an intent and derive its composite score and recommendation.

        Args:
            intent: Recovery intent

        Returns:
            RiskAssessment
        """
        vector = self.evaluate_vector(intent)
        mean_level = safe_mean(dimension.level for dimension in vector.dimensions)
        scope_factor = math.log2(1 + vector.scope_multiplier) if intent.steps else 1.0

        composite = round_to(clamp(mean_level * vector.priority_weight * scope_factor, 0, 100), 2)
        recommendation = self.recommendation_for(composite)

        logger.info(
            f"Intent {intent.intent_id} risk: composite {composite:.2f} -> "
            f"{recommendation.value} (priority={intent.priority}, scope={intent.scope})"
        )

        return RiskAssessment(
            intent_id=intent.intent_id,
            vector=vector,
            composite_score=composite,
            recommendation=recommendation,
            assessed_at=self.clock.now(),
        )

    def priority_weight(self, priority: str) -> float:
        return self.PRIORITY_WEIGHTS.get(priority.lower(), 1.0)

    def scope_multiplier(self, scope: str) -> float:
        return self.SCOPE_MULTIPLIERS.get(scope.lower(), 1.0)

    @staticmethod
    def recommendation_for(score: float) -> RiskRecommendation:
        if score >= 80:
            return RiskRecommendation.EXECUTE
        if score >= 60:
            return RiskRecommendation.THROTTLE
        if score >= 40:
            return RiskRecommendation.ESCALATE
        return RiskRecommendation.BLOCK

    def _starts_later(self, intent: RecoveryIntent) -> bool:
        if intent.start_at is None:
            return False
        return ensure_utc(intent.start_at) - self.clock.now() > self.NEAR_START_WINDOW

    @staticmethod
    def _dimension(
        category: RiskCategory,
        raw_level: float,
        rationale: str,
        mitigations: tuple[str, ...],
    ) -> RiskDimension:
        return RiskDimension(
            category=category,
            level=round_to(clamp(raw_level, 1, 100), 2),
            rationale=rationale,
            mitigations=mitigations,
        )


def evaluate_risk_vector(intent: RecoveryIntent, clock: Optional[Clock] = None) -> RiskVector:
    """Score the six risk dimensions for an intent."""
    return IntentRiskAssessor(clock=clock).evaluate_vector(intent)


def evaluate_risk(intent: RecoveryIntent, clock: Optional[Clock] = None) -> RiskAssessment:
    """Assess an intent's composite risk."""
    return IntentRiskAssessor(clock=clock).evaluate(intent)
