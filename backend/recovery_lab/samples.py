"""
Sample recovery plans and intents for demos and tests.

Each sample models a realistic remediation:
- Plans exercise different modes, regional spreads and dependency shapes
- Intents exercise destructive steps, approval tags and scopes
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional

from recovery_lab.schemas.intent import RecoveryIntent, RecoveryStep
from recovery_lab.schemas.plan import RecoveryAction, RecoveryPlan

SAMPLE_EPOCH = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


# ============================================
# Plans
# ============================================

PLAN_REGIONAL_FAILOVER = RecoveryPlan(
    plan_id="regional-failover",
    mode="automated",
    is_safe=False,
    sla_minutes=150,
    actions=(
        RecoveryAction(
            id="freeze-deploys",
            service_code="deploy-controller",
            region="us-east-1",
            expected_duration_minutes=5,
            tags=("guardrail",),
            retries_allowed=1,
        ),
        RecoveryAction(
            id="drain-east",
            service_code="edge-router",
            region="us-east-1",
            expected_duration_minutes=25,
            dependencies=("freeze-deploys",),
            tags=("critical", "traffic"),
            retries_allowed=2,
        ),
        RecoveryAction(
            id="promote-west-db",
            service_code="orders-db",
            region="us-west-2",
            expected_duration_minutes=40,
            dependencies=("freeze-deploys",),
            tags=("critical", "database", "stateful"),
            retries_allowed=0,
        ),
        RecoveryAction(
            id="scale-west-api",
            service_code="orders-api",
            region="us-west-2",
            expected_duration_minutes=15,
            dependencies=("promote-west-db", "drain-east"),
            tags=("capacity",),
            retries_allowed=3,
        ),
        RecoveryAction(
            id="shift-traffic-west",
            service_code="edge-router",
            region="us-west-2",
            expected_duration_minutes=20,
            dependencies=("scale-west-api", "promote-west-db"),
            tags=("critical", "traffic"),
            retries_allowed=1,
        ),
        RecoveryAction(
            id="verify-checkout",
            service_code="synthetics",
            region="us-west-2",
            expected_duration_minutes=10,
            dependencies=("shift-traffic-west",),
            tags=("verify",),
            retries_allowed=2,
        ),
    ),
)

PLAN_CACHE_FLUSH = RecoveryPlan(
    plan_id="cache-flush",
    mode="semi",
    is_safe=True,
    sla_minutes=60,
    actions=(
        RecoveryAction(
            id="snapshot-hot-keys",
            service_code="session-cache",
            region="eu-central-1",
            expected_duration_minutes=4,
            tags=("verify",),
        ),
        RecoveryAction(
            id="flush-cache",
            service_code="session-cache",
            region="eu-central-1",
            expected_duration_minutes=2,
            dependencies=("snapshot-hot-keys",),
            retries_allowed=2,
        ),
        RecoveryAction(
            id="warm-cache",
            service_code="session-cache",
            region="eu-central-1",
            expected_duration_minutes=8,
            dependencies=("flush-cache",),
            retries_allowed=1,
        ),
    ),
)

PLAN_CREDENTIAL_ROTATION = RecoveryPlan(
    plan_id="credential-rotation",
    mode="manual",
    is_safe=False,
    sla_minutes=300,
    actions=(
        RecoveryAction(
            id="issue-new-keys",
            service_code="vault",
            region="global",
            expected_duration_minutes=30,
            tags=("critical", "security"),
            retries_allowed=1,
        ),
        RecoveryAction(
            id="roll-api-secrets",
            service_code="payments-api",
            region="us-east-1",
            expected_duration_minutes=90,
            dependencies=("issue-new-keys",),
            tags=("critical", "security", "rollout"),
            retries_allowed=2,
        ),
        RecoveryAction(
            id="roll-worker-secrets",
            service_code="payments-worker",
            region="us-east-1",
            expected_duration_minutes=75,
            dependencies=("issue-new-keys",),
            tags=("critical", "security", "rollout"),
            retries_allowed=2,
        ),
        RecoveryAction(
            id="revoke-old-keys",
            service_code="vault",
            region="global",
            expected_duration_minutes=20,
            dependencies=("roll-api-secrets", "roll-worker-secrets"),
            tags=("critical", "security"),
            retries_allowed=0,
        ),
    ),
)


# ============================================
# Intents
# ============================================

INTENT_CREDENTIAL_REVOCATION = RecoveryIntent(
    intent_id="intent-credential-revocation",
    title="Revoke leaked deploy credentials",
    scope="platform",
    priority="critical",
    mode="automated",
    status="approved",
    operator="sre-oncall",
    zone="us-east-1a",
    requested_at=SAMPLE_EPOCH,
    start_at=SAMPLE_EPOCH,
    tags=("security", "needs-approval"),
    notes=("Credentials exposed in public CI logs",),
    steps=(
        RecoveryStep(
            key="revoke-tokens",
            action="Revoke all deploy tokens issued in the last 24h",
            operator="sre-oncall",
            service="deploy-controller",
            expected_minutes=10,
            required_capabilities=("iam-admin", "telemetry"),
            risk_adjustment=40,
        ),
        RecoveryStep(
            key="reimage-runners",
            action="Reimage CI runners from golden image",
            operator="sre-oncall",
            service="ci-runners",
            expected_minutes=45,
            required_capabilities=("compute-admin", "image-registry", "telemetry"),
            risk_adjustment=25,
        ),
        RecoveryStep(
            key="verify-pipelines",
            action="Run smoke pipelines against fresh runners",
            operator="release-eng",
            service="ci-runners",
            expected_minutes=20,
            required_capabilities=("telemetry",),
            risk_adjustment=5,
        ),
    ),
)

INTENT_CACHE_WARMUP = RecoveryIntent(
    intent_id="intent-cache-warmup",
    title="Warm session cache after flush",
    scope="service",
    priority="low",
    mode="semi",
    status="draft",
    operator="platform-team",
    zone="eu-central-1b",
    requested_at=SAMPLE_EPOCH,
    tags=("maintenance",),
    steps=(
        RecoveryStep(
            key="replay-hot-keys",
            action="Replay hot key snapshot into cache",
            operator="platform-team",
            service="session-cache",
            expected_minutes=8,
            required_capabilities=("cache-admin",),
            risk_adjustment=5,
        ),
    ),
)


# ============================================
# Sample Registry
# ============================================

PLAN_REGISTRY: Dict[str, RecoveryPlan] = {
    PLAN_REGIONAL_FAILOVER.plan_id: PLAN_REGIONAL_FAILOVER,
    PLAN_CACHE_FLUSH.plan_id: PLAN_CACHE_FLUSH,
    PLAN_CREDENTIAL_ROTATION.plan_id: PLAN_CREDENTIAL_ROTATION,
}

INTENT_REGISTRY: Dict[str, RecoveryIntent] = {
    INTENT_CREDENTIAL_REVOCATION.intent_id: INTENT_CREDENTIAL_REVOCATION,
    INTENT_CACHE_WARMUP.intent_id: INTENT_CACHE_WARMUP,
}


def get_sample_plan(plan_id: str) -> Optional[RecoveryPlan]:
    """
    Get a sample plan by ID.

    Args:
        plan_id: Sample plan identifier

    Returns:
        RecoveryPlan if found, None otherwise
    """
    return PLAN_REGISTRY.get(plan_id)


def list_sample_plans(mode: Optional[str] = None) -> List[RecoveryPlan]:
    """List sample plans, optionally filtered by execution mode."""
    plans = list(PLAN_REGISTRY.values())
    if mode:
        plans = [plan for plan in plans if plan.mode == mode]
    return plans


def get_sample_intent(intent_id: str) -> Optional[RecoveryIntent]:
    """Get a sample intent by ID, or None."""
    return INTENT_REGISTRY.get(intent_id)


def list_sample_intents(priority: Optional[str] = None) -> List[RecoveryIntent]:
    """List sample intents, optionally filtered by priority."""
    intents = list(INTENT_REGISTRY.values())
    if priority:
        intents = [intent for intent in intents if intent.priority == priority]
    return intents
