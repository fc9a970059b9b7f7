"""
Execution-speed scenarios for recovery intents.

Projects one base step-by-step timeline for an intent, then scales it into
three profiles so operators can compare how fast they can afford to go:
- fast (1.0x): the base projection
- balanced (1.22x): room for verification between steps
- safe (1.55x): staged execution with generous soak time

Each scenario carries a synthetic progress trajectory for visualization.
The trajectory is a cosmetic curve, not a model of the execution.
"""
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Sequence

from recovery_lab.core.normalization import round_int, round_to, safe_mean
from recovery_lab.core.risk.intent_risk import IntentRiskAssessor, RiskAssessment
from recovery_lab.core.runtime import (
    Clock,
    IdGenerator,
    ensure_utc,
    get_clock,
    get_id_generator,
)
from recovery_lab.schemas.intent import RecoveryIntent, RecoveryStep

logger = logging.getLogger(__name__)


class ScenarioProfile(str, Enum):
    """Execution-speed profile."""

    FAST = "fast"
    BALANCED = "balanced"
    SAFE = "safe"


class ScenarioRecommendation(str, Enum):
    """What to do with a simulated scenario."""

    EXECUTE = "execute"
    DELAY = "delay"
    STAGGER = "stagger"


PROFILE_MULTIPLIERS: dict[ScenarioProfile, float] = {
    ScenarioProfile.FAST: 1.0,
    ScenarioProfile.BALANCED: 1.22,
    ScenarioProfile.SAFE: 1.55,
}


@dataclass(frozen=True)
class StepProjection:
    """Projected timing of one intent step."""

    step_key: str
    service: str
    eta_minutes: float
    start_at: datetime
    end_at: datetime


@dataclass(frozen=True)
class TrajectoryPoint:
    """One point of a synthetic progress curve."""

    at: datetime
    value: float  # 0-100 progress
    label: str  # baseline, inflight, post


@dataclass(frozen=True)
class SimulationScenario:
    """One execution-speed projection of an intent."""

    scenario_id: str
    profile: ScenarioProfile
    multiplier: float
    confidence: float  # 0.0-1.0
    projected_minutes: float
    composite_risk: float  # 0-100
    steps: tuple[StepProjection, ...]
    trajectory: tuple[TrajectoryPoint, ...]
    recommendation: ScenarioRecommendation


@dataclass(frozen=True)
class SimulationReport:
    """All scenarios for an intent plus the selected one."""

    simulation_id: str
    intent_id: str
    risk: RiskAssessment
    scenarios: tuple[SimulationScenario, ...]
    recommended: SimulationScenario
    generated_at: datetime


class ScenarioSimulator:
    """
    Simulates fast/balanced/safe executions of a recovery intent.

    Per-step eta in the base projection:
        round(expected_minutes + jitter * 6 - 3 + risk_adjustment * 0.03)
    where jitter is a stable hash of the step key, index and duration
    (mod 10). Etas are floored at one minute.
    """

    URGENCY_BY_PRIORITY = {
        "critical": 90,
        "high": 75,
        "medium": 50,
        "low": 25,
    }
    DEFAULT_URGENCY = 40
    EXECUTE_URGENCY = 70
    EXECUTE_RISK_CEILING = 70
    DELAY_RISK_FLOOR = 85

    def __init__(
        self,
        clock: Optional[Clock] = None,
        id_generator: Optional[IdGenerator] = None,
        risk_assessor: Optional[IntentRiskAssessor] = None,
    ):
        """
        Initialize scenario simulator.

        Args:
            clock: Clock for timestamps (defaults to system clock)
            id_generator: Source of simulation/scenario id suffixes
            risk_assessor: Intent risk assessor (defaults to one sharing the clock)
        """
        self.clock = clock or get_clock()
        self.id_generator = id_generator or get_id_generator()
        self.risk_assessor = risk_assessor or IntentRiskAssessor(clock=self.clock)

    def simulate(self, intent: RecoveryIntent) -> SimulationReport:
        """
        Simulate all three profiles for an intent.

        Args:
            intent: Recovery intent

        Returns:
            SimulationReport; the recommended scenario is the first one
            recommending execute, else the balanced one
        """
        logger.info(f"Simulating {len(intent.steps)} steps for intent {intent.intent_id}")

        risk = self.risk_assessor.evaluate(intent)
        origin = ensure_utc(intent.start_at) if intent.start_at else self.clock.now()
        base = self._base_projection(intent.steps, origin)
        urgency = self.urgency_for(intent.priority)

        scenarios = tuple(
            self._build_scenario(intent, profile, multiplier, base, origin, risk, urgency)
            for profile, multiplier in PROFILE_MULTIPLIERS.items()
        )

        recommended = next(
            (s for s in scenarios if s.recommendation == ScenarioRecommendation.EXECUTE),
            None,
        )
        if recommended is None:
            recommended = next(s for s in scenarios if s.profile == ScenarioProfile.BALANCED)

        report = SimulationReport(
            simulation_id=self.id_generator.next_id(f"sim-{intent.intent_id}"),
            intent_id=intent.intent_id,
            risk=risk,
            scenarios=scenarios,
            recommended=recommended,
            generated_at=self.clock.now(),
        )

        logger.info(
            f"Simulation complete for {intent.intent_id}: recommended "
            f"{recommended.profile.value} ({recommended.recommendation.value}, "
            f"{recommended.projected_minutes:.1f}m)"
        )
        return report

    def urgency_for(self, priority: str) -> int:
        return self.URGENCY_BY_PRIORITY.get(priority.lower(), self.DEFAULT_URGENCY)

    @staticmethod
    def step_jitter(step: RecoveryStep, index: int) -> int:
        """Stable 0-9 jitter for a step."""
        seed = f"{step.key}:{index}:{step.expected_minutes:g}"
        return int(hashlib.sha256(seed.encode()).hexdigest(), 16) % 10

    def _base_projection(
        self,
        steps: Sequence[RecoveryStep],
        origin: datetime,
    ) -> tuple[StepProjection, ...]:
        cursor = origin
        projections = []
        for index, step in enumerate(steps):
            jitter = self.step_jitter(step, index)
            eta = max(
                1,
                round_int(step.expected_minutes + jitter * 6 - 3 + step.risk_adjustment * 0.03),
            )
            end = cursor + timedelta(minutes=eta)
            projections.append(
                StepProjection(
                    step_key=step.key,
                    service=step.service,
                    eta_minutes=float(eta),
                    start_at=cursor,
                    end_at=end,
                )
            )
            cursor = end
        return tuple(projections)

    def _build_scenario(
        self,
        intent: RecoveryIntent,
        profile: ScenarioProfile,
        multiplier: float,
        base: tuple[StepProjection, ...],
        origin: datetime,
        risk: RiskAssessment,
        urgency: int,
    ) -> SimulationScenario:
        steps = tuple(self._scale(step, multiplier) for step in base)
        composite_risk = round_to(risk.composite_score / multiplier, 2)

        return SimulationScenario(
            scenario_id=self.id_generator.next_id(f"{intent.intent_id}-{profile.value}"),
            profile=profile,
            multiplier=multiplier,
            confidence=round_to(min(1.0, risk.vector.confidence * (0.85 + 0.2 * (multiplier - 1))), 3),
            projected_minutes=round_to(sum(step.eta_minutes for step in steps), 2),
            composite_risk=composite_risk,
            steps=steps,
            trajectory=self._trajectory(steps, origin),
            recommendation=self._recommend(urgency, composite_risk),
        )

    @staticmethod
    def _scale(step: StepProjection, multiplier: float) -> StepProjection:
        shift = timedelta(minutes=step.eta_minutes * (multiplier - 1))
        return StepProjection(
            step_key=step.step_key,
            service=step.service,
            eta_minutes=round_to(step.eta_minutes * multiplier, 2),
            start_at=step.start_at + shift,
            end_at=step.end_at + shift,
        )

    @staticmethod
    def _trajectory(
        steps: tuple[StepProjection, ...],
        origin: datetime,
    ) -> tuple[TrajectoryPoint, ...]:
        points = [TrajectoryPoint(at=origin, value=0.0, label="baseline")]
        total = len(steps)
        for index, step in enumerate(steps):
            points.append(
                TrajectoryPoint(
                    at=step.start_at + timedelta(minutes=2),
                    value=round_to(100 * index / total + 1, 2),
                    label="inflight",
                )
            )
            points.append(
                TrajectoryPoint(
                    at=step.end_at - timedelta(minutes=1),
                    value=round_to(100 * (index + 1) / total - 1, 2),
                    label="inflight",
                )
            )
        finish = steps[-1].end_at if steps else origin
        points.append(TrajectoryPoint(at=finish, value=100.0, label="post"))
        return tuple(points)

    def _recommend(self, urgency: int, risk: float) -> ScenarioRecommendation:
        if urgency >= self.EXECUTE_URGENCY and risk < self.EXECUTE_RISK_CEILING:
            return ScenarioRecommendation.EXECUTE
        if risk >= self.DELAY_RISK_FLOOR:
            return ScenarioRecommendation.DELAY
        return ScenarioRecommendation.STAGGER


def estimate_score(scenario: SimulationScenario) -> float:
    """
    Rank score for a scenario; higher is better.

    mean(trajectory) - composite risk - projected minutes + confidence * 100
    """
    return (
        safe_mean(point.value for point in scenario.trajectory)
        - scenario.composite_risk
        - scenario.projected_minutes
        + scenario.confidence * 100
    )


def pick_best_scenario(
    scenarios: Sequence[SimulationScenario],
) -> Optional[SimulationScenario]:
    """Pick the highest-scoring scenario; the earliest wins ties."""
    best: Optional[SimulationScenario] = None
    best_score = 0.0
    for scenario in scenarios:
        score = estimate_score(scenario)
        if best is None or score > best_score:
            best, best_score = scenario, score
    return best


def generate_simulation_report_text(report: SimulationReport) -> str:
    """
    Generate a human-readable comparison of the simulated scenarios.

    Args:
        report: Simulation report

    Returns:
        Formatted report string
    """
    lines = []
    lines.append("=" * 70)
    lines.append("RECOVERY SIMULATION: SCENARIO COMPARISON")
    lines.append("=" * 70)

    lines.append(f"\nIntent: {report.intent_id}")
    lines.append(
        f"Composite Risk: {report.risk.composite_score:.2f} "
        f"({report.risk.recommendation.value.upper()}, "
        f"confidence {report.risk.vector.confidence:.0%})"
    )

    lines.append("\n" + "-" * 70)
    lines.append("SCENARIOS:")
    lines.append("-" * 70)

    for idx, scenario in enumerate(report.scenarios, 1):
        marker = " <- RECOMMENDED" if scenario.scenario_id == report.recommended.scenario_id else ""
        lines.append(f"\n{idx}. {scenario.profile.value.upper()} (x{scenario.multiplier:.2f}){marker}")
        lines.append(f"   Recommendation: {scenario.recommendation.value}")
        lines.append(f"   Projected Minutes: {scenario.projected_minutes:.1f}")
        lines.append(f"   Scenario Risk: {scenario.composite_risk:.2f}")
        lines.append(f"   Confidence: {scenario.confidence:.0%}")
        lines.append(f"   Estimate Score: {estimate_score(scenario):.2f}")
        for step in scenario.steps[:5]:
            lines.append(
                f"     - {step.step_key}: {step.eta_minutes:.1f}m "
                f"({step.start_at:%H:%M} -> {step.end_at:%H:%M})"
            )

    lines.append("\n" + "=" * 70)
    lines.append(
        f"RECOMMENDED: {report.recommended.profile.value.upper()} "
        f"({report.recommended.recommendation.value})"
    )
    lines.append("=" * 70)

    return "\n".join(lines)


# Global instance
_scenario_simulator: Optional[ScenarioSimulator] = None


def get_scenario_simulator() -> ScenarioSimulator:
    """Get global scenario simulator instance."""
    global _scenario_simulator
    if _scenario_simulator is None:
        _scenario_simulator = ScenarioSimulator()
    return _scenario_simulator


def simulate_intent_recovery(
    intent: RecoveryIntent,
    clock: Optional[Clock] = None,
    id_generator: Optional[IdGenerator] = None,
) -> SimulationReport:
    """Simulate fast/balanced/safe executions of an intent."""
    if clock is None and id_generator is None:
        return get_scenario_simulator().simulate(intent)
    return ScenarioSimulator(clock=clock, id_generator=id_generator).simulate(intent)
