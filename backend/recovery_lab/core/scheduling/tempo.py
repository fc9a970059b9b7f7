"""
Execution tempo forecasting.

Buckets a plan's actions, in plan order, into time windows sized by the
concurrency the plan's mode allows, then classifies each window's load and
risk. Independent of the topology: no dependency ordering is applied here.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from recovery_lab.config import settings
from recovery_lab.core.normalization import round_to, safe_mean
from recovery_lab.core.runtime import Clock, get_clock
from recovery_lab.schemas.plan import RecoveryAction, RecoveryPlan

logger = logging.getLogger(__name__)


class TempoRisk(str, Enum):
    """Risk classification of a tempo window."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class TempoWindow:
    """A batch of actions expected to run concurrently."""

    index: int
    start_at: datetime
    end_at: datetime
    action_ids: tuple[str, ...]
    cumulative_minutes: float
    capacity_usage: float  # 0-100
    risk: TempoRisk


@dataclass(frozen=True)
class ExecutionTempo:
    """Windowed execution forecast for a plan."""

    plan_id: str
    window_length_minutes: int
    concurrency_target: int
    windows: tuple[TempoWindow, ...]
    total_minutes: float
    throughput: float  # Actions per hour


@dataclass(frozen=True)
class TempoDecision:
    """Whether a plan's tempo fits a time budget."""

    plan_id: str
    allowed: bool
    budget_minutes: float
    safety_margin: float
    average_capacity_usage: float
    high_risk_windows: tuple[int, ...]


class TempoPlanner:
    """
    Forecasts execution tempo and checks it against time budgets.

    Concurrency by plan mode: automated 4, semi 3, anything else 2.
    """

    CONCURRENCY_BY_MODE = {"automated": 4, "semi": 3}
    DEFAULT_CONCURRENCY = 2
    MIN_WINDOW_MINUTES = 5
    MIN_AVG_DURATION = 2.0
    SAFETY_MARGIN_FLOOR = 0.82

    def __init__(self, clock: Optional[Clock] = None, horizon_minutes: Optional[int] = None):
        """
        Initialize tempo planner.

        Args:
            clock: Clock anchoring window timestamps (defaults to system clock)
            horizon_minutes: Horizon divided across actions to size windows
        """
        self.clock = clock or get_clock()
        self.horizon_minutes = horizon_minutes or settings.tempo_horizon_minutes

    def forecast(self, plan: RecoveryPlan) -> ExecutionTempo:
        """
        Forecast execution tempo for a plan.

        Args:
            plan: Recovery plan

        Returns:
            ExecutionTempo; an empty plan yields no windows
        """
        actions = list(plan.actions)
        count = len(actions)
        window_length = max(self.MIN_WINDOW_MINUTES, self.horizon_minutes // max(1, count))
        concurrency = self.concurrency_target(plan.mode)

        start = self.clock.now()
        cumulative = 0.0
        windows = []
        for index, offset in enumerate(range(0, count, concurrency)):
            group = actions[offset : offset + concurrency]
            avg_duration = max(
                self.MIN_AVG_DURATION,
                safe_mean(action.expected_duration_minutes for action in group),
            )
            window_start = start + timedelta(minutes=cumulative)
            cumulative += avg_duration

            windows.append(
                TempoWindow(
                    index=index,
                    start_at=window_start,
                    end_at=window_start + timedelta(minutes=avg_duration),
                    action_ids=tuple(action.id for action in group),
                    cumulative_minutes=round_to(cumulative, 2),
                    capacity_usage=round_to(min(100.0, avg_duration / window_length * 100), 2),
                    risk=self._window_risk(group),
                )
            )

        throughput = round_to(count / max(1.0, cumulative / 60), 2)

        logger.debug(
            f"Tempo for plan {plan.plan_id}: {len(windows)} windows of {window_length}m, "
            f"concurrency {concurrency}, throughput {throughput}/h"
        )

        return ExecutionTempo(
            plan_id=plan.plan_id,
            window_length_minutes=window_length,
            concurrency_target=concurrency,
            windows=tuple(windows),
            total_minutes=round_to(cumulative, 2),
            throughput=throughput,
        )

    def can_run(
        self,
        plan: RecoveryPlan,
        budget_minutes: float,
        tempo: Optional[ExecutionTempo] = None,
    ) -> TempoDecision:
        """
        Check whether a plan's tempo fits a time budget.

        safety_margin = max(1, 1 + (budget - mean capacity usage) / 100)

        Args:
            plan: Recovery plan
            budget_minutes: Time budget in minutes
            tempo: Forecast already made for this plan (forecast here if omitted)

        Returns:
            TempoDecision; never allowed while any window is high risk
        """
        if tempo is None:
            tempo = self.forecast(plan)
        average_usage = safe_mean(window.capacity_usage for window in tempo.windows)
        safety_margin = max(1.0, 1 + (budget_minutes - average_usage) / 100)
        high_risk = tuple(w.index for w in tempo.windows if w.risk == TempoRisk.HIGH)

        allowed = safety_margin > self.SAFETY_MARGIN_FLOOR and not high_risk
        if not allowed:
            logger.warning(
                f"Tempo check failed for plan {plan.plan_id}: "
                f"{len(high_risk)} high-risk windows, margin {safety_margin:.2f}"
            )

        return TempoDecision(
            plan_id=plan.plan_id,
            allowed=allowed,
            budget_minutes=budget_minutes,
            safety_margin=round_to(safety_margin, 3),
            average_capacity_usage=round_to(average_usage, 2),
            high_risk_windows=high_risk,
        )

    def concurrency_target(self, mode: str) -> int:
        return self.CONCURRENCY_BY_MODE.get(mode, self.DEFAULT_CONCURRENCY)

    @staticmethod
    def action_risk(action: RecoveryAction) -> float:
        """Per-action tempo risk on a 0-100 scale."""
        base = 35 if action.is_critical else 10
        return min(100.0, base + action.retries_allowed * 5 + action.expected_duration_minutes * 0.6)

    def _window_risk(self, group: list[RecoveryAction]) -> TempoRisk:
        average = safe_mean(self.action_risk(action) for action in group)
        if average >= 70:
            return TempoRisk.HIGH
        if average >= 45:
            return TempoRisk.MEDIUM
        return TempoRisk.LOW


def forecast_execution_tempo(plan: RecoveryPlan, clock: Optional[Clock] = None) -> ExecutionTempo:
    """Forecast execution tempo for a plan."""
    return TempoPlanner(clock=clock).forecast(plan)


def can_run_with_tempo(
    plan: RecoveryPlan,
    budget_minutes: float,
    clock: Optional[Clock] = None,
) -> TempoDecision:
    """Check whether a plan's tempo fits the given budget."""
    return TempoPlanner(clock=clock).can_run(plan, budget_minutes)
