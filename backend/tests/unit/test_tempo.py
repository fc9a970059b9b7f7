"""
Unit tests for execution tempo forecasting and the budget check.
"""
from datetime import timedelta

import pytest

from recovery_lab.core.scheduling.tempo import (
    TempoPlanner,
    TempoRisk,
    can_run_with_tempo,
    forecast_execution_tempo,
)


@pytest.fixture
def planner(fixed_clock) -> TempoPlanner:
    return TempoPlanner(clock=fixed_clock, horizon_minutes=180)


class TestForecast:
    """Test suite for TempoPlanner.forecast."""

    def test_healthy_plan_windows(self, planner, healthy_plan, fixed_clock):
        """
        Test ten 6-minute automated actions: windows of 4, 4 and 2 actions.
        """
        tempo = planner.forecast(healthy_plan)

        assert tempo.window_length_minutes == 18
        assert tempo.concurrency_target == 4
        assert [len(w.action_ids) for w in tempo.windows] == [4, 4, 2]
        assert [w.index for w in tempo.windows] == [0, 1, 2]
        assert [w.cumulative_minutes for w in tempo.windows] == [6.0, 12.0, 18.0]
        assert all(w.capacity_usage == 33.33 for w in tempo.windows)
        assert all(w.risk == TempoRisk.LOW for w in tempo.windows)
        assert tempo.total_minutes == 18.0
        assert tempo.throughput == 10.0

    def test_windows_are_back_to_back(self, planner, healthy_plan, fixed_clock):
        """
        Test that each window starts where the previous cumulative duration ends.
        """
        tempo = planner.forecast(healthy_plan)
        now = fixed_clock.now()

        assert [w.start_at for w in tempo.windows] == [
            now,
            now + timedelta(minutes=6),
            now + timedelta(minutes=12),
        ]
        assert tempo.windows[0].end_at == now + timedelta(minutes=6)

    def test_actions_bucketed_in_plan_order(self, planner, healthy_plan):
        """
        Test that windows take consecutive actions without reordering.
        """
        tempo = planner.forecast(healthy_plan)

        flattened = [action_id for w in tempo.windows for action_id in w.action_ids]
        assert flattened == [action.id for action in healthy_plan.actions]

    @pytest.mark.parametrize(
        "mode,expected",
        [("automated", 4), ("semi", 3), ("manual", 2), ("anything", 2)],
    )
    def test_concurrency_by_mode(self, planner, make_action, make_plan, mode, expected):
        plan = make_plan([make_action(f"a{i}") for i in range(7)], mode=mode)

        assert planner.forecast(plan).concurrency_target == expected

    def test_empty_plan(self, planner, make_plan):
        """
        Test that an empty plan yields no windows and zero throughput.
        """
        tempo = planner.forecast(make_plan([]))

        assert tempo.windows == ()
        assert tempo.total_minutes == 0
        assert tempo.throughput == 0.0
        assert tempo.window_length_minutes == 180

    def test_window_length_floor(self, fixed_clock, make_action, make_plan):
        """
        Test that window length never drops below 5 minutes.
        """
        planner = TempoPlanner(clock=fixed_clock, horizon_minutes=20)
        plan = make_plan([make_action(f"a{i}") for i in range(10)])

        assert planner.forecast(plan).window_length_minutes == 5

    def test_average_duration_floor(self, planner, make_action, make_plan):
        """
        Test that zero-minute actions still occupy 2 minutes.
        """
        tempo = planner.forecast(make_plan([make_action("instant", duration=0)]))

        assert tempo.windows[0].cumulative_minutes == 2.0
        assert tempo.windows[0].capacity_usage == 1.11

    def test_capacity_usage_capped(self, planner, make_action, make_plan):
        """
        Test that capacity usage never exceeds 100.
        """
        plan = make_plan([make_action(f"a{i}", duration=30) for i in range(10)])

        tempo = planner.forecast(plan)

        assert all(w.capacity_usage == 100.0 for w in tempo.windows)

    @pytest.mark.parametrize(
        "duration,tags,retries,expected",
        [
            (10, (), 0, TempoRisk.LOW),  # 10 + 6 = 16
            (20, ("critical",), 0, TempoRisk.MEDIUM),  # 35 + 12 = 47
            (60, (), 0, TempoRisk.MEDIUM),  # 10 + 36 = 46
            (60, ("critical",), 0, TempoRisk.HIGH),  # 35 + 36 = 71
            (50, ("critical",), 2, TempoRisk.HIGH),  # 35 + 10 + 30 = 75
        ],
    )
    def test_window_risk_levels(
        self, planner, make_action, make_plan, duration, tags, retries, expected
    ):
        """
        Test low/medium/high risk from averaged per-action tempo risk.
        """
        action = make_action("a", duration=duration, tags=tags, retries_allowed=retries)

        tempo = planner.forecast(make_plan([action]))

        assert tempo.windows[0].risk == expected

    def test_action_risk_capped(self, make_action):
        action = make_action("slow", duration=500, retries_allowed=3, tags=("critical",))

        assert TempoPlanner.action_risk(action) == 100.0

    def test_module_level_forecast(self, healthy_plan, fixed_clock):
        tempo = forecast_execution_tempo(healthy_plan, clock=fixed_clock)

        assert tempo.plan_id == "plan-healthy"
        assert tempo.windows[0].start_at == fixed_clock.now()


class TestCanRun:
    """Test suite for the tempo budget check."""

    def test_budget_margin(self, planner, healthy_plan):
        """
        Test margin = 1 + (60 - 33.33) / 100.
        """
        decision = planner.can_run(healthy_plan, 60)

        assert decision.allowed is True
        assert decision.safety_margin == pytest.approx(1.267)
        assert decision.average_capacity_usage == 33.33
        assert decision.high_risk_windows == ()

    def test_margin_floor_of_one(self, planner, healthy_plan):
        """
        Test that small budgets never push the margin below 1.
        """
        decision = planner.can_run(healthy_plan, 0)

        assert decision.safety_margin == 1.0
        assert decision.allowed is True

    @pytest.mark.parametrize("budget", [0, 60, 600, 10_000])
    def test_high_risk_window_always_blocks(self, planner, make_action, make_plan, budget):
        """
        Test that no budget can compensate for a high-risk window.
        """
        plan = make_plan([make_action(f"c{i}", duration=60, tags=("critical",)) for i in range(3)])

        decision = planner.can_run(plan, budget)

        assert decision.allowed is False
        assert decision.high_risk_windows == (0,)

    def test_module_level_can_run(self, healthy_plan, fixed_clock):
        decision = can_run_with_tempo(healthy_plan, 120, clock=fixed_clock)

        assert decision.plan_id == "plan-healthy"
        assert decision.budget_minutes == 120
        assert decision.allowed is True

    def test_precomputed_forecast_is_reused(self, planner, healthy_plan, monkeypatch):
        """
        Test that a forecast passed in is checked as-is.
        """
        tempo = planner.forecast(healthy_plan)

        def fail_forecast(plan):
            raise AssertionError("tempo forecast twice")

        monkeypatch.setattr(planner, "forecast", fail_forecast)

        decision = planner.can_run(healthy_plan, 60, tempo)

        assert decision.safety_margin == pytest.approx(1.267)
        assert decision.average_capacity_usage == 33.33
