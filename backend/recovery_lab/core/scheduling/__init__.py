"""Scheduling subsystem: windowed execution tempo forecasts."""
from recovery_lab.core.scheduling.tempo import (
    ExecutionTempo,
    TempoDecision,
    TempoPlanner,
    TempoRisk,
    TempoWindow,
    can_run_with_tempo,
    forecast_execution_tempo,
)

__all__ = [
    "ExecutionTempo",
    "TempoDecision",
    "TempoPlanner",
    "TempoRisk",
    "TempoWindow",
    "can_run_with_tempo",
    "forecast_execution_tempo",
]
