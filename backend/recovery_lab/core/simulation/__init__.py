"""
Simulation subsystem for recovery intents.

Projects fast/balanced/safe execution scenarios with synthetic progress
trajectories and picks the one to recommend.
"""
from recovery_lab.core.simulation.scenario_simulator import (
    PROFILE_MULTIPLIERS,
    ScenarioProfile,
    ScenarioRecommendation,
    ScenarioSimulator,
    SimulationReport,
    SimulationScenario,
    StepProjection,
    TrajectoryPoint,
    estimate_score,
    generate_simulation_report_text,
    get_scenario_simulator,
    pick_best_scenario,
    simulate_intent_recovery,
)

__all__ = [
    "PROFILE_MULTIPLIERS",
    "ScenarioProfile",
    "ScenarioRecommendation",
    "ScenarioSimulator",
    "SimulationReport",
    "SimulationScenario",
    "StepProjection",
    "TrajectoryPoint",
    "estimate_score",
    "generate_simulation_report_text",
    "get_scenario_simulator",
    "pick_best_scenario",
    "simulate_intent_recovery",
]
