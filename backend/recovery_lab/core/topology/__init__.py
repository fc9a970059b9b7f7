"""
Topology subsystem: dependency graph, phases, regional budgets, bottlenecks
and smoothed node risk.
"""
from recovery_lab.core.topology.builder import (
    RegionalConcurrency,
    ScenarioNode,
    ScenarioPhase,
    ScenarioTopology,
    TopologyBuilder,
    build_scenario_topology,
    get_topology_builder,
)
from recovery_lab.core.topology.risk_profile import NodeRisk, topology_risk_profile

__all__ = [
    "NodeRisk",
    "RegionalConcurrency",
    "ScenarioNode",
    "ScenarioPhase",
    "ScenarioTopology",
    "TopologyBuilder",
    "build_scenario_topology",
    "get_topology_builder",
    "topology_risk_profile",
]
