"""
Scenario topology: a dependency- and region-aware graph view of a plan.

Turns the flat action list of a RecoveryPlan into ordered nodes annotated
with an execution phase and a risk factor, computes per-region concurrency
budgets, and flags likely bottlenecks.

The bottleneck list is a triage heuristic (union of three top-2 rankings),
not a critical-path calculation.
"""
import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from recovery_lab.core.normalization import round_to, safe_mean
from recovery_lab.schemas.plan import RecoveryAction, RecoveryPlan

logger = logging.getLogger(__name__)


class ScenarioPhase(str, Enum):
    """Execution phase assigned by ordinal position in the duration ranking."""

    PREFLIGHT = "preflight"  # First quarter of the ranking
    CRITICAL = "critical"  # Middle half
    STABILIZATION = "stabilization"  # Last quarter


@dataclass(frozen=True)
class ScenarioNode:
    """One topology node per plan action."""

    action_id: str
    region: str
    risk_factor: float  # 0.0-1.0
    duration_minutes: float
    depends_on: tuple[str, ...]
    dependents: tuple[str, ...]
    phase: ScenarioPhase
    tags: tuple[str, ...]

    @property
    def fan_out(self) -> int:
        return len(self.dependents)


@dataclass(frozen=True)
class RegionalConcurrency:
    """Load and concurrency budget for a single region."""

    region: str
    load_minutes: float
    action_count: int
    budget: float  # Parallel actions the region can absorb (max 3)


@dataclass(frozen=True)
class ScenarioTopology:
    """Dependency-aware graph of a plan's actions."""

    plan_id: str
    nodes: tuple[ScenarioNode, ...]  # Longest first
    order: tuple[str, ...]  # Original plan order
    bottlenecks: tuple[str, ...]  # Action ids, deduplicated
    bottleneck_regions: tuple[str, ...]
    regional_concurrency: tuple[RegionalConcurrency, ...]
    readiness_windows: tuple[tuple[str, float], ...]  # (phase, minutes) for every phase

    def node(self, action_id: str) -> Optional[ScenarioNode]:
        for node in self.nodes:
            if node.action_id == action_id:
                return node
        return None

    @property
    def readiness_window_minutes(self) -> Mapping[str, float]:
        """Read-only phase -> minutes view of readiness_windows."""
        return MappingProxyType(dict(self.readiness_windows))

    @property
    def total_minutes(self) -> float:
        return math.fsum(minutes for _, minutes in self.readiness_windows)


class TopologyBuilder:
    """
    Builds ScenarioTopology snapshots from recovery plans.

    Risk factor per node is the mean of four terms:
    1. Criticality base (0.9 for critical-tagged actions, else 0.4)
    2. Duration pressure (duration / 180 minutes, capped at 1)
    3. Tag complexity (tag count / 4, capped at 1)
    4. Ordinal bias (position in the duration ranking / total)
    """

    CRITICAL_BASE = 0.9
    DEFAULT_BASE = 0.4
    DURATION_SCALE_MINUTES = 180.0
    TAG_SCALE = 4.0
    MAX_REGION_BUDGET = 3.0
    TOP_N = 2

    def build(self, plan: RecoveryPlan) -> ScenarioTopology:
        """
        Build the topology for a plan.

        Args:
            plan: Recovery plan to analyze

        Returns:
            ScenarioTopology with one node per action
        """
        actions = list(plan.actions)
        dependents_by_id = self._index_dependents(actions)

        # sorted() is stable, so equal durations keep plan order
        ranked = sorted(actions, key=lambda a: a.expected_duration_minutes, reverse=True)
        total = len(ranked)

        nodes = tuple(
            ScenarioNode(
                action_id=action.id,
                region=action.region,
                risk_factor=self._risk_factor(action, index, total),
                duration_minutes=action.expected_duration_minutes,
                depends_on=tuple(action.dependencies),
                dependents=tuple(dependents_by_id.get(action.id, ())),
                phase=self._phase_for(index, total),
                tags=tuple(action.tags),
            )
            for index, action in enumerate(ranked)
        )

        regional = self._regional_concurrency(nodes)
        bottleneck_regions, bottlenecks = self._bottlenecks(nodes, actions, regional)

        topology = ScenarioTopology(
            plan_id=plan.plan_id,
            nodes=nodes,
            order=tuple(action.id for action in actions),
            bottlenecks=bottlenecks,
            bottleneck_regions=bottleneck_regions,
            regional_concurrency=regional,
            readiness_windows=self._readiness_windows(nodes),
        )

        logger.debug(
            f"Built topology for plan {plan.plan_id}: {len(nodes)} nodes, "
            f"{len(regional)} regions, {len(bottlenecks)} bottlenecks"
        )
        return topology

    def _index_dependents(self, actions: list[RecoveryAction]) -> dict[str, list[str]]:
        """Invert every action's dependency list: prerequisite id -> dependents."""
        dependents_by_id: dict[str, list[str]] = defaultdict(list)
        for action in actions:
            for prerequisite in action.dependencies:
                dependents_by_id[prerequisite].append(action.id)
        return dependents_by_id

    def _phase_for(self, index: int, total: int) -> ScenarioPhase:
        position = index / total
        if position < 0.25:
            return ScenarioPhase.PREFLIGHT
        if position < 0.75:
            return ScenarioPhase.CRITICAL
        return ScenarioPhase.STABILIZATION

    def _risk_factor(self, action: RecoveryAction, index: int, total: int) -> float:
        base = self.CRITICAL_BASE if action.is_critical else self.DEFAULT_BASE
        duration_term = min(1.0, action.expected_duration_minutes / self.DURATION_SCALE_MINUTES)
        tag_term = min(1.0, len(action.tags) / self.TAG_SCALE)
        ordinal_bias = index / total
        return round_to(safe_mean([base, duration_term, tag_term, ordinal_bias]), 3)

    def _regional_concurrency(
        self, nodes: tuple[ScenarioNode, ...]
    ) -> tuple[RegionalConcurrency, ...]:
        """
        Group nodes by region and size each region's concurrency budget.

        budget = min(3, sqrt(region minutes / region action count))
        """
        grouped: dict[str, list[ScenarioNode]] = {}
        for node in nodes:
            grouped.setdefault(node.region, []).append(node)

        regional = []
        for region, members in grouped.items():
            load = sum(member.duration_minutes for member in members)
            budget = min(self.MAX_REGION_BUDGET, math.sqrt(load / len(members)))
            regional.append(
                RegionalConcurrency(
                    region=region,
                    load_minutes=load,
                    action_count=len(members),
                    budget=round_to(budget, 2),
                )
            )
        return tuple(regional)

    def _bottlenecks(
        self,
        nodes: tuple[ScenarioNode, ...],
        actions: list[RecoveryAction],
        regional: tuple[RegionalConcurrency, ...],
    ) -> tuple[tuple[str, ...], tuple[str, ...]]:
        """
        Flag bottlenecks.

        Union (first seen wins) of:
        (a) the longest action in each of the top 2 regions by load
        (b) top 2 actions with more than one dependency, most dependencies first
        (c) top 2 actions sharing the maximum fan-out

        Returns:
            (top regions, bottleneck action ids)
        """
        top_regions = sorted(regional, key=lambda r: r.load_minutes, reverse=True)[: self.TOP_N]
        region_names = tuple(region.region for region in top_regions)

        candidates: list[str] = []
        for region in region_names:
            # nodes are longest-first, so the first match is the region's heaviest action
            heaviest = next(node for node in nodes if node.region == region)
            candidates.append(heaviest.action_id)

        multi_dependency = [action for action in actions if len(action.dependencies) > 1]
        multi_dependency.sort(key=lambda a: len(a.dependencies), reverse=True)
        candidates.extend(action.id for action in multi_dependency[: self.TOP_N])

        if nodes:
            max_fan_out = max(node.fan_out for node in nodes)
            widest = [node.action_id for node in nodes if node.fan_out == max_fan_out]
            candidates.extend(widest[: self.TOP_N])

        return region_names, tuple(dict.fromkeys(candidates))

    def _readiness_windows(
        self, nodes: tuple[ScenarioNode, ...]
    ) -> tuple[tuple[str, float], ...]:
        durations: dict[str, list[float]] = {phase.value: [] for phase in ScenarioPhase}
        for node in nodes:
            durations[node.phase.value].append(node.duration_minutes)
        return tuple((phase, math.fsum(minutes)) for phase, minutes in durations.items())


# Global instance
_topology_builder: Optional[TopologyBuilder] = None


def get_topology_builder() -> TopologyBuilder:
    """Get global topology builder instance."""
    global _topology_builder
    if _topology_builder is None:
        _topology_builder = TopologyBuilder()
    return _topology_builder


def build_scenario_topology(plan: RecoveryPlan) -> ScenarioTopology:
    """Build the scenario topology for a plan using the global builder."""
    return get_topology_builder().build(plan)
