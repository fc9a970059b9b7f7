"""Moving-average smoothing of per-node risk factors."""
import logging
from dataclasses import dataclass
from typing import Optional

from recovery_lab.config import settings
from recovery_lab.core.normalization import round_to
from recovery_lab.core.topology.builder import ScenarioTopology

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeRisk:
    """Smoothed risk for one topology node."""

    action_id: str
    risk: float  # 0.0-1.0


def topology_risk_profile(
    topology: ScenarioTopology,
    window: Optional[int] = None,
) -> tuple[NodeRisk, ...]:
    """
    Smooth node risk factors with a trailing moving average.

    Walks the nodes in plan order on a 0-100 scale. Until `window` samples
    are available a node keeps its own raw value.

    Args:
        topology: Topology to profile
        window: Moving-average window (defaults to settings.risk_smoothing_window)

    Returns:
        One NodeRisk per node, in plan order

    Raises:
        ValueError: If window is smaller than 1
    """
    if window is None:
        window = settings.risk_smoothing_window
    if window < 1:
        raise ValueError(f"Smoothing window must be at least 1, got {window}")

    nodes_by_id = {node.action_id: node for node in topology.nodes}
    raw: list[tuple[str, float]] = []
    for action_id in topology.order:
        node = nodes_by_id.get(action_id)
        if node is not None:
            raw.append((action_id, node.risk_factor * 100))

    profile = []
    for index, (action_id, value) in enumerate(raw):
        if index + 1 >= window:
            samples = [sample for _, sample in raw[index + 1 - window : index + 1]]
            smoothed = sum(samples) / window
        else:
            smoothed = value
        profile.append(NodeRisk(action_id=action_id, risk=round_to(smoothed / 100, 3)))

    logger.debug(f"Smoothed {len(profile)} node risks for plan {topology.plan_id} (window {window})")
    return tuple(profile)
