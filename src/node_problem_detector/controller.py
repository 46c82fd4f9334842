"""Per-node eligibility decisions."""

import logging

from node_problem_detector.client import DetectorClient, DetectorError
from node_problem_detector.diff import compare
from node_problem_detector.models import HealthCheck, Node, NodeState
from node_problem_detector.orchestrator import BaseOrchestrator, OrchestratorError

logger = logging.getLogger(__name__)


class EligibilityController:
    """Decide, per node and per cycle, whether to toggle scheduling eligibility.

    Keeps the last health snapshot of every node in memory and only calls the
    orchestrator on the first observation of a node, when a known check
    changes its result, or when the node's detector is unreachable.
    """

    def __init__(self, orchestrator: BaseOrchestrator, detectors: DetectorClient) -> None:
        self.orchestrator = orchestrator
        self.detectors = detectors
        self.history: dict[str, list[HealthCheck]] = {}
        self.states: dict[str, NodeState] = {}

    def state_of(self, node_id: str) -> NodeState:
        return self.states.get(node_id, NodeState.UNKNOWN)

    def process_node(self, node: Node) -> NodeState:
        """Run one cycle for ``node`` and return its resulting state."""
        try:
            active = self.detectors.is_active(node)
        except DetectorError as e:
            logger.warning(f"Node {node.address} is unreachable, marking it as ineligible: {e}")
            active = False
        else:
            if not active:
                logger.warning(f"Node {node.address} is unhealthy, marking it as ineligible.")

        if not active:
            self.toggle(node, eligible=False)
            self.states[node.id] = NodeState.INELIGIBLE_UNREACHABLE
            return self.states[node.id]

        try:
            current = self.detectors.fetch_health(node)
        except DetectorError as e:
            logger.warning(f"Skipping node {node.address}: {e}")
            return self.state_of(node.id)

        previous = self.history.get(node.id, [])
        verdict = compare(previous, current)
        for check in current:
            if check.type in verdict.failing:
                logger.warning(f"Node {node.address}: {check.type} is {check.result}")

        if not previous or verdict.state_changed:
            self.toggle(node, eligible=verdict.healthy)
            self.states[node.id] = (
                NodeState.ELIGIBLE_HEALTHY if verdict.healthy else NodeState.INELIGIBLE_UNHEALTHY
            )
        else:
            logger.debug(f"Node {node.address} health unchanged")

        self.history[node.id] = current
        return self.state_of(node.id)

    def toggle(self, node: Node, eligible: bool) -> bool:
        """Set the node's eligibility. Failures are logged and not retried."""
        try:
            self.orchestrator.toggle_eligibility(node.id, eligible)
        except OrchestratorError as e:
            logger.warning(f"Error in toggling node eligibility, skipping node {node.address}: {e}")
            return False
        logger.info(f"Node {node.address} marked {'eligible' if eligible else 'ineligible'}")
        return True
