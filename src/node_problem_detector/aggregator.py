"""Aggregation loop driving eligibility decisions for every node."""

import logging
import signal
import threading

from node_problem_detector.controller import EligibilityController
from node_problem_detector.models import NodeState
from node_problem_detector.orchestrator import BaseOrchestrator, OrchestratorError

logger = logging.getLogger(__name__)

# How often a paused loop re-checks whether it was stopped
PAUSE_POLL_SECONDS = 1.0


class PauseSwitch:
    """A paused/running flag flipped by an external signal."""

    def __init__(self) -> None:
        self._running = threading.Event()
        self._running.set()

    @property
    def paused(self) -> bool:
        return not self._running.is_set()

    def toggle(self) -> bool:
        """Flip between paused and running. Returns the new paused state."""
        if self._running.is_set():
            self._running.clear()
        else:
            self._running.set()
        return self.paused

    def wait_until_running(self, timeout: float | None = None) -> bool:
        """Block while paused. Returns True once running."""
        return self._running.wait(timeout)


class Aggregator:
    """Poll every node once per cycle and apply eligibility decisions."""

    def __init__(
        self,
        orchestrator: BaseOrchestrator,
        controller: EligibilityController,
        cycle_time: float = 15.0,
    ) -> None:
        """Initialize aggregator.

        Args:
            orchestrator: Source of the node list.
            controller: Per-node decision logic.
            cycle_time: Seconds to wait between two cycles.
        """
        self.orchestrator = orchestrator
        self.controller = controller
        self.cycle_time = cycle_time
        self.pause = PauseSwitch()
        self._stop = threading.Event()

    def run_cycle(self) -> dict[str, NodeState] | None:
        """Process every node once.

        Returns:
            Mapping of node id to state after this cycle, or None if the node
            list could not be fetched.
        """
        logger.info("Collect and aggregate nodes health")
        try:
            nodes = self.orchestrator.list_nodes()
        except OrchestratorError as e:
            logger.warning(f"Error in listing nodes: {e}")
            return None

        states: dict[str, NodeState] = {}
        for node in nodes:
            try:
                states[node.id] = self.controller.process_node(node)
            except Exception as e:
                logger.error(f"Failed to process node {node.address}: {e}")
        return states

    def run(self) -> None:
        """Run cycles until stopped. Pausing takes effect at the next cycle."""
        logger.info(f"Aggregator started (cycle time: {self.cycle_time}s)")
        while not self._stop.is_set():
            if self.pause.paused:
                self.pause.wait_until_running(PAUSE_POLL_SECONDS)
                continue
            self.run_cycle()
            self._stop.wait(self.cycle_time)
        logger.info("Aggregator stopped")

    def stop(self) -> None:
        self._stop.set()

    def toggle_pause(self) -> None:
        if self.pause.toggle():
            logger.info("Received pause signal, pausing aggregator.")
        else:
            logger.info("Received pause signal, unpausing aggregator.")

    def install_signal_handlers(self) -> None:
        """SIGUSR1 toggles pause; SIGTERM and SIGINT stop the loop."""
        signal.signal(signal.SIGUSR1, lambda signum, frame: self.toggle_pause())
        signal.signal(signal.SIGTERM, lambda signum, frame: self.stop())
        signal.signal(signal.SIGINT, lambda signum, frame: self.stop())
