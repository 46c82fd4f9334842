"""Tests for per-node eligibility decisions."""

import pytest

from node_problem_detector.client import DetectorError
from node_problem_detector.controller import EligibilityController
from node_problem_detector.models import HealthCheck, NodeState


@pytest.fixture
def controller(orchestrator, detectors):
    return EligibilityController(orchestrator, detectors)


class TestFirstObservation:
    """A node seen for the first time always gets one toggle."""

    def test_healthy_node_marked_eligible(self, controller, orchestrator, detectors, node):
        current = [HealthCheck("CPUUnderPressure", "false", "CPU usage 10%")]
        detectors.snapshots[node.id] = current

        state = controller.process_node(node)

        assert state == NodeState.ELIGIBLE_HEALTHY
        assert orchestrator.toggles == [(node.id, True)]
        assert controller.history[node.id] == current

    def test_unhealthy_node_marked_ineligible(self, controller, orchestrator, detectors, node):
        detectors.snapshots[node.id] = [
            HealthCheck("CPUUnderPressure", "false"),
            HealthCheck("docker", "Unhealthy", "docker daemon is down"),
        ]

        state = controller.process_node(node)

        assert state == NodeState.INELIGIBLE_UNHEALTHY
        assert orchestrator.toggles == [(node.id, False)]

    def test_state_unknown_before_first_cycle(self, controller, node):
        assert controller.state_of(node.id) == NodeState.UNKNOWN


class TestStateTransitions:
    """Toggles follow value transitions of known checks."""

    def test_memory_pressure_marks_ineligible(self, controller, orchestrator, detectors, node):
        controller.history[node.id] = [HealthCheck("MemoryUnderPressure", "false", "60% memory available out of 100%")]
        current = [HealthCheck("MemoryUnderPressure", "true", "5% memory available out of 100%")]
        detectors.snapshots[node.id] = current

        state = controller.process_node(node)

        assert state == NodeState.INELIGIBLE_UNHEALTHY
        assert orchestrator.toggles == [(node.id, False)]
        assert controller.history[node.id] == current

    def test_stable_state_issues_no_toggle(self, controller, orchestrator, detectors, node):
        controller.history[node.id] = [HealthCheck("DiskUsageHigh", "false", "disk usage is 40.00%")]
        current = [HealthCheck("DiskUsageHigh", "false", "disk usage is 42.00%")]
        detectors.snapshots[node.id] = current

        controller.process_node(node)

        assert orchestrator.toggles == []
        assert controller.history[node.id] == current

    def test_repeated_cycles_toggle_once(self, controller, orchestrator, detectors, node):
        detectors.snapshots[node.id] = [HealthCheck("docker", "Healthy")]
        for _ in range(5):
            controller.process_node(node)
        assert orchestrator.toggles == [(node.id, True)]

    def test_recovery_marks_eligible_again(self, controller, orchestrator, detectors, node):
        detectors.snapshots[node.id] = [HealthCheck("docker", "Unhealthy")]
        controller.process_node(node)
        detectors.snapshots[node.id] = [HealthCheck("docker", "Healthy")]

        state = controller.process_node(node)

        assert state == NodeState.ELIGIBLE_HEALTHY
        assert orchestrator.toggles == [(node.id, False), (node.id, True)]

    def test_new_check_type_does_not_toggle(self, controller, orchestrator, detectors, node):
        controller.history[node.id] = [HealthCheck("CPUUnderPressure", "false")]
        current = [HealthCheck("CPUUnderPressure", "false"), HealthCheck("docker", "Unhealthy")]
        detectors.snapshots[node.id] = current

        controller.process_node(node)

        assert orchestrator.toggles == []
        assert controller.history[node.id] == current

    def test_empty_snapshot_counts_as_first_observation(self, controller, orchestrator, detectors, node):
        detectors.snapshots[node.id] = []
        controller.process_node(node)
        controller.process_node(node)
        assert orchestrator.toggles == [(node.id, True), (node.id, True)]


class TestUnreachable:
    """A detector that does not answer its liveness probe."""

    def test_non_200_marks_ineligible(self, controller, orchestrator, detectors, node):
        previous = [HealthCheck("DiskUsageHigh", "false")]
        controller.history[node.id] = previous
        detectors.active[node.id] = False
        detectors.snapshots[node.id] = [HealthCheck("DiskUsageHigh", "true")]

        state = controller.process_node(node)

        assert state == NodeState.INELIGIBLE_UNREACHABLE
        assert orchestrator.toggles == [(node.id, False)]
        assert controller.history[node.id] == previous

    def test_connection_error_marks_ineligible(self, controller, orchestrator, detectors, node, unreachable):
        detectors.active[node.id] = unreachable

        state = controller.process_node(node)

        assert state == NodeState.INELIGIBLE_UNREACHABLE
        assert orchestrator.toggles == [(node.id, False)]
        assert node.id not in controller.history

    def test_history_retained_for_next_cycle(self, controller, orchestrator, detectors, node, unreachable):
        detectors.snapshots[node.id] = [HealthCheck("docker", "Healthy")]
        controller.process_node(node)
        detectors.active[node.id] = unreachable
        controller.process_node(node)
        detectors.active[node.id] = True

        controller.process_node(node)

        # Back online with unchanged results: no toggle beyond the unreachable one
        assert orchestrator.toggles == [(node.id, True), (node.id, False)]
        assert controller.state_of(node.id) == NodeState.INELIGIBLE_UNREACHABLE


class TestMalformedResponse:
    """Snapshot fetch failures skip the node without side effects."""

    def test_skip_node(self, controller, orchestrator, detectors, node):
        previous = [HealthCheck("docker", "Healthy")]
        controller.history[node.id] = previous
        controller.states[node.id] = NodeState.ELIGIBLE_HEALTHY
        detectors.snapshots[node.id] = DetectorError("Invalid JSON")

        state = controller.process_node(node)

        assert state == NodeState.ELIGIBLE_HEALTHY
        assert orchestrator.toggles == []
        assert controller.history[node.id] == previous

    def test_skip_unknown_node(self, controller, orchestrator, detectors, node):
        detectors.snapshots[node.id] = DetectorError("status 500")
        assert controller.process_node(node) == NodeState.UNKNOWN
        assert node.id not in controller.history


class TestToggleFailure:
    """Orchestrator errors are logged and not retried."""

    def test_failure_does_not_raise(self, controller, orchestrator, detectors, node):
        orchestrator.fail_toggle = True
        detectors.snapshots[node.id] = [HealthCheck("docker", "Unhealthy")]

        state = controller.process_node(node)

        assert state == NodeState.INELIGIBLE_UNHEALTHY
        assert controller.history[node.id] == [HealthCheck("docker", "Unhealthy")]

    def test_stable_state_not_retried(self, controller, orchestrator, detectors, node):
        orchestrator.fail_toggle = True
        detectors.snapshots[node.id] = [HealthCheck("docker", "Unhealthy")]
        controller.process_node(node)
        orchestrator.fail_toggle = False

        controller.process_node(node)

        assert orchestrator.toggles == [(node.id, False)]

    def test_toggle_reports_success(self, controller, orchestrator, node):
        assert controller.toggle(node, eligible=True) is True
        orchestrator.fail_toggle = True
        assert controller.toggle(node, eligible=False) is False
