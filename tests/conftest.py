"""Shared fixtures: in-memory orchestrator and detector fakes."""

import pytest

from node_problem_detector.client import DetectorError
from node_problem_detector.models import HealthCheck, Node
from node_problem_detector.orchestrator import BaseOrchestrator, OrchestratorError


class FakeOrchestrator(BaseOrchestrator):
    """Records eligibility toggles instead of calling an orchestrator."""

    def __init__(self, nodes: list[Node] | None = None) -> None:
        self.nodes = nodes or []
        self.toggles: list[tuple[str, bool]] = []
        self.list_calls = 0
        self.fail_listing = False
        self.fail_toggle = False

    def list_nodes(self) -> list[Node]:
        self.list_calls += 1
        if self.fail_listing:
            raise OrchestratorError("connection refused")
        return list(self.nodes)

    def toggle_eligibility(self, node_id: str, eligible: bool) -> None:
        self.toggles.append((node_id, eligible))
        if self.fail_toggle:
            raise OrchestratorError("permission denied")


class FakeDetectors:
    """Serves scripted liveness and snapshot responses per node id."""

    def __init__(self) -> None:
        self.active: dict[str, bool | Exception] = {}
        self.snapshots: dict[str, list[HealthCheck] | Exception] = {}

    def is_active(self, node: Node) -> bool:
        value = self.active.get(node.id, True)
        if isinstance(value, Exception):
            raise value
        return value

    def fetch_health(self, node: Node) -> list[HealthCheck]:
        value = self.snapshots.get(node.id, [])
        if isinstance(value, Exception):
            raise value
        return list(value)


@pytest.fixture
def node():
    return Node(id="node-1", address="10.0.0.1", name="worker-1")


@pytest.fixture
def orchestrator(node):
    return FakeOrchestrator([node])


@pytest.fixture
def detectors():
    return FakeDetectors()


@pytest.fixture
def unreachable():
    return DetectorError("connection refused")
