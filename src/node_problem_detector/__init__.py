"""
Node Problem Detector - Take unhealthy cluster nodes out of scheduling.

A per-node detector runs CPU, memory, disk and script health checks and serves
the latest results over HTTP. A central aggregator polls every node's detector
and toggles the node's scheduling eligibility in Nomad when its health changes.
"""

__version__ = "1.0.0"

from node_problem_detector.config import AggregatorConfig, DetectorConfig
from node_problem_detector.models import CheckConfig, HealthCheck, Node, NodeState, Verdict
from node_problem_detector.registry import CheckRegistry

__all__ = [
    "AggregatorConfig",
    "CheckConfig",
    "CheckRegistry",
    "DetectorConfig",
    "HealthCheck",
    "Node",
    "NodeState",
    "Verdict",
]
