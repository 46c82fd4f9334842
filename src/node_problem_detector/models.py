"""Data models shared by the detector and the aggregator."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Result values that mark a check as failing. Script checks report
# "Unhealthy", boolean resource checks report "true" when under pressure.
UNHEALTHY = "Unhealthy"
HEALTHY = "Healthy"
UNDER_PRESSURE = "true"
NOT_UNDER_PRESSURE = "false"
UNHEALTHY_RESULTS = frozenset({UNHEALTHY, UNDER_PRESSURE})

# Wire name of the message field, as emitted by deployed detectors.
MESSAGE_KEY = "messgae"


class NodeState(str, Enum):
    """Eligibility state of a node as tracked by the aggregator."""

    UNKNOWN = "unknown"
    ELIGIBLE_HEALTHY = "eligible_healthy"
    INELIGIBLE_UNHEALTHY = "ineligible_unhealthy"
    INELIGIBLE_UNREACHABLE = "ineligible_unreachable"

    @property
    def eligible(self) -> bool:
        return self is NodeState.ELIGIBLE_HEALTHY


@dataclass(frozen=True)
class HealthCheck:
    """A single health check observation."""

    type: str
    result: str
    message: str = ""

    @property
    def unhealthy(self) -> bool:
        """Whether this result marks the node as unhealthy."""
        return self.result in UNHEALTHY_RESULTS

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.type,
            "result": self.result,
            MESSAGE_KEY: self.message,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HealthCheck":
        """Create from a decoded JSON object.

        Raises:
            ValueError: If the object is not a mapping, has no type, or holds
                a non-string type, result or message.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Health check must be an object, got {type(data).__name__}")
        if not data.get("type"):
            raise ValueError("Health check is missing its type")

        key = MESSAGE_KEY if MESSAGE_KEY in data else "message"
        for field_name in ("type", "result", key):
            if field_name in data and not isinstance(data[field_name], str):
                raise ValueError(
                    f"Health check field {field_name!r} must be a string, "
                    f"got {type(data[field_name]).__name__}"
                )

        return cls(
            type=data["type"],
            result=data.get("result", ""),
            message=data.get(key, ""),
        )


@dataclass(frozen=True)
class CheckConfig:
    """Binds a check type to the script implementing it."""

    type: str
    health_check: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CheckConfig":
        return cls(
            type=data["type"],
            health_check=data["health_check"],
        )

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "health_check": self.health_check}


@dataclass(frozen=True)
class Node:
    """A cluster node as reported by the orchestrator."""

    id: str
    address: str
    name: str = ""

    def __str__(self) -> str:
        return self.name or self.address


@dataclass(frozen=True)
class Verdict:
    """Outcome of comparing two consecutive snapshots of a node."""

    healthy: bool
    state_changed: bool
    failing: frozenset[str] = field(default_factory=frozenset)
