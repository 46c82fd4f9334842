"""Base health check interface."""

from abc import ABC, abstractmethod

from node_problem_detector.models import HealthCheck
from node_problem_detector.registry import CheckRegistry


class BaseCheck(ABC):
    """Abstract base class for checks that report into a CheckRegistry."""

    check_type: str = ""

    def __init__(self, registry: CheckRegistry, interval: float) -> None:
        """Initialize check.

        Args:
            registry: Registry receiving this check's results.
            interval: Seconds between two runs of the check.
        """
        self.registry = registry
        self.interval = interval

    @abstractmethod
    def evaluate(self) -> tuple[str, str]:
        """Run the check once.

        Returns:
            Tuple of (result, message).
        """
        ...

    def run(self) -> HealthCheck:
        """Evaluate the check and record the outcome."""
        result, message = self.evaluate()
        return self.registry.record(self.check_type, result, message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(type={self.check_type!r}, interval={self.interval})"
