"""Thread-safe store of the latest result of every health check."""

import threading

from node_problem_detector.models import HealthCheck


class CheckRegistry:
    """Latest HealthCheck per check type.

    Written by independently scheduled checks and read by HTTP handlers.
    Entries are never removed; a check that stops running leaves its last
    result in place.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._checks: dict[str, HealthCheck] = {}

    def record(self, check_type: str, result: str, message: str = "") -> HealthCheck:
        """Insert or overwrite the entry for ``check_type``."""
        check = HealthCheck(type=check_type, result=result, message=message)
        with self._lock:
            self._checks[check_type] = check
        return check

    def snapshot(self) -> list[HealthCheck]:
        """Copy of all current entries."""
        with self._lock:
            return list(self._checks.values())

    def get(self, check_type: str) -> HealthCheck | None:
        with self._lock:
            return self._checks.get(check_type)

    def __len__(self) -> int:
        with self._lock:
            return len(self._checks)
