"""CPU, memory and disk pressure checks using psutil."""

import psutil

from node_problem_detector.checks.base import BaseCheck
from node_problem_detector.models import NOT_UNDER_PRESSURE, UNDER_PRESSURE
from node_problem_detector.registry import CheckRegistry

CPU_CHECK = "CPUUnderPressure"
MEMORY_CHECK = "MemoryUnderPressure"
DISK_CHECK = "DiskUsageHigh"

# Sampling window for psutil.cpu_percent
CPU_SAMPLE_SECONDS = 1.0


def _flag(under_pressure: bool) -> str:
    return UNDER_PRESSURE if under_pressure else NOT_UNDER_PRESSURE


def evaluate_cpu(usage_percent: float, limit: float) -> tuple[str, str]:
    """Under pressure when CPU usage exceeds ``limit``."""
    return _flag(usage_percent > limit), f"CPU usage is {usage_percent:.2f}%"


def evaluate_memory(available_percent: float, total_bytes: int, limit: float) -> tuple[str, str]:
    """Under pressure when available memory drops below ``limit`` percent."""
    total_gb = total_bytes / (1024**3)
    message = f"{available_percent:.2f}% memory available out of {total_gb:.2f} GB"
    return _flag(available_percent < limit), message


def evaluate_disk(used_percent: float, limit: float) -> tuple[str, str]:
    """Under pressure when disk usage exceeds ``limit``."""
    return _flag(used_percent > limit), f"disk usage is {used_percent:.2f}%"


class ResourceCheck(BaseCheck):
    """A check comparing one system metric against a percentage limit."""

    def __init__(self, registry: CheckRegistry, interval: float, limit: float) -> None:
        super().__init__(registry, interval)
        self.limit = limit


class CPUCheck(ResourceCheck):
    """Reports CPUUnderPressure."""

    check_type = CPU_CHECK

    def evaluate(self) -> tuple[str, str]:
        usage = psutil.cpu_percent(interval=CPU_SAMPLE_SECONDS)
        return evaluate_cpu(usage, self.limit)


class MemoryCheck(ResourceCheck):
    """Reports MemoryUnderPressure. The limit is a floor on available memory."""

    check_type = MEMORY_CHECK

    def evaluate(self) -> tuple[str, str]:
        mem = psutil.virtual_memory()
        available_percent = (mem.available / mem.total) * 100 if mem.total else 0.0
        return evaluate_memory(available_percent, mem.total, self.limit)


class DiskCheck(ResourceCheck):
    """Reports DiskUsageHigh for a single mount point."""

    check_type = DISK_CHECK

    def __init__(
        self,
        registry: CheckRegistry,
        interval: float,
        limit: float,
        path: str = "/",
    ) -> None:
        super().__init__(registry, interval, limit)
        self.path = path

    def evaluate(self) -> tuple[str, str]:
        disk = psutil.disk_usage(self.path)
        return evaluate_disk(disk.percent, self.limit)
