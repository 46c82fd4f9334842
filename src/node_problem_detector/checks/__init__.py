"""Health checks run by the detector."""

from node_problem_detector.checks.base import BaseCheck
from node_problem_detector.checks.resources import CPUCheck, DiskCheck, MemoryCheck
from node_problem_detector.checks.script import ScriptCheck

__all__ = ["BaseCheck", "CPUCheck", "DiskCheck", "MemoryCheck", "ScriptCheck"]
