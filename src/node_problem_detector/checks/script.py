"""Checks implemented by external health check scripts."""

import logging
import shlex
import subprocess
from pathlib import Path

from node_problem_detector.checks.base import BaseCheck
from node_problem_detector.models import HEALTHY, UNHEALTHY, CheckConfig
from node_problem_detector.registry import CheckRegistry

logger = logging.getLogger(__name__)


class ScriptCheck(BaseCheck):
    """Run a health check script and record Healthy/Unhealthy from its exit code.

    The script's output becomes the message. Relative script paths are
    resolved against the detector root directory; anything that does not
    exist on disk is run as a shell command.
    """

    def __init__(
        self,
        registry: CheckRegistry,
        interval: float,
        config: CheckConfig,
        root_dir: str | Path,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(registry, interval)
        self.config = config
        self.check_type = config.type
        self.root_dir = Path(root_dir).expanduser()
        self.timeout = timeout

    @property
    def command(self) -> str:
        script_path = Path(self.config.health_check).expanduser()
        if not script_path.is_absolute():
            script_path = self.root_dir / script_path
        if script_path.exists():
            return shlex.quote(str(script_path))
        return self.config.health_check

    def evaluate(self) -> tuple[str, str]:
        cmd = self.command
        logger.debug(f"Running health check {self.check_type}: {cmd}")

        try:
            result = subprocess.run(
                cmd,
                shell=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=self.root_dir if self.root_dir.is_dir() else None,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Health check {self.check_type} timed out after {self.timeout}s")
            return UNHEALTHY, f"Health check timed out after {self.timeout:g}s"
        except OSError as e:
            logger.warning(f"Health check {self.check_type} could not be started: {e}")
            return UNHEALTHY, str(e)

        message = result.stdout.strip() or result.stderr.strip()
        if result.returncode == 0:
            return HEALTHY, message
        logger.info(f"Health check {self.check_type} failed with exit code {result.returncode}")
        return UNHEALTHY, message or f"Exit code: {result.returncode}"
