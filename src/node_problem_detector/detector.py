"""Detector runtime: periodic checks plus the HTTP endpoint."""

import logging
import threading

from node_problem_detector.checks import BaseCheck, CPUCheck, DiskCheck, MemoryCheck, ScriptCheck
from node_problem_detector.config import ConfigError, DetectorConfig, load_check_configs
from node_problem_detector.registry import CheckRegistry

logger = logging.getLogger(__name__)


class Detector:
    """Runs every health check on its own timer and serves the results."""

    def __init__(
        self,
        config: DetectorConfig,
        registry: CheckRegistry | None = None,
        checks: list[BaseCheck] | None = None,
    ) -> None:
        """Initialize detector.

        Args:
            config: Detector settings.
            registry: Registry to report into. A new one is created if omitted.
            checks: Checks to run. Built from ``config`` if omitted.
        """
        self.config = config
        self.registry = registry if registry is not None else CheckRegistry()
        self.checks = checks if checks is not None else self.build_checks()
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    def build_checks(self) -> list[BaseCheck]:
        """Resource checks plus one script check per config entry."""
        cfg = self.config
        checks: list[BaseCheck] = [
            CPUCheck(self.registry, cfg.cpu_interval, cfg.cpu_limit),
            MemoryCheck(self.registry, cfg.memory_interval, cfg.memory_limit),
            DiskCheck(self.registry, cfg.disk_interval, cfg.disk_limit, cfg.disk_path),
        ]

        path = cfg.check_config_path
        if cfg.config_path is None and not path.exists():
            logger.info(f"No check config at {path}, running resource checks only")
            return checks

        for entry in load_check_configs(path):
            if entry.type in {c.check_type for c in checks}:
                raise ConfigError(f"Duplicate check type in {path}: {entry.type}")
            checks.append(ScriptCheck(
                self.registry,
                cfg.detector_cycle_time,
                entry,
                root_dir=cfg.root_dir,
                timeout=cfg.script_timeout,
            ))
        return checks

    def run_check(self, check: BaseCheck) -> None:
        """Run a check once, logging rather than raising on failure."""
        try:
            result = check.run()
        except Exception as e:
            logger.error(f"Health check {check.check_type} failed to run: {e}")
            return
        if result.unhealthy:
            logger.warning(f"{result.type} is {result.result}: {result.message}")

    def _loop(self, check: BaseCheck) -> None:
        while not self._stop.is_set():
            self.run_check(check)
            self._stop.wait(check.interval)

    def start(self) -> None:
        """Start one daemon thread per check."""
        if self._threads:
            return
        self._stop.clear()
        for check in self.checks:
            thread = threading.Thread(
                target=self._loop,
                args=(check,),
                name=f"check-{check.check_type}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)
        logger.info(f"Detector started {len(self.checks)} health checks")

    def stop(self, timeout: float | None = None) -> None:
        """Signal all check threads to exit and wait for them."""
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout)
        self._threads.clear()
        logger.info("Detector stopped")

    def serve(self) -> None:
        """Start the checks and block serving HTTP until shutdown."""
        from node_problem_detector.server import create_app
        import uvicorn

        app = create_app(self.registry, token=self.config.auth_token)
        self.start()
        try:
            uvicorn.run(app, host=self.config.host, port=self.config.port)
        finally:
            self.stop(timeout=5)
