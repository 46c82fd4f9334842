"""HTTP client for polling node detectors."""

import logging

import httpx

from node_problem_detector.models import HealthCheck, Node
from node_problem_detector.server.app import basic_auth_header

logger = logging.getLogger(__name__)

HEALTH_PATH = "/v1/health/"
NODE_HEALTH_PATH = "/v1/nodehealth/"


class DetectorError(Exception):
    """Raised when a detector cannot be reached or returns an unusable response."""


class DetectorClient:
    """Fetch liveness and health snapshots from node detectors."""

    def __init__(
        self,
        port: str = ":8083",
        token: str = "",
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize detector client.

        Args:
            port: Detector port in ``:NNNN`` form, appended to node addresses.
            token: Shared secret sent as basic auth when set.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.port = port
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = basic_auth_header(token)
        self._client = httpx.Client(timeout=timeout, headers=headers, transport=transport)

    def base_url(self, node: Node) -> str:
        return f"http://{node.address}{self.port}"

    def _post(self, node: Node, path: str) -> httpx.Response:
        url = self.base_url(node) + path
        try:
            return self._client.post(url)
        except httpx.HTTPError as e:
            raise DetectorError(f"Request to {url} failed: {e}") from e

    def is_active(self, node: Node) -> bool:
        """Whether the node's detector answers its liveness probe with 200.

        Raises:
            DetectorError: If the detector cannot be reached.
        """
        response = self._post(node, HEALTH_PATH)
        return response.status_code == 200

    def fetch_health(self, node: Node) -> list[HealthCheck]:
        """Fetch the node's current health check snapshot.

        Raises:
            DetectorError: On transport errors, non-200 status or a malformed body.
        """
        response = self._post(node, NODE_HEALTH_PATH)
        if response.status_code != 200:
            raise DetectorError(
                f"Detector on {node.address} returned status {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise DetectorError(f"Invalid JSON from detector on {node.address}: {e}") from e

        if not isinstance(data, list):
            raise DetectorError(f"Expected a list of health checks from {node.address}")
        try:
            checks = [HealthCheck.from_dict(item) for item in data]
        except ValueError as e:
            raise DetectorError(f"Malformed health check from {node.address}: {e}") from e
        logger.debug(f"Fetched {len(checks)} health checks from {node.address}")
        return checks

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "DetectorClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
