"""Cluster orchestrator access: node listing and eligibility toggling."""

import logging
from abc import ABC, abstractmethod

import httpx

from node_problem_detector.models import Node

logger = logging.getLogger(__name__)


class OrchestratorError(Exception):
    """Raised when the orchestrator API call fails."""


class BaseOrchestrator(ABC):
    """Abstract base class for cluster orchestrators."""

    @abstractmethod
    def list_nodes(self) -> list[Node]:
        """List all cluster nodes.

        Raises:
            OrchestratorError: If the node list cannot be fetched.
        """
        ...

    @abstractmethod
    def toggle_eligibility(self, node_id: str, eligible: bool) -> None:
        """Mark a node eligible or ineligible for scheduling.

        Raises:
            OrchestratorError: If the orchestrator rejects the change.
        """
        ...


class NomadClient(BaseOrchestrator):
    """Nomad HTTP API client."""

    def __init__(
        self,
        address: str = "http://localhost:4646",
        token: str | None = None,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize Nomad client.

        Args:
            address: HTTP API address of a Nomad server or agent.
            token: Optional ACL token.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.address = address.rstrip("/")
        headers = {"X-Nomad-Token": token} if token else {}
        self._client = httpx.Client(
            base_url=self.address,
            headers=headers,
            timeout=timeout,
            verify=False,
            transport=transport,
        )

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise OrchestratorError(f"Nomad {method} {path} failed: {e}") from e
        return response

    def list_nodes(self) -> list[Node]:
        response = self._request("GET", "/v1/nodes", params={"stale": "true"})
        try:
            return [
                Node(id=item["ID"], address=item["Address"], name=item.get("Name", ""))
                for item in response.json()
            ]
        except (ValueError, KeyError, TypeError) as e:
            raise OrchestratorError(f"Unexpected node list from Nomad: {e}") from e

    def toggle_eligibility(self, node_id: str, eligible: bool) -> None:
        payload = {
            "NodeID": node_id,
            "Eligibility": "eligible" if eligible else "ineligible",
        }
        logger.debug(f"Setting node {node_id} eligibility to {payload['Eligibility']}")
        self._request("POST", f"/v1/node/{node_id}/eligibility", json=payload)

    def close(self) -> None:
        self._client.close()
