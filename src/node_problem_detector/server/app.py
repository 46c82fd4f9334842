"""FastAPI application serving the detector's health checks."""

import base64
import secrets
from datetime import datetime

from fastapi import Depends, FastAPI, Header, HTTPException, status

from node_problem_detector import __version__
from node_problem_detector.registry import CheckRegistry


def basic_auth_header(token: str) -> str:
    """Authorization header value carrying the shared token."""
    return "Basic " + base64.b64encode(token.encode()).decode()


def create_app(registry: CheckRegistry, token: str = "") -> FastAPI:
    """Create the detector application.

    Args:
        registry: Registry whose snapshot is served.
        token: Shared secret. When set, every request must carry it as
            ``Authorization: Basic <base64(token)>``.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Node Problem Detector",
        description="Per-node health checks for scheduling eligibility",
        version=__version__,
    )
    app.state.registry = registry

    expected = basic_auth_header(token) if token else None

    async def require_token(authorization: str | None = Header(default=None)) -> None:
        if expected is None:
            return
        if authorization is None or not secrets.compare_digest(authorization, expected):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized",
                headers={"WWW-Authenticate": "Basic"},
            )

    @app.post("/v1/health/", dependencies=[Depends(require_token)])
    async def health() -> dict:
        """Liveness probe."""
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "version": __version__,
        }

    @app.post("/v1/nodehealth/", dependencies=[Depends(require_token)])
    async def node_health() -> list[dict]:
        """Latest result of every health check on this node."""
        return [check.to_dict() for check in registry.snapshot()]

    return app
