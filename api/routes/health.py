"""
Health and readiness endpoints for load balancers and orchestrators.
No auth required; keep payload minimal for fast checks.
"""

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from core.config import SettingsDep
from services.user_service import UserService, get_user_service

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Minimal health payload for probes."""

    status: str = "ok"
    service: str
    environment: str


class ReadinessResponse(BaseModel):
    ready: bool = True
    checks: dict[str, str] = {}

    model_config = {"extra": "forbid"}


@router.get("", response_model=HealthResponse)
async def health(settings: SettingsDep) -> HealthResponse:
    """Liveness: is the process alive."""
    return HealthResponse(service=settings.APP_NAME, environment=settings.ENVIRONMENT)


@router.get("/ready", response_model=ReadinessResponse)
async def ready(service: UserService = Depends(get_user_service)) -> ReadinessResponse:
    """Readiness: settings loaded and the user store reachable."""
    checks: dict[str, str] = {"config": "loaded", "user_store": type(service).__name__}
    # Example: checks["database"] = "ok" once a real store replaces the in-memory one
    return ReadinessResponse(ready=True, checks=checks)


@router.get("/live")
async def live(response: Response) -> None:
    """Minimal live check: 200 with no body."""
    response.status_code = 200
