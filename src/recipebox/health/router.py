"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from recipebox.dependencies import AppServices, get_services

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(services: AppServices = Depends(get_services)) -> dict[str, object]:
    """Readiness probe: checks the database and the email transport."""
    checks: dict[str, object] = {}

    try:
        async with services.session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
        checks["database"] = "ok"
    except SQLAlchemyError as exc:
        checks["database"] = f"error: {exc}"

    checks["email"] = "ok" if await services.dispatcher.verify() else "unavailable"

    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version(services: AppServices = Depends(get_services)) -> dict[str, str]:
    """Return API version and environment."""
    return {
        "version": services.settings.app_version,
        "environment": services.settings.environment,
    }
