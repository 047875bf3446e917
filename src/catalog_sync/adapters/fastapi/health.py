"""FastAPI adapter – liveness / readiness router."""
from typing import Any, Awaitable, Callable

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from catalog_sync.observability.logging import get_logger

_log = get_logger(__name__)

ReadinessCheck = Callable[[], Awaitable[bool]]


def build_health_router(
    readiness_checks: dict[str, ReadinessCheck] | None = None,
    path: str = "/health",
    tags: list[str] | None = None,
) -> APIRouter:
    """Liveness at ``{path}/live``; readiness at ``{path}/ready``.

    Readiness answers 503 unless every named check returns ``True``.
    """
    router = APIRouter(tags=tags or ["ops"])
    checks = readiness_checks or {}

    @router.get(f"{path}/live")
    async def liveness() -> dict[str, str]:
        return {"status": "ok"}

    @router.get(f"{path}/ready")
    async def readiness() -> Any:
        results: dict[str, bool] = {}
        for name, check in checks.items():
            try:
                results[name] = bool(await check())
            except Exception as exc:  # noqa: BLE001
                _log.warning("health.check_failed", check=name, error=repr(exc))
                results[name] = False
        all_ok = all(results.values())
        return JSONResponse(
            status_code=200 if all_ok else 503,
            content={"status": "ok" if all_ok else "degraded", "checks": results},
        )

    return router


__all__ = ["ReadinessCheck", "build_health_router"]
