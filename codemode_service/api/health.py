from fastapi import APIRouter, Request
from datetime import datetime, timezone

router = APIRouter()


@router.get("/")
async def health_check(request: Request):
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": request.app.state.settings.service_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness check - verifies the compiler and sandbox runtimes can be invoked"""
    checks = {
        "compiler": request.app.state.frontend.is_available(),
        "sandbox": request.app.state.loader.is_available(),
    }

    # In debug/dev mode, allow readiness without the external runtimes
    debug_mode = getattr(request.app.state.settings, "debug", False)
    all_ready = all(checks.values()) or debug_mode

    return {
        "ready": all_ready,
        "checks": checks,
        "debug_mode": debug_mode,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/live")
async def liveness_check():
    """Liveness check - simple ping"""
    return {"alive": True}
