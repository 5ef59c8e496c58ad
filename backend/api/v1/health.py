from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status

from backend.api.dependencies import get_session, get_storage
from backend.core.config import settings
from backend.core.session import ControlSession
from backend.core.storage import LutStorage

router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "ok",
        "version": settings.API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/ready", status_code=status.HTTP_200_OK)
def readiness_check(
    session: ControlSession = Depends(get_session),
    storage: LutStorage = Depends(get_storage),
):
    """Readiness check - verify the LUT library and default LUT are usable."""
    checks = {}

    luts = storage.list_luts()
    checks["lut_dir"] = "ok" if storage.lut_dir.is_dir() else f"error: missing {storage.lut_dir}"

    if settings.DEFAULT_LUT:
        cube = storage.load(settings.DEFAULT_LUT)
        if cube is None:
            checks["default_lut"] = f"error: not found {settings.DEFAULT_LUT}"
        elif cube.is_empty:
            checks["default_lut"] = f"error: failed to load {settings.DEFAULT_LUT}"
        else:
            checks["default_lut"] = "ok"

    all_ok = all(v == "ok" for v in checks.values())
    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
        "luts": len(luts),
        "control_clients": len(session.subscribers),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
