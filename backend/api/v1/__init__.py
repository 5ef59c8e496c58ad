from fastapi import APIRouter
from . import control, filters, health, luts

router = APIRouter(prefix="/v1")

router.include_router(filters.router, prefix="/filters", tags=["filters"])
router.include_router(luts.router, prefix="/luts", tags=["luts"])
router.include_router(control.router, tags=["control"])
router.include_router(health.router, tags=["health"])

__all__ = ["router"]
