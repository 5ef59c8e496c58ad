from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from PIL import UnidentifiedImageError

from src.utils.io import decode_rgb_buffer, encode_png
from src.utils.lut import OutputMode

from backend.api.dependencies import get_session, get_storage
from backend.core.config import settings
from backend.core.session import ControlSession
from backend.core.storage import LutStorage
from backend.workers.filter_worker import run_filter_job

router = APIRouter()


async def _read_body(request: Request) -> bytes:
    body = await request.body()
    if len(body) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Frame too large"
        )
    return body


def _resolve_lut_name(lut: str | None, session: ControlSession, storage: LutStorage) -> str:
    name = lut or session.active_lut or settings.DEFAULT_LUT
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "NO_LUT_SELECTED", "message": "No LUT given and none selected"},
        )
    if not storage.exists(name):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "LUT_NOT_FOUND", "message": f"LUT not found: {name}"},
        )
    return name


async def _run(
    session: ControlSession,
    storage: LutStorage,
    buffer: bytearray,
    width: int,
    height: int,
    name: str,
    mode: OutputMode,
) -> int:
    result = await run_filter_job(session, storage, buffer, width, height, name, mode)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": result.error_code, "message": f"Failed to load LUT: {name}"},
        )
    return result.processing_time_ms


@router.post("/apply", status_code=status.HTTP_200_OK)
async def apply_filter(
    request: Request,
    width: int = Query(..., gt=0),
    height: int = Query(..., gt=0),
    lut: str | None = None,
    mode: OutputMode = Query(settings.OUTPUT_MODE),
    session: ControlSession = Depends(get_session),
    storage: LutStorage = Depends(get_storage),
):
    """Apply a LUT to a raw RGB frame (row-major, 3 bytes per pixel).

    The body is returned transformed. A body shorter than width*height*3 is
    accepted; pixels beyond its end are skipped.
    """
    body = await _read_body(request)
    name = _resolve_lut_name(lut, session, storage)

    buffer = bytearray(body)
    elapsed_ms = await _run(session, storage, buffer, width, height, name, mode)

    return Response(
        content=bytes(buffer),
        media_type="application/octet-stream",
        headers={"X-Lut": name, "X-Processing-Time-Ms": str(elapsed_ms)},
    )


@router.post("/apply-image", status_code=status.HTTP_200_OK)
async def apply_filter_to_image(
    request: Request,
    lut: str | None = None,
    mode: OutputMode = Query(settings.OUTPUT_MODE),
    session: ControlSession = Depends(get_session),
    storage: LutStorage = Depends(get_storage),
):
    """Apply a LUT to an encoded image (JPEG, PNG, ...) and return a PNG."""
    body = await _read_body(request)
    name = _resolve_lut_name(lut, session, storage)

    try:
        buffer, width, height = decode_rgb_buffer(body)
    except UnidentifiedImageError:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail={"code": "UNSUPPORTED_IMAGE", "message": "Unsupported image format"},
        )

    elapsed_ms = await _run(session, storage, buffer, width, height, name, mode)

    return Response(
        content=encode_png(buffer, width, height),
        media_type="image/png",
        headers={"X-Lut": name, "X-Processing-Time-Ms": str(elapsed_ms)},
    )
