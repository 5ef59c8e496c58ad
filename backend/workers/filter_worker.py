import logging
import time
from dataclasses import dataclass
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from src.inference.apply_filter import apply_filter
from src.utils.lut import OutputMode

from backend.core.config import settings
from backend.core.session import ControlSession
from backend.core.storage import LutStorage

logger = logging.getLogger(__name__)


@dataclass
class FilterResult:
    ok: bool
    lut: str
    processing_time_ms: int = 0
    error_code: Optional[str] = None


def progress_callback(lut: str, current: float, total: float):
    """Callback for the transform to report row progress."""
    progress = (current / total) if total > 0 else 0.0
    logger.debug(f"Applying {lut}: {min(progress, 1.0):.0%}")


def apply_named_lut(
    storage: LutStorage,
    buffer: bytearray,
    width: int,
    height: int,
    lut: str,
    mode: OutputMode = settings.OUTPUT_MODE,
) -> FilterResult:
    """Blocking part: resolve the LUT and transform the buffer in place."""
    path = storage.resolve(lut)
    if path is None:
        return FilterResult(ok=False, lut=lut, error_code="LUT_NOT_FOUND")

    started = time.perf_counter()
    ok = apply_filter(
        buffer,
        width,
        height,
        path,
        mode=mode,
        cache=storage.cache,
        rows_per_chunk=settings.ROWS_PER_CHUNK,
        workers=settings.TRANSFORM_WORKERS,
        progress_callback=lambda curr, total: progress_callback(lut, curr, total),
    )
    elapsed_ms = int((time.perf_counter() - started) * 1000)
    return FilterResult(
        ok=ok,
        lut=lut,
        processing_time_ms=elapsed_ms,
        error_code=None if ok else "LUT_LOAD_FAILED",
    )


async def run_filter_job(
    session: ControlSession,
    storage: LutStorage,
    buffer: bytearray,
    width: int,
    height: int,
    lut: str,
    mode: OutputMode = settings.OUTPUT_MODE,
) -> FilterResult:
    """Run the transform off the event loop and report the outcome to subscribers."""
    mode = OutputMode(mode)
    logger.info(f"Starting filter application: lut={lut}, {width}x{height}, mode={mode.value}")
    result = await run_in_threadpool(apply_named_lut, storage, buffer, width, height, lut, mode)

    if result.ok:
        logger.info(f"Filter application completed in {result.processing_time_ms} ms")
        await session.notify(f"LUT_APPLIED {lut}")
    else:
        logger.error(f"Filter application failed: lut={lut}, code={result.error_code}")
        await session.notify(f"LUT_FAILED {lut}")
    return result
