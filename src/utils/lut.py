"""3D LUT 적용 엔진.

평탄화된 LUT 큐브를 사용해 원시 RGB 바이트 버퍼(행 우선, 픽셀당 3채널)의
모든 픽셀을 trilinear interpolation으로 변환하고, 결과를 같은 버퍼에 쓴다.
행 단위 청크로 처리하며 픽셀 간 의존성이 없으므로 청크를 스레드 풀로 나눌 수 있다.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Callable, Optional, Union

import numpy as np

from src.data.cube_parser import LutCube

logger = logging.getLogger(__name__)

# (rows_done, total_rows) -> None
ProgressCallback = Optional[Callable[[float, float], None]]

PixelBuffer = Union[bytearray, memoryview, np.ndarray]

DEFAULT_ROWS_PER_CHUNK = 50

# 8개 꼭짓점의 (r, g, b) 상/하한 선택 비트. 꼭짓점 k: r=bit0, g=bit1, b=bit2
_CORNER_BITS = np.array([[k & 1, (k >> 1) & 1, (k >> 2) & 1] for k in range(8)])


class OutputMode(str, Enum):
    """출력 채널 정책.

    MONOCHROME: 보간된 세 채널의 평균을 세 채널 모두에 기록 (그레이스케일 강제)
    COLOR: 보간된 색상을 채널별로 기록
    """

    MONOCHROME = "monochrome"
    COLOR = "color"


def trilinear_weights(delta: np.ndarray) -> np.ndarray:
    """Trilinear 보간 가중치.

    Args:
        delta: 격자 하한으로부터의 소수부 [..., 3] (r, g, b 순서)

    Returns:
        가중치 [..., 8]. 꼭짓점 순서는 _CORNER_BITS와 같고 합은 1
    """
    d = np.asarray(delta, dtype=np.float64)
    per_axis = np.stack([1.0 - d, d], axis=-2)  # [..., 2, 3]
    return (
        per_axis[..., _CORNER_BITS[:, 0], 0]
        * per_axis[..., _CORNER_BITS[:, 1], 1]
        * per_axis[..., _CORNER_BITS[:, 2], 2]
    )


def _byte_view(buffer: PixelBuffer) -> np.ndarray:
    """버퍼를 복사 없이 1차원 uint8 뷰로 변환."""
    if isinstance(buffer, np.ndarray):
        if buffer.dtype != np.uint8:
            raise TypeError(f"픽셀 버퍼는 uint8이어야 함: {buffer.dtype}")
        if not buffer.flags.c_contiguous:
            raise TypeError("픽셀 버퍼는 C-contiguous 이어야 함")
        view = buffer.reshape(-1)
    else:
        if len(buffer) == 0:
            return np.zeros(0, dtype=np.uint8)
        view = np.frombuffer(buffer, dtype=np.uint8)

    if not view.flags.writeable:
        raise TypeError("읽기 전용 버퍼에는 필터를 제자리 적용할 수 없음")
    return view


def _transform_pixels(px: np.ndarray, cube: LutCube, mode: OutputMode) -> int:
    """픽셀 블록 [N, 3]을 제자리 변환하고 건너뛴 픽셀 수를 반환."""
    size = cube.size
    rgb = px.astype(np.float64) / 255.0

    span = cube.domain_max.astype(np.float64) - cube.domain_min
    span = np.where(span > 0, span, 1.0)
    coords = np.clip((rgb - cube.domain_min) / span, 0.0, 1.0) * (size - 1)

    lo = np.clip(np.floor(coords).astype(np.int64), 0, size - 1)
    hi = np.clip(lo + 1, 0, size - 1)
    delta = coords - lo

    # [N, 8, 3] 꼭짓점 격자 좌표 -> [N, 8] 평탄 인덱스
    picks = np.where(_CORNER_BITS, hi[:, np.newaxis, :], lo[:, np.newaxis, :])
    flat = picks[..., 0] + picks[..., 1] * size + picks[..., 2] * size * size

    max_index = min(len(cube), size**3) - 1
    valid = (
        (flat[:, 0] >= 0)
        & (flat[:, 0] <= max_index)
        & (flat[:, 7] >= 0)
        & (flat[:, 7] <= max_index)
    )
    if not valid.any():
        return int(px.shape[0])

    weights = trilinear_weights(delta[valid])  # [M, 8]
    corners = cube.samples[flat[valid]].astype(np.float64)  # [M, 8, 3]
    out = np.einsum("mk,mkc->mc", weights, corners)

    # NaN은 상한(1.0)으로 포화
    if mode is OutputMode.MONOCHROME:
        avg = np.clip(np.nan_to_num(out.mean(axis=1), nan=1.0), 0.0, 1.0)
        out = np.repeat(avg[:, np.newaxis], 3, axis=1)
    else:
        out = np.clip(np.nan_to_num(out, nan=1.0), 0.0, 1.0)

    # round-half-up
    px[valid] = np.floor(out * 255.0 + 0.5).astype(np.uint8)
    return int(px.shape[0] - np.count_nonzero(valid))


def center_pixel(buffer: PixelBuffer, width: int, height: int) -> Optional[tuple[int, int, int]]:
    """버퍼 중앙 픽셀의 원시 RGB 값 (진단용). 범위를 벗어나면 None."""
    view = _byte_view(buffer)
    idx = ((height // 2) * width + width // 2) * 3
    if width <= 0 or height <= 0 or idx + 2 >= view.shape[0]:
        return None
    r, g, b = view[idx : idx + 3]
    return int(r), int(g), int(b)


def _log_cube_summary(cube: LutCube) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    n = len(cube)
    for label, i in (("First", 0), ("Middle", n // 2), ("Last", n - 1)):
        r, g, b = cube.samples[i]
        logger.debug(f"{label} LUT entry: R={r:.6f}, G={g:.6f}, B={b:.6f}")


def apply_lut(
    buffer: PixelBuffer,
    width: int,
    height: int,
    cube: LutCube,
    mode: OutputMode | str = OutputMode.MONOCHROME,
    rows_per_chunk: int = DEFAULT_ROWS_PER_CHUNK,
    workers: int = 1,
    progress_callback: ProgressCallback = None,
) -> bool:
    """3D LUT를 픽셀 버퍼에 제자리 적용 (trilinear interpolation).

    버퍼 용량을 넘는 픽셀과 큐브 범위를 벗어나는 꼭짓점이 필요한 픽셀은
    건너뛰고 수정하지 않는다. 출력은 round-half-up으로 8비트 양자화한다.

    Args:
        buffer: 행 우선 RGB 바이트 버퍼 (bytearray, 쓰기 가능 memoryview, uint8 배열)
        width: 이미지 너비
        height: 이미지 높이
        cube: load_lut()로 읽은 LUT
        mode: 출력 채널 정책 (기본값: 그레이스케일 강제)
        rows_per_chunk: 한 번에 처리할 행 수
        workers: 1보다 크면 행 청크를 스레드 풀에 분배
        progress_callback: 청크 처리 후 (처리한 행, 전체 행)으로 호출

    Returns:
        큐브가 비어 있으면 False, 그 외에는 True

    Raises:
        TypeError: 버퍼가 읽기 전용이거나 uint8이 아닐 때
    """
    if cube is None or cube.is_empty or cube.size < 1:
        logger.error("LUT가 비어 있어 필터를 적용할 수 없음")
        return False

    mode = OutputMode(mode)
    view = _byte_view(buffer)
    width = max(int(width), 0)
    height = max(int(height), 0)

    total_pixels = width * height
    usable = min(total_pixels, view.shape[0] // 3)
    logger.info(
        f"Applying LUT filter: {width} x {height} ({total_pixels * 3} bytes), "
        f"LUT size {cube.size} ({len(cube)} entries), mode={mode.value}"
    )
    _log_cube_summary(cube)

    rows_per_chunk = max(1, int(rows_per_chunk))
    chunks = [
        (y0, min(y0 + rows_per_chunk, height)) for y0 in range(0, height, rows_per_chunk)
    ]

    def run(chunk: tuple[int, int]) -> int:
        y0, y1 = chunk
        start = min(y0 * width, usable)
        stop = min(y1 * width, usable)
        if start >= stop:
            return 0
        return _transform_pixels(view[start * 3 : stop * 3].reshape(-1, 3), cube, mode)

    def report(rows_done: int) -> None:
        logger.debug(f"Processing row {rows_done} of {height}")
        if progress_callback is not None:
            progress_callback(rows_done, height)

    corner_skipped = 0
    if workers > 1 and len(chunks) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            for (_, y1), skipped in zip(chunks, pool.map(run, chunks)):
                corner_skipped += skipped
                report(y1)
    else:
        for chunk in chunks:
            corner_skipped += run(chunk)
            report(chunk[1])

    if usable < total_pixels:
        logger.warning(
            f"버퍼 범위를 벗어난 픽셀 {total_pixels - usable}개 건너뜀 "
            f"(버퍼 {view.shape[0]} bytes, 필요 {total_pixels * 3} bytes)"
        )
    if corner_skipped:
        logger.warning(f"LUT 범위를 벗어난 픽셀 {corner_skipped}개 건너뜀")

    logger.info("LUT filter applied.")
    return True
