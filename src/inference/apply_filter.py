"""픽셀 버퍼에 .cube 필터 적용.

카메라 제어 측에서 호출하는 단일 진입점.
LUT 로드 -> 빈 큐브 검사 -> 변환 -> 성공 여부 반환 순서로 동작하며,
실패는 예외가 아니라 False로 알린다.
"""

import logging
import threading
from pathlib import Path
from typing import Optional

from src.data.cube_parser import MAX_LUT_SIZE, LutCube, load_lut
from src.utils.lut import (
    DEFAULT_ROWS_PER_CHUNK,
    OutputMode,
    PixelBuffer,
    ProgressCallback,
    apply_lut,
    center_pixel,
)

logger = logging.getLogger(__name__)


class CubeCache:
    """호출자가 소유하는 LUT 캐시.

    같은 LUT를 여러 프레임에 적용할 때 재파싱을 피한다.
    파일의 mtime 또는 크기가 바뀌면 다시 읽고, 로드 실패는 캐시하지 않는다.
    """

    def __init__(self, max_size: int = MAX_LUT_SIZE) -> None:
        self.max_size = min(max_size, MAX_LUT_SIZE)
        self._entries: dict[Path, tuple[tuple[int, int], LutCube]] = {}
        self._lock = threading.Lock()

    def get(self, path: str | Path) -> LutCube:
        path = Path(path).resolve()
        try:
            stat = path.stat()
        except OSError:
            self.invalidate(path)
            return load_lut(path, max_size=self.max_size)

        stamp = (stat.st_mtime_ns, stat.st_size)
        with self._lock:
            entry = self._entries.get(path)
        if entry is not None and entry[0] == stamp:
            logger.debug(f"LUT 캐시 적중: {path}")
            return entry[1]

        cube = load_lut(path, max_size=self.max_size)
        with self._lock:
            if cube.is_empty:
                self._entries.pop(path, None)
            else:
                self._entries[path] = (stamp, cube)
        return cube

    def invalidate(self, path: Optional[str | Path] = None) -> None:
        """특정 경로 또는 전체 캐시를 비운다."""
        with self._lock:
            if path is None:
                self._entries.clear()
            else:
                self._entries.pop(Path(path).resolve(), None)

    def __contains__(self, path: str | Path) -> bool:
        with self._lock:
            return Path(path).resolve() in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def apply_filter(
    buffer: PixelBuffer,
    width: int,
    height: int,
    cube_path: str | Path,
    mode: OutputMode | str = OutputMode.MONOCHROME,
    cache: Optional[CubeCache] = None,
    rows_per_chunk: int = DEFAULT_ROWS_PER_CHUNK,
    workers: int = 1,
    progress_callback: ProgressCallback = None,
) -> bool:
    """.cube 파일을 읽어 픽셀 버퍼에 제자리 적용.

    Args:
        buffer: 행 우선 RGB 바이트 버퍼, 길이 width*height*3
        width: 이미지 너비
        height: 이미지 높이
        cube_path: .cube 파일 경로
        mode: 출력 채널 정책
        cache: 지정하면 로드된 LUT를 호출 간에 재사용
        rows_per_chunk: 행 청크 크기
        workers: 행 청크 병렬 처리 스레드 수
        progress_callback: (처리한 행, 전체 행) 진행률 콜백

    Returns:
        성공 여부. LUT를 읽지 못하면 버퍼를 건드리지 않고 False
    """
    cube = cache.get(cube_path) if cache is not None else load_lut(cube_path)
    if cube.is_empty:
        logger.error(f"Error: Failed to load LUT file: {cube_path}")
        return False

    logger.info(f"LUT file loaded successfully: {cube_path}")
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Center pixel RGB: {center_pixel(buffer, width, height)}")

    return apply_lut(
        buffer,
        width,
        height,
        cube,
        mode=mode,
        rows_per_chunk=rows_per_chunk,
        workers=workers,
        progress_callback=progress_callback,
    )
