"""이미지 I/O 헬퍼.

이미지 파일과 원시 RGB 바이트 버퍼(행 우선, 픽셀당 3바이트) 사이의 변환.
"""

import io
from pathlib import Path
from typing import BinaryIO

import numpy as np
from PIL import Image as PILImage


def _to_rgb_buffer(img: PILImage.Image) -> tuple[bytearray, int, int]:
    img = img.convert("RGB")  # 항상 RGB로 변환
    width, height = img.size
    return bytearray(img.tobytes()), width, height


def load_rgb_buffer(path: str | Path) -> tuple[bytearray, int, int]:
    """이미지 파일을 원시 RGB 버퍼로 로드.

    Args:
        path: 이미지 파일 경로

    Returns:
        (버퍼, 너비, 높이). 버퍼 길이는 너비*높이*3

    Raises:
        FileNotFoundError: 파일이 존재하지 않을 때
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"이미지 파일을 찾을 수 없음: {path}")

    with PILImage.open(path) as img:
        return _to_rgb_buffer(img)


def decode_rgb_buffer(data: bytes | BinaryIO) -> tuple[bytearray, int, int]:
    """인코딩된 이미지 바이트(JPEG, PNG 등)를 원시 RGB 버퍼로 디코딩."""
    stream = io.BytesIO(data) if isinstance(data, (bytes, bytearray)) else data
    with PILImage.open(stream) as img:
        return _to_rgb_buffer(img)


def buffer_to_image(buffer: bytes | bytearray, width: int, height: int) -> PILImage.Image:
    """원시 RGB 버퍼를 PIL 이미지로 변환."""
    arr = np.frombuffer(bytes(buffer), dtype=np.uint8)
    expected = width * height * 3
    if arr.shape[0] != expected:
        raise ValueError(f"버퍼 크기 불일치: 예상 {expected}, 실제 {arr.shape[0]}")
    return PILImage.fromarray(arr.reshape(height, width, 3))


def save_rgb_buffer(buffer: bytes | bytearray, width: int, height: int, path: str | Path) -> None:
    """원시 RGB 버퍼를 이미지 파일로 저장. 포맷은 확장자로 결정."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    buffer_to_image(buffer, width, height).save(path)


def encode_png(buffer: bytes | bytearray, width: int, height: int) -> bytes:
    """원시 RGB 버퍼를 PNG 바이트로 인코딩."""
    out = io.BytesIO()
    buffer_to_image(buffer, width, height).save(out, format="PNG")
    return out.getvalue()
