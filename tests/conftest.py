"""공용 테스트 픽스처."""

import numpy as np
import pytest

# 2x2x2 항등 LUT의 꼭짓점 (R이 가장 빠르게 변함)
CORNER_SAMPLES = [
    (0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0),
    (0, 0, 1), (1, 0, 1), (0, 1, 1), (1, 1, 1),
]


@pytest.fixture
def write_cube(tmp_path):
    """.cube 텍스트를 파일로 써서 경로를 돌려주는 팩토리."""

    def _write(text: str, name: str = "test.cube"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def corner_samples():
    return list(CORNER_SAMPLES)


@pytest.fixture
def corners_cube_text() -> str:
    lines = ["# 2x2x2 identity", "LUT_3D_SIZE 2"]
    lines += [f"{r} {g} {b}" for r, g, b in CORNER_SAMPLES]
    return "\n".join(lines) + "\n"


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
