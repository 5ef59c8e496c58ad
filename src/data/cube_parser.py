""".cube 파일 파서.

3D LUT 파일(.cube)을 읽어 평탄화된 색상 샘플 배열로 만든다.
카메라 파이프라인에서 쓰이므로 잘못된 입력에 대해 예외 대신
빈 큐브(실패 표시)나 부분 로드 결과를 돌려준다.

파일 형식:
    LUT_3D_SIZE <int>          # 큐브 한 변 길이, 최대 33
    # comment
    <float> <float> <float>    # R G B 샘플, R이 가장 빠르게 변함
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)

SIZE_KEYWORD = "LUT_3D_SIZE"

# 메모리 제한: 요청 크기가 이보다 크면 조용히 잘라낸다
MAX_LUT_SIZE = 33

# 샘플 슬롯을 소비하지 않는 표준 .cube 메타데이터 키워드
METADATA_KEYWORDS = (
    "TITLE",
    "DOMAIN_MIN",
    "DOMAIN_MAX",
    "LUT_1D_SIZE",
    "LUT_1D_INPUT_RANGE",
    "LUT_3D_INPUT_RANGE",
)

# C strtof와 같은 규칙으로 토큰 앞부분의 실수만 인식
_FLOAT_PREFIX = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)
_INT_PREFIX = re.compile(r"[+-]?\d+")


@dataclass(frozen=True)
class ParseIssue:
    """관용적으로 처리된 잘못된 행 하나에 대한 기록."""

    line_no: int
    text: str
    reason: str


@dataclass
class LutCube:
    """로드된 3D LUT.

    samples[ri + gi*size + bi*size^2] 가 격자 좌표 (ri, gi, bi)의 색상이다.
    samples가 비어 있으면 로드 실패를 뜻한다.
    """

    samples: np.ndarray
    size: int
    title: str = ""
    domain_min: np.ndarray = field(
        default_factory=lambda: np.zeros(3, dtype=np.float32)
    )
    domain_max: np.ndarray = field(
        default_factory=lambda: np.ones(3, dtype=np.float32)
    )
    issues: list[ParseIssue] = field(default_factory=list)

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    @property
    def grid(self) -> np.ndarray:
        """[b, g, r, 3] 형태의 뷰 (복사 없음)."""
        return self.samples.reshape(self.size, self.size, self.size, 3)

    def sample(self, ri: int, gi: int, bi: int) -> tuple[float, float, float]:
        r, g, b = self.samples[ri + gi * self.size + bi * self.size**2]
        return float(r), float(g), float(b)

    @classmethod
    def empty(cls) -> "LutCube":
        return cls(samples=np.zeros((0, 3), dtype=np.float32), size=0)


def _scan_floats(text: str, count: int) -> tuple[list[float], bool]:
    """공백으로 구분된 토큰에서 앞부분 실수를 최대 count개 읽는다.

    sscanf("%f %f %f")처럼 첫 실패 지점에서 멈춘다.
    반환값의 두 번째 요소는 count개를 모두 깔끔하게 읽었는지 여부.
    """
    values: list[float] = []
    clean = True
    for token in text.split()[:count]:
        m = _FLOAT_PREFIX.match(token)
        if m is None:
            clean = False
            break
        values.append(float(m.group(0)))
        if m.end() != len(token):
            # "0.5abc" -> 0.5, 나머지 토큰은 읽지 않음
            clean = False
            break
    if len(values) < count:
        clean = False
    return values, clean


class CubeParser:
    """.cube 파일 파서.

    .cube 파일의 읽기(read)와 쓰기(write)를 담당한다.
    read()는 실패 시 예외 대신 빈 배열을 반환하며,
    파싱 중 발견한 문제는 issues에 행 단위로 남긴다.
    """

    def __init__(self, max_size: int = MAX_LUT_SIZE) -> None:
        # MAX_LUT_SIZE는 메모리 상한이므로 더 큰 값은 허용하지 않음
        self.max_size = min(max_size, MAX_LUT_SIZE)
        self._reset()

    def _reset(self) -> None:
        self.title: str = ""
        self.size: int = 0
        self.domain_min: np.ndarray = np.array([0.0, 0.0, 0.0], dtype=np.float32)
        self.domain_max: np.ndarray = np.array([1.0, 1.0, 1.0], dtype=np.float32)
        self.issues: list[ParseIssue] = []
        self.lut: np.ndarray = np.zeros((0, 3), dtype=np.float32)
        self._filled = 0

    def read(self, path: str | Path) -> np.ndarray:
        """Read a .cube file and return the flattened 3D LUT samples.

        Args:
            path: .cube 파일 경로

        Returns:
            LUT 샘플 배열 [size^3, 3], float32. 파일을 열 수 없거나
            LUT_3D_SIZE 선언이 없으면 빈 배열 [0, 3]
        """
        self._reset()
        path = Path(path)

        try:
            f = open(path, "r", encoding="utf-8", errors="replace")
        except OSError as e:
            logger.error(f"LUT 파일을 열 수 없음: {path} ({e})")
            return self.lut

        with f:
            self._parse_lines(f)

        if self.size == 0:
            logger.error(f"{SIZE_KEYWORD} 선언을 찾을 수 없음: {path}")
            return self.lut

        logger.info(f"Loaded {self._filled} LUT entries from {path} (size={self.size})")
        if self._filled < len(self.lut):
            logger.warning(
                f"LUT 데이터 부족: 예상 {len(self.lut)}, 실제 {self._filled} "
                f"(나머지는 0으로 유지)"
            )
        if self.issues:
            logger.warning(f"잘못된 행 {len(self.issues)}개를 관용적으로 처리함: {path}")
        return self.lut

    def _parse_lines(self, lines) -> None:
        capacity = 0

        for line_no, raw in enumerate(lines, start=1):
            line = raw.strip()

            # 빈 줄 및 주석 건너뜀
            if not line or line.startswith("#"):
                continue

            if line.startswith(SIZE_KEYWORD):
                self._declare_size(line_no, line)
                capacity = len(self.lut)
                continue

            keyword = line.split(maxsplit=1)[0].upper()
            if keyword in METADATA_KEYWORDS:
                self._read_metadata(line_no, keyword, line)
                continue

            # 크기 선언 전의 데이터는 받을 큐브가 없으므로 무시
            if self._filled >= capacity:
                continue

            values, clean = _scan_floats(line, 3)
            if not clean:
                self.issues.append(
                    ParseIssue(line_no, line, "malformed sample, recovered best-effort")
                )
            values += [0.0] * (3 - len(values))
            self.lut[self._filled] = values
            self._filled += 1

    def _declare_size(self, line_no: int, line: str) -> None:
        m = _INT_PREFIX.match(line[len(SIZE_KEYWORD):].strip())
        if m is None or int(m.group(0)) < 1:
            self.issues.append(ParseIssue(line_no, line, "invalid LUT size"))
            return

        requested = int(m.group(0))
        size = min(requested, self.max_size)
        if size != requested:
            logger.warning(f"LUT 크기 {requested} -> {size} 로 제한")

        self.size = size
        self.lut = np.zeros((size**3, 3), dtype=np.float32)
        self._filled = 0
        logger.debug(f"LUT size: {size}")

    def _read_metadata(self, line_no: int, keyword: str, line: str) -> None:
        rest = line[len(keyword):].strip()
        if keyword == "TITLE":
            self.title = rest.strip('"')
        elif keyword in ("DOMAIN_MIN", "DOMAIN_MAX"):
            values, clean = _scan_floats(rest, 3)
            if not clean:
                self.issues.append(ParseIssue(line_no, line, f"invalid {keyword}"))
                return
            domain = np.array(values, dtype=np.float32)
            if keyword == "DOMAIN_MIN":
                self.domain_min = domain
            else:
                self.domain_max = domain
        # 1D/입력 범위 키워드는 3D 적용에 영향 없음

    def to_cube(self) -> LutCube:
        """마지막 read() 결과를 LutCube로 묶는다."""
        if len(self.lut) == 0:
            cube = LutCube.empty()
            cube.issues = list(self.issues)
            return cube
        return LutCube(
            samples=self.lut,
            size=self.size,
            title=self.title,
            domain_min=self.domain_min,
            domain_max=self.domain_max,
            issues=list(self.issues),
        )

    def write(
        self,
        samples: np.ndarray,
        size: int,
        path: str | Path,
        title: str = "lutcam LUT",
    ) -> None:
        """평탄화된 LUT 샘플을 .cube 파일로 쓴다.

        Args:
            samples: LUT 샘플 [size^3, 3], R이 가장 빠르게 변하는 순서
            size: 큐브 한 변 길이
            path: 출력 .cube 파일 경로
            title: LUT 제목 (메타데이터)
        """
        samples = np.asarray(samples, dtype=np.float32).reshape(-1, 3)
        if samples.shape[0] != size**3:
            raise ValueError(
                f"LUT 샘플 수 오류: {samples.shape[0]} (필요: {size}^3)"
            )

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            f.write(f'TITLE "{title}"\n')
            f.write(f"{SIZE_KEYWORD} {size}\n")
            f.write("\n")
            for rv, gv, bv in samples:
                f.write(f"{rv:.6f} {gv:.6f} {bv:.6f}\n")

    @staticmethod
    def create_identity_lut(size: int = MAX_LUT_SIZE) -> np.ndarray:
        """항등 LUT 생성 (입력 = 출력).

        Returns:
            항등 LUT 샘플 [size^3, 3], float32, R이 가장 빠르게 변함
        """
        coords = np.linspace(0.0, 1.0, size, dtype=np.float32)
        # indexing="ij"로 [b, g, r] 축 순서를 만들면 ravel 시 R이 가장 빠름
        b, g, r = np.meshgrid(coords, coords, coords, indexing="ij")
        return np.stack([r.ravel(), g.ravel(), b.ravel()], axis=-1)


def load_lut(path: str | Path, max_size: int = MAX_LUT_SIZE) -> LutCube:
    """.cube 파일을 읽어 LutCube를 반환. 실패 시 빈 큐브."""
    parser = CubeParser(max_size=max_size)
    parser.read(path)
    return parser.to_cube()
