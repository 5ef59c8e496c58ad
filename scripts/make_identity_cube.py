"""항등 .cube 파일 생성.

카메라 파이프라인 보정 및 테스트 기준으로 쓰는 항등 LUT를 만든다.

Usage:
    python scripts/make_identity_cube.py --output luts/identity.cube --size 33
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="항등 3D LUT를 .cube 파일로 내보내기")
    parser.add_argument("--output", type=str, required=True, help="출력 .cube 파일 경로")
    parser.add_argument("--size", type=int, default=33,
                        help="LUT 그리드 크기 (2~33). 로더가 33을 넘는 크기는 잘라냄")
    parser.add_argument("--title", type=str, default="Identity", help="LUT 제목")
    return parser.parse_args()


def main() -> None:
    """Export 메인 함수."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    args = parse_args()

    from src.data.cube_parser import MAX_LUT_SIZE, CubeParser

    if args.size > MAX_LUT_SIZE:
        logger.warning(f"크기 {args.size}는 로드 시 {MAX_LUT_SIZE}로 잘림")

    parser = CubeParser()
    samples = CubeParser.create_identity_lut(args.size)
    parser.write(samples, args.size, args.output, title=args.title)

    logger.info(f"출력: {args.output} (LUT 크기: {args.size}x{args.size}x{args.size})")


if __name__ == "__main__":
    main()
