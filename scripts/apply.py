""".cube 필터 적용 CLI 스크립트.

Usage:
    python scripts/apply.py --cube filter.cube --input photo.jpg --output result.png
    python scripts/apply.py --cube filter.cube --input photo.jpg --output result.png --mode color
    python scripts/apply.py --cube filter.cube --input photo.jpg --output result.png --workers 4
"""

import argparse
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="이미지에 .cube 필터 적용")
    parser.add_argument("--cube", type=str, required=True,
                        help=".cube 파일 경로")
    parser.add_argument("--input", type=str, required=True,
                        help="입력 이미지 경로")
    parser.add_argument("--output", type=str, required=True,
                        help="출력 이미지 경로")
    parser.add_argument("--mode", type=str, default="monochrome",
                        choices=["monochrome", "color"],
                        help="출력 모드 (기본값: monochrome)")
    parser.add_argument("--workers", type=int, default=1,
                        help="행 청크 병렬 처리 스레드 수")
    parser.add_argument("--rows-per-chunk", type=int, default=50,
                        help="한 번에 처리할 행 수")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="진행 상황 및 LUT 진단 로그 출력")
    return parser.parse_args()


def main() -> None:
    """필터 적용 메인 함수."""
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    from src.inference.apply_filter import apply_filter
    from src.utils.io import load_rgb_buffer, save_rgb_buffer

    logger.info(f"이미지 로드: {args.input}")
    buffer, width, height = load_rgb_buffer(args.input)
    logger.info(f"이미지 크기: {width}x{height}")

    ok = apply_filter(
        buffer,
        width,
        height,
        args.cube,
        mode=args.mode,
        rows_per_chunk=args.rows_per_chunk,
        workers=args.workers,
    )
    if not ok:
        logger.error(f"필터 적용 실패: {args.cube}")
        sys.exit(1)

    save_rgb_buffer(buffer, width, height, args.output)
    logger.info(f"결과 저장 완료: {args.output}")


if __name__ == "__main__":
    main()
