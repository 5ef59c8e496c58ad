"""LUT 변환 속도 벤치마크.

카메라 프레임 해상도별, 워커 수별로 apply_lut 처리 시간을 측정하고
JSON 리포트를 저장한다.

Usage:
    python scripts/benchmark.py --cube luts/mono.cube
    python scripts/benchmark.py --cube luts/mono.cube --resolutions 320x240 1600x1200 --workers 1 4
    python scripts/benchmark.py --size 17 --iterations 20
"""

import argparse
import json
import logging
import statistics
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any

import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger(__name__)

# 카메라 프레임 크기 (W x H)
RESOLUTIONS = {
    "320x240": (320, 240),
    "800x600": (800, 600),
    "1600x1200": (1600, 1200),
}


def benchmark_resolution(
    cube,
    resolution_name: str,
    w: int,
    h: int,
    workers: int,
    iterations: int,
    mode: str,
) -> dict[str, Any]:
    from src.utils.lut import apply_lut

    rng = np.random.default_rng(0)
    frame = rng.integers(0, 256, size=w * h * 3, dtype=np.uint8)

    latencies_ms: list[float] = []
    for _ in range(iterations):
        buffer = frame.copy()
        t0 = time.perf_counter()
        apply_lut(buffer, w, h, cube, mode=mode, workers=workers)
        latencies_ms.append((time.perf_counter() - t0) * 1000.0)

    mean_ms = statistics.mean(latencies_ms)
    std_ms = statistics.stdev(latencies_ms) if len(latencies_ms) > 1 else 0.0
    p95_ms = float(np.percentile(latencies_ms, 95))

    return {
        "resolution": resolution_name,
        "width": w,
        "height": h,
        "workers": workers,
        "iterations": iterations,
        "mean_ms": round(mean_ms, 3),
        "std_ms": round(std_ms, 3),
        "min_ms": round(min(latencies_ms), 3),
        "max_ms": round(max(latencies_ms), 3),
        "p95_ms": round(p95_ms, 3),
        "mpix_per_s": round(w * h / (mean_ms / 1000.0) / 1e6, 2),
    }


def print_table(rows: list[list[str]], headers: list[str]) -> None:
    col_widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            col_widths[i] = max(col_widths[i], len(str(cell)))
    sep = "+" + "+".join("-" * (w + 2) for w in col_widths) + "+"
    fmt = "|" + "|".join(f" {{:<{w}}} " for w in col_widths) + "|"
    print(sep)
    print(fmt.format(*headers))
    print(sep)
    for row in rows:
        print(fmt.format(*[str(c) for c in row]))
    print(sep)


def print_benchmark_report(report: dict[str, Any]) -> None:
    lut = report["lut"]

    print("\n" + "=" * 62)
    print(f"  벤치마크 결과: {lut['source']}")
    print(f"  LUT 크기: {lut['size']} ({lut['entries']} entries)")
    print(f"  출력 모드: {report['mode']}")
    print("=" * 62)

    print("\n[변환 속도]")
    headers = ["해상도", "워커", "평균(ms)", "P95(ms)", "std(ms)", "Mpix/s"]
    rows = [
        [r["resolution"], r["workers"], r["mean_ms"], r["p95_ms"], r["std_ms"], r["mpix_per_s"]]
        for r in report["latency"]
    ]
    print_table(rows, headers)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="LUT 변환 속도 벤치마크")
    parser.add_argument("--cube", type=str, default=None,
                        help=".cube 파일 경로. 생략하면 항등 LUT 사용")
    parser.add_argument("--size", type=int, default=33,
                        help="--cube 생략 시 항등 LUT 크기")
    parser.add_argument(
        "--resolutions", nargs="+", default=list(RESOLUTIONS.keys()),
        help="측정할 해상도 (WxH)",
    )
    parser.add_argument("--workers", nargs="+", type=int, default=[1],
                        help="측정할 워커 수 목록")
    parser.add_argument("--iterations", type=int, default=5, help="반복 횟수")
    parser.add_argument("--mode", type=str, default="monochrome",
                        choices=["monochrome", "color"], help="출력 모드")
    parser.add_argument("--output-dir", type=str, default="benchmarks",
                        help="JSON 리포트 저장 디렉토리")
    parser.add_argument("--no-save", action="store_true", help="JSON 리포트 저장 생략")
    return parser.parse_args()


def _parse_resolution(name: str) -> tuple[int, int]:
    w, _, h = name.lower().partition("x")
    return int(w), int(h)


def main() -> None:
    args = parse_args()

    from src.data.cube_parser import CubeParser, LutCube, load_lut

    if args.cube:
        cube = load_lut(args.cube)
        source = args.cube
        if cube.is_empty:
            logger.error(f"LUT 로드 실패: {args.cube}")
            sys.exit(1)
    else:
        cube = LutCube(samples=CubeParser.create_identity_lut(args.size), size=args.size)
        source = f"identity-{args.size}"

    logger.info(
        f"벤치마크 시작: lut={source}, resolutions={args.resolutions}, "
        f"workers={args.workers}, iterations={args.iterations}"
    )

    latency_results: list[dict[str, Any]] = []
    for res_name in args.resolutions:
        try:
            w, h = _parse_resolution(res_name)
        except ValueError:
            logger.error(f"잘못된 해상도 형식: {res_name}")
            continue
        for workers in args.workers:
            logger.info(f"  {res_name} (workers={workers}) 측정 중...")
            result = benchmark_resolution(cube, res_name, w, h, workers, args.iterations, args.mode)
            latency_results.append(result)
            logger.info(f"    평균: {result['mean_ms']:.2f}ms  P95: {result['p95_ms']:.2f}ms")

    report: dict[str, Any] = {
        "benchmark_timestamp": datetime.now().isoformat(),
        "lut": {"source": source, "size": cube.size, "entries": len(cube)},
        "mode": args.mode,
        "latency": latency_results,
    }

    print_benchmark_report(report)

    if not args.no_save:
        output_dir = Path(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        report_path = output_dir / f"benchmark_{ts}.json"
        report_path.write_text(json.dumps(report, indent=2, ensure_ascii=False))
        logger.info(f"리포트 저장: {report_path}")


if __name__ == "__main__":
    main()
