"""필터 적용 진입점 모듈."""

from src.inference.apply_filter import CubeCache, apply_filter

__all__ = ["CubeCache", "apply_filter"]
