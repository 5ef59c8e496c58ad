"""LUT 로딩 모듈."""

from src.data.cube_parser import CubeParser, LutCube, ParseIssue, load_lut

__all__ = ["CubeParser", "LutCube", "ParseIssue", "load_lut"]
