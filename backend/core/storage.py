import logging
from pathlib import Path
from typing import Optional

from src.data.cube_parser import LutCube
from src.inference.apply_filter import CubeCache

from .config import settings

logger = logging.getLogger(__name__)

LUT_SUFFIX = ".cube"


class LutStorage:
    """Local LUT library rooted at a single directory.

    LUT names are bare file names (with or without the .cube suffix);
    anything that would escape the directory is rejected.
    """

    def __init__(self, lut_dir: str | Path, max_size: int = 33):
        self.lut_dir = Path(lut_dir)
        self.cache = CubeCache(max_size=max_size)

    def resolve(self, name: str) -> Optional[Path]:
        """Map a LUT name to a file inside the library, or None."""
        if not name or Path(name).name != name:
            logger.warning(f"Rejected LUT name: {name!r}")
            return None
        if not name.endswith(LUT_SUFFIX):
            name = f"{name}{LUT_SUFFIX}"
        path = self.lut_dir / name
        if not path.is_file():
            return None
        return path

    def exists(self, name: str) -> bool:
        return self.resolve(name) is not None

    def list_luts(self) -> list[str]:
        """Names of all .cube files in the library, sorted."""
        if not self.lut_dir.is_dir():
            logger.warning(f"LUT directory does not exist: {self.lut_dir}")
            return []
        return sorted(p.stem for p in self.lut_dir.glob(f"*{LUT_SUFFIX}") if p.is_file())

    def load(self, name: str) -> Optional[LutCube]:
        """Load a LUT through the cache. None if the name is unknown."""
        path = self.resolve(name)
        if path is None:
            return None
        return self.cache.get(path)


def create_storage() -> LutStorage:
    return LutStorage(settings.LUT_DIR, max_size=settings.MAX_LUT_SIZE)
