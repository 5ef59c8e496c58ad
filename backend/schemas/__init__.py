from .lut import ParseIssueResponse, LutInfo, LutListResponse
from .filter import ControlStatusResponse

__all__ = [
    "ParseIssueResponse",
    "LutInfo",
    "LutListResponse",
    "ControlStatusResponse",
]
