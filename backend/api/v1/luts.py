from fastapi import APIRouter, Depends, HTTPException, status

from backend.api.dependencies import get_session, get_storage
from backend.core.session import ControlSession
from backend.core.storage import LutStorage
from backend.schemas import LutInfo, LutListResponse, ParseIssueResponse

router = APIRouter()


def _describe(storage: LutStorage, name: str) -> LutInfo:
    cube = storage.load(name)
    if cube is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "LUT_NOT_FOUND", "message": f"LUT not found: {name}"},
        )
    return LutInfo(
        name=name,
        size=cube.size,
        title=cube.title,
        entries=len(cube),
        loaded=not cube.is_empty,
        issues=[
            ParseIssueResponse(line_no=i.line_no, text=i.text, reason=i.reason)
            for i in cube.issues
        ],
    )


@router.get("", response_model=LutListResponse)
def list_luts(
    session: ControlSession = Depends(get_session),
    storage: LutStorage = Depends(get_storage),
):
    """List the LUT library with load status of every entry."""
    return LutListResponse(
        luts=[_describe(storage, name) for name in storage.list_luts()],
        active_lut=session.active_lut,
    )


@router.get("/{name}", response_model=LutInfo)
def get_lut(name: str, storage: LutStorage = Depends(get_storage)):
    """Describe one LUT."""
    return _describe(storage, name)
