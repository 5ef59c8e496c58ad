from pydantic import BaseModel


class ParseIssueResponse(BaseModel):
    line_no: int
    text: str
    reason: str

    class Config:
        from_attributes = True


class LutInfo(BaseModel):
    name: str
    size: int
    title: str = ""
    entries: int
    loaded: bool
    issues: list[ParseIssueResponse] = []

    class Config:
        json_schema_extra = {
            "example": {
                "name": "mono_film",
                "size": 33,
                "title": "Mono Film",
                "entries": 35937,
                "loaded": True,
                "issues": [],
            }
        }


class LutListResponse(BaseModel):
    luts: list[LutInfo]
    active_lut: str | None = None
