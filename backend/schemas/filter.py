from pydantic import BaseModel


class ControlStatusResponse(BaseModel):
    device_name: str
    connected: bool
    clients: int
    active_lut: str | None = None
    debounce_seconds: float
