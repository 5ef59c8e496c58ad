from pathlib import Path

from pydantic_settings import BaseSettings

from src.utils.lut import OutputMode


class Settings(BaseSettings):
    """Application configuration from environment variables."""

    # API
    DEBUG: bool = False
    API_TITLE: str = "lutcam API"
    API_VERSION: str = "1.0.0"
    API_PREFIX: str = "/v1"
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:8080"]
    LOG_LEVEL: str = "INFO"

    # LUT library
    LUT_DIR: Path = Path("luts")
    DEFAULT_LUT: str | None = None
    MAX_LUT_SIZE: int = 33  # values above 33 are capped by the loader

    # Transform
    OUTPUT_MODE: OutputMode = OutputMode.MONOCHROME
    ROWS_PER_CHUNK: int = 50
    TRANSFORM_WORKERS: int = 1

    # Control channel
    DEVICE_NAME: str = "lutcam"
    NOTIFY_DEBOUNCE_SECONDS: float = 1.0

    # Frame upload
    MAX_UPLOAD_SIZE_MB: int = 50

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
