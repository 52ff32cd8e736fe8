"""Configuration settings for the photo matching service."""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    These settings are loaded from environment variables with the following precedence:
    1. Environment variables
    2. .env file
    3. Default values

    Attributes:
        DESCRIPTOR_DIMENSION: Length every stored face descriptor must have
        DEDUPE_THRESHOLD: Euclidean distance under which two faces are merged into one person
        MATCH_THRESHOLD: Euclidean distance under which a live capture matches a person
        FILTER_THRESHOLD: Euclidean distance under which a face in a photo counts as the person
        DATABASE_URL: SQLAlchemy async database URL
    """
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="",
        env_nested_delimiter="__"
    )

    # Core Settings
    PROJECT_NAME: str = "Photo Match Service"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"

    # CORS Settings
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    @property
    def cors_origins(self) -> List[str]:
        """Get list of allowed origins."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Face engine settings
    DESCRIPTOR_DIMENSION: int = 128
    DEDUPE_THRESHOLD: float = 0.5
    MATCH_THRESHOLD: float = 0.6
    FILTER_THRESHOLD: float = 0.5

    # Server-side detection settings
    SERVER_SIDE_DETECTION: bool = False
    MIN_FACE_CONFIDENCE: float = 0.7
    MAX_FACES_PER_IMAGE: int = 20
    MAX_IMAGE_PIXELS: int = 1920 * 1080  # ~2MP (Full HD)
    MODEL_NAME: str = "buffalo_l"
    MODEL_CACHE_DIR: str = ".model_cache"
    FACE_THUMBNAIL_PADDING: int = 20

    # Database Settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./photomatch.db"
    DATABASE_ECHO: bool = False
    POOL_SIZE: int = 5
    MAX_OVERFLOW: int = 10
    POOL_TIMEOUT: int = 30

    # Optional settings with defaults
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000


settings = Settings()
