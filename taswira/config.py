from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    ANALYSIS_MODEL: str = "gpt-4o-mini"  # Vision analysis of the uploaded product
    PROMPT_MODEL: str = "gpt-4o-mini"  # Motion and campaign scene prompts
    IMAGE_MODEL: str = "gpt-image-1"
    IMAGE_SIZE: str = "1024x1536"
    IMAGE_QUALITY: str = "high"

    # Image provider: openai | kie-4o | kie-flux-kontext
    IMAGE_PROVIDER: str = "openai"

    # KIE.ai
    KIE_AI_API_KEY: str = ""
    KIE_BASE_URL: str = "https://api.kie.ai"
    VEO_MODEL: str = "veo3_fast"
    FLUX_KONTEXT_MODEL: str = "flux-kontext-max"
    VIDEO_ASPECT_RATIO: str = "9:16"
    RUNWAY_DURATION: int = 5
    RUNWAY_QUALITY: str = "720p"

    # Video output
    VIDEO_WIDTH: int = 720
    VIDEO_HEIGHT: int = 1280
    SCENE_DURATION_SECONDS: int = 8

    # Polling
    IMAGE_POLL_INTERVAL: float = 2.0
    IMAGE_POLL_MAX_ATTEMPTS: int = 300
    VIDEO_POLL_INTERVAL: float = 5.0
    VIDEO_POLL_MAX_ATTEMPTS: int = 120
    POLL_MAX_CONSECUTIVE_ERRORS: int = 3

    # Video combining
    VIDEO_COMBINE_SERVICE_URL: Optional[str] = None
    FFMPEG_CONCAT_ENABLED: bool = True
    FFMPEG_TIMEOUT: int = 180

    # Database
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "taswira"
    DB_USER: str = "taswira"
    DB_PASSWORD: str = ""
    SEED_CATALOG: bool = True

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    PUBLIC_BASE_URL: str = "http://localhost:8080"
    MEDIA_DIR: str = "media"
    MAX_UPLOAD_MB: int = 20
    SESSION_TTL_SECONDS: int = 3600

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def media_root(self) -> Path:
        return Path(self.MEDIA_DIR).resolve()

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024

    @property
    def is_kie_enabled(self) -> bool:
        return bool(self.KIE_AI_API_KEY)

settings = Settings()
