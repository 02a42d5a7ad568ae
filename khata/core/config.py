from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


# register sheets never run past 99 students; marks are out of 100
DEFAULT_SIMILARITY_THRESHOLD = 0.8
DEFAULT_ROLL_NUMBER_MIN = 1
DEFAULT_ROLL_NUMBER_MAX = 99
DEFAULT_MARKS_MIN = 0.0
DEFAULT_MARKS_MAX = 100.0
DEFAULT_MIN_NAME_LENGTH = 2
DEFAULT_OCR_TIMEOUT_SECONDS = 60.0


class Settings(BaseSettings):
    # environment wins over .env
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    app_name: str = Field(default="Khata Marks Reconciliation API")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    google_api_key: Optional[str] = Field(default=None)
    gemini_model: str = Field(default="gemini-2.0-flash")

    api_key_enabled: bool = Field(default=False)
    api_key: Optional[str] = Field(default=None)

    max_images_per_request: int = Field(default=5)

    # one OCR call per photo, awaited in order unless concurrency is raised
    ocr_timeout_seconds: float = Field(default=DEFAULT_OCR_TIMEOUT_SECONDS)
    ocr_max_concurrency: int = Field(default=1, ge=1)

    similarity_threshold: float = Field(default=DEFAULT_SIMILARITY_THRESHOLD, ge=0.0, le=1.0)
    roll_number_min: int = Field(default=DEFAULT_ROLL_NUMBER_MIN)
    roll_number_max: int = Field(default=DEFAULT_ROLL_NUMBER_MAX)
    marks_min: float = Field(default=DEFAULT_MARKS_MIN)
    marks_max: float = Field(default=DEFAULT_MARKS_MAX)
    min_name_length: int = Field(default=DEFAULT_MIN_NAME_LENGTH)

    log_level: str = Field(default="INFO")
    log_file: str = Field(default="logs/app.log")


class ReconciliationConfig(BaseModel):
    """Tunables for one reconciliation run."""

    similarity_threshold: float = Field(default=DEFAULT_SIMILARITY_THRESHOLD, ge=0.0, le=1.0)
    roll_number_min: int = DEFAULT_ROLL_NUMBER_MIN
    roll_number_max: int = DEFAULT_ROLL_NUMBER_MAX
    marks_min: float = DEFAULT_MARKS_MIN
    marks_max: float = DEFAULT_MARKS_MAX
    min_name_length: int = DEFAULT_MIN_NAME_LENGTH
    ocr_timeout_seconds: Optional[float] = Field(default=DEFAULT_OCR_TIMEOUT_SECONDS)
    max_concurrency: int = Field(default=1, ge=1)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReconciliationConfig":
        return cls(
            similarity_threshold=settings.similarity_threshold,
            roll_number_min=settings.roll_number_min,
            roll_number_max=settings.roll_number_max,
            marks_min=settings.marks_min,
            marks_max=settings.marks_max,
            min_name_length=settings.min_name_length,
            ocr_timeout_seconds=settings.ocr_timeout_seconds,
            max_concurrency=settings.ocr_max_concurrency,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


# Global settings instance
settings = get_settings()
