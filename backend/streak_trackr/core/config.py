from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    database_url: str = "sqlite:///./streaks.db"
    # Elapsed wall-clock days after the last extend before a run is broken.
    # Comparison is strictly greater: exactly N days still continues.
    grace_period_days: int = 4
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]
    default_color: str = "#000000"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v):
        if v in ("", None):
            return "INFO"
        return str(v).upper()

    class Config:
        env_file = ".env"


settings = Settings()
