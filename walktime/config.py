"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from walktime.domain import UnitSystem
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the walktime service."""
    model_config = SettingsConfigDict(env_prefix="WALK_", extra="ignore")

    units: UnitSystem = UnitSystem.IMPERIAL
    default_timezone: str | None = None  # used when the payload omits "timezone"
    api_key: str | None = None
    log_level: str = "INFO"
    job_name: str = "walktime"

    @field_validator("units", mode="before")
    @classmethod
    def normalize_units(cls, v):
        """Accept unit names in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("log_level", mode="after")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        """Normalize level names for logging.config."""
        return str(v).strip().upper()


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
