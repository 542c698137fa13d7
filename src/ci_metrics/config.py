from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ci_metrics.coordinator import SubmitOptions


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    DD_API_KEY: Optional[str] = None
    DD_SITE: str = "datadoghq.com"
    DRY_RUN: bool = False
    BATCH_SIZE: int = 10
    APP_ENV: str = "production"
    DATA_DIR: str = "data"
    CACHE_DIR: str = "cache"
    LOG_DIR: str = "log"
    REQUEST_TIMEOUT: float = 30.0

    @field_validator("BATCH_SIZE")
    @classmethod
    def _positive_batch(cls, v):
        if v <= 0:
            raise ValueError("BATCH_SIZE must be > 0")
        return v

    @property
    def testing(self) -> bool:
        return self.APP_ENV.lower() == "test"

    def submit_options(self, dry_run: Optional[bool] = None, batch_size: Optional[int] = None) -> SubmitOptions:
        return SubmitOptions(
            dry_run=self.DRY_RUN if dry_run is None else dry_run,
            batch_size=self.BATCH_SIZE if batch_size is None else batch_size,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
