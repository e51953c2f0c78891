from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Aliyun credentials, required
    alibaba_cloud_access_key_id: str = Field(min_length=1)
    alibaba_cloud_access_key_secret: str = Field(min_length=1)
    alibaba_cloud_region: str = "cn-beijing"

    # Billing (BSS OpenAPI is served from a single global endpoint)
    billing_endpoint: str = "business.aliyuncs.com"
    billing_page_size: int = 300

    # Relative report output paths resolve against this directory
    export_base_dir: Path = Field(default_factory=Path.cwd)

    # App
    allowed_origins: str = "http://localhost:3000"
    rate_limit_per_hour: int = 20
    log_level: str = "INFO"
    log_json: bool = True

    def ecs_endpoint(self, region: str) -> str:
        return f"ecs.{region}.aliyuncs.com"

    @property
    def origins_list(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",")]


@lru_cache
def get_settings() -> Settings:
    """Load settings once. Raises pydantic.ValidationError when credentials are missing."""
    return Settings()
