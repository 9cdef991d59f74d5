from typing import Literal

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApplicationSettings(BaseModel):
    debug: bool = False
    log_level: str = "INFO"
    version: str = "local"


class ProviderSettings(BaseModel):
    enabled: list[str] = ["google_books", "openlibrary"]
    """Registration order. Also the relevance order of merged results."""
    timeout_seconds: float = 10.0
    max_results: int = 40
    source_priority: list[str] = ["google_books", "openlibrary"]
    """Earlier sources win merge conflicts. Unlisted sources rank last."""
    google_books_api_key: str | None = None
    user_agent: str = "BookPath/1.0 (https://bookpath.eu)"


class CacheSettings(BaseModel):
    backend: Literal["redis", "memory", "none"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    ttl_seconds: int = 60 * 60  # 1 hour
    prefix: str = "bookpath-cache:"


class AffiliateSettings(BaseModel):
    associate_tag: str | None = None
    domain: str = "amazon.de"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BOOKPATH_",
        env_nested_delimiter="__",
        env_file=(".env.local", ".env"),
        extra="ignore",
    )

    app: ApplicationSettings = ApplicationSettings()
    providers: ProviderSettings = ProviderSettings()
    cache: CacheSettings = CacheSettings()
    affiliate: AffiliateSettings = AffiliateSettings()
