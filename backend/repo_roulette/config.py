from functools import lru_cache
from typing import Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    github_token: Optional[str] = Field(default=None, alias="GITHUB_TOKEN")
    github_base_url: HttpUrl = Field(
        default="https://api.github.com", alias="GITHUB_BASE_URL"
    )
    github_proxy: Optional[str] = Field(default=None, alias="GITHUB_PROXY")
    request_timeout: Optional[float] = Field(
        default=None, alias="REQUEST_TIMEOUT"
    )  # None keeps the httpx default
    min_stars: int = Field(default=50, ge=0, alias="MIN_STARS")
    per_page: int = Field(default=100, ge=1, le=100, alias="PER_PAGE")
    max_pages: int = Field(default=10, ge=1, alias="MAX_PAGES")
    sort_field: str = Field(default="stars", alias="SORT_FIELD")
    languages: Optional[list[str]] = Field(default=None, alias="LANGUAGES")
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        populate_by_name = True
        extra = "ignore"  # ignore unrelated env vars to avoid validation errors


@lru_cache
def get_settings() -> Settings:
    return Settings()
