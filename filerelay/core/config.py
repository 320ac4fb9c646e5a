# filerelay/core/config.py
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # GitHub repository used as the object store
    github_owner: str
    github_repo: str
    github_token: str
    github_branch: str = "main"
    github_api_url: str = "https://api.github.com"
    github_raw_url: str = "https://raw.githubusercontent.com"

    # Upload settings
    max_file_size: int = 20 * 1024 * 1024
    allowed_extensions: list[str] = []  # empty means every extension
    fallback_extension: str = "bin"
    id_length: int = 8
    base_url: str = "http://localhost:3000"

    # Mapping document (identifier -> file record)
    mappings_path: str = "mappings.json"
    mapping_write_retries: int = 3

    # None keeps httpx's default timeout
    request_timeout: float | None = None

    # App settings
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"
    log_file: str | None = None

    # Tell pydantic-settings to load from .env at project root
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore any extra stuff in .env
    )

    @property
    def contents_url(self) -> str:
        return (
            f"{self.github_api_url.rstrip('/')}/repos/"
            f"{self.github_owner}/{self.github_repo}/contents"
        )

    @property
    def raw_base_url(self) -> str:
        return (
            f"{self.github_raw_url.rstrip('/')}/"
            f"{self.github_owner}/{self.github_repo}/{self.github_branch}"
        )

    @property
    def repo_url(self) -> str:
        return f"https://github.com/{self.github_owner}/{self.github_repo}"

    @property
    def max_file_size_mb(self) -> float:
        return self.max_file_size / (1024 * 1024)


@lru_cache
def get_settings() -> Settings:
    return Settings()
