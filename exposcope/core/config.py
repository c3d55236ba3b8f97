"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Log level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ConcurrencyMode(str, Enum):
    """How the fetch orchestrator bounds parallel requests."""
    BATCH = "batch"  # whole batch completes before the next one starts
    POOL = "pool"    # continuous semaphore-gated worker pool


class HttpConfig(BaseModel):
    """HTTP client configuration shared by every check."""
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    )
    accept: str = (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    )
    accept_language: str = "fr-FR,fr;q=0.9,en-US;q=0.8,en;q=0.7"
    max_redirects: int = 5
    verify_tls: bool = True

    def headers(self) -> dict[str, str]:
        """Default request headers."""
        return {
            "User-Agent": self.user_agent,
            "Accept": self.accept,
            "Accept-Language": self.accept_language,
        }


class FetchConfig(BaseModel):
    """Fetch orchestrator configuration."""
    concurrency: int = 5
    mode: ConcurrencyMode = ConcurrencyMode.BATCH
    default_timeout: float = 10.0
    default_max_bytes: int = 2 * 1024 * 1024
    # Below this many visible characters a page is handed to the renderer
    render_min_chars: int = 200

    @field_validator("concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """Concurrency must be a small positive number."""
        if v < 1 or v > 100:
            raise ValueError(f"concurrency must be between 1 and 100, got {v}")
        return v

    @field_validator("default_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Timeouts are bounded to keep scans responsive."""
        if v <= 0 or v > 120:
            raise ValueError(f"timeout must be in (0, 120] seconds, got {v}")
        return v


class SecretsConfig(BaseModel):
    """Secrets scanner configuration."""
    primary_timeout: float = 10.0
    script_timeout: float = 5.0
    max_scripts: int = 15
    max_matches_per_rule: int = 50
    context_chars: int = 50


class ExposedFilesConfig(BaseModel):
    """Exposed file prober configuration."""
    batch_size: int = 5
    timeout: float = 5.0
    max_bytes: int = 100_000


class LinkAuditConfig(BaseModel):
    """Link and mixed-content auditor configuration."""
    primary_timeout: float = 15.0
    link_timeout: float = 5.0
    max_links: int = 25
    concurrency: int = 10


class CdnConfig(BaseModel):
    """CDN and third-party resource classifier configuration."""
    timeout: float = 15.0


class TakeoverConfig(BaseModel):
    """Subdomain takeover checker configuration."""
    timeout: float = 5.0
    dns_timeout: float = 5.0
    dns_lifetime: float = 10.0
    nameservers: list[str] = Field(default_factory=list)


class ApiConfig(BaseModel):
    """HTTP API configuration."""
    host: str = "127.0.0.1"
    port: int = 3001
    check_timeout: float = 20.0


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="EXPOSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # General settings
    app_name: str = "ExpoScope"
    debug: bool = False
    log_level: LogLevel = LogLevel.INFO
    log_json: bool = False

    http: HttpConfig = Field(default_factory=HttpConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    secrets: SecretsConfig = Field(default_factory=SecretsConfig)
    exposed_files: ExposedFilesConfig = Field(default_factory=ExposedFilesConfig)
    link_audit: LinkAuditConfig = Field(default_factory=LinkAuditConfig)
    cdn: CdnConfig = Field(default_factory=CdnConfig)
    takeover: TakeoverConfig = Field(default_factory=TakeoverConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from YAML file."""
        import yaml

        if not path.exists():
            return cls()

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save settings to YAML file."""
        import yaml

        data = self.model_dump(mode="json")

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from config file or environment."""
    if config_path and config_path.exists():
        return Settings.from_yaml(config_path)
    return Settings()
