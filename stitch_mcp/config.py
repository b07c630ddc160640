"""Configuration settings for stitch_mcp.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: env vars > .env file > defaults.

The Google Cloud project is not configured here: it is resolved from
GOOGLE_CLOUD_PROJECT / GCLOUD_PROJECT or the gcloud CLI, see
stitch_mcp.credentials.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

STITCH_API_URL = "https://stitch.googleapis.com/mcp"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the STITCH_MCP_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="STITCH_MCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remote endpoint
    api_url: str = Field(
        default=STITCH_API_URL,
        description="Stitch JSON-RPC endpoint",
    )

    # Paths
    image_dir: Path = Field(
        default_factory=Path.cwd,
        description="Directory where fetched screen images are saved",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Timeouts (in seconds)
    request_timeout: float = Field(
        default=180.0,
        gt=0,
        description="Wall-clock timeout for one Stitch API exchange",
    )
    download_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Timeout for downloading referenced assets",
    )
    cli_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for gcloud CLI invocations",
    )

    # Limits
    cli_max_output: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Maximum bytes accepted from gcloud CLI output",
    )
    max_walk_depth: int = Field(
        default=64,
        ge=1,
        le=1024,
        description="Maximum nesting depth visited when walking responses",
    )


def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["STITCH_API_URL", "Settings", "get_settings", "print_settings_json"]
