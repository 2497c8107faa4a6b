"""Application configuration management using Pydantic Settings.

This module provides a centralized configuration class that loads settings
from environment variables (.env file), plus the loader for the YAML file
holding the portal's text heuristics (keywords, markers, icon classes).
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Portal credentials are not part of the settings: they arrive with each
    request and are never stored.
    """

    # Portal
    portal_entry_url: str = Field(
        default="https://gps3regisdataweb.com/opita/index.jsp",
        description="Portal entry (login) URL",
    )
    portal_report_url: str = Field(
        default="https://gps3regisdataweb.com/opita/app/reportes/pasajeros.jsp",
        description="Canonical URL of the daily passenger report",
    )
    app_context_markers: list[str] = Field(
        default=["/opita/"],
        description="URL fragments that identify pages inside the application",
    )

    # Browser Configuration
    browser_headless: bool = Field(
        default=True, description="Run browser in headless mode"
    )
    viewport_width: int = Field(default=1366, description="Page viewport width")
    viewport_height: int = Field(default=768, description="Page viewport height")
    navigation_timeout_ms: int = Field(
        default=60000, description="Timeout for full page navigations"
    )
    login_input_timeout_ms: int = Field(
        default=10000, description="Timeout waiting for the login form inputs"
    )
    keystroke_delay_ms: int = Field(
        default=50, description="Delay between typed characters on the login form"
    )
    redirect_delay_ms: int = Field(
        default=2000, description="Wait after loading the entry URL for auto-redirects"
    )
    settle_delay_ms: int = Field(
        default=2000, description="Wait after a click or reload before reading the DOM"
    )

    # Extraction
    table_wait_timeout_ms: int = Field(
        default=15000, description="Best-effort wait for the report table marker"
    )
    table_poll_interval_ms: int = Field(
        default=500, description="Polling interval while waiting for the table"
    )
    identifier_max_length: int = Field(
        default=15,
        description="Identifier cells this long or longer are treated as footer rows",
    )
    snippet_length: int = Field(
        default=300, description="Characters of body text returned on empty extraction"
    )
    response_preview_length: int = Field(
        default=500, description="Characters of observed response bodies surfaced"
    )

    # Keep-alive
    keepalive_enabled: bool = Field(
        default=True, description="Run the background session keep-alive"
    )
    keepalive_interval_seconds: int = Field(
        default=240, description="Seconds between keep-alive ticks"
    )

    # HTTP Server Configuration
    host: str = Field(default="0.0.0.0", description="HTTP server host to bind to")
    port: int = Field(default=3001, description="HTTP server port")
    cors_origins: list[str] = Field(
        default=["*"], description="Origins allowed by the CORS middleware"
    )
    eager_browser_start: bool = Field(
        default=True, description="Launch the browser at startup instead of first use"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="json", description="Log output format (json or console)"
    )

    # Selector Configuration
    selectors_path: str = Field(
        default=str(Path(__file__).parent / "selectors.yaml"),
        description="Path to the heuristics YAML configuration file",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def load_selectors(config_path: str | None = None) -> dict[str, Any]:
    """Load the portal heuristics from selectors.yaml.

    Args:
        config_path: Path to the YAML file. If None, uses settings default.

    Returns:
        Dictionary with the ``auth``, ``refresh``, ``table`` and ``traffic``
        sections.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(config_path) if config_path else Path(settings.selectors_path)
    if not path.exists():
        raise FileNotFoundError(f"Selectors config not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return data or {}


# Singleton instance - import this to access settings throughout the application
settings = Settings()
