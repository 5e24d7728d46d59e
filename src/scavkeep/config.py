"""Configuration management with pydantic-settings."""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PAGE_URL = "https://sm.midnight.gd/"
HEARTBEAT_INTERVAL = 10 * 60.0  # every 10 min
BOOT_GRACE = 5.0  # wait for UI
START_WAIT_LOOPS = 16  # ~8s
START_WAIT_STEP = 0.5
RELOAD_GUARD = 60.0  # 1 min reload guard


class ScavkeepSettings(BaseSettings):
    """scavkeep application settings loaded from environment variables.

    All settings use the SCAVKEEP_ prefix for environment variables.
    Timings are in seconds.
    """

    # Page and browser
    page_url: str = Field(
        default=DEFAULT_PAGE_URL,
        description="Page the watchdog keeps alive",
    )
    backend: str = Field(
        default="selenium",
        description="Page backend: selenium, nodriver",
    )
    headless: bool = Field(
        default=False,
        description="Run the browser without a window",
    )
    use_stealth: bool = Field(
        default=True,
        description="Use undetected-chromedriver with a persistent profile (selenium only)",
    )
    config_dir: Path = Field(
        default=Path.home() / ".config" / "scavkeep",
        description="Configuration directory (holds the Chrome profile)",
    )

    # Heartbeat timings
    heartbeat_interval: float = Field(
        default=HEARTBEAT_INTERVAL,
        gt=0,
        description="Seconds between heartbeats",
    )
    boot_grace: float = Field(
        default=BOOT_GRACE,
        ge=0,
        description="Seconds to wait for the page UI before the first heartbeat",
    )
    start_wait_loops: int = Field(
        default=START_WAIT_LOOPS,
        gt=0,
        description="Polls for 'Stop session' after clicking start",
    )
    start_wait_step: float = Field(
        default=START_WAIT_STEP,
        gt=0,
        description="Seconds between start-confirmation polls",
    )
    reload_guard: float = Field(
        default=RELOAD_GUARD,
        gt=0,
        description="Minimum seconds between two page reloads",
    )

    # Logging configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Log output format",
    )

    model_config = SettingsConfigDict(
        env_prefix="SCAVKEEP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **kwargs: Any) -> None:
        """Initialize settings and create config directory."""
        super().__init__(**kwargs)
        self.config_dir.mkdir(parents=True, exist_ok=True)

    @property
    def profile_dir(self) -> Path:
        """Get the persistent Chrome profile directory.

        The profile keeps the wallet connection between runs.
        """
        return self.config_dir / "chrome_profile"

    def get_backend_options(self, backend_type: str | None = None) -> dict[str, Any]:
        """Get constructor options for a page backend.

        Args:
            backend_type: Optional backend override. If not provided,
                uses self.backend.

        Returns:
            Keyword arguments for ``get_backend()``.

        Raises:
            ValueError: If the backend name is not supported.
        """
        name = backend_type or self.backend

        if name == "selenium":
            return {
                "headless": self.headless,
                "use_stealth": self.use_stealth,
                "profile_dir": self.profile_dir,
            }

        if name == "nodriver":
            return {
                "headless": self.headless,
                "profile_dir": self.profile_dir,
            }

        raise ValueError(f"Unsupported page backend: {name}. Supported: selenium, nodriver")


# Global settings instance
_settings: ScavkeepSettings | None = None


def get_settings() -> ScavkeepSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = ScavkeepSettings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance (useful for testing)."""
    global _settings
    _settings = None
