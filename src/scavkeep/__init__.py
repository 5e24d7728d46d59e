"""scavkeep - keep a ScavengerMine session alive.

A browser watchdog for the ScavengerMine page. Every few minutes it reads
the page and decides whether to leave it alone, start a mining session, or
reload a stalled page.

This package provides:
- A heartbeat controller with a guarded reload
- Pluggable page backends (Selenium, nodriver)
- A persistent browser profile so the wallet stays connected

Example:
    >>> import asyncio
    >>> from scavkeep import get_settings, watch_page
    >>> asyncio.run(watch_page(get_settings()))
"""

from scavkeep.backends import MinePage, PageButton, get_backend, list_backends, register_backend
from scavkeep.config import ScavkeepSettings, get_settings
from scavkeep.exceptions import BrowserError, ChromeDriverError, ScavkeepError
from scavkeep.keepalive import (
    HeartbeatController,
    HeartbeatState,
    Observation,
    TickOutcome,
    observe,
    run_heartbeat,
    watch_page,
)

__version__ = "2.4.0"

__all__ = [
    # Version
    "__version__",
    # Heartbeat
    "HeartbeatController",
    "HeartbeatState",
    "TickOutcome",
    "Observation",
    "observe",
    "run_heartbeat",
    "watch_page",
    # Page backends
    "MinePage",
    "PageButton",
    "get_backend",
    "list_backends",
    "register_backend",
    # Configuration
    "ScavkeepSettings",
    "get_settings",
    # Exceptions
    "ScavkeepError",
    "BrowserError",
    "ChromeDriverError",
]
