"""Custom exceptions for scavkeep package."""


class ScavkeepError(Exception):
    """Base exception class for all scavkeep errors."""


class BrowserError(ScavkeepError):
    """Raised when the browser cannot be started or cannot load the page."""


class ChromeDriverError(BrowserError):
    """Raised when Chrome is missing or its version cannot be detected."""
