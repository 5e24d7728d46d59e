"""Selenium-based page backend.

Two modes:

1. Stealth mode (use_stealth=True, default): undetected-chromedriver with
   selenium-stealth and a persistent profile, so the wallet stays connected.
2. Standard mode (use_stealth=False): plain Selenium with webdriver-manager.

Selenium is blocking, so every driver call is offloaded with
``asyncio.to_thread`` to keep the heartbeat's event loop responsive.

Example:
    >>> page = SeleniumPage(headless=False)
    >>> async with page:
    ...     await page.navigate("https://sm.midnight.gd/")
    ...     scopes = await page.matching_scopes("finding a solution", ["div", "span"])
"""

import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

import selenium.common.exceptions
import webdriver_manager.chrome
from selenium.webdriver.common.by import By

from scavkeep.backends.base import SCOPE_TEXTS_SCRIPT, describe_profile, label_matches
from scavkeep.chrome import get_chrome_version
from scavkeep.exceptions import BrowserError, ChromeDriverError
from scavkeep.logging import get_logger

if TYPE_CHECKING:
    from selenium.webdriver.remote.webdriver import WebDriver
    from selenium.webdriver.remote.webelement import WebElement

LOG = get_logger(__name__)


class SeleniumButton:
    """A <button> located through Selenium.

    Text and disabled state are read once, when the button is found.
    """

    def __init__(self, element: "WebElement", text: str, disabled: bool = False) -> None:
        self._element = element
        self._text = text
        self._disabled = disabled

    @property
    def text(self) -> str:
        return self._text

    @property
    def disabled(self) -> bool:
        return self._disabled

    async def click(self) -> None:
        try:
            await asyncio.to_thread(self._element.click)
        except selenium.common.exceptions.WebDriverException as exc:
            LOG.warning("selenium_button_click_failed", button=self._text, error=str(exc))

    def __repr__(self) -> str:
        return f"<SeleniumButton {self._text!r}>"


class SeleniumPage:
    """Page backend using Selenium.

    Attributes:
        BACKEND_TYPE: Identifier for this backend type ("selenium").
    """

    BACKEND_TYPE: str = "selenium"

    # Errors during quit() that only mean the browser is already gone
    _EXPECTED_STOP_PATTERNS: frozenset[str] = frozenset(
        [
            "unable to connect",
            "no such window",
            "chrome not reachable",
            "session deleted",
            "target window already closed",
        ]
    )

    def __init__(
        self,
        headless: bool = False,
        profile_dir: Path | None = None,
        use_stealth: bool = True,
        **options: Any,
    ) -> None:
        """Initialize the Selenium backend.

        Args:
            headless: Run browser in headless mode.
            profile_dir: Chrome profile directory. Stealth mode falls back to
                ~/.config/scavkeep/chrome_profile; standard mode uses a
                temporary profile when None.
            use_stealth: Use undetected-chromedriver with stealth measures.
            **options: Additional options (window_size for standard mode).
        """
        self._headless = headless
        self._profile_dir = profile_dir
        self._use_stealth = use_stealth
        self._options = options
        self._driver: WebDriver | None = None
        self._started = False

    def _is_expected_stop_error(self, error_str: str) -> bool:
        error_lower = error_str.lower()
        return any(pattern in error_lower for pattern in self._EXPECTED_STOP_PATTERNS)

    def _get_driver(self) -> "WebDriver":
        assert self._driver is not None, "Driver is None - this is a bug"
        return self._driver

    @property
    def is_running(self) -> bool:
        """Whether the browser is currently started."""
        return self._started and self._driver is not None

    async def start(self) -> None:
        """Start the browser.

        Idempotent - calling when already started is a no-op.

        Raises:
            BrowserError: If browser fails to start.
        """
        if self._started:
            LOG.debug("selenium_page_already_started")
            return

        LOG.info("selenium_page_starting", headless=self._headless, use_stealth=self._use_stealth)
        try:
            self._driver = await asyncio.to_thread(self._create_driver)
        except selenium.common.exceptions.WebDriverException as exc:
            LOG.error("selenium_page_start_failed", error=str(exc))
            raise BrowserError(f"Failed to start Selenium browser: {exc}") from exc
        except OSError as exc:
            LOG.error("selenium_page_start_failed_os", error=str(exc))
            raise BrowserError(f"Failed to start Selenium browser: {exc}") from exc

        self._started = True
        LOG.info("selenium_page_started")

    def _create_driver(self) -> "WebDriver":
        if self._use_stealth:
            try:
                from scavkeep.stealth import create_stealth_driver
            except ImportError as exc:
                raise BrowserError(
                    "Stealth dependencies not installed. "
                    "Install undetected-chromedriver and selenium-stealth."
                ) from exc
            return create_stealth_driver(headless=self._headless, profile_dir=self._profile_dir)
        return self._create_standard_driver()

    def _create_standard_driver(self) -> "WebDriver":
        from selenium import webdriver
        from selenium.webdriver.chrome.service import Service

        try:
            chrome_version = get_chrome_version(major=True)
        except ChromeDriverError as exc:
            raise BrowserError(f"Failed to detect Chrome version: {exc}") from exc

        try:
            driver_path = webdriver_manager.chrome.ChromeDriverManager(
                driver_version=chrome_version
            ).install()
        except Exception as exc:
            LOG.error("chromedriver_install_failed", error=str(exc))
            raise BrowserError(f"Failed to install ChromeDriver: {exc}") from exc

        chrome_options = webdriver.ChromeOptions()
        if self._headless:
            chrome_options.add_argument("--headless=new")
        if self._profile_dir is not None:
            chrome_options.add_argument(f"--user-data-dir={self._profile_dir}")
        window_size = self._options.get("window_size", "1280,900")
        chrome_options.add_argument(f"--window-size={window_size}")

        return webdriver.Chrome(service=Service(driver_path), options=chrome_options)

    async def stop(self) -> None:
        """Stop the browser and release resources.

        Idempotent - calling when already stopped is a no-op.
        """
        if not self._started:
            return

        LOG.info("selenium_page_stopping")
        try:
            await asyncio.to_thread(self._get_driver().quit)
        except selenium.common.exceptions.WebDriverException as exc:
            if self._is_expected_stop_error(str(exc)):
                LOG.debug("selenium_page_stop_expected", error=str(exc))
            else:
                LOG.warning("selenium_page_stop_unexpected", error=str(exc))
        except OSError as exc:
            LOG.warning("selenium_page_stop_unexpected_os", error=str(exc))
        finally:
            self._driver = None
            self._started = False
            LOG.info("selenium_page_stopped")

    async def navigate(self, url: str) -> None:
        """Open ``url``, starting the browser if needed.

        Raises:
            BrowserError: If navigation fails.
        """
        if not self.is_running:
            await self.start()

        LOG.debug("selenium_page_navigating", url=url)
        try:
            await asyncio.to_thread(self._get_driver().get, url)
        except selenium.common.exceptions.WebDriverException as exc:
            LOG.error("selenium_page_navigation_failed", url=url, error=str(exc))
            raise BrowserError(f"Navigation failed: {exc}") from exc

    def _find_button_sync(self, label: str) -> SeleniumButton | None:
        for element in self._get_driver().find_elements(By.TAG_NAME, "button"):
            # textContent, not .text: hidden labels must still match
            text = element.get_attribute("textContent") or ""
            if label_matches(text, label):
                return SeleniumButton(element, text.strip(), disabled=not element.is_enabled())
        return None

    async def find_button(self, label: str) -> SeleniumButton | None:
        """Find the first button whose text contains ``label`` (case-insensitive).

        Returns:
            The button, or None if none matches, the browser is not running,
            or the driver failed (logged at warning level).
        """
        if not self.is_running:
            return None
        try:
            return await asyncio.to_thread(self._find_button_sync, label)
        except selenium.common.exceptions.WebDriverException as exc:
            LOG.warning("selenium_find_button_failed", label=label, error=str(exc))
            return None

    async def matching_scopes(self, pattern: str, tags: Sequence[str]) -> list[str]:
        """Get scope texts of elements whose text matches ``pattern``.

        Returns:
            Scope texts, or an empty list if the browser is not running or
            the driver failed (logged at warning level).
        """
        if not self.is_running:
            return []
        try:
            result = await asyncio.to_thread(
                self._get_driver().execute_script, SCOPE_TEXTS_SCRIPT, pattern, list(tags)
            )
        except selenium.common.exceptions.WebDriverException as exc:
            LOG.warning("selenium_matching_scopes_failed", pattern=pattern, error=str(exc))
            return []
        return [str(text) for text in result or []]

    async def reload(self) -> None:
        """Reload the current page (logged, never raised, on failure)."""
        if not self.is_running:
            LOG.warning("selenium_reload_not_running")
            return
        try:
            await asyncio.to_thread(self._get_driver().refresh)
        except selenium.common.exceptions.WebDriverException as exc:
            LOG.warning("selenium_reload_failed", error=str(exc))

    def get_state(self) -> dict[str, Any]:
        """Get the backend configuration for display."""
        state: dict[str, Any] = {
            "backend_type": self.BACKEND_TYPE,
            "headless": self._headless,
            "use_stealth": self._use_stealth,
            "profile_dir": describe_profile(self._profile_dir),
        }
        state.update(self._options)
        return state

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.stop()

    def __repr__(self) -> str:
        status = "running" if self.is_running else "stopped"
        mode = "stealth" if self._use_stealth else "standard"
        return f"<SeleniumPage {mode} {status}>"
