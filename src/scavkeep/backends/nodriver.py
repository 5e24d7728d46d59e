"""NoDriver-based page backend using CDP-direct automation.

nodriver talks to Chrome over the Chrome DevTools Protocol without a
WebDriver binary, and its API is natively async, so this backend awaits it
directly on the heartbeat's event loop.

Logging:
    - **ERROR**: operations that fail and raise (start, navigate)
    - **WARNING**: page reads, clicks and reloads that fail and report "absent"
    - **DEBUG**: expected conditions like browser already started/stopped

Example:
    >>> page = NoDriverPage(headless=False)
    >>> async with page:
    ...     await page.navigate("https://sm.midnight.gd/")
    ...     button = await page.find_button("start session")
"""

import json
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

from scavkeep.backends.base import SCOPE_TEXTS_SCRIPT, describe_profile, label_matches
from scavkeep.exceptions import BrowserError
from scavkeep.logging import get_logger, suppress_asyncio_noise

if TYPE_CHECKING:
    import nodriver

LOG = get_logger(__name__)

_BASE_CDP_ERRORS: tuple[type[Exception], ...] = (RuntimeError, ConnectionError, TimeoutError)


def build_scope_expression(pattern: str, tags: Sequence[str]) -> str:
    """Wrap the scope-text script into a self-invoking CDP expression."""
    args = json.dumps([pattern, list(tags)])
    return f"(function() {{{SCOPE_TEXTS_SCRIPT}}}).apply(null, {args})"


class NoDriverButton:
    """A <button> located through nodriver."""

    def __init__(self, element: Any, text: str, errors: tuple[type[Exception], ...]) -> None:
        self._element = element
        self._text = text
        self._errors = errors

    @property
    def text(self) -> str:
        return self._text

    @property
    def disabled(self) -> bool:
        attrs = getattr(self._element, "attrs", None) or {}
        return "disabled" in attrs

    async def click(self) -> None:
        try:
            await self._element.click()
        except self._errors as exc:
            LOG.warning("nodriver_button_click_failed", button=self._text, error=str(exc))

    def __repr__(self) -> str:
        return f"<NoDriverButton {self._text!r}>"


class NoDriverPage:
    """Page backend using nodriver (CDP-direct).

    Attributes:
        BACKEND_TYPE: Identifier for this backend type ("nodriver").
    """

    BACKEND_TYPE: str = "nodriver"

    _EXPECTED_STOP_PATTERNS: frozenset[str] = frozenset(
        [
            "cannot schedule",
            "browser is already closed",
            "no such process",
            "event loop is closed",
            "target closed",
        ]
    )

    def __init__(
        self,
        headless: bool = False,
        profile_dir: Path | None = None,
        **options: Any,
    ) -> None:
        """Initialize the NoDriver backend.

        Args:
            headless: Run browser in headless mode.
            profile_dir: Chrome profile directory. When None, nodriver uses a
                temporary profile and the wallet connection is lost on exit.
            **options: Additional options passed to nodriver.start():
                - browser_args: List of Chrome arguments
                - browser_executable_path: Path to Chrome binary
                - sandbox: Enable Chrome's sandbox (default False)
        """
        self._headless = headless
        self._profile_dir = profile_dir
        self._options = options
        self._browser: nodriver.Browser | None = None
        self._tab: nodriver.Tab | None = None
        self._started = False
        self._errors = _BASE_CDP_ERRORS

    def _is_expected_stop_error(self, error_str: str) -> bool:
        error_lower = error_str.lower()
        return any(pattern in error_lower for pattern in self._EXPECTED_STOP_PATTERNS)

    @property
    def is_running(self) -> bool:
        """Whether the browser is currently started."""
        return self._started and self._browser is not None

    async def start(self) -> None:
        """Start the browser.

        Idempotent - calling when already started is a no-op.

        Raises:
            BrowserError: If nodriver is missing or the browser fails to start.
        """
        if self._started:
            LOG.debug("nodriver_page_already_started")
            return

        try:
            import nodriver as uc
            from nodriver.core.connection import ProtocolException
        except ImportError as exc:
            raise BrowserError(
                "nodriver package not installed. Install with: pip install scavkeep[nodriver]"
            ) from exc

        self._errors = (*_BASE_CDP_ERRORS, ProtocolException)

        # --test-type suppresses Chrome's "unsupported flag" warning banner
        browser_args = ["--test-type", "--disable-background-timer-throttling"]
        browser_args.extend(self._options.get("browser_args", []))

        start_kwargs: dict[str, Any] = {
            "headless": self._headless,
            "sandbox": self._options.get("sandbox", False),
            "browser_args": browser_args,
        }
        if self._profile_dir is not None:
            start_kwargs["user_data_dir"] = str(self._profile_dir)
        if "browser_executable_path" in self._options:
            start_kwargs["browser_executable_path"] = self._options["browser_executable_path"]

        LOG.info("nodriver_page_starting", headless=self._headless)
        try:
            self._browser = await uc.start(**start_kwargs)
            self._tab = await self._browser.get("about:blank")
        except (*self._errors, OSError) as exc:
            LOG.error(
                "nodriver_page_start_failed",
                error=str(exc),
                profile_dir=describe_profile(self._profile_dir),
            )
            raise BrowserError(f"Failed to start NoDriver browser: {exc}") from exc

        self._started = True
        LOG.info("nodriver_page_started")

    async def stop(self) -> None:
        """Stop the browser and release resources.

        Idempotent - calling when already stopped is a no-op.
        """
        if not self._started:
            return

        LOG.info("nodriver_page_stopping")
        try:
            if self._browser is not None:
                with suppress_asyncio_noise():
                    self._browser.stop()
        except (RuntimeError, OSError) as exc:
            if self._is_expected_stop_error(str(exc)):
                LOG.debug("nodriver_page_stop_expected", error=str(exc))
            else:
                LOG.warning("nodriver_page_stop_unexpected", error=str(exc))
        finally:
            self._browser = None
            self._tab = None
            self._started = False
            LOG.info("nodriver_page_stopped")

    async def navigate(self, url: str) -> None:
        """Open ``url``, starting the browser if needed.

        Raises:
            BrowserError: If navigation fails.
        """
        if not self.is_running:
            await self.start()

        LOG.debug("nodriver_page_navigating", url=url)
        assert self._browser is not None
        try:
            self._tab = await self._browser.get(url)
        except self._errors as exc:
            LOG.error("nodriver_page_navigation_failed", url=url, error=str(exc))
            raise BrowserError(f"Navigation failed: {exc}") from exc

    async def find_button(self, label: str) -> NoDriverButton | None:
        """Find the first button whose text contains ``label`` (case-insensitive).

        Returns:
            The button, or None if none matches, no page is loaded, or the
            CDP call failed (logged at warning level).
        """
        if self._tab is None:
            return None
        try:
            elements = await self._tab.query_selector_all("button")
        except self._errors as exc:
            LOG.warning("nodriver_find_button_failed", label=label, error=str(exc))
            return None

        for element in elements:
            text = element.text_all or ""
            if label_matches(text, label):
                return NoDriverButton(element, text.strip(), self._errors)
        return None

    async def matching_scopes(self, pattern: str, tags: Sequence[str]) -> list[str]:
        """Get scope texts of elements whose text matches ``pattern``.

        Returns:
            Scope texts, or an empty list if no page is loaded or the CDP
            call failed (logged at warning level).
        """
        if self._tab is None:
            return []
        try:
            result = await self._tab.evaluate(
                build_scope_expression(pattern, tags), return_by_value=True
            )
        except self._errors as exc:
            LOG.warning("nodriver_matching_scopes_failed", pattern=pattern, error=str(exc))
            return []
        if not isinstance(result, list):
            return []
        return [str(text) for text in result]

    async def reload(self) -> None:
        """Reload the current page (logged, never raised, on failure)."""
        if self._tab is None:
            LOG.warning("nodriver_reload_no_page")
            return
        try:
            await self._tab.reload()
        except self._errors as exc:
            LOG.warning("nodriver_reload_failed", error=str(exc))

    def get_state(self) -> dict[str, Any]:
        """Get the backend configuration for display."""
        state: dict[str, Any] = {
            "backend_type": self.BACKEND_TYPE,
            "headless": self._headless,
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
        mode = "headless" if self._headless else "headed"
        return f"<NoDriverPage {mode} {status}>"
