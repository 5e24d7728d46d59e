"""Protocols for page backends.

A page backend drives a real browser tab showing the mining page and exposes
the few capabilities the heartbeat needs: find a button by its label, read
the text around elements matching a pattern, click, and reload.

All page capabilities are async so the heartbeat can suspend cooperatively
while it waits for the page to react. Backends wrapping a blocking driver
offload calls to a worker thread.

Example:
    >>> from scavkeep.backends import get_backend
    >>> async with get_backend("selenium", headless=True) as page:
    ...     await page.navigate("https://sm.midnight.gd/")
    ...     stop = await page.find_button("stop session")
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol, Self, runtime_checkable

# Returns, for every element of the requested tags whose text matches the
# pattern, the text content of its closest enclosing <div> (falling back to
# its parent, then to <body>). Arguments: pattern source, tag list.
SCOPE_TEXTS_SCRIPT = """
const re = new RegExp(arguments[0], "i");
const nodes = document.querySelectorAll(arguments[1].join(", "));
return Array.from(nodes)
    .filter(el => re.test(el.textContent || ""))
    .map(el => {
        const scope = el.closest("div") || el.parentElement || document.body;
        return scope.textContent || "";
    });
"""


@runtime_checkable
class PageButton(Protocol):
    """A clickable <button> found on the page."""

    @property
    def text(self) -> str:
        """Text content of the button."""
        ...

    @property
    def disabled(self) -> bool:
        """Whether the button is disabled."""
        ...

    async def click(self) -> None:
        """Activate the button.

        Failures are logged, not raised.
        """
        ...


@runtime_checkable
class MinePage(Protocol):
    """Protocol defining the page capability used by the heartbeat.

    Reading operations never raise on driver failures: they log a warning
    and report the element as absent (``None`` or ``[]``). Only ``start()``
    and ``navigate()`` raise ``BrowserError``.

    Attributes:
        BACKEND_TYPE: Class-level identifier for this backend type.
    """

    BACKEND_TYPE: str

    async def start(self) -> None:
        """Start the browser. Idempotent.

        Raises:
            BrowserError: If the browser fails to start.
        """
        ...

    async def stop(self) -> None:
        """Stop the browser and release resources. Idempotent."""
        ...

    @property
    def is_running(self) -> bool:
        """Whether the browser is currently started."""
        ...

    async def navigate(self, url: str) -> None:
        """Open ``url``, starting the browser if needed.

        Raises:
            BrowserError: If navigation fails.
        """
        ...

    async def find_button(self, label: str) -> PageButton | None:
        """Find the first button whose text contains ``label``.

        Matching is case-insensitive.

        Args:
            label: Text to look for, e.g. "start session".

        Returns:
            The button, or None if no button matches.
        """
        ...

    async def matching_scopes(self, pattern: str, tags: Sequence[str]) -> list[str]:
        """Get scope texts of elements whose text matches ``pattern``.

        Args:
            pattern: Regular expression, matched case-insensitively.
            tags: Element tag names to consider.

        Returns:
            One scope text per matching element, in document order.
        """
        ...

    async def reload(self) -> None:
        """Reload the current page. Failures are logged, not raised."""
        ...

    def get_state(self) -> dict[str, Any]:
        """Get the backend configuration for display."""
        ...

    async def __aenter__(self) -> Self:
        """Start the browser."""
        ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Stop the browser."""
        ...


def label_matches(text: str | None, label: str) -> bool:
    """Case-insensitive "contains" test used to find buttons by label."""
    return label.lower() in (text or "").lower()


def describe_profile(profile_dir: Path | None) -> str | None:
    """String form of a profile directory for state dicts."""
    return str(profile_dir) if profile_dir is not None else None
