"""Shared test helpers for unit tests."""

from collections.abc import Sequence
from typing import Any

import pytest

from scavkeep.keepalive.observation import NEXT_CHALLENGE_PATTERN, SOLVING_PATTERN


class FakeButton:
    """In-memory stand-in for a page button."""

    def __init__(self, text: str, disabled: bool = False, on_click: Any = None) -> None:
        self.text = text
        self.disabled = disabled
        self.clicks = 0
        self._on_click = on_click

    async def click(self) -> None:
        self.clicks += 1
        if self._on_click is not None:
            self._on_click()


class FakePage:
    """In-memory page implementing the MinePage capability.

    Args:
        running: Start with a "Stop session" button.
        start: Show a "Start session" button.
        start_disabled: The start button is disabled.
        confirm_after: After a start click, "Stop session" appears once the
            page has been polled this many times (None = never).
        solving: Scope texts returned for "finding a solution".
        next_challenge: Scope texts returned for "next challenge in".
    """

    BACKEND_TYPE = "fake"

    def __init__(
        self,
        *,
        running: bool = False,
        start: bool = True,
        start_disabled: bool = False,
        confirm_after: int | None = None,
        solving: Sequence[str] = (),
        next_challenge: Sequence[str] = (),
    ) -> None:
        self.buttons: list[FakeButton] = []
        if running:
            self.buttons.append(FakeButton("Stop session"))
        self.start_button: FakeButton | None = None
        if start:
            self.start_button = FakeButton(
                "Start session", disabled=start_disabled, on_click=self._clicked_start
            )
            self.buttons.append(self.start_button)
        self.scopes: dict[str, list[str]] = {
            SOLVING_PATTERN: list(solving),
            NEXT_CHALLENGE_PATTERN: list(next_challenge),
        }
        self.confirm_after = confirm_after
        self.reloads = 0
        self.stop_polls = 0
        self.scope_queries: list[tuple[str, tuple[str, ...]]] = []
        self._armed = False
        self.is_running = True

    def _clicked_start(self) -> None:
        self._armed = True

    async def start(self) -> None:
        self.is_running = True

    async def stop(self) -> None:
        self.is_running = False

    async def navigate(self, url: str) -> None:
        self.url = url

    async def find_button(self, label: str) -> FakeButton | None:
        if label == "stop session" and self._armed:
            self.stop_polls += 1
            if self.confirm_after is not None and self.stop_polls >= self.confirm_after:
                self.buttons.insert(0, FakeButton("Stop session"))
                self._armed = False
        for button in self.buttons:
            if label.lower() in button.text.lower():
                return button
        return None

    async def matching_scopes(self, pattern: str, tags: Sequence[str]) -> list[str]:
        self.scope_queries.append((pattern, tuple(tags)))
        return list(self.scopes.get(pattern, []))

    async def reload(self) -> None:
        self.reloads += 1

    def get_state(self) -> dict[str, Any]:
        return {"backend_type": self.BACKEND_TYPE}

    async def __aenter__(self) -> "FakePage":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()


class FakeClock:
    """Settable wall clock."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def make_page() -> type[FakePage]:
    """Factory for in-memory pages (call with FakePage keyword arguments)."""
    return FakePage


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(1_700_000_000.0)


@pytest.fixture
def no_sleep() -> RecordingSleep:
    return RecordingSleep()
