"""Page observation: what the mining page currently shows.

The page is only observable through its visible text. Each heartbeat takes a
fresh snapshot; nothing here is cached between ticks.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass

from scavkeep.backends.base import MinePage
from scavkeep.logging import get_logger

LOG = get_logger(__name__)

START_LABEL = "start session"
STOP_LABEL = "stop session"

SOLVING_PATTERN = "finding a solution"
SOLVING_TAGS: tuple[str, ...] = ("div", "span", "li", "section")
NEXT_CHALLENGE_PATTERN = "next challenge in"
NEXT_CHALLENGE_TAGS: tuple[str, ...] = ("div", "span")

_TIME_LEFT_RE = re.compile(r"\btime left:\s*(\d{2}:\d{2}:\d{2})", re.IGNORECASE)
# "Next challenge in: 00:00:00:00" or "00:00:00"
_NEXT_CHALLENGE_RE = re.compile(
    r"next challenge in[:\s]*(\d{2}:\d{2}:\d{2}(?::\d{2})?)", re.IGNORECASE
)


@dataclass(frozen=True)
class Observation:
    """Snapshot of the page taken at the start of a heartbeat.

    Attributes:
        session_active: A "Stop session" button is present.
        next_challenge_ready: The "Next challenge in" countdown reads all zeros.
        solving: A "Finding a solution" row is present.
        next_challenge_in: First parsed "Next challenge in" countdown, if any.
        time_left: First nonzero "Time left" countdown of a solving row, if any.
    """

    session_active: bool = False
    next_challenge_ready: bool = False
    solving: bool = False
    next_challenge_in: str | None = None
    time_left: str | None = None


def parse_countdown(value: str) -> tuple[int, ...]:
    """Split a countdown like "01:02:03" into its integer parts."""
    return tuple(int(part) for part in value.split(":"))


def countdown_is_zero(value: str) -> bool:
    return all(part == 0 for part in parse_countdown(value))


def find_time_left(scope_text: str) -> str | None:
    """Return the "Time left: HH:MM:SS" countdown in ``scope_text``, if any."""
    match = _TIME_LEFT_RE.search(scope_text)
    return match.group(1) if match else None


def find_next_challenge(scope_text: str) -> str | None:
    """Return the "Next challenge in" countdown in ``scope_text``, if any."""
    match = _NEXT_CHALLENGE_RE.search(scope_text)
    return match.group(1) if match else None


def running_time_left(scopes: Sequence[str]) -> str | None:
    """First nonzero "Time left" countdown among solving-row scopes."""
    for scope in scopes:
        time_left = find_time_left(scope)
        if time_left and not countdown_is_zero(time_left):
            return time_left
    return None


def is_solving(scopes: Sequence[str]) -> bool:
    """Whether a challenge is being solved.

    Any "Finding a solution" row counts, with or without a parseable
    nonzero countdown.

    Args:
        scopes: Scope texts of the "Finding a solution" rows.
    """
    return bool(scopes)


def is_next_challenge_ready(scopes: Sequence[str]) -> bool:
    """Whether any "Next challenge in" countdown reads all zeros.

    Args:
        scopes: Scope texts of the "Next challenge in" rows.
    """
    for scope in scopes:
        countdown = find_next_challenge(scope)
        if countdown and countdown_is_zero(countdown):
            LOG.info("next_challenge_ready", countdown=countdown)
            return True
    return False


def first_next_challenge(scopes: Sequence[str]) -> str | None:
    for scope in scopes:
        countdown = find_next_challenge(scope)
        if countdown:
            return countdown
    return None


async def session_active(page: MinePage) -> bool:
    """Whether a "Stop session" button is present."""
    return await page.find_button(STOP_LABEL) is not None


async def observe(page: MinePage) -> Observation:
    """Take a snapshot of the page.

    An active session short-circuits the text queries: nothing else matters
    while "Stop session" is visible.
    """
    if await session_active(page):
        return Observation(session_active=True)

    next_scopes = await page.matching_scopes(NEXT_CHALLENGE_PATTERN, NEXT_CHALLENGE_TAGS)
    solving_scopes = await page.matching_scopes(SOLVING_PATTERN, SOLVING_TAGS)
    return Observation(
        session_active=False,
        next_challenge_ready=is_next_challenge_ready(next_scopes),
        solving=is_solving(solving_scopes),
        next_challenge_in=first_next_challenge(next_scopes),
        time_left=running_time_left(solving_scopes),
    )
