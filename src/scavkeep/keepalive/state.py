"""Heartbeat state owned by the controller.

Nothing here is persisted; the state lives as long as the controller does.
"""

from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any


class TickOutcome(StrEnum):
    """What a single heartbeat decided to do.

    - SESSION_RUNNING: "Stop session" was visible, nothing to do
    - SOLVING: a challenge is being solved, skipped this tick
    - STARTED: the start click was confirmed
    - RELOADED: start was not confirmed and the page was reloaded
    - RELOAD_SKIPPED: start was not confirmed but the reload guard was active
    """

    SESSION_RUNNING = "session_running"
    SOLVING = "solving"
    STARTED = "started"
    RELOADED = "reloaded"
    RELOAD_SKIPPED = "reload_skipped"


@dataclass
class HeartbeatState:
    """Mutable state of a heartbeat controller.

    Attributes:
        last_reload_at: Wall-clock timestamp of the last reload, or None if
            the page was never reloaded by this controller.
        ticks: Number of heartbeats evaluated.
        start_attempts: Number of start-button clicks.
        reloads: Number of reloads issued.
        last_outcome: Outcome of the most recent heartbeat.
    """

    last_reload_at: float | None = None
    ticks: int = 0
    start_attempts: int = 0
    reloads: int = 0
    last_outcome: TickOutcome | None = None

    def seconds_since_reload(self, now: float) -> float | None:
        """Seconds elapsed since the last reload, or None if never reloaded."""
        if self.last_reload_at is None:
            return None
        return now - self.last_reload_at

    def record_reload(self, at: float) -> None:
        """Record a reload issued at ``at``.

        Raises:
            ValueError: If ``at`` is earlier than the previous reload.
        """
        if self.last_reload_at is not None and at < self.last_reload_at:
            raise ValueError(
                f"Reload timestamp must not go backwards: {at} < {self.last_reload_at}"
            )
        self.last_reload_at = at
        self.reloads += 1

    def record_outcome(self, outcome: TickOutcome) -> TickOutcome:
        """Count a finished heartbeat and remember its outcome."""
        self.ticks += 1
        self.last_outcome = outcome
        return outcome

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display."""
        return asdict(self)
