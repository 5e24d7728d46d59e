"""Heartbeat controller: the decision loop that keeps a mining session alive.

Each heartbeat looks at the page and does one of three things:

- nothing, when a session is running or a challenge is being solved
- click "Start session" and wait briefly for "Stop session" to appear
- reload the page when the start could not be confirmed, at most once per
  reload guard window

The controller never raises. Missing buttons or rows are ordinary negative
signals, and an unconfirmed start is settled by reload-or-skip.

Example:
    >>> controller = HeartbeatController(page)
    >>> outcome = await controller.tick()
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import datetime

from scavkeep.backends.base import MinePage
from scavkeep.config import RELOAD_GUARD, START_WAIT_LOOPS, START_WAIT_STEP
from scavkeep.keepalive.observation import START_LABEL, Observation, observe, session_active
from scavkeep.keepalive.state import HeartbeatState, TickOutcome
from scavkeep.logging import get_logger

LOG = get_logger(__name__)

REASON_NEXT_READY = "Next challenge ready but Start not visible"
REASON_STOPPED = "session stopped and Start not visible"

Observer = Callable[[MinePage], Awaitable[Observation]]
Sleep = Callable[[float], Awaitable[object]]


class HeartbeatController:
    """Periodic evaluator of the mining page.

    Attributes:
        page: Page capability used to read, click and reload.
        state: Heartbeat state, including the last reload timestamp.
        reload_guard: Minimum seconds between two reloads.
        start_wait_loops: Number of confirmation polls after clicking start.
        start_wait_step: Seconds slept before each confirmation poll.
    """

    def __init__(
        self,
        page: MinePage,
        *,
        reload_guard: float = RELOAD_GUARD,
        start_wait_loops: int = START_WAIT_LOOPS,
        start_wait_step: float = START_WAIT_STEP,
        clock: Callable[[], float] = time.time,
        sleep: Sleep = asyncio.sleep,
        observer: Observer = observe,
        state: HeartbeatState | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            page: Page capability.
            reload_guard: Minimum seconds between two reloads.
            start_wait_loops: Confirmation polls after clicking start.
            start_wait_step: Seconds between confirmation polls.
            clock: Wall clock returning seconds.
            sleep: Coroutine function used to suspend between polls.
            observer: Produces the per-tick observation from the page.
            state: Existing state to continue from; a fresh one when None.

        Raises:
            ValueError: If ``reload_guard`` is not positive.
        """
        if reload_guard <= 0:
            raise ValueError(f"reload_guard must be positive, got {reload_guard}")
        self.page = page
        self.reload_guard = reload_guard
        self.start_wait_loops = start_wait_loops
        self.start_wait_step = start_wait_step
        self.state = state if state is not None else HeartbeatState()
        self._clock = clock
        self._sleep = sleep
        self._observer = observer

    async def tick(self) -> TickOutcome:
        """Run one heartbeat.

        Returns:
            What this heartbeat decided to do.
        """
        observation = await self._observer(self.page)
        LOG.debug(
            "heartbeat_observed",
            session_active=observation.session_active,
            next_challenge_ready=observation.next_challenge_ready,
            solving=observation.solving,
            next_challenge_in=observation.next_challenge_in,
            time_left=observation.time_left,
        )

        if observation.session_active:
            LOG.info("session_running")
            return self.state.record_outcome(TickOutcome.SESSION_RUNNING)

        # A zeroed "Next challenge in" wins over a lingering "Finding a solution"
        if observation.next_challenge_ready:
            LOG.info("next_challenge_ready_proceeding")
            return self.state.record_outcome(await self._start_or_reload(REASON_NEXT_READY))

        if observation.solving:
            if observation.time_left:
                LOG.info("challenge_running", time_left=observation.time_left)
            else:
                LOG.info("challenge_appears_active")
            LOG.info("challenge_active_skipping", time_left=observation.time_left)
            return self.state.record_outcome(TickOutcome.SOLVING)

        return self.state.record_outcome(await self._start_or_reload(REASON_STOPPED))

    async def _start_or_reload(self, reason: str) -> TickOutcome:
        if await self.try_start():
            return TickOutcome.STARTED
        LOG.info("start_not_visible_reloading")
        if await self.safe_reload(reason):
            return TickOutcome.RELOADED
        return TickOutcome.RELOAD_SKIPPED

    async def try_start(self) -> bool:
        """Click "Start session" and wait for "Stop session" to appear.

        Returns:
            True if the session was confirmed started within the poll budget.
            False if the start button is missing or disabled (no click), or
            the confirmation never came.
        """
        start = await self.page.find_button(START_LABEL)
        if start is None or start.disabled:
            LOG.debug("start_button_unavailable", found=start is not None)
            return False

        LOG.info("starting_session")
        self.state.start_attempts += 1
        await start.click()

        for _ in range(self.start_wait_loops):
            await self._sleep(self.start_wait_step)
            if await session_active(self.page):
                LOG.info("session_started")
                return True

        LOG.info("start_not_confirmed", hint="will retry next heartbeat")
        return False

    def reload_allowed(self, now: float) -> bool:
        """Whether the reload guard window has elapsed at ``now``."""
        elapsed = self.state.seconds_since_reload(now)
        return elapsed is None or elapsed >= self.reload_guard

    async def safe_reload(self, reason: str) -> bool:
        """Reload the page unless the reload guard is active.

        Args:
            reason: Why a reload was requested, for the log line.

        Returns:
            True if a reload was issued.
        """
        now = self._clock()
        if not self.reload_allowed(now):
            LOG.info(
                "reload_guard_active",
                seconds_since_reload=round(self.state.seconds_since_reload(now) or 0.0, 1),
            )
            return False

        LOG.info(
            "reloading",
            reason=reason,
            at=datetime.fromtimestamp(now).strftime("%H:%M:%S"),
        )
        self.state.record_reload(now)
        await self.page.reload()
        return True
