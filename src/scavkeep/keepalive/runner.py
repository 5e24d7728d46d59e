"""Heartbeat runner: hosts the controller on a fixed cadence.

The first heartbeat runs after a short grace delay so the page UI can
render; later heartbeats run every ``interval`` seconds. Heartbeats run one
after another on a single coroutine, so they never overlap.
"""

import asyncio
from collections.abc import Awaitable, Callable

from scavkeep.backends import get_backend
from scavkeep.config import BOOT_GRACE, HEARTBEAT_INTERVAL, ScavkeepSettings
from scavkeep.keepalive.heartbeat import HeartbeatController
from scavkeep.keepalive.state import HeartbeatState, TickOutcome
from scavkeep.logging import get_logger

LOG = get_logger(__name__)


async def run_heartbeat(
    controller: HeartbeatController,
    *,
    interval: float = HEARTBEAT_INTERVAL,
    boot_grace: float = BOOT_GRACE,
    max_ticks: int | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> list[TickOutcome]:
    """Run heartbeats until cancelled or ``max_ticks`` is reached.

    Args:
        controller: Controller evaluated on each heartbeat.
        interval: Seconds between heartbeats.
        boot_grace: Seconds to wait before the first heartbeat.
        max_ticks: Stop after this many heartbeats (None = run forever).
        sleep: Coroutine function used for the waits.

    Returns:
        Outcomes of the heartbeats that ran, in order.
    """
    LOG.info("heartbeat_active", interval_minutes=round(interval / 60, 2))
    outcomes: list[TickOutcome] = []

    await sleep(boot_grace)
    while True:
        outcomes.append(await controller.tick())
        if max_ticks is not None and len(outcomes) >= max_ticks:
            return outcomes
        await sleep(interval)


async def watch_page(
    settings: ScavkeepSettings,
    *,
    max_ticks: int | None = None,
) -> HeartbeatState:
    """Open the mining page in a browser and keep it alive.

    Args:
        settings: Effective settings (backend, URL, timings).
        max_ticks: Stop after this many heartbeats (None = run forever).

    Returns:
        Final heartbeat state.

    Raises:
        BrowserError: If the browser cannot start or load the page.
    """
    page = get_backend(settings.backend, **settings.get_backend_options())
    async with page:
        await page.navigate(settings.page_url)
        LOG.info("page_loaded", url=settings.page_url, backend=settings.backend)

        controller = HeartbeatController(
            page,
            reload_guard=settings.reload_guard,
            start_wait_loops=settings.start_wait_loops,
            start_wait_step=settings.start_wait_step,
        )
        await run_heartbeat(
            controller,
            interval=settings.heartbeat_interval,
            boot_grace=settings.boot_grace,
            max_ticks=max_ticks,
        )
        return controller.state
