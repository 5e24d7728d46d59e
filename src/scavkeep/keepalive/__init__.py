"""Heartbeat watchdog for the mining page.

This package provides:
- Observation and the text scraping that produces it
- HeartbeatController, the per-tick decision logic
- HeartbeatState and TickOutcome for controller state
- run_heartbeat / watch_page to host the controller on a timer
"""

from scavkeep.keepalive.heartbeat import HeartbeatController
from scavkeep.keepalive.observation import Observation, observe
from scavkeep.keepalive.runner import run_heartbeat, watch_page
from scavkeep.keepalive.state import HeartbeatState, TickOutcome

__all__ = [
    # Observation
    "Observation",
    "observe",
    # Controller
    "HeartbeatController",
    # State
    "HeartbeatState",
    "TickOutcome",
    # Runner
    "run_heartbeat",
    "watch_page",
]
