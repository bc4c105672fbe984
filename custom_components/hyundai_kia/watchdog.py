"""Poll watchdog for the Hyundai / Kia integration.

Every scheduled or manual poll first asks :func:`evaluate` what to do.
The watchdog counter is a failure budget: skipped and failed cycles spend
it, a successful cycle refills it, and an empty budget makes the device
restart its vendor session instead of polling.
"""

from __future__ import annotations

import enum
import logging

from .const import WATCHDOG_BUDGET
from .models import PollState

_LOGGER = logging.getLogger(__name__)


class PollDecision(enum.Enum):
    """What a poll cycle should do."""

    RUN = "run"
    SKIP = "skip"
    RESTART = "restart"


def evaluate(state: PollState) -> PollDecision:
    """Decide the fate of a poll cycle before any network call.

    On RUN the state is marked busy; on SKIP the watchdog is decremented.
    """
    if state.watchdog_counter <= 0:
        _LOGGER.warning("Watchdog triggered, restarting vehicle session")
        return PollDecision.RESTART
    if state.busy:
        _LOGGER.info("Still busy with previous poll, skipping")
        state.watchdog_counter -= 1
        return PollDecision.SKIP
    state.busy = True
    return PollDecision.RUN


def record_success(state: PollState) -> None:
    """Refill the watchdog budget after a completed cycle."""
    state.watchdog_counter = WATCHDOG_BUDGET
    state.busy = False


def record_failure(state: PollState) -> None:
    """Spend one unit of watchdog budget after a failed cycle."""
    state.watchdog_counter = max(state.watchdog_counter - 1, 0)
    state.busy = False
    _LOGGER.debug("Poll failed, watchdog at %d", state.watchdog_counter)


def reset(state: PollState) -> None:
    """Reset the watchdog and busy flag on session restart."""
    state.watchdog_counter = WATCHDOG_BUDGET
    state.busy = False
