"""Timer service for the Courtside game tracker.

The game clock counts down from the period length. While running, the time
remaining is always recomputed from an anchor (a wall-clock instant paired with
the seconds remaining at that instant) instead of being decremented, so timer
jitter never accumulates. Every transition is a pure function returning a new
:class:`ClockState`; nothing here touches the game store.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from ..models import Game
from ..utils import now_ms
from .exceptions import ClockStateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClockAnchor:
    """Wall-clock instant (epoch ms) and the seconds remaining at that instant."""

    wall_time_ms: float
    remaining: int

    def remaining_at(self, now: float) -> int:
        # The anchor may lie ahead of ``now`` when the clock was adjusted
        # above the period length; elapsed is then negative.
        elapsed = int((now - self.wall_time_ms) // 1000)
        return max(0, self.remaining - elapsed)


@dataclass(frozen=True)
class ClockState:
    """
    Snapshot of the game clock for the current period.

    Attributes:
        is_running: Whether the clock is counting down
        time_remaining: Seconds remaining as of the last transition or tick
        period_length_seconds: Full length of the current period
        anchor: Set only while running
        paused_elapsed: Seconds elapsed in the period; set only while stopped
            after the period has been started or adjusted
    """

    is_running: bool
    time_remaining: int
    period_length_seconds: int
    anchor: Optional[ClockAnchor] = None
    paused_elapsed: Optional[int] = None

    @property
    def period_start_time(self) -> Optional[float]:
        """Epoch ms at which the period would have started at full length."""
        if not self.is_running or self.anchor is None:
            return None
        return self.anchor.wall_time_ms - (
            self.period_length_seconds - self.anchor.remaining
        ) * 1000

    @property
    def period_time_elapsed(self) -> Optional[int]:
        if self.is_running:
            return None
        return self.paused_elapsed


def reset_clock(period_length_minutes: int) -> ClockState:
    """Return a stopped clock at the full length of a new period."""
    seconds = int(period_length_minutes) * 60
    return ClockState(is_running=False, time_remaining=seconds, period_length_seconds=seconds)


def derive_clock(game: Game, now: Optional[float] = None) -> ClockState:
    """
    Rebuild the clock for a game loaded from the store.

    A game saved while running resumes from its persisted start time, so time
    keeps passing while the application is closed. A running clock that would
    have reached zero in the meantime comes back stopped at zero.
    """
    now = now_ms() if now is None else now
    length = game.current_period_data.length_seconds

    if game.is_running and game.period_start_time is not None:
        anchor = ClockAnchor(wall_time_ms=game.period_start_time, remaining=length)
        remaining = anchor.remaining_at(now)
        if remaining <= 0:
            logger.info("Game %s clock expired while unloaded", game.id)
            return ClockState(False, 0, length, paused_elapsed=length)
        return ClockState(True, remaining, length, anchor=anchor)

    if game.period_time_elapsed is not None:
        remaining = max(0, length - game.period_time_elapsed)
        return ClockState(False, remaining, length, paused_elapsed=game.period_time_elapsed)

    return ClockState(False, length, length)


def start_clock(state: ClockState, now: Optional[float] = None) -> ClockState:
    """
    Start the countdown from the current time remaining.

    Raises:
        ClockStateError: If the clock is already running or no time remains
    """
    if state.is_running:
        raise ClockStateError("Clock is already running")
    if state.time_remaining <= 0:
        raise ClockStateError("Cannot start the clock with no time remaining")

    now = now_ms() if now is None else now
    return replace(
        state,
        is_running=True,
        anchor=ClockAnchor(wall_time_ms=now, remaining=state.time_remaining),
        paused_elapsed=None,
    )


def tick(state: ClockState, now: Optional[float] = None) -> ClockState:
    """
    Recompute the time remaining of a running clock.

    Reaching zero stops the clock and clears the anchor. Ticking a stopped
    clock returns it unchanged.
    """
    if not state.is_running or state.anchor is None:
        return state

    now = now_ms() if now is None else now
    remaining = state.anchor.remaining_at(now)
    if remaining <= 0:
        logger.info("Period clock expired")
        return ClockState(
            is_running=False,
            time_remaining=0,
            period_length_seconds=state.period_length_seconds,
            paused_elapsed=state.period_length_seconds,
        )
    if remaining == state.time_remaining:
        return state
    return replace(state, time_remaining=remaining)


def pause_clock(state: ClockState, now: Optional[float] = None) -> ClockState:
    """
    Stop the countdown and record the elapsed period time.

    Raises:
        ClockStateError: If the clock is not running
    """
    if not state.is_running or state.anchor is None:
        raise ClockStateError("Clock is not running")

    now = now_ms() if now is None else now
    remaining = state.anchor.remaining_at(now)
    return ClockState(
        is_running=False,
        time_remaining=remaining,
        period_length_seconds=state.period_length_seconds,
        paused_elapsed=state.period_length_seconds - remaining,
    )


def adjust_clock(state: ClockState, delta: int, now: Optional[float] = None) -> ClockState:
    """
    Add ``delta`` seconds (negative to subtract) to the time remaining.

    The result is clamped at zero. A running clock is re-anchored at the
    adjusted value so the countdown continues smoothly from it.
    """
    if state.is_running and state.anchor is not None:
        now = now_ms() if now is None else now
        new_remaining = max(0, state.anchor.remaining_at(now) + int(delta))
        return replace(
            state,
            time_remaining=new_remaining,
            anchor=ClockAnchor(wall_time_ms=now, remaining=new_remaining),
        )

    new_remaining = max(0, state.time_remaining + int(delta))
    return replace(
        state,
        time_remaining=new_remaining,
        paused_elapsed=state.period_length_seconds - new_remaining,
    )


def apply_clock(game: Game, state: ClockState) -> Game:
    """Return a copy of ``game`` with the clock fields taken from ``state``."""
    return replace(
        game,
        is_running=state.is_running,
        period_start_time=state.period_start_time,
        period_time_elapsed=state.period_time_elapsed,
    )


class TimerService:
    """Holds the clock for one game and applies transitions to it."""

    def __init__(self, state: ClockState):
        self.state = state

    @classmethod
    def for_game(cls, game: Game, now: Optional[float] = None) -> "TimerService":
        return cls(derive_clock(game, now))

    def start(self, now: Optional[float] = None) -> ClockState:
        self.state = start_clock(self.state, now)
        logger.info("Clock started at %ss remaining", self.state.time_remaining)
        return self.state

    def pause(self, now: Optional[float] = None) -> ClockState:
        self.state = pause_clock(self.state, now)
        logger.info("Clock paused at %ss remaining", self.state.time_remaining)
        return self.state

    def toggle(self, now: Optional[float] = None) -> ClockState:
        if self.state.is_running:
            return self.pause(now)
        return self.start(now)

    def adjust(self, delta: int, now: Optional[float] = None) -> ClockState:
        self.state = adjust_clock(self.state, delta, now)
        logger.info("Clock adjusted by %+ds to %ss", delta, self.state.time_remaining)
        return self.state

    def tick(self, now: Optional[float] = None) -> ClockState:
        self.state = tick(self.state, now)
        return self.state

    def reset(self, period_length_minutes: int) -> ClockState:
        self.state = reset_clock(period_length_minutes)
        return self.state

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    def get_remaining_seconds(self, now: Optional[float] = None) -> int:
        """Time remaining right now, without changing the stored state."""
        return tick(self.state, now).time_remaining

    def get_progress(self, now: Optional[float] = None) -> float:
        """Percentage of the period already played, 0-100."""
        length = self.state.period_length_seconds
        if length == 0:
            return 0.0
        elapsed = length - self.get_remaining_seconds(now)
        return min(100.0, max(0.0, elapsed / length * 100))
