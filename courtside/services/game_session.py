"""
Game session for the Courtside game tracker.

A session owns one game and its live clock. Every action is forwarded to the
engine functions, which return a new game snapshot; the session keeps the
latest snapshot and writes it to its store. There is no process-wide state:
callers create one session per game they are tracking.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from ..models import Game, Period, Player, PlayerStatLine, Team, TeamStats, GameStatus
from ..utils import (
    DEFAULT_PERIOD_COUNT, DEFAULT_PERIOD_LENGTH, MAX_PERIOD_COUNT, MIN_PERIOD_COUNT,
    PERIOD_LENGTHS,
)
from ..utils.ids import new_id
from . import analytics_service, foul_service, substitution_service
from .exceptions import InvariantViolation
from .persistence_service import GameStore
from .timer_service import ClockState, TimerService, apply_clock

logger = logging.getLogger(__name__)


def create_game(team: Team, opponent: str, *, players: Optional[List[Player]] = None,
                period_count: int = DEFAULT_PERIOD_COUNT,
                period_length: int = DEFAULT_PERIOD_LENGTH,
                starting_players: Optional[Iterable[str]] = None,
                game_id: Optional[str] = None, date: Optional[datetime] = None) -> Game:
    """
    Build a new game with one empty period per configured period.

    Starting players are recorded as a substitution at the full period time so
    their stints are tracked like any other.

    Raises:
        InvariantViolation: If the period length or count is not allowed, or
            the starting lineup breaks the roster rules
        PlayerNotFound: If a starting player is not on the roster
    """
    if period_length not in PERIOD_LENGTHS:
        raise InvariantViolation(
            f"Period length must be one of {', '.join(str(p) for p in PERIOD_LENGTHS)} minutes"
        )
    if not MIN_PERIOD_COUNT <= period_count <= MAX_PERIOD_COUNT:
        raise InvariantViolation(
            f"Period count must be between {MIN_PERIOD_COUNT} and {MAX_PERIOD_COUNT}"
        )

    periods = [
        Period(id=new_id(), period_number=n + 1, length=period_length)
        for n in range(period_count)
    ]
    game = Game(
        id=game_id or new_id(),
        date=date or datetime.now(),
        team=team,
        opponent=opponent,
        players=list(players) if players is not None else list(team.players),
        periods=periods,
    )

    starters = list(starting_players or [])
    if starters:
        game = substitution_service.submit(game, starters, [], period_length * 60).game
    logger.info("Created game %s: %s vs %s", game.id, team.name, opponent)
    return game


class GameSession:
    """
    Live tracking of one game.

    Attributes:
        game: Latest snapshot (clock fields always match ``clock``)
        store: Where snapshots are written, if anywhere
        timer: Clock for the current period
    """

    def __init__(self, game: Game, store: Optional[GameStore] = None,
                 clock: Optional[ClockState] = None, now: Optional[float] = None):
        self.store = store
        self.timer = TimerService(clock) if clock is not None else TimerService.for_game(game, now)
        self.game = apply_clock(game, self.timer.state)

    @classmethod
    def open(cls, store: GameStore, game_id: str, now: Optional[float] = None) -> "GameSession":
        """Load a game and rebuild its clock from the persisted fields."""
        return cls(store.get(game_id), store=store, now=now)

    @classmethod
    def create(cls, store: Optional[GameStore], team: Team, opponent: str, **kwargs) -> "GameSession":
        session = cls(create_game(team, opponent, **kwargs), store=store)
        session._save()
        return session

    @property
    def clock(self) -> ClockState:
        return self.timer.state

    @property
    def time_remaining(self) -> int:
        return self.timer.state.time_remaining

    def _save(self) -> None:
        if self.store is not None:
            self.store.put(self.game)

    def _commit(self, game: Game) -> Game:
        self.game = apply_clock(game, self.timer.state)
        self._save()
        return self.game

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------
    def start(self, now: Optional[float] = None) -> ClockState:
        self.timer.start(now)
        self._commit(self.game)
        return self.clock

    def pause(self, now: Optional[float] = None) -> ClockState:
        self.timer.pause(now)
        self._commit(self.game)
        return self.clock

    def toggle(self, now: Optional[float] = None) -> ClockState:
        self.timer.toggle(now)
        self._commit(self.game)
        return self.clock

    def adjust(self, delta: int, now: Optional[float] = None) -> ClockState:
        self.timer.adjust(delta, now)
        self._commit(self.game)
        return self.clock

    def tick(self, now: Optional[float] = None) -> ClockState:
        """Refresh the time remaining; only the expiry of the period is saved."""
        was_running = self.clock.is_running
        self.timer.tick(now)
        if was_running and not self.clock.is_running:
            self._commit(self.game)
        return self.clock

    # ------------------------------------------------------------------
    # Roster and fouls
    # ------------------------------------------------------------------
    def submit_substitution(self, subbed_in: Iterable[str], sub_out: Iterable[str],
                            at_time: Optional[int] = None,
                            now: Optional[float] = None) -> List[str]:
        """Record a substitution, by default at the live clock time."""
        if at_time is None:
            at_time = self.tick(now).time_remaining
        result = substitution_service.submit(self.game, subbed_in, sub_out, at_time)
        self._commit(result.game)
        return result.active_players

    def roster_before_event(self, event_id: str) -> List[str]:
        return substitution_service.roster_before_event(self.game, event_id)

    def edit_substitution(self, event_id: str, new_time: int, subbed_in: Iterable[str],
                          players_out: Iterable[str]) -> Game:
        return self._commit(
            substitution_service.edit_event(self.game, event_id, new_time, subbed_in, players_out)
        )

    def delete_substitution(self, event_id: str) -> Game:
        return self._commit(substitution_service.delete_event(self.game, event_id))

    def add_foul(self, player_id: str, time_remaining: Optional[int] = None,
                 period_id: Optional[str] = None, now: Optional[float] = None) -> List[str]:
        """Record a foul and return any foul-trouble warnings for the player."""
        if time_remaining is None:
            time_remaining = self.tick(now).time_remaining
        self._commit(
            foul_service.add_foul(self.game, player_id, time_remaining, period_id=period_id)
        )
        return foul_service.foul_warnings(self.game, player_id)

    def end_period(self, now: Optional[float] = None) -> Game:
        self.tick(now)
        result = substitution_service.end_period(self.game, self.clock)
        self.timer.state = result.clock
        return self._commit(result.game)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------
    def player_stats(self) -> List[PlayerStatLine]:
        return analytics_service.AnalyticsService(self.game, self.time_remaining).generate_player_lines()

    def team_stats(self) -> TeamStats:
        return analytics_service.calculate_team_stats(self.game, self.time_remaining)

    def status(self) -> GameStatus:
        return analytics_service.game_status(self.game)

    def report_csv(self) -> str:
        return analytics_service.AnalyticsService(self.game, self.time_remaining).generate_report_csv()
