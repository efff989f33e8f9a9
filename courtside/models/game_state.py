"""
Game state models for the Courtside game tracker.

This module contains the Game dataclass and the per-period logs it carries:
substitution events (the source of truth for who is on court), the derived
substitution spans, and fouls. ``to_json``/``from_json`` produce the exact
shape written to the game store.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .player import Player, Team


@dataclass
class SubstitutionEvent:
    """
    A set of players entering and leaving the court at one clock time.

    Attributes:
        id: Unique identifier
        event_time: Seconds remaining in the period when the event happened
        period_id: Owning period
        subbed_in: Players entering the court
        players_out: Players leaving the court
    """
    id: str
    event_time: int
    period_id: str
    subbed_in: List[Player] = field(default_factory=list)
    players_out: List[Player] = field(default_factory=list)

    @property
    def subbed_in_ids(self) -> List[str]:
        return [p.id for p in self.subbed_in]

    @property
    def players_out_ids(self) -> List[str]:
        return [p.id for p in self.players_out]

    def player_ids(self) -> set:
        """Ids of every player this event touches."""
        return set(self.subbed_in_ids) | set(self.players_out_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "eventTime": self.event_time,
            "periodId": self.period_id,
            "subbedIn": [p.to_dict() for p in self.subbed_in],
            "playersOut": [p.to_dict() for p in self.players_out],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubstitutionEvent":
        return cls(
            id=str(data["id"]),
            event_time=int(data["eventTime"]),
            period_id=str(data["periodId"]),
            subbed_in=[Player.from_dict(p) for p in data.get("subbedIn", []) or []],
            players_out=[Player.from_dict(p) for p in data.get("playersOut", []) or []],
        )


@dataclass
class Substitution:
    """
    One continuous on-court stint for a player, bounded by two events.

    ``time_out_event`` is None while the stint is still open.
    """
    id: str
    player: Player
    time_in_event: str
    period_id: str
    time_out_event: Optional[str] = None
    seconds_played: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.time_out_event is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "player": self.player.to_dict(),
            "timeInEvent": self.time_in_event,
            "timeOutEvent": self.time_out_event,
            "secondsPlayed": self.seconds_played,
            "periodId": self.period_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Substitution":
        seconds = data.get("secondsPlayed")
        return cls(
            id=str(data["id"]),
            player=Player.from_dict(data["player"]),
            time_in_event=str(data["timeInEvent"]),
            time_out_event=data.get("timeOutEvent"),
            seconds_played=int(seconds) if seconds is not None else None,
            period_id=str(data["periodId"]),
        )


@dataclass
class Foul:
    """A personal foul recorded against a player."""
    id: str
    player: Player
    period_id: str
    time_remaining: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "player": self.player.to_dict(),
            "periodId": self.period_id,
            "timeRemaining": self.time_remaining,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Foul":
        return cls(
            id=str(data["id"]),
            player=Player.from_dict(data["player"]),
            period_id=str(data["periodId"]),
            time_remaining=int(data.get("timeRemaining", 0)),
        )


@dataclass
class Period:
    """
    A timed segment of the game with its own event and foul logs.

    ``sub_events`` is kept in recorded (chronological) order, which means
    ``event_time`` never increases along the list.
    """
    id: str
    period_number: int
    length: int
    substitutions: List[Substitution] = field(default_factory=list)
    fouls: List[Foul] = field(default_factory=list)
    sub_events: List[SubstitutionEvent] = field(default_factory=list)

    @property
    def length_seconds(self) -> int:
        return self.length * 60

    def event_index(self, event_id: str) -> Optional[int]:
        for idx, event in enumerate(self.sub_events):
            if event.id == event_id:
                return idx
        return None

    def find_event(self, event_id: str) -> Optional[SubstitutionEvent]:
        idx = self.event_index(event_id)
        return self.sub_events[idx] if idx is not None else None

    def open_substitution(self, player_id: str) -> Optional[Substitution]:
        """Return the player's currently open stint in this period, if any."""
        for sub in self.substitutions:
            if sub.player.id == player_id and sub.is_open:
                return sub
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "periodNumber": self.period_number,
            "length": self.length,
            "substitutions": [s.to_dict() for s in self.substitutions],
            "fouls": [f.to_dict() for f in self.fouls],
            "subEvents": [e.to_dict() for e in self.sub_events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Period":
        return cls(
            id=str(data["id"]),
            period_number=int(data["periodNumber"]),
            length=int(data["length"]),
            substitutions=[Substitution.from_dict(s) for s in data.get("substitutions", []) or []],
            fouls=[Foul.from_dict(f) for f in data.get("fouls", []) or []],
            sub_events=[SubstitutionEvent.from_dict(e) for e in data.get("subEvents", []) or []],
        )


@dataclass
class Game:
    """
    Represents the complete state of one basketball game.

    Attributes:
        id: Unique identifier (store key)
        date: When the game is played
        team: The tracked team
        opponent: Opponent name
        players: Players dressed for this game
        periods: One entry per configured period
        active_players: Ids of players currently on court (at most five)
        current_period: Index into ``periods``
        is_running: Whether the game clock is counting down
        period_start_time: Epoch milliseconds the running clock is anchored
            to; only set while running
        period_time_elapsed: Seconds elapsed in the period; only set while
            paused
    """
    id: str
    date: datetime
    team: Team
    opponent: str
    players: List[Player] = field(default_factory=list)
    periods: List[Period] = field(default_factory=list)
    active_players: List[str] = field(default_factory=list)
    current_period: int = 0
    is_running: bool = False
    period_start_time: Optional[float] = None
    period_time_elapsed: Optional[int] = None

    @property
    def current_period_data(self) -> Period:
        return self.periods[self.current_period]

    def find_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def to_json(self) -> dict:
        """
        Convert Game to a JSON-serializable dictionary.

        Unset optional clock fields are omitted rather than written as null.
        """
        data = {
            "id": self.id,
            "date": self.date.isoformat(),
            "team": self.team.to_dict(),
            "opponent": self.opponent,
            "players": [p.to_dict() for p in self.players],
            "periods": [p.to_dict() for p in self.periods],
            "activePlayers": list(self.active_players),
            "currentPeriod": self.current_period,
            "isRunning": self.is_running,
        }
        if self.period_start_time is not None:
            data["periodStartTime"] = self.period_start_time
        if self.period_time_elapsed is not None:
            data["periodTimeElapsed"] = self.period_time_elapsed
        return data

    @staticmethod
    def from_json(data: dict) -> "Game":
        """
        Create Game from a JSON dictionary.

        Raises:
            KeyError: If a required field is missing
            ValueError: If the date is not ISO-8601
        """
        elapsed = data.get("periodTimeElapsed")
        return Game(
            id=str(data["id"]),
            date=datetime.fromisoformat(data["date"]),
            team=Team.from_dict(data["team"]),
            opponent=data.get("opponent", ""),
            players=[Player.from_dict(p) for p in data.get("players", []) or []],
            periods=[Period.from_dict(p) for p in data.get("periods", []) or []],
            active_players=[str(pid) for pid in data.get("activePlayers", []) or []],
            current_period=int(data.get("currentPeriod", 0)),
            is_running=bool(data.get("isRunning", False)),
            period_start_time=data.get("periodStartTime"),
            period_time_elapsed=int(elapsed) if elapsed is not None else None,
        )
