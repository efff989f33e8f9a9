"""Dataclasses representing statistics derived from a game."""

from dataclasses import dataclass
from typing import Optional

from .player import Player


@dataclass
class PlayerStatLine:
    """Playing time and foul information for a single player."""

    player_id: str
    name: str
    number: str
    on_court: bool
    total_seconds: int
    fouls: int
    fouled_out: bool
    current_stint_time: Optional[int]
    formatted_total_time: str
    formatted_current_time: str


@dataclass
class TeamStats:
    """Team-level totals for one game."""

    total_play_seconds: int
    average_play_seconds: float
    total_substitutions: int
    total_fouls: int
    players_with_fouls: int
    most_active_player: Optional[Player] = None
    most_active_seconds: int = 0


@dataclass
class GameStatus:
    """Summary of where a game currently stands."""

    is_active: bool
    current_period_number: int
    total_periods: int
    active_player_count: int
    total_fouls: int
    is_game_complete: bool
    period_label: str = "Period"
