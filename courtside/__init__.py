"""
Courtside

Live basketball game tracking: a countdown clock per period, the players on
court, and substitution and foul logs from which playing time and foul
statistics are derived.

This package provides the game-session engine and a Flask JSON API over it.
"""
from .models import Player, Team, Game
from .services import GameSession, TimerService, InMemoryGameStore, JsonFileGameStore, create_game
from .ui import create_app, run_web_app
from .utils import format_time, parse_time, INVALID_TIME, APP_TITLE

__version__ = "1.0.0"

__all__ = [
    "Player", "Team", "Game", "GameSession", "TimerService", "InMemoryGameStore",
    "JsonFileGameStore", "create_game", "create_app", "run_web_app",
    "format_time", "parse_time", "INVALID_TIME", "APP_TITLE",
]
