"""
Models package for the Courtside game tracker.

This package contains the core data models used throughout the application.
"""
from .player import Player, Team
from .game_state import Game, Period, SubstitutionEvent, Substitution, Foul
from .game_report import PlayerStatLine, TeamStats, GameStatus

__all__ = [
    "Player", "Team", "Game", "Period", "SubstitutionEvent", "Substitution", "Foul",
    "PlayerStatLine", "TeamStats", "GameStatus",
]
