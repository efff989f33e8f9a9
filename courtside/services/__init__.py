"""
Services package for the Courtside game tracker.

This package contains the game-session engine: the clock, the substitution
and foul logs, statistics, persistence, and the per-game session object.
"""
from .exceptions import (
    GameEngineError, InvariantViolation, NotFound, GameNotFound, PlayerNotFound,
    PeriodNotFound, EventNotFound, EventConflictError, ClockStateError, StoreError,
)
from .timer_service import ClockAnchor, ClockState, TimerService
from .analytics_service import AnalyticsService
from .persistence_service import GameStore, InMemoryGameStore, JsonFileGameStore
from .game_session import GameSession, create_game

__all__ = [
    "GameEngineError", "InvariantViolation", "NotFound", "GameNotFound", "PlayerNotFound",
    "PeriodNotFound", "EventNotFound", "EventConflictError", "ClockStateError", "StoreError",
    "ClockAnchor", "ClockState", "TimerService", "AnalyticsService",
    "GameStore", "InMemoryGameStore", "JsonFileGameStore", "GameSession", "create_game",
]
