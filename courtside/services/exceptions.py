"""
Exception definitions for the game engine and the game stores.

Hierarchy:
- GameEngineError (base for engine rejections; raised before any change)
  - InvariantViolation (roster or event-log rule would be broken)
  - NotFound (referenced game, player, period or event is absent)
  - EventConflictError (event cannot be removed without breaking later events)
  - ClockStateError (clock action not legal in the current clock state)
- StoreError (base for persistence failures)
"""


# =========================
# Engine exceptions
# =========================

class GameEngineError(Exception):
    """Base exception for all engine errors."""
    retryable: bool = False


class InvariantViolation(GameEngineError):
    retryable = False


class NotFound(GameEngineError):
    retryable = False


class GameNotFound(NotFound):
    retryable = False


class PlayerNotFound(NotFound):
    retryable = False


class PeriodNotFound(NotFound):
    retryable = False


class EventNotFound(NotFound):
    retryable = False


class EventConflictError(GameEngineError):
    retryable = False


class ClockStateError(GameEngineError):
    retryable = False


# =========================
# Store exceptions
# =========================

class StoreError(Exception):
    """Base exception for store I/O errors."""
    retryable: bool = True
