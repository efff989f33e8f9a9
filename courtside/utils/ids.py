"""Identifier helpers."""
import uuid


def new_id() -> str:
    """Return a fresh random identifier for games, periods and events."""
    return str(uuid.uuid4())
