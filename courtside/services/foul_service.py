"""Foul tracking for the Courtside game tracker.

Fouls are a plain append-only log per period. The foul limit is advisory: a
player past it can still be charged, the caller decides how to warn.
"""
import logging
from dataclasses import replace
from typing import List, Optional

from ..models import Foul, Game
from ..utils import FOUL_LIMIT, FOUL_WARNING_THRESHOLD
from ..utils.ids import new_id
from .analytics_service import calculate_player_fouls
from .exceptions import PeriodNotFound, PlayerNotFound

logger = logging.getLogger(__name__)


def add_foul(game: Game, player_id: str, time_remaining: int,
             period_index: Optional[int] = None, period_id: Optional[str] = None) -> Game:
    """
    Charge a foul to a player.

    Args:
        game: Current game
        player_id: Player committing the foul
        time_remaining: Seconds left on the period clock
        period_index: Period to record in; defaults to the current one
        period_id: Period to record in, by id; takes precedence over the index

    Raises:
        PlayerNotFound: If the player is not on the roster
        PeriodNotFound: If the period id is unknown or the index is out of range
    """
    player = game.find_player(player_id) or game.team.find_player(player_id)
    if player is None:
        raise PlayerNotFound(f"Player {player_id} is not on the roster")
    if period_id is not None:
        idx = next((i for i, p in enumerate(game.periods) if p.id == period_id), None)
        if idx is None:
            raise PeriodNotFound(f"Period {period_id} does not exist")
    else:
        idx = game.current_period if period_index is None else period_index
    if idx < 0 or idx >= len(game.periods):
        raise PeriodNotFound(f"Period index {idx} does not exist")

    period = game.periods[idx]
    foul = Foul(id=new_id(), player=player, period_id=period.id,
                time_remaining=int(time_remaining))
    periods = list(game.periods)
    periods[idx] = replace(period, fouls=list(period.fouls) + [foul])
    game = replace(game, periods=periods)

    count = calculate_player_fouls(game, player_id)
    logger.info("Foul on %s at %ss (%d total)", player.label, foul.time_remaining, count)
    if count >= FOUL_LIMIT:
        logger.warning("%s has reached %d fouls", player.label, count)
    return game


def foul_warnings(game: Game, player_id: str) -> List[str]:
    """Advisory messages about a player's foul situation."""
    player = game.find_player(player_id) or game.team.find_player(player_id)
    if player is None:
        raise PlayerNotFound(f"Player {player_id} is not on the roster")

    count = calculate_player_fouls(game, player_id)
    if count >= FOUL_LIMIT:
        return [f"{player.label} has fouled out ({count} fouls)"]
    if count >= FOUL_WARNING_THRESHOLD:
        return [f"{player.label} has {count} fouls; the next one fouls out"]
    if count == FOUL_WARNING_THRESHOLD - 1:
        return [f"{player.label} has {count} fouls; one more puts them at risk"]
    return []
