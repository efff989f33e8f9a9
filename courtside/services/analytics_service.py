"""Statistics helpers for the Courtside game tracker.

Everything here is recomputed from the game's logs on demand; the only cached
data are the substitution spans themselves.
"""

from __future__ import annotations

import csv
import io
from typing import List, Optional

from ..models import Game, GameStatus, Player, PlayerStatLine, TeamStats
from ..utils import FOUL_LIMIT, format_time
from ..utils.constants import PERIOD_LABELS
from .exceptions import PlayerNotFound

REPORT_HEADER = [
    "Name", "Number", "On Court", "Playing Time", "Playing Seconds", "Fouls", "Fouled Out",
]


def _players(game: Game) -> List[Player]:
    return list(game.players) or list(game.team.players)


def _open_stint_start(game: Game, player_id: str) -> Optional[int]:
    """Event time that opened the player's live stint in the current period."""
    if player_id not in game.active_players:
        return None
    period = game.current_period_data
    sub = period.open_substitution(player_id)
    if sub is None:
        return None
    event = period.find_event(sub.time_in_event)
    return event.event_time if event else None


def calculate_player_minutes(game: Game, player_id: str, time_remaining: int) -> int:
    """
    Seconds a player has been on court across the whole game.

    Closed spans contribute their recorded ``seconds_played``; a live stint in
    the current period contributes the time since it opened.
    """
    total = 0
    for period in game.periods:
        for sub in period.substitutions:
            if sub.player.id == player_id and sub.seconds_played is not None:
                total += sub.seconds_played

    started = _open_stint_start(game, player_id)
    if started is not None:
        total += max(0, started - int(time_remaining))
    return total


def calculate_player_fouls(game: Game, player_id: str) -> int:
    """Number of fouls charged to a player in every period."""
    return sum(
        1 for period in game.periods for foul in period.fouls if foul.player.id == player_id
    )


def calculate_period_fouls(game: Game, period_index: Optional[int] = None) -> int:
    """Team fouls in one period (the current one by default)."""
    idx = game.current_period if period_index is None else period_index
    return len(game.periods[idx].fouls)


def calculate_player_sub_time(game: Game, player_id: str,
                              period_index: Optional[int] = None) -> Optional[int]:
    """
    Clock time of the player's last substitution in a period.

    For a player on court this is the time they came in (subtract the live time
    remaining to get the stint length). Otherwise it is the time they last
    went out, or ``None`` if they never played in the period.
    """
    idx = game.current_period if period_index is None else period_index
    period = game.periods[idx]

    open_sub = period.open_substitution(player_id)
    if open_sub is not None:
        event = period.find_event(open_sub.time_in_event)
        return event.event_time if event else None

    closed = [
        s for s in period.substitutions
        if s.player.id == player_id and s.time_out_event is not None
    ]
    if not closed:
        return None
    out_times = [
        period.find_event(s.time_out_event).event_time
        for s in closed if period.find_event(s.time_out_event) is not None
    ]
    return min(out_times) if out_times else None


def player_stat_line(game: Game, player_id: str, time_remaining: int) -> PlayerStatLine:
    """Bundle every per-player statistic for display."""
    player = game.find_player(player_id) or game.team.find_player(player_id)
    if player is None:
        raise PlayerNotFound(f"Player {player_id} is not on the roster")

    total = calculate_player_minutes(game, player_id, time_remaining)
    fouls = calculate_player_fouls(game, player_id)
    on_court = player_id in game.active_players
    sub_time = calculate_player_sub_time(game, player_id)

    current = None
    if on_court and sub_time is not None:
        current = max(0, sub_time - int(time_remaining))

    return PlayerStatLine(
        player_id=player.id,
        name=player.name,
        number=player.number,
        on_court=on_court,
        total_seconds=total,
        fouls=fouls,
        fouled_out=fouls >= FOUL_LIMIT,
        current_stint_time=current,
        formatted_total_time=format_time(total),
        formatted_current_time=format_time(current),
    )


def calculate_team_stats(game: Game, time_remaining: int = 0) -> TeamStats:
    """Team-wide playing time and foul totals."""
    players = _players(game)
    seconds = {p.id: calculate_player_minutes(game, p.id, time_remaining) for p in players}
    total = sum(seconds.values())
    players_with_fouls = sum(1 for p in players if calculate_player_fouls(game, p.id) > 0)

    most_active = None
    most_seconds = 0
    for player in players:
        if seconds[player.id] > most_seconds:
            most_active, most_seconds = player, seconds[player.id]

    return TeamStats(
        total_play_seconds=total,
        average_play_seconds=total / len(players) if players else 0.0,
        total_substitutions=sum(len(p.sub_events) for p in game.periods),
        total_fouls=sum(len(p.fouls) for p in game.periods),
        players_with_fouls=players_with_fouls,
        most_active_player=most_active,
        most_active_seconds=most_seconds,
    )


def game_status(game: Game) -> GameStatus:
    """Where the game stands: period, court and completion."""
    last = len(game.periods) - 1
    period = game.current_period_data
    finished = (
        game.current_period == last
        and not game.is_running
        and not game.active_players
        and game.period_time_elapsed is not None
        and game.period_time_elapsed >= period.length_seconds
    )
    return GameStatus(
        is_active=game.is_running,
        current_period_number=period.period_number,
        total_periods=len(game.periods),
        active_player_count=len(game.active_players),
        total_fouls=sum(len(p.fouls) for p in game.periods),
        is_game_complete=finished,
        period_label=PERIOD_LABELS.get(len(game.periods), "Period"),
    )


class AnalyticsService:
    """Build per-player statistics and CSV reports for one game snapshot."""

    def __init__(self, game: Game, time_remaining: int = 0) -> None:
        self.game = game
        self.time_remaining = int(time_remaining)

    def generate_player_lines(self) -> List[PlayerStatLine]:
        """One stat line per player, most playing time first."""
        lines = [
            player_stat_line(self.game, p.id, self.time_remaining) for p in _players(self.game)
        ]
        lines.sort(key=lambda line: (-line.total_seconds, line.name))
        return lines

    def generate_team_stats(self) -> TeamStats:
        return calculate_team_stats(self.game, self.time_remaining)

    def generate_report_csv(self) -> str:
        """Export a summary block followed by one row per player."""
        team = self.generate_team_stats()
        buffer = io.StringIO()
        writer = csv.writer(buffer)

        writer.writerow(["Game", f"{self.game.team.name} vs {self.game.opponent}"])
        writer.writerow(["Date", self.game.date.date().isoformat()])
        writer.writerow(["Total Substitutions", team.total_substitutions])
        writer.writerow(["Total Fouls", team.total_fouls])
        writer.writerow([])

        writer.writerow(REPORT_HEADER)
        for line in self.generate_player_lines():
            writer.writerow([
                line.name,
                line.number,
                "Yes" if line.on_court else "No",
                line.formatted_total_time,
                line.total_seconds,
                line.fouls,
                "Yes" if line.fouled_out else "No",
            ])
        return buffer.getvalue()
