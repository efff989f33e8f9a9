"""Tests for the foul log."""

from datetime import datetime

import pytest

from courtside.models import Player, Team
from courtside.services import PeriodNotFound, PlayerNotFound, create_game
from courtside.services.analytics_service import calculate_period_fouls, calculate_player_fouls
from courtside.services.foul_service import add_foul, foul_warnings


@pytest.fixture
def game():
    team = Team(id="t1", name="Hawks", players=[
        Player("p1", "Ada", "4"), Player("p2", "Bea", "11"),
    ])
    return create_game(team, "Owls", period_count=2, period_length=20,
                       date=datetime(2025, 3, 1, 18, 0))


def test_five_fouls_across_the_game_are_counted(game):
    for idx, period_index in enumerate([0, 0, 0, 1, 1]):
        game = add_foul(game, "p1", 1000 - idx * 10, period_index=period_index)

    assert calculate_player_fouls(game, "p1") == 5
    assert calculate_player_fouls(game, "p2") == 0
    assert calculate_period_fouls(game, 0) == 3
    assert calculate_period_fouls(game, 1) == 2


def test_foul_limit_is_advisory(game):
    for _ in range(6):
        game = add_foul(game, "p1", 500)
    assert calculate_player_fouls(game, "p1") == 6
    assert "fouled out" in foul_warnings(game, "p1")[0]


def test_foul_records_period_and_clock(game):
    game = add_foul(game, "p2", 754)
    foul = game.periods[0].fouls[0]
    assert foul.player.id == "p2"
    assert foul.period_id == game.periods[0].id
    assert foul.time_remaining == 754
    assert calculate_period_fouls(game) == 1


def test_original_game_is_not_modified(game):
    add_foul(game, "p1", 100)
    assert game.periods[0].fouls == []


def test_foul_warnings_escalate(game):
    assert foul_warnings(game, "p1") == []
    for _ in range(3):
        game = add_foul(game, "p1", 900)
    assert "one more" in foul_warnings(game, "p1")[0]
    game = add_foul(game, "p1", 800)
    assert "next one fouls out" in foul_warnings(game, "p1")[0]


def test_unknown_player_or_period(game):
    with pytest.raises(PlayerNotFound):
        add_foul(game, "ghost", 100)
    with pytest.raises(PeriodNotFound):
        add_foul(game, "p1", 100, period_index=5)


def test_foul_recorded_by_period_id(game):
    second = game.periods[1]
    game = add_foul(game, "p2", 300, period_id=second.id)
    assert [f.period_id for f in game.periods[1].fouls] == [second.id]
    assert game.periods[0].fouls == []

    with pytest.raises(PeriodNotFound):
        add_foul(game, "p2", 300, period_id="no-such-period")
