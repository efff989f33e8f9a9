"""
Unit tests for the game models and their JSON shape.
"""
import json
import unittest
from datetime import datetime

from courtside.models import Game, Player, Team
from courtside.services import create_game
from courtside.services.foul_service import add_foul
from courtside.services.substitution_service import submit
from courtside.services.timer_service import apply_clock, reset_clock, start_clock


class TestGameJson(unittest.TestCase):
    """Serialization of games to the stored representation."""

    def setUp(self) -> None:
        team = Team(id="t1", name="Hawks", players=[
            Player("p1", "Ada", "4"), Player("p2", "Bea", "00"), Player("p3", "Cy", "23"),
        ])
        game = create_game(team, "Owls", period_count=2, period_length=10,
                           starting_players=["p1", "p2"], game_id="g1",
                           date=datetime(2025, 3, 1, 18, 30, 15, 250))
        game = submit(game, ["p3"], ["p1"], 480).game
        self.game = add_foul(game, "p2", 455)

    def test_round_trip(self) -> None:
        restored = Game.from_json(json.loads(json.dumps(self.game.to_json())))
        self.assertEqual(restored, self.game)

    def test_round_trip_running_clock(self) -> None:
        game = apply_clock(self.game, start_clock(reset_clock(10), now=1_700_000_000_000.0))
        restored = Game.from_json(json.loads(json.dumps(game.to_json())))
        self.assertEqual(restored, game)
        self.assertTrue(restored.is_running)

    def test_json_shape(self) -> None:
        data = self.game.to_json()
        self.assertEqual(data["date"], "2025-03-01T18:30:15.000250")
        self.assertEqual(data["activePlayers"], ["p2", "p3"])
        self.assertEqual(data["currentPeriod"], 0)
        self.assertFalse(data["isRunning"])
        self.assertNotIn("periodStartTime", data)
        self.assertNotIn("periodTimeElapsed", data)

        period = data["periods"][0]
        self.assertEqual(period["periodNumber"], 1)
        self.assertEqual(period["length"], 10)
        event = period["subEvents"][1]
        self.assertEqual(event["eventTime"], 480)
        self.assertEqual(event["subbedIn"][0]["id"], "p3")
        self.assertEqual(event["playersOut"][0]["number"], "4")
        closed = [s for s in period["substitutions"] if s["timeOutEvent"] is not None]
        self.assertEqual(closed[0]["secondsPlayed"], 120)
        self.assertEqual(period["fouls"][0]["timeRemaining"], 455)

    def test_player_label(self) -> None:
        self.assertEqual(Player("p1", "Ada", "4").label, "Ada (#4)")
        self.assertEqual(Player("p9", "Zed").label, "Zed")


class TestCreateGame(unittest.TestCase):
    def test_periods_and_validation(self) -> None:
        from courtside.services import InvariantViolation

        team = Team(id="t1", name="Hawks", players=[Player("p1", "Ada", "4")])
        game = create_game(team, "Owls", period_count=4, period_length=10)
        self.assertEqual([p.period_number for p in game.periods], [1, 2, 3, 4])
        self.assertTrue(all(p.length == 10 for p in game.periods))
        self.assertEqual(game.players, team.players)
        self.assertEqual(game.active_players, [])

        with self.assertRaises(InvariantViolation):
            create_game(team, "Owls", period_length=12)
        with self.assertRaises(InvariantViolation):
            create_game(team, "Owls", period_count=0)


if __name__ == "__main__":
    unittest.main()
