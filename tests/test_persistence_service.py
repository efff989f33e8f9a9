"""Tests for the game stores."""

import json
import os
import tempfile
import unittest
from datetime import datetime

from courtside.models import Player, Team
from courtside.services import GameNotFound, InMemoryGameStore, JsonFileGameStore, StoreError, create_game


def _game(game_id="g1"):
    team = Team(id="t1", name="Hawks", players=[Player("p1", "Ada", "4"), Player("p2", "Bea", "5")])
    return create_game(team, "Owls", starting_players=["p1"], game_id=game_id,
                       date=datetime(2025, 3, 1, 18, 0))


class InMemoryStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryGameStore()

    def test_put_and_get(self) -> None:
        game = _game()
        self.store.put(game)
        loaded = self.store.get("g1")
        self.assertEqual(loaded, game)
        self.assertIsNot(loaded, game)

    def test_snapshots_are_isolated(self) -> None:
        game = _game()
        self.store.put(game)
        loaded = self.store.get("g1")
        loaded.active_players.append("p2")
        self.assertEqual(self.store.get("g1").active_players, ["p1"])

    def test_put_overwrites(self) -> None:
        self.store.put(_game())
        game = _game()
        game.opponent = "Foxes"
        self.store.put(game)
        self.assertEqual(self.store.get("g1").opponent, "Foxes")
        self.assertEqual(self.store.list_ids(), ["g1"])

    def test_missing_and_delete(self) -> None:
        with self.assertRaises(GameNotFound):
            self.store.get("nope")
        self.store.put(_game())
        self.store.delete("g1")
        self.store.delete("g1")
        self.assertEqual(self.store.list_ids(), [])


class JsonFileStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.directory = os.path.join(self._tmp.name, "nested", "games")
        self.store = JsonFileGameStore(self.directory)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_put_creates_directory_and_file(self) -> None:
        self.store.put(_game())
        path = os.path.join(self.directory, "g1.json")
        self.assertTrue(os.path.exists(path))
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(data["activePlayers"], ["p1"])
        self.assertEqual([n for n in os.listdir(self.directory) if n.endswith(".tmp")], [])

    def test_round_trip_and_listing(self) -> None:
        game = _game("a")
        self.store.put(_game("b"))
        self.store.put(game)
        self.assertEqual(self.store.get("a"), game)
        self.assertEqual(self.store.list_ids(), ["a", "b"])

        self.store.delete("a")
        self.assertEqual(self.store.list_ids(), ["b"])

    def test_missing_game(self) -> None:
        self.assertEqual(self.store.list_ids(), [])
        with self.assertRaises(GameNotFound):
            self.store.get("g1")

    def test_corrupt_file(self) -> None:
        os.makedirs(self.directory)
        with open(os.path.join(self.directory, "bad.json"), "w", encoding="utf-8") as f:
            f.write("{not json")
        with self.assertRaises(StoreError) as ctx:
            self.store.get("bad")
        self.assertTrue(ctx.exception.retryable)


if __name__ == "__main__":
    unittest.main()
