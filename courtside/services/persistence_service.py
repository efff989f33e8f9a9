"""
Persistence service for the Courtside game tracker.

A game store is a key-value store of whole games: ``get`` by id and ``put``
overwrites the entire object. The engine never depends on a particular store.
"""
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Dict, List

from ..models import Game
from .exceptions import GameNotFound, StoreError

logger = logging.getLogger(__name__)


class GameStore(ABC):
    """Contract for anything that can hold games between sessions."""

    @abstractmethod
    def get(self, game_id: str) -> Game:
        """
        Load a game.

        Raises:
            GameNotFound: If no game has this id
        """

    @abstractmethod
    def put(self, game: Game) -> None:
        """Insert or overwrite a whole game."""

    @abstractmethod
    def delete(self, game_id: str) -> None:
        """Remove a game; missing ids are ignored."""

    @abstractmethod
    def list_ids(self) -> List[str]:
        """Ids of every stored game."""


class InMemoryGameStore(GameStore):
    """
    Store that keeps JSON snapshots in a dict.

    Snapshots are serialized on the way in and rebuilt on the way out, so a
    caller never shares mutable objects with the store.
    """

    def __init__(self) -> None:
        self._games: Dict[str, dict] = {}

    def get(self, game_id: str) -> Game:
        data = self._games.get(game_id)
        if data is None:
            raise GameNotFound(f"Game {game_id} not found")
        return Game.from_json(json.loads(json.dumps(data)))

    def put(self, game: Game) -> None:
        self._games[game.id] = json.loads(json.dumps(game.to_json()))

    def delete(self, game_id: str) -> None:
        self._games.pop(game_id, None)

    def list_ids(self) -> List[str]:
        return list(self._games)


class JsonFileGameStore(GameStore):
    """
    Store that writes one ``<id>.json`` file per game.

    Writes go through a temporary file in the same directory and are moved
    into place, so a crash mid-write never leaves a truncated game behind.
    """

    def __init__(self, directory: str) -> None:
        self.directory = directory

    def _path(self, game_id: str) -> str:
        return os.path.join(self.directory, f"{game_id}.json")

    def get(self, game_id: str) -> Game:
        path = self._path(game_id)
        if not os.path.exists(path):
            raise GameNotFound(f"Game {game_id} not found")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Could not read game {game_id}: {e}") from e
        return Game.from_json(data)

    def put(self, game: Game) -> None:
        try:
            if not os.path.exists(self.directory):
                os.makedirs(self.directory)
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(game.to_json(), f, indent=2)
            os.replace(tmp_path, self._path(game.id))
        except OSError as e:
            raise StoreError(f"Could not save game {game.id}: {e}") from e
        logger.debug("Saved game %s to %s", game.id, self.directory)

    def delete(self, game_id: str) -> None:
        path = self._path(game_id)
        if os.path.exists(path):
            os.remove(path)

    def list_ids(self) -> List[str]:
        if not os.path.exists(self.directory):
            return []
        return sorted(
            name[: -len(".json")]
            for name in os.listdir(self.directory)
            if name.endswith(".json")
        )
