"""
Player and Team models for the Courtside game tracker.

Players are immutable identities owned by a Team and referenced (never owned)
by games, periods and events.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Player:
    """
    A rostered player.

    Attributes:
        id: Unique identifier
        name: Player's display name
        number: Jersey number as entered (kept as text, e.g. "00")
    """
    id: str
    name: str
    number: str = ""

    @property
    def label(self) -> str:
        """Name with jersey number, e.g. ``Ada (#7)``."""
        return f"{self.name} (#{self.number})" if self.number else self.name

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "number": self.number}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            number=str(data.get("number", "") or ""),
        )


@dataclass
class Team:
    """A team and its full roster."""
    id: str
    name: str
    players: List[Player] = field(default_factory=list)

    def find_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "players": [p.to_dict() for p in self.players],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Team":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            players=[Player.from_dict(p) for p in data.get("players", []) or []],
        )
