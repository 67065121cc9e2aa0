"""Game state models for the faction selector.

A ``Game`` is the unit of storage and mutation. Each ``Player`` carries two
write-once sub-records: the ``Assignment`` dealt at creation and the
``Selection`` made later. Both are frozen so they can only be replaced
wholesale, and ``Player`` refuses to replace them once set.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from faction_selector.constants import Phase, SelectionState
from faction_selector.errors import (
    AlreadySelectedError,
    ConflictError,
    NotFoundError,
    RevealNotReadyError,
)


@dataclass(frozen=True)
class Faction:
    """A catalog entry."""
    id: str
    name: str
    expansion: str = "base"

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "expansion": self.expansion}

    @classmethod
    def from_dict(cls, data: dict) -> "Faction":
        return cls(id=data["id"], name=data["name"], expansion=data.get("expansion", "base"))


@dataclass(frozen=True)
class Assignment:
    """A dealt hand plus its commitment, fixed at game creation."""
    factions: Tuple[Faction, ...]
    salt: str
    commitment: str

    @property
    def faction_names(self) -> List[str]:
        return [f.name for f in self.factions]

    def find(self, faction_id: str) -> Optional[Faction]:
        for faction in self.factions:
            if faction.id == faction_id:
                return faction
        return None


@dataclass(frozen=True)
class Selection:
    """A chosen faction plus its commitment, fixed at selection time."""
    faction: Faction
    salt: str
    commitment: str


@dataclass
class Player:
    """A player within one game."""
    name: str
    assignment: Assignment
    password_hash: Optional[str] = None
    selection: Optional[Selection] = None

    @property
    def has_set_password(self) -> bool:
        return self.password_hash is not None

    @property
    def has_selected(self) -> bool:
        return self.selection is not None

    @property
    def selection_state(self) -> SelectionState:
        return "selected" if self.selection is not None else "unselected"

    def set_password_hash(self, password_hash: str):
        """Store the credential hash; only the first one ever sticks."""
        if self.password_hash is not None:
            raise ConflictError(f"Player {self.name} already has a password")
        self.password_hash = password_hash

    def record_selection(self, selection: Selection):
        """Attach the selection record; a second call is rejected."""
        if self.selection is not None:
            raise AlreadySelectedError("Already selected a faction")
        self.selection = selection

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "passwordHash": self.password_hash,
            "hasSetPassword": self.has_set_password,
            "factions": [f.to_dict() for f in self.assignment.factions],
            "assignmentSalt": self.assignment.salt,
            "assignmentCommitment": self.assignment.commitment,
            "selectedFaction": self.selection.faction.to_dict() if self.selection else None,
            "selectionSalt": self.selection.salt if self.selection else None,
            "selectionCommitment": self.selection.commitment if self.selection else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Player":
        assignment = Assignment(
            factions=tuple(Faction.from_dict(f) for f in data["factions"]),
            salt=data["assignmentSalt"],
            commitment=data["assignmentCommitment"],
        )
        selection = None
        if data.get("selectedFaction") is not None:
            selection = Selection(
                faction=Faction.from_dict(data["selectedFaction"]),
                salt=data["selectionSalt"],
                commitment=data["selectionCommitment"],
            )
        return cls(
            name=data["name"],
            assignment=assignment,
            password_hash=data.get("passwordHash"),
            selection=selection,
        )


@dataclass
class Game:
    """Root aggregate: one dealt game and its players."""
    game_id: str
    players: List[Player]
    factions_per_player: int
    created_at: str
    creator_fingerprint: Optional[str] = None
    revealed: bool = False
    version: int = 0

    @property
    def all_selected(self) -> bool:
        return all(p.has_selected for p in self.players)

    @property
    def phase(self) -> Phase:
        return "revealed" if self.revealed else "forming"

    def find_player(self, name: str) -> Player:
        """Look up a player by exact (case-sensitive) name."""
        for player in self.players:
            if player.name == name:
                return player
        raise NotFoundError("Player not found", code="player_not_found")

    def refresh_phase(self) -> bool:
        """Recompute the phase after a selection.

        Returns True when this call is the one that revealed the game.
        """
        if self.revealed:
            return False
        if self.all_selected:
            self.revealed = True
            return True
        return False

    # --- Projections -------------------------------------------------------

    def public_status(self) -> dict:
        """What anyone may see at any time: names, flags and commitments."""
        return {
            "gameId": self.game_id,
            "factionsPerPlayer": self.factions_per_player,
            "createdAt": self.created_at,
            "players": [
                {
                    "name": p.name,
                    "hasSetPassword": p.has_set_password,
                    "assignmentCommitment": p.assignment.commitment,
                    "hasSelected": p.has_selected,
                    "selectionCommitment": p.selection.commitment if p.selection else None,
                }
                for p in self.players
            ],
            "allSelected": self.all_selected,
            "revealed": self.revealed,
        }

    def private_view(self, player_name: str) -> dict:
        """One player's own hand; callers must have checked the token."""
        player = self.find_player(player_name)
        return {
            "name": player.name,
            "factions": [f.to_dict() for f in player.assignment.factions],
            "assignmentCommitment": player.assignment.commitment,
            "hasSelected": player.has_selected,
            "selectedFaction": player.selection.faction.to_dict() if player.selection else None,
            "selectionCommitment": player.selection.commitment if player.selection else None,
            "allSelected": self.all_selected,
            "revealed": self.revealed,
        }

    def reveal_view(self) -> dict:
        """Every hand, salt and commitment. Only available once revealed."""
        if not self.revealed:
            raise RevealNotReadyError("Not all players have selected yet")
        return {
            "gameId": self.game_id,
            "players": [
                {
                    "name": p.name,
                    "factions": [f.to_dict() for f in p.assignment.factions],
                    "assignmentSalt": p.assignment.salt,
                    "assignmentCommitment": p.assignment.commitment,
                    "selectedFaction": p.selection.faction.to_dict(),
                    "selectionSalt": p.selection.salt,
                    "selectionCommitment": p.selection.commitment,
                }
                for p in self.players
            ],
        }

    def summary(self) -> dict:
        return {
            "gameId": self.game_id,
            "createdAt": self.created_at,
            "playerCount": len(self.players),
            "revealed": self.revealed,
        }

    # --- Storage -----------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "gameId": self.game_id,
            "players": [p.to_dict() for p in self.players],
            "factionsPerPlayer": self.factions_per_player,
            "allSelected": self.all_selected,
            "revealed": self.revealed,
            "createdAt": self.created_at,
            "creatorFingerprint": self.creator_fingerprint,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Game":
        return cls(
            game_id=data["gameId"],
            players=[Player.from_dict(p) for p in data["players"]],
            factions_per_player=data["factionsPerPlayer"],
            created_at=data["createdAt"],
            creator_fingerprint=data.get("creatorFingerprint"),
            revealed=data.get("revealed", False),
            version=data.get("version", 0),
        )
