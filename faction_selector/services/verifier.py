"""Reveal verification.

Recomputes every commitment from a reveal payload. Needs nothing from the
server beyond the payload itself, so any client can run it.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from faction_selector.utils.commit_reveal import (
    assignment_subject,
    selection_subject,
    verify_commitment,
)

logger = logging.getLogger(__name__)


@dataclass
class PlayerVerification:
    """Verification outcome for one player."""
    name: str
    assignment_valid: bool = False
    selection_valid: bool = False
    selection_in_hand: bool = False
    problems: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return self.assignment_valid and self.selection_valid and self.selection_in_hand

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "valid": self.valid,
            "assignmentValid": self.assignment_valid,
            "selectionValid": self.selection_valid,
            "selectionInHand": self.selection_in_hand,
            "problems": self.problems,
        }


@dataclass
class RevealReport:
    players: List[PlayerVerification]

    @property
    def all_valid(self) -> bool:
        return bool(self.players) and all(p.valid for p in self.players)

    @property
    def failed_players(self) -> List[str]:
        return [p.name for p in self.players if not p.valid]

    def to_dict(self) -> dict:
        return {
            "allValid": self.all_valid,
            "failedPlayers": self.failed_players,
            "players": [p.to_dict() for p in self.players],
        }


def verify_player(entry: dict) -> PlayerVerification:
    """Check one player's revealed hand, selection and commitments."""
    if not isinstance(entry, dict):
        result = PlayerVerification(name="?", problems=["malformed reveal entry: not an object"])
        logger.warning("Verification failed for ?: %s", result.problems[0])
        return result

    result = PlayerVerification(name=str(entry.get("name", "?")))
    try:
        factions = entry["factions"]
        selected = entry["selectedFaction"]

        result.assignment_valid = verify_commitment(
            entry["assignmentCommitment"],
            assignment_subject(result.name, [f["name"] for f in factions]),
            entry["assignmentSalt"],
        )
        if not result.assignment_valid:
            result.problems.append("assignment commitment does not match revealed hand")

        result.selection_valid = verify_commitment(
            entry["selectionCommitment"],
            selection_subject(result.name, selected["name"]),
            entry["selectionSalt"],
        )
        if not result.selection_valid:
            result.problems.append("selection commitment does not match revealed choice")

        result.selection_in_hand = any(f["id"] == selected["id"] for f in factions)
        if not result.selection_in_hand:
            result.problems.append("selected faction was not in the dealt hand")
    except (KeyError, TypeError) as e:
        result.problems.append(f"malformed reveal entry: missing or bad field {e}")

    if result.problems:
        logger.warning("Verification failed for %s: %s", result.name, "; ".join(result.problems))
    return result


def verify_reveal(reveal: dict) -> RevealReport:
    """Verify every player in a reveal payload, reporting per player.

    A payload without a player list gives an empty report, which never counts
    as valid.
    """
    players = reveal.get("players") if isinstance(reveal, dict) else None
    if not isinstance(players, list):
        logger.warning("Reveal payload has no player list")
        return RevealReport(players=[])
    return RevealReport(players=[verify_player(p) for p in players])
