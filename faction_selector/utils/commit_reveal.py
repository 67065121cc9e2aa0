"""Cryptographic commit-reveal mechanism for fair faction deals."""

import hashlib
import secrets
from typing import Iterable


def generate_salt() -> str:
    """Return a fresh 256-bit random salt as hex."""
    return secrets.token_hex(32)


def create_commitment(subject: str, salt: str) -> str:
    """
    Create a cryptographic commitment to a subject string.

    Args:
        subject: The value being committed to
        salt: Random salt, revealed later together with the subject

    Returns:
        Lowercase hex SHA256 of subject followed by salt
    """
    return hashlib.sha256(f"{subject}{salt}".encode("utf-8")).hexdigest()


def verify_commitment(commitment: str, subject: str, salt: str) -> bool:
    """Recompute a commitment from revealed data and compare."""
    return create_commitment(subject, salt) == commitment


def assignment_subject(player_name: str, faction_names: Iterable[str]) -> str:
    # Sorted so the commitment does not depend on deal order.
    return f"{player_name}:{','.join(sorted(faction_names))}"


def selection_subject(player_name: str, faction_name: str) -> str:
    return f"{player_name}:{faction_name}"


def commit_assignment(player_name: str, faction_names: Iterable[str], salt: str) -> str:
    """
    Create the commitment for a player's dealt hand.

    Args:
        player_name: Name of the player the hand was dealt to
        faction_names: Names of the dealt factions, in any order
        salt: Random salt for this commitment

    Returns:
        SHA256 hex digest of "name:sorted,names" + salt
    """
    return create_commitment(assignment_subject(player_name, faction_names), salt)


def commit_selection(player_name: str, faction_name: str, salt: str) -> str:
    """Create the commitment for a player's chosen faction."""
    return create_commitment(selection_subject(player_name, faction_name), salt)
