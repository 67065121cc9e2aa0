"""Faction assignment engine.

Deals every player a disjoint hand from a shuffled catalog and commits to
each hand before anyone can look at it.
"""

import logging
import random
from typing import List, Optional, Sequence

from faction_selector.constants import (
    FACTIONS_PER_PLAYER_CHOICES,
    MAX_PLAYERS,
    MIN_PLAYERS,
)
from faction_selector.errors import CapacityError, ValidationError
from faction_selector.models.game import Assignment, Player
from faction_selector.services.catalog import FactionCatalog
from faction_selector.utils.commit_reveal import commit_assignment, generate_salt

logger = logging.getLogger(__name__)

# OS entropy; every permutation equally likely with Fisher-Yates below.
_system_random = random.SystemRandom()


def validate_player_names(player_names: Sequence[str]) -> List[str]:
    """Check player count and uniqueness; returns the stripped names.

    Raises:
        ValidationError: On a bad count, an empty name, or a duplicate
    """
    if not isinstance(player_names, (list, tuple)):
        raise ValidationError("playerNames must be a list", code="invalid_player_names")

    names = [str(n).strip() for n in player_names]
    if len(names) < MIN_PLAYERS:
        raise ValidationError(f"Need at least {MIN_PLAYERS} players", code="too_few_players")
    if len(names) > MAX_PLAYERS:
        raise ValidationError(f"Maximum {MAX_PLAYERS} players supported", code="too_many_players")
    if any(not n for n in names):
        raise ValidationError("Player names cannot be empty", code="empty_player_name")
    if len(set(names)) != len(names):
        raise ValidationError("Player names must be unique", code="duplicate_player_names")
    return names


def validate_factions_per_player(factions_per_player) -> int:
    # bool is an int subclass; reject it explicitly.
    if isinstance(factions_per_player, bool) or factions_per_player not in FACTIONS_PER_PLAYER_CHOICES:
        choices = " or ".join(str(c) for c in FACTIONS_PER_PLAYER_CHOICES)
        raise ValidationError(
            f"Factions per player must be {choices}", code="invalid_factions_per_player"
        )
    return int(factions_per_player)


def check_capacity(player_count: int, factions_per_player: int, catalog: FactionCatalog):
    needed = player_count * factions_per_player
    if needed > len(catalog):
        raise CapacityError(f"Not enough factions (need {needed}, have {len(catalog)})")


def shuffle_factions(factions: Sequence, rng: Optional[random.Random] = None) -> list:
    """Fisher-Yates shuffle of a copy."""
    rng = rng or _system_random
    shuffled = list(factions)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def assign_factions(
    player_names: Sequence[str],
    factions_per_player: int,
    catalog: FactionCatalog,
    rng: Optional[random.Random] = None,
) -> List[Player]:
    """Deal each player a contiguous chunk of a shuffled catalog.

    Player i receives shuffled[i*k:(i+1)*k]. Leftover factions go unused.
    Each hand is committed to immediately with its own salt.

    Args:
        player_names: Ordered, unique player names
        factions_per_player: Hand size, 3 or 4
        catalog: The faction catalog
        rng: Optional random source, for deterministic tests

    Returns:
        Players in the same order as player_names

    Raises:
        ValidationError: Bad names or hand size
        CapacityError: Catalog too small; raised before any shuffling
    """
    names = validate_player_names(player_names)
    k = validate_factions_per_player(factions_per_player)
    check_capacity(len(names), k, catalog)

    shuffled = shuffle_factions(catalog.factions, rng)

    players = []
    for i, name in enumerate(names):
        hand = tuple(shuffled[i * k:(i + 1) * k])
        salt = generate_salt()
        assignment = Assignment(
            factions=hand,
            salt=salt,
            commitment=commit_assignment(name, [f.name for f in hand], salt),
        )
        players.append(Player(name=name, assignment=assignment))

    logger.debug("Dealt %d hands of %d from %d factions", len(players), k, len(catalog))
    return players
