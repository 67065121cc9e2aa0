"""Game lifecycle service for the faction selector.

This module handles:
- Game creation (id allocation, limit policy, the one-time deal)
- Public, private and reveal projections
- Creator deletion

Phase changes happen in the selection processor through
``Game.refresh_phase``; nothing here can add players, change the hand size
or reopen a revealed game.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from faction_selector.config import Settings, settings as default_settings
from faction_selector.constants import (
    GAME_ID_PATTERN,
    GENERATED_GAME_ID_BYTES,
    MAX_GAME_ID_LENGTH,
)
from faction_selector.errors import AuthError, GameIdTakenError, NotFoundError, ValidationError
from faction_selector.models.game import Game
from faction_selector.services.assignment_service import (
    assign_factions,
    check_capacity,
    validate_factions_per_player,
    validate_player_names,
)
from faction_selector.services.catalog import FactionCatalog
from faction_selector.services.credential_service import validate_token
from faction_selector.services.game_limits import enforce_game_limit
from faction_selector.services.game_store import GameLocks, GameStore

logger = logging.getLogger(__name__)

# Attempts at finding an unused random id before giving up
MAX_ID_ATTEMPTS = 10


def validate_game_id(game_id: str) -> str:
    game_id = game_id.strip()
    if len(game_id) > MAX_GAME_ID_LENGTH or not GAME_ID_PATTERN.match(game_id):
        raise ValidationError(
            "Game ID can only contain letters, numbers, hyphens, and underscores",
            code="invalid_game_id",
        )
    return game_id


async def _allocate_game_id(store: GameStore, custom_game_id: Optional[str]) -> str:
    if custom_game_id:
        game_id = validate_game_id(custom_game_id)
        if await store.exists(game_id):
            raise GameIdTakenError(
                f'Game ID "{game_id}" is already in use. Please choose a different ID.'
            )
        return game_id

    for _ in range(MAX_ID_ATTEMPTS):
        game_id = secrets.token_hex(GENERATED_GAME_ID_BYTES)
        if not await store.exists(game_id):
            return game_id
    raise GameIdTakenError("Could not allocate a game ID, please try again")


async def create_game(
    store: GameStore,
    catalog: FactionCatalog,
    player_names: Sequence[str],
    factions_per_player: int,
    custom_game_id: Optional[str] = None,
    creator_fingerprint: Optional[str] = None,
    config: Optional[Settings] = None,
) -> Game:
    """Create a game and deal every hand.

    All input checks run before anything is written, so a failed create
    leaves the store untouched.

    Raises:
        ValidationError: Bad player list, hand size or custom id
        CapacityError: Catalog too small for the deal
        GameIdTakenError: Custom id in use or previously deleted
        GameLimitError: Creator already holds too many games
    """
    config = config or default_settings

    names = validate_player_names(player_names)
    k = validate_factions_per_player(factions_per_player)
    check_capacity(len(names), k, catalog)

    game_id = await _allocate_game_id(store, custom_game_id)
    await enforce_game_limit(store, creator_fingerprint, config)

    game = Game(
        game_id=game_id,
        players=assign_factions(names, k, catalog),
        factions_per_player=k,
        created_at=datetime.now(timezone.utc).isoformat(),
        creator_fingerprint=creator_fingerprint,
    )
    stored = await store.put(game, expected_version=None)

    logger.info("Created game %s with %d players, %d factions each", game_id, len(names), k)
    return stored


async def public_status(store: GameStore, game_id: str) -> dict:
    game = await store.load(game_id)
    return game.public_status()


async def player_options(
    store: GameStore,
    game_id: str,
    player_name: str,
    token: Optional[str],
    config: Optional[Settings] = None,
) -> dict:
    """A player's own hand. Requires that player's token."""
    validate_token(token, game_id, player_name, config)
    game = await store.load(game_id)
    return game.private_view(player_name)


async def reveal(store: GameStore, game_id: str) -> dict:
    """Everything, once every player has selected.

    Raises:
        RevealNotReadyError: Some player has not selected yet
    """
    game = await store.load(game_id)
    return game.reveal_view()


async def delete_game(
    store: GameStore,
    locks: GameLocks,
    game_id: str,
    requester_fingerprint: Optional[str],
):
    """Delete a game on behalf of its creator.

    Raises:
        NotFoundError: Unknown game
        AuthError: Requester is not the creator (reason not_creator)
    """
    async with locks.for_game(game_id):
        game = await store.load(game_id)
        if not requester_fingerprint or game.creator_fingerprint != requester_fingerprint:
            logger.info("Refused delete of game %s by non-creator", game_id)
            raise AuthError("Only the game creator can delete this game", reason="not_creator")

        if not await store.delete(game_id):
            raise NotFoundError("Game not found", code="game_not_found")
    logger.info("Deleted game %s (revealed=%s)", game_id, game.revealed)


async def list_creator_games(store: GameStore, fingerprint: str) -> List[dict]:
    return await store.list_by_creator(fingerprint)
