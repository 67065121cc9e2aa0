"""Selection processor.

A player picks one faction from their own hand, exactly once. The pick is
committed to with a fresh salt and stored together with the commitment as
a single record.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from faction_selector.config import Settings
from faction_selector.errors import AlreadySelectedError, InvalidFactionError, StaleWriteError
from faction_selector.models.game import Selection
from faction_selector.services.credential_service import MAX_WRITE_ATTEMPTS, validate_token
from faction_selector.services.game_store import GameLocks, GameStore
from faction_selector.utils.commit_reveal import commit_selection, generate_salt

logger = logging.getLogger(__name__)


@dataclass
class SelectionResult:
    selection_commitment: str
    all_selected: bool
    revealed: bool


async def select_faction(
    store: GameStore,
    locks: GameLocks,
    game_id: str,
    player_name: str,
    faction_id: Optional[str],
    token: Optional[str],
    config: Optional[Settings] = None,
) -> SelectionResult:
    """Record a player's single faction choice.

    Args:
        store: Game store
        locks: Per-game lock registry
        game_id: Game id
        player_name: Selecting player
        faction_id: Id of a faction from the player's own hand
        token: Bearer token issued by the credential gate

    Returns:
        The selection commitment and the game's aggregate flags

    Raises:
        AuthError: Token missing, expired, invalid or for someone else
        NotFoundError: Unknown game or player
        AlreadySelectedError: The player already chose
        InvalidFactionError: faction_id is not in the player's hand
    """
    validate_token(token, game_id, player_name, config)

    async with locks.for_game(game_id):
        for _ in range(MAX_WRITE_ATTEMPTS):
            game = await store.load(game_id)
            player = game.find_player(player_name)

            if player.selection_state == "selected":
                raise AlreadySelectedError("Already selected a faction")

            faction = player.assignment.find(faction_id) if faction_id else None
            if faction is None:
                raise InvalidFactionError("Invalid faction selection")

            salt = generate_salt()
            player.record_selection(Selection(
                faction=faction,
                salt=salt,
                commitment=commit_selection(player_name, faction.name, salt),
            ))
            just_revealed = game.refresh_phase()

            try:
                stored = await store.put(game, expected_version=game.version)
            except StaleWriteError:
                logger.info("Stale write selecting for %s/%s; reloading", game_id, player_name)
                continue

            logger.info("Player %s selected in game %s", player_name, game_id)
            if just_revealed:
                logger.info("All players selected; game %s revealed", game_id)
            return SelectionResult(
                selection_commitment=player.selection.commitment,
                all_selected=stored.all_selected,
                revealed=stored.revealed,
            )

    raise StaleWriteError(f"Game {game_id} kept changing, please retry")
