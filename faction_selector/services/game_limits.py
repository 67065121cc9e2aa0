"""Per-creator game limit.

A best-effort anti-abuse rule: each creator fingerprint (normally the
client address) may hold a limited number of games at once. Fingerprints
are spoofable, so this is not a security boundary.
"""

import logging
from typing import Optional

from fastapi import Request

from faction_selector.config import Settings
from faction_selector.errors import GameLimitError
from faction_selector.services.game_store import GameStore

logger = logging.getLogger(__name__)


def client_fingerprint(request: Request, config: Settings) -> str:
    """Identify the caller for the game-limit policy."""
    if config.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def enforce_game_limit(store: GameStore, fingerprint: Optional[str], config: Settings):
    """Refuse creation when the creator already has too many games.

    Raises:
        GameLimitError: Carries the creator's existing games so the client
            can offer to delete one
    """
    limit = config.max_games_per_creator
    if not fingerprint or limit <= 0:
        return

    games = await store.list_by_creator(fingerprint)
    if len(games) >= limit:
        logger.info("Creator %s hit the game limit (%d)", fingerprint, limit)
        raise GameLimitError(
            f"You have reached the maximum of {limit} games. Delete one to create another.",
            games=games,
        )
