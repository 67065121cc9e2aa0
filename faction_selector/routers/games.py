"""Game router for the faction selector.

Creation, public status, reveal and creator deletion.
"""

from urllib.parse import quote

from fastapi import APIRouter, Depends

from faction_selector.config import Settings
from faction_selector.dependencies import (
    get_catalog,
    get_fingerprint,
    get_locks,
    get_settings,
    get_store,
)
from faction_selector.models.requests import CreateGameRequest
from faction_selector.models.responses import CreateGameResponse, DeleteGameResponse
from faction_selector.services import game_service
from faction_selector.services.catalog import FactionCatalog
from faction_selector.services.game_store import GameLocks, GameStore
from faction_selector.services.verifier import verify_reveal

router = APIRouter(prefix="/api", tags=["games"])


def _player_link(game_id: str, player_name: str) -> str:
    # Encode every reserved character, "/" included.
    return f"/player.html?game={game_id}&player={quote(player_name, safe='')}"


@router.get("/factions")
async def list_factions(catalog: FactionCatalog = Depends(get_catalog)):
    """The full faction catalog."""
    return {"factions": catalog.to_list()}


@router.post("/game/create", response_model=CreateGameResponse)
async def create_game(
    request: CreateGameRequest,
    store: GameStore = Depends(get_store),
    catalog: FactionCatalog = Depends(get_catalog),
    config: Settings = Depends(get_settings),
    fingerprint: str = Depends(get_fingerprint),
):
    """Create a game and deal every player a hand.

    Returns the game id and a link per player.
    """
    game = await game_service.create_game(
        store,
        catalog,
        request.playerNames,
        request.factionsPerPlayer,
        custom_game_id=request.customGameId,
        creator_fingerprint=fingerprint,
        config=config,
    )
    return CreateGameResponse(
        gameId=game.game_id,
        playerLinks=[
            {"name": p.name, "url": _player_link(game.game_id, p.name)}
            for p in game.players
        ],
    )


@router.get("/games/mine")
async def my_games(
    store: GameStore = Depends(get_store),
    fingerprint: str = Depends(get_fingerprint),
):
    """Games created from the caller's address."""
    return {"games": await game_service.list_creator_games(store, fingerprint)}


@router.get("/game/{game_id}/status")
async def game_status(game_id: str, store: GameStore = Depends(get_store)):
    """Public status: names, flags and commitments, never hands or salts."""
    return await game_service.public_status(store, game_id)


@router.delete("/game/{game_id}", response_model=DeleteGameResponse)
async def delete_game(
    game_id: str,
    store: GameStore = Depends(get_store),
    locks: GameLocks = Depends(get_locks),
    fingerprint: str = Depends(get_fingerprint),
):
    """Delete a game. Only its creator may do this."""
    await game_service.delete_game(store, locks, game_id, fingerprint)
    return DeleteGameResponse(ok=True, gameId=game_id)


@router.get("/game/{game_id}/reveal")
async def game_reveal(game_id: str, store: GameStore = Depends(get_store)):
    """Every hand, salt and commitment, once all players have selected."""
    return await game_service.reveal(store, game_id)


@router.get("/game/{game_id}/verify")
async def game_verify(game_id: str, store: GameStore = Depends(get_store)):
    """Run the reveal verifier server-side.

    Clients should still verify the reveal themselves; this is a convenience.
    """
    reveal = await game_service.reveal(store, game_id)
    return verify_reveal(reveal).to_dict()
