"""Player router for the faction selector.

Password gate, private hand view and the one-time selection.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from faction_selector.config import Settings
from faction_selector.dependencies import bearer_token, get_locks, get_settings, get_store
from faction_selector.models.requests import AuthRequest, SelectRequest
from faction_selector.models.responses import AuthResponse, SelectResponse
from faction_selector.services import game_service
from faction_selector.services.credential_service import authenticate
from faction_selector.services.game_store import GameLocks, GameStore
from faction_selector.services.selection_service import select_faction

# Names may contain "/", so the segment is matched as a path.
router = APIRouter(prefix="/api/game/{game_id}/player/{player_name:path}", tags=["players"])


@router.post("/auth", response_model=AuthResponse)
async def player_auth(
    game_id: str,
    player_name: str,
    request: AuthRequest,
    store: GameStore = Depends(get_store),
    locks: GameLocks = Depends(get_locks),
    config: Settings = Depends(get_settings),
):
    """Set password (first visit) or authenticate (subsequent visits)."""
    result = await authenticate(store, locks, game_id, player_name, request.password, config)
    return AuthResponse(success=True, message=result.message, action=result.action, token=result.token)


@router.get("/options")
async def player_options(
    game_id: str,
    player_name: str,
    token: Optional[str] = Depends(bearer_token),
    store: GameStore = Depends(get_store),
    config: Settings = Depends(get_settings),
):
    """The player's own hand. Requires the player's token."""
    return await game_service.player_options(store, game_id, player_name, token, config)


@router.post("/select", response_model=SelectResponse)
async def player_select(
    game_id: str,
    player_name: str,
    request: SelectRequest,
    token: Optional[str] = Depends(bearer_token),
    store: GameStore = Depends(get_store),
    locks: GameLocks = Depends(get_locks),
    config: Settings = Depends(get_settings),
):
    """Submit the player's faction choice. Requires the player's token."""
    result = await select_faction(store, locks, game_id, player_name, request.factionId, token, config)
    return SelectResponse(
        success=True,
        selectionCommitment=result.selection_commitment,
        allSelected=result.all_selected,
        revealed=result.revealed,
    )
