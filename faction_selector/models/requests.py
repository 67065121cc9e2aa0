"""Pydantic request models for the faction selector API."""

from typing import List, Optional

from pydantic import BaseModel


class CreateGameRequest(BaseModel):
    """Request to create a game and deal factions."""
    playerNames: List[str]
    factionsPerPlayer: int
    customGameId: Optional[str] = None


class AuthRequest(BaseModel):
    """Set a password (first visit) or log in (later visits)."""
    password: Optional[str] = None


class SelectRequest(BaseModel):
    """Pick one faction from the player's hand."""
    factionId: Optional[str] = None
