"""Pydantic response models for the faction selector API."""

from typing import List

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    env: str
    version: str
    factions: int


class PlayerLink(BaseModel):
    name: str
    url: str


class CreateGameResponse(BaseModel):
    """Response after creating a game."""
    gameId: str
    playerLinks: List[PlayerLink]


class AuthResponse(BaseModel):
    """Response after setting or checking a password."""
    success: bool
    message: str
    action: str  # password_set | authenticated
    token: str


class SelectResponse(BaseModel):
    """Response after selecting a faction."""
    success: bool
    selectionCommitment: str
    allSelected: bool
    revealed: bool


class DeleteGameResponse(BaseModel):
    ok: bool
    gameId: str
