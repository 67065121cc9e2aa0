"""FastAPI dependencies shared by the routers."""

from typing import Optional

from fastapi import Header, Request

from faction_selector.config import Settings
from faction_selector.errors import AuthError
from faction_selector.services.catalog import FactionCatalog
from faction_selector.services.game_limits import client_fingerprint
from faction_selector.services.game_store import GameLocks, GameStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> GameStore:
    return request.app.state.store


def get_locks(request: Request) -> GameLocks:
    return request.app.state.locks


def get_catalog(request: Request) -> FactionCatalog:
    return request.app.state.catalog


def get_fingerprint(request: Request) -> str:
    return client_fingerprint(request, request.app.state.settings)


def bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Extract the token from "Bearer <token>".

    A missing header yields None so the credential gate can report
    token_missing; a malformed one is rejected here.
    """
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthError("Invalid authorization header format", reason="token_invalid")
    return parts[1]
