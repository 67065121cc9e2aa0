"""Player credential gate.

First visit sets a password, later visits check it. Either way the player
gets a JWT bound to one (game, player) pair.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from faction_selector.config import Settings, settings as default_settings
from faction_selector.constants import MAX_PASSWORD_BYTES, MIN_PASSWORD_LENGTH, AuthAction
from faction_selector.errors import (
    AuthError,
    PasswordTooLongError,
    PasswordTooShortError,
    StaleWriteError,
)
from faction_selector.services.game_store import GameLocks, GameStore

logger = logging.getLogger(__name__)

# Compare-and-set retries before giving up on a hot game record
MAX_WRITE_ATTEMPTS = 5


@dataclass
class AuthResult:
    token: str
    action: AuthAction

    @property
    def message(self) -> str:
        if self.action == "password_set":
            return "Password set successfully"
        return "Authenticated successfully"


def _password_bytes(password: str) -> bytes:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise PasswordTooLongError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return encoded


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with bcrypt (salt per hash).

    Args:
        password: Plain text password
        rounds: bcrypt cost factor, defaults to settings.bcrypt_rounds

    Returns:
        Bcrypt password hash

    Raises:
        PasswordTooLongError: Password over 72 bytes once UTF-8 encoded
    """
    rounds = rounds or default_settings.bcrypt_rounds
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    # bcrypt.checkpw requires bytes
    return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))


def issue_token(game_id: str, player_name: str, config: Optional[Settings] = None) -> str:
    """Create a JWT scoped to one player in one game.

    Args:
        game_id: The game the token is valid for
        player_name: The player the token is valid for
        config: Settings to take the secret and lifetime from

    Returns:
        JWT token string
    """
    config = config or default_settings
    now = datetime.now(timezone.utc)
    payload = {
        "gameId": game_id,
        "playerName": player_name,
        "iat": now,
        "exp": now + timedelta(hours=config.token_expiry_hours),
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def validate_token(
    token: Optional[str],
    game_id: str,
    player_name: str,
    config: Optional[Settings] = None,
) -> dict:
    """Verify a player token against the resource being accessed.

    Returns:
        Decoded token payload

    Raises:
        AuthError: reason is token_missing, token_expired, token_invalid or
            token_scope_mismatch
    """
    config = config or default_settings
    if not token:
        raise AuthError("No token provided", reason="token_missing")

    try:
        payload = jwt.decode(
            token,
            config.jwt_secret,
            algorithms=[config.jwt_algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token for %s/%s", game_id, player_name)
        raise AuthError("Token expired, please log in again", reason="token_expired")
    except jwt.InvalidTokenError as e:
        logger.info("Rejected invalid token for %s/%s: %s", game_id, player_name, e)
        raise AuthError("Invalid token", reason="token_invalid")

    if payload.get("gameId") != game_id or payload.get("playerName") != player_name:
        logger.info("Rejected token scoped to another resource for %s/%s", game_id, player_name)
        raise AuthError("Token does not match requested resource", reason="token_scope_mismatch")

    return payload


def check_token(
    token: Optional[str],
    game_id: str,
    player_name: str,
    config: Optional[Settings] = None,
) -> bool:
    """Fail-closed boolean form of validate_token."""
    try:
        validate_token(token, game_id, player_name, config)
    except AuthError:
        return False
    return True


async def authenticate(
    store: GameStore,
    locks: GameLocks,
    game_id: str,
    player_name: str,
    password: Optional[str],
    config: Optional[Settings] = None,
) -> AuthResult:
    """Set the player's password on first use, otherwise check it.

    The first credential ever written wins. A caller that loses the write
    race is re-evaluated against the stored record, so it ends up on the
    returning-player path comparing against the winner's hash.

    Raises:
        NotFoundError: Unknown game or player
        PasswordTooShortError: First use with a password under 4 characters
        PasswordTooLongError: Password over 72 bytes, on either path
        AuthError: Wrong password (reason wrong_password)
    """
    config = config or default_settings
    password = password or ""

    async with locks.for_game(game_id):
        for _ in range(MAX_WRITE_ATTEMPTS):
            game = await store.load(game_id)
            player = game.find_player(player_name)
            if player.has_set_password:
                break

            if len(password) < MIN_PASSWORD_LENGTH:
                raise PasswordTooShortError(
                    f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
                )

            password_hash = await asyncio.to_thread(hash_password, password, config.bcrypt_rounds)
            player.set_password_hash(password_hash)
            try:
                await store.put(game, expected_version=game.version)
            except StaleWriteError:
                logger.info("Stale write setting password for %s/%s; reloading", game_id, player_name)
                continue

            logger.info("Password set for %s/%s", game_id, player_name)
            return AuthResult(token=issue_token(game_id, player_name, config), action="password_set")
        else:
            raise StaleWriteError(f"Game {game_id} kept changing, please retry")

        valid = await asyncio.to_thread(check_password, password, player.password_hash)
        if not valid:
            logger.info("Wrong password for %s/%s", game_id, player_name)
            raise AuthError("Incorrect password", reason="wrong_password")

        return AuthResult(token=issue_token(game_id, player_name, config), action="authenticated")
