"""Error types for the faction selector.

Every error carries a short human-readable message plus a stable ``code``
that clients use to decide whether to re-prompt or give up.
"""

from typing import List, Optional


class GameError(Exception):
    """Base class for all expected, client-visible failures."""

    status_code = 400
    code = "error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(GameError):
    status_code = 400
    code = "validation_error"


class PasswordTooShortError(ValidationError):
    code = "password_too_short"


class PasswordTooLongError(ValidationError):
    code = "password_too_long"


class InvalidFactionError(ValidationError):
    code = "invalid_faction"


class NotFoundError(GameError):
    status_code = 404
    code = "not_found"


class ConflictError(GameError):
    status_code = 409
    code = "conflict"


class GameIdTakenError(ConflictError):
    code = "game_id_taken"


class AlreadySelectedError(ConflictError):
    code = "already_selected"


class StaleWriteError(ConflictError):
    """Raised by a store when a compare-and-set write loses to another writer."""

    code = "stale_write"


class AuthError(GameError):
    """Authentication failure.

    ``reason`` is one of: token_missing, token_invalid, token_expired,
    token_scope_mismatch, wrong_password, not_creator.
    """

    status_code = 401
    code = "auth_error"

    _FORBIDDEN_REASONS = {"token_scope_mismatch", "not_creator"}

    def __init__(self, message: str, reason: str):
        super().__init__(message, code=reason)
        self.reason = reason
        if reason in self._FORBIDDEN_REASONS:
            self.status_code = 403


class RevealNotReadyError(GameError):
    status_code = 403
    code = "reveal_not_ready"


class CapacityError(GameError):
    status_code = 422
    code = "not_enough_factions"


class GameLimitError(GameError):
    """The creator already has the maximum number of open games."""

    status_code = 429
    code = "game_limit_reached"

    def __init__(self, message: str, games: List[dict]):
        super().__init__(message)
        self.games = games

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["games"] = self.games
        return data
