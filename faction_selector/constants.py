"""Constants and type definitions for the faction selector."""

import re
from typing import Literal

# Type definitions
Phase = Literal["forming", "revealed"]
SelectionState = Literal["unselected", "selected"]
AuthAction = Literal["password_set", "authenticated"]

# Game shape
MIN_PLAYERS = 2
MAX_PLAYERS = 6
FACTIONS_PER_PLAYER_CHOICES = (3, 4)

# Credentials
MIN_PASSWORD_LENGTH = 4
# bcrypt only reads this many bytes and rejects longer input
MAX_PASSWORD_BYTES = 72

# Game ids
GAME_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
MAX_GAME_ID_LENGTH = 64
GENERATED_GAME_ID_BYTES = 4
