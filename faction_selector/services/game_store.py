"""Game storage for the faction selector.

Stores hold serialized game records and offer compare-and-set writes keyed
on ``Game.version`` so two writers can never both commit a change derived
from the same read.
"""

import asyncio
import fcntl
import json
import logging
import os
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import Dict, List, Optional

from faction_selector.errors import GameIdTakenError, NotFoundError, StaleWriteError
from faction_selector.models.game import Game

logger = logging.getLogger(__name__)


class GameStore(ABC):
    """Interface every game store implements."""

    @abstractmethod
    async def get(self, game_id: str) -> Optional[Game]:
        """Return a fresh copy of the game, or None."""

    @abstractmethod
    async def put(self, game: Game, expected_version: Optional[int]) -> Game:
        """Write a game.

        With expected_version None the write only creates; otherwise the
        stored version must equal expected_version. Returns the stored copy
        with its version bumped.

        Raises:
            GameIdTakenError: Create of an id that exists or was deleted
            StaleWriteError: The stored version moved on
        """

    @abstractmethod
    async def exists(self, game_id: str) -> bool:
        """True if the id is in use or was ever deleted."""

    @abstractmethod
    async def delete(self, game_id: str) -> bool:
        """Delete a game and tombstone its id. False if it was absent."""

    @abstractmethod
    async def list_by_creator(self, fingerprint: str) -> List[dict]:
        """Summaries of games created by one fingerprint."""

    async def load(self, game_id: str) -> Game:
        """Like get() but raises NotFoundError."""
        game = await self.get(game_id)
        if game is None:
            raise NotFoundError("Game not found", code="game_not_found")
        return game


class InMemoryGameStore(GameStore):
    """Dict-backed store; records are kept serialized so callers never share objects."""

    def __init__(self):
        self._records: Dict[str, dict] = {}
        self._deleted: set[str] = set()
        self._lock = asyncio.Lock()

    async def get(self, game_id: str) -> Optional[Game]:
        async with self._lock:
            record = self._records.get(game_id)
            return Game.from_dict(record) if record is not None else None

    async def put(self, game: Game, expected_version: Optional[int]) -> Game:
        async with self._lock:
            current = self._records.get(game.game_id)
            _check_write(game.game_id, current, expected_version, game.game_id in self._deleted)
            record = game.to_dict()
            record["version"] = (current["version"] if current else 0) + 1
            self._records[game.game_id] = record
            return Game.from_dict(record)

    async def exists(self, game_id: str) -> bool:
        async with self._lock:
            return game_id in self._records or game_id in self._deleted

    async def delete(self, game_id: str) -> bool:
        async with self._lock:
            if game_id not in self._records:
                return False
            del self._records[game_id]
            self._deleted.add(game_id)
            return True

    async def list_by_creator(self, fingerprint: str) -> List[dict]:
        async with self._lock:
            games = [Game.from_dict(r) for r in self._records.values()
                     if r.get("creatorFingerprint") == fingerprint]
        return [g.summary() for g in sorted(games, key=lambda g: g.created_at)]


class JsonFileGameStore(GameStore):
    """One JSON file per game under data_dir, tombstones under data_dir/deleted.

    Every write holds an exclusive flock on data_dir/.store.lock across the
    whole read-check-write, so compare-and-set also holds between worker
    processes sharing the directory. File IO runs in a worker thread.
    """

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self.deleted_dir = self.data_dir / "deleted"
        self.deleted_dir.mkdir(parents=True, exist_ok=True)
        self.lock_path = self.data_dir / ".store.lock"

    def _get_game_path(self, game_id: str) -> Path:
        return self.data_dir / f"{game_id}.json"

    def _get_tombstone_path(self, game_id: str) -> Path:
        return self.deleted_dir / game_id

    @contextmanager
    def _exclusive(self):
        with open(self.lock_path, "a") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def _read(self, game_id: str) -> Optional[dict]:
        path = self._get_game_path(game_id)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, record: dict):
        path = self._get_game_path(record["gameId"])
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(record, f, indent=2)
        os.replace(tmp_path, path)

    def _put_sync(self, record: dict, expected_version: Optional[int]) -> dict:
        game_id = record["gameId"]
        with self._exclusive():
            current = self._read(game_id)
            tombstoned = self._get_tombstone_path(game_id).exists()
            _check_write(game_id, current, expected_version, tombstoned)
            record["version"] = (current["version"] if current else 0) + 1
            self._write(record)
        return record

    def _exists_sync(self, game_id: str) -> bool:
        return self._get_game_path(game_id).exists() or self._get_tombstone_path(game_id).exists()

    def _delete_sync(self, game_id: str) -> bool:
        with self._exclusive():
            path = self._get_game_path(game_id)
            if not path.exists():
                return False
            self._get_tombstone_path(game_id).touch()
            path.unlink()
            return True

    def _list_sync(self, fingerprint: str) -> List[Game]:
        games = []
        for path in self.data_dir.glob("*.json"):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    record = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Skipping unreadable game file %s: %s", path.name, e)
                continue
            if record.get("creatorFingerprint") == fingerprint:
                games.append(Game.from_dict(record))
        return games

    async def get(self, game_id: str) -> Optional[Game]:
        record = await asyncio.to_thread(self._read, game_id)
        return Game.from_dict(record) if record is not None else None

    async def put(self, game: Game, expected_version: Optional[int]) -> Game:
        record = await asyncio.to_thread(self._put_sync, game.to_dict(), expected_version)
        return Game.from_dict(record)

    async def exists(self, game_id: str) -> bool:
        return await asyncio.to_thread(self._exists_sync, game_id)

    async def delete(self, game_id: str) -> bool:
        return await asyncio.to_thread(self._delete_sync, game_id)

    async def list_by_creator(self, fingerprint: str) -> List[dict]:
        games = await asyncio.to_thread(self._list_sync, fingerprint)
        return [g.summary() for g in sorted(games, key=lambda g: g.created_at)]


def _check_write(game_id: str, current: Optional[dict], expected_version: Optional[int], tombstoned: bool):
    if expected_version is None:
        if current is not None or tombstoned:
            raise GameIdTakenError(
                f'Game ID "{game_id}" is already in use. Please choose a different ID.'
            )
        return
    if current is None:
        # Deleted underneath the writer; never resurrect it.
        raise NotFoundError("Game not found", code="game_not_found")
    if current.get("version", 0) != expected_version:
        raise StaleWriteError(f"Game {game_id} was modified concurrently")


class GameLocks:
    """Per-game asyncio locks serializing read-modify-write in this process.

    An entry exists only while some caller holds or waits on it, so ids that
    turn out not to exist leave nothing behind.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def for_game(self, game_id: str):
        lock = self._locks.setdefault(game_id, asyncio.Lock())
        self._waiters[game_id] = self._waiters.get(game_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[game_id] -= 1
            if not self._waiters[game_id]:
                del self._waiters[game_id]
                del self._locks[game_id]


def build_store(settings) -> GameStore:
    """Pick the store backend from settings."""
    if settings.store_backend == "memory":
        logger.info("Using in-memory game store")
        return InMemoryGameStore()
    logger.info("Using JSON file game store at %s", settings.data_dir)
    return JsonFileGameStore(settings.data_dir)
