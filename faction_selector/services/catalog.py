"""Faction catalog loading.

The catalog is read once at startup and handed to services explicitly.
"""

import json
import logging
from pathlib import Path
from typing import Iterator, Optional, Tuple

from faction_selector.errors import ValidationError
from faction_selector.models.game import Faction

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "factions.json"


class FactionCatalog:
    """Read-only ordered sequence of factions."""

    def __init__(self, factions):
        self._factions: Tuple[Faction, ...] = tuple(factions)
        self._by_id = {f.id: f for f in self._factions}
        if not self._factions:
            raise ValidationError("Faction catalog is empty", code="empty_catalog")
        if len(self._by_id) != len(self._factions):
            raise ValidationError("Faction catalog has duplicate ids", code="duplicate_faction_id")

    def __len__(self) -> int:
        return len(self._factions)

    def __iter__(self) -> Iterator[Faction]:
        return iter(self._factions)

    @property
    def factions(self) -> Tuple[Faction, ...]:
        return self._factions

    def get(self, faction_id: str) -> Optional[Faction]:
        return self._by_id.get(faction_id)

    def to_list(self) -> list:
        return [f.to_dict() for f in self._factions]


def load_catalog(path: Optional[str] = None) -> FactionCatalog:
    """Load the catalog from a JSON array of {id, name, expansion} objects."""
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
    with open(catalog_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    catalog = FactionCatalog(Faction.from_dict(entry) for entry in data)
    logger.info("Loaded %d factions from %s", len(catalog), catalog_path)
    return catalog
