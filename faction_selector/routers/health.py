"""Health check router for the faction selector."""

from fastapi import APIRouter, Depends

from faction_selector.config import Settings
from faction_selector.dependencies import get_catalog, get_settings
from faction_selector.models.responses import HealthResponse
from faction_selector.services.catalog import FactionCatalog

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(
    config: Settings = Depends(get_settings),
    catalog: FactionCatalog = Depends(get_catalog),
):
    """Health check endpoint."""
    return {"status": "ok", "env": config.app_env, "version": config.app_version, "factions": len(catalog)}
