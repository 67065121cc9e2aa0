import logging
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from faction_selector.config import Settings, settings as default_settings
from faction_selector.errors import GameError
from faction_selector.routers import games, health, players
from faction_selector.services.catalog import FactionCatalog, load_catalog
from faction_selector.services.game_store import GameLocks, GameStore, build_store

# --- .env support ---
load_dotenv()

logger = logging.getLogger(__name__)

_here = os.path.dirname(__file__)
_static_root = os.path.join(os.path.dirname(_here), "static")


def create_app(
    config: Optional[Settings] = None,
    store: Optional[GameStore] = None,
    catalog: Optional[FactionCatalog] = None,
) -> FastAPI:
    """Build the app around an explicit store and catalog."""
    config = config or default_settings
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # ------------------------------------------------------------------------------
    # FastAPI + static
    # ------------------------------------------------------------------------------
    app = FastAPI(title="Faction Selector", version=config.app_version)
    app.state.settings = config
    app.state.catalog = catalog or load_catalog(config.catalog_path)
    app.state.store = store or build_store(config)
    app.state.locks = GameLocks()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(GameError)
    async def game_error_handler(request: Request, exc: GameError):
        if exc.status_code >= 500:
            logger.error("Request %s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", []) if p != "body")
        message = f"Invalid request: {field} {first.get('msg', '')}".strip()
        return JSONResponse(status_code=400, content={"error": message, "code": "invalid_request"})

    if not os.path.isdir(_static_root):
        os.makedirs(_static_root, exist_ok=True)
    app.mount("/static", StaticFiles(directory=_static_root), name="static")

    @app.get("/", response_class=HTMLResponse)
    async def index():
        index_path = os.path.join(_static_root, "index.html")
        if os.path.exists(index_path):
            with open(index_path, "r", encoding="utf-8") as f:
                return HTMLResponse(f.read())
        return HTMLResponse("""
<!doctype html><meta charset="utf-8"><title>Faction Selector</title>
<h1>Faction Selector</h1>
<p>Static client missing. Place <code>static/index.html</code> in the project.</p>
""".strip())

    # ------------------------------------------------------------------------------
    # Include routers
    # ------------------------------------------------------------------------------
    app.include_router(health.router)
    app.include_router(games.router)
    app.include_router(players.router)

    logger.info("Faction selector ready (env=%s, %d factions)", config.app_env, len(app.state.catalog))
    return app


app = create_app()
