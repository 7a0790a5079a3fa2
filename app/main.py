import logging
import sys
import time
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from jinja2 import Environment, FileSystemLoader

from app import db as app_db
from app.config import BASE_DIR, get_settings
from app.routers import api, dashboard, lookup

try:
    from fm_dashboard import get_runtime_version
except ModuleNotFoundError:  # pragma: no cover - compatibility for non-editable local runs
    from src.fm_dashboard import get_runtime_version


def create_app() -> FastAPI:
    # Respect runtime env overrides (tests, temporary runs).
    get_settings.cache_clear()
    settings = get_settings()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger = logging.getLogger(__name__)

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    bundle_dir = Path(getattr(sys, "_MEIPASS", str(BASE_DIR)))
    static_dir = bundle_dir / "static"
    templates_dir = bundle_dir / "templates"
    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
    env = Environment(loader=FileSystemLoader(str(templates_dir)), autoescape=True, auto_reload=True, cache_size=0)
    app.state.templates = Jinja2Templates(env=env)

    def _static_v(rel_path: str) -> int:
        # Cache-busting for static assets without requiring app restarts.
        try:
            p = static_dir / rel_path
            return int(p.stat().st_mtime)
        except Exception:
            return int(time.time())

    app.state.templates.env.globals["static_v"] = _static_v

    app_db.init_db(settings.database_url)

    if not settings.backend_url:
        logger.warning("GOOGLE_SCRIPT_URL not set. All report lookups resolve to the demo record.")
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set. Narrative generation runs in demo mode.")

    app.include_router(dashboard.router)
    app.include_router(api.router)
    app.include_router(lookup.router)

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.get("/api/health")
    def api_health():
        return {"status": "ok", "version": get_runtime_version()}

    return app


app = create_app()
