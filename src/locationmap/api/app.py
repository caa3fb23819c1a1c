# src/locationmap/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance, mounts static assets, and serves the web UI.
View state and actions live in `locationmap.api.routes` and `locationmap.view`.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from locationmap.config.settings import get_settings
from locationmap.core.logging import configure_logging

from .routes import router

configure_logging()

app = FastAPI(title="LocationMap API", version="0.1.0")

app.include_router(router)

BASE_DIR = Path(__file__).resolve().parent.parent
TEMPLATES_DIR = BASE_DIR / "web" / "templates"
STATIC_DIR = BASE_DIR / "web" / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.get("/", response_class=HTMLResponse)
def index(request: Request) -> HTMLResponse:
    """Serve the interactive map page."""
    settings = get_settings()
    return templates.TemplateResponse(
        request,
        "index.html",
        {"app_name": settings.app.name, "map_height_px": settings.map.height_px},
    )
