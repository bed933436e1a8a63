"""
Serves the static site pages.

Known page names map to `<page>.html`; any other path gets the index page with
a 404 status.
"""

from __future__ import annotations

import logging
import os

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, PlainTextResponse

from gpevim.config import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter()

PAGES = (
    "about",
    "member",
    "news",
    "projects",
    "materials",
    "publications",
    "login",
    "admin-panel",
)


def _page_response(site_dir: str, filename: str, status_code: int = 200):
    path = os.path.join(site_dir, filename)
    if not os.path.isfile(path):
        logger.warning("Page file missing: %s", path)
        return PlainTextResponse("Not Found", status_code=404)
    return FileResponse(path, status_code=status_code, media_type="text/html")


@router.get("/", include_in_schema=False)
def index(settings: Settings = Depends(get_settings)):
    return _page_response(settings.site_dir, "index.html")


@router.get("/{page}", include_in_schema=False)
def page(page: str, settings: Settings = Depends(get_settings)):
    if page in PAGES:
        return _page_response(settings.site_dir, f"{page}.html")
    return _page_response(settings.site_dir, "index.html", status_code=404)
