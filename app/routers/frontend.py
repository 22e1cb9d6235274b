"""Browser front end served by the same process as the API."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from app.services.template_renderer import render_index_page

router = APIRouter(tags=["frontend"])


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index() -> HTMLResponse:
    return HTMLResponse(content=render_index_page())
