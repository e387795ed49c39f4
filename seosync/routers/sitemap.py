"""站点地图：与索引枚举使用同一份 URL 集合"""
from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from ..dependencies import get_db
from ..indexing.enumerator import build_sitemap_entries


router = APIRouter(tags=["sitemap"])

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))


@router.get("/sitemap.xml")
def sitemap(request: Request, db: Session = Depends(get_db)):
    entries = build_sitemap_entries(db)
    return templates.TemplateResponse(
        request,
        "sitemap.xml",
        {"entries": entries},
        media_type="application/xml",
        headers={"Cache-Control": "public, max-age=3600"},
    )
