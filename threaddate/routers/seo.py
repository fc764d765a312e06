from __future__ import annotations

import os
from datetime import datetime
from xml.sax.saxutils import escape

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from threaddate.database import get_db
from threaddate.models.brand import Brand
from threaddate.models.tag import Tag
from threaddate.services.tokens import utcnow
from threaddate.utils.constants import ERA_TO_SLUG, FEATURED_ERAS

router = APIRouter(tags=["seo"])

# (path, changefreq, priority)
STATIC_PAGES = (
    ("", "daily", "1.0"),
    ("/brands", "daily", "0.9"),
    ("/search", "daily", "0.8"),
    ("/about", "monthly", "0.5"),
    ("/how-it-works", "monthly", "0.5"),
    ("/contribute", "monthly", "0.6"),
    ("/leaderboard", "daily", "0.6"),
)

DISALLOWED = ("/api/", "/profile/", "/admin/")


def site_url() -> str:
    return os.getenv("SITE_URL", "https://threaddate.com").strip().rstrip("/")


def _url(loc: str, lastmod: datetime | None, changefreq: str, priority: str) -> str:
    parts = [f"<loc>{escape(loc)}</loc>"]
    if lastmod is not None:
        parts.append(f"<lastmod>{lastmod.date().isoformat()}</lastmod>")
    parts.append(f"<changefreq>{changefreq}</changefreq>")
    parts.append(f"<priority>{priority}</priority>")
    return "<url>" + "".join(parts) + "</url>"


@router.get("/robots.txt", response_class=PlainTextResponse)
def robots_txt():
    lines = ["User-agent: *", "Allow: /"]
    lines += [f"Disallow: {p}" for p in DISALLOWED]
    lines += ["", f"Sitemap: {site_url()}/sitemap.xml", ""]
    return "\n".join(lines)


@router.get("/sitemap.xml")
def sitemap_xml(db: Session = Depends(get_db)):
    base = site_url()
    now = utcnow()

    urls = [_url(f"{base}{path}", now, freq, prio) for path, freq, prio in STATIC_PAGES]
    urls += [_url(f"{base}/eras/{ERA_TO_SLUG[era]}", now, "weekly", "0.7") for era in FEATURED_ERAS]

    for slug, created_at in db.execute(select(Brand.slug, Brand.created_at).order_by(Brand.name.asc())).all():
        urls.append(_url(f"{base}/brands/{slug}", created_at or now, "weekly", "0.8"))

    for tag_id, created_at in db.execute(select(Tag.id, Tag.created_at).order_by(Tag.id.asc())).all():
        urls.append(_url(f"{base}/tags/{tag_id}", created_at or now, "weekly", "0.7"))

    body = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        + "\n".join(urls)
        + "\n</urlset>\n"
    )
    return Response(content=body, media_type="application/xml")
