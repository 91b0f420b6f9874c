"""
Autotag — Page snapshot
Builds a DomSnapshot (title, first heading, social meta) from raw HTML.
"""

from __future__ import annotations

from bs4 import BeautifulSoup

from . import config
from .models import DomSnapshot


def snapshot_from_html(html: str) -> DomSnapshot:
    soup = BeautifulSoup(html, "html.parser")

    title = soup.title.get_text() if soup.title is not None else None
    h1 = soup.find("h1")
    heading = h1.get_text() if h1 is not None else None

    metas: dict[str, str] = {}
    for name in config.META_NAMES:
        # Open Graph tags are usually published with property=, not name=
        elt = soup.find("meta", attrs={"name": name})
        if elt is None:
            elt = soup.find("meta", attrs={"property": name})
        content = elt.get("content") if elt is not None else None
        if content:
            metas[name] = content

    return DomSnapshot(title=title, first_heading_text=heading or None, meta_contents=metas)
