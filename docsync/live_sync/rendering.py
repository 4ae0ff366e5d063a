"""
Markdown rendering glue.

Converts document source to HTML and rewrites embedded media so images
are served from the store's static endpoint.
"""

import re
import time
from typing import Optional

from markdown_it import MarkdownIt

_md = MarkdownIt("commonmark", {"html": True}).enable(["table", "strikethrough"])

_IMG_SRC_RE = re.compile(r'<img([^>]*?)\s+src="([^"]*)"')


def wrap_tables(html: str) -> str:
    """Wrap tables in a scroll container."""
    return (
        html.replace("<table>", '<div class="table-wrapper"><table>')
        .replace("</table>", "</table></div>")
    )


def rewrite_media(
    html: str,
    static_prefix: str = "/api/static",
    cache_token: Optional[str] = None,
) -> str:
    """
    Point relative image sources at the static endpoint.

    Absolute URLs, root-relative paths and data URIs are left untouched.
    When ``cache_token`` is given it is appended as ``t=<token>`` so the
    client re-fetches media whose bytes may have changed.
    """
    prefix = static_prefix.rstrip("/")

    def _replace(match: "re.Match[str]") -> str:
        attrs, src = match.group(1), match.group(2)
        if not src or src.startswith("/") or ":" in src:
            return match.group(0)
        if cache_token is not None:
            separator = "&" if "?" in src else "?"
            src = f"{src}{separator}t={cache_token}"
        return f'<img{attrs} src="{prefix}/{src}"'

    return _IMG_SRC_RE.sub(_replace, html)


def new_cache_token() -> str:
    """Uniqueness token for cache-defeating media reloads."""
    return str(time.time_ns() // 1_000_000)


def render_markdown(
    content: str,
    static_prefix: str = "/api/static",
    defeat_cache: bool = False,
) -> str:
    """Render markdown source to display HTML."""
    html = _md.render(content)
    html = wrap_tables(html)
    token = new_cache_token() if defeat_cache else None
    return rewrite_media(html, static_prefix, token)


__all__ = [
    "render_markdown",
    "rewrite_media",
    "wrap_tables",
    "new_cache_token",
]
