"""Turn the remaining post link into a titled trailing reference."""

from __future__ import annotations

import logging
from typing import Optional

from bs4 import BeautifulSoup

from tmbu.errors import FetchError
from tmbu.post.fetch import Fetcher
from tmbu.post.model import PendingPost

logger = logging.getLogger(__name__)


def page_title(page: str) -> Optional[str]:
    soup = BeautifulSoup(page, "html.parser")
    if soup.title is None:
        return None
    title = " ".join(soup.title.get_text().split())
    return title or None


def fetch_title(fetcher: Fetcher, link: str) -> Optional[str]:
    """Fetch ``link`` and return its <title>, or None on any failure."""
    try:
        page = fetcher.get_text(link, headers={"Accept": "text/html"})
    except FetchError as exc:
        logger.warning("Could not fetch title for %s: %s", link, exc)
        return None
    return page_title(page)


def link_reference(link: str, title: Optional[str]) -> str:
    if not title:
        return f"<{link}>"
    # Brackets in the title would end the link text early.
    title = title.replace("[", "(").replace("]", ")")
    return f"[{title}]({link})"


def enrich_link_title(post: PendingPost, fetcher: Optional[Fetcher] = None) -> bool:
    """Append the post link as a reference paragraph and clear ``post.link``.

    Without a fetcher (offline runs) the link is appended as an autolink.
    Returns True when a title was found.
    """
    link = post.link
    if not link:
        return False

    title = fetch_title(fetcher, link) if fetcher is not None else None

    post.remove_from_text(link)
    reference = link_reference(link, title)
    post.text = f"{post.text}\n\n{reference}" if post.text else reference
    post.link = None
    return title is not None
