"""Inline social-media statuses into a post.

When a post's link points at a Mastodon status, the status text becomes a
``via [author](profile): comment`` line at the top of the post and any link
the status itself shares replaces the post link.

Two resolvers share that composition step:

- ``ActivityPubResolver`` asks the instance for the ActivityStreams note and,
  if the note names an author, for the author's actor document.
- ``HtmlScrapeResolver`` is for instances that do not answer ActivityPub
  requests; it reads the page's ``<meta name="description">``.

``ResolverPolicy`` picks one (or neither) for a link.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from tmbu.errors import AttributionLookupError, FetchError, UnknownAttributionSource
from tmbu.post.fetch import Fetcher
from tmbu.post.model import PendingPost

logger = logging.getLogger(__name__)

ATTRIBUTION = "Mastodon"

URL_RE = re.compile(r"https://[^\s<>\"']+")
URL_TRAILING_PUNCTUATION = ".,;:!?)"
STATUS_PATH_RE = re.compile(r"^/(?:@[^/]+|users/[^/]+/statuses)/\d+/?$")
MENTION_CLASSES = {"mention", "hashtag"}


# ------------------------------
# HTML HELPERS
# ------------------------------

def strip_paragraphs(fragment: str) -> str:
    """Turn paragraph/line-break tags into newlines and drop other markup."""
    soup = BeautifulSoup(fragment, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for p in soup.find_all("p"):
        p.insert_before("\n")
        p.insert_after("\n")
        p.unwrap()

    text = soup.get_text().replace("\u00a0", " ")
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _is_mention(anchor) -> bool:
    classes = set(anchor.get("class") or [])
    return bool(classes & MENTION_CLASSES) or "tag" in (anchor.get("rel") or [])


def split_first_anchor(content: str) -> Tuple[Optional[str], str]:
    """Pull the first shared link out of a status body.

    Returns ``(href, content_without_that_anchor)``. Mention and hashtag
    anchors are not candidates; they are reduced to their text.
    """
    soup = BeautifulSoup(content, "html.parser")
    href = None
    for anchor in soup.find_all("a"):
        if _is_mention(anchor):
            anchor.replace_with(anchor.get_text())
        elif href is None and anchor.get("href"):
            href = anchor["href"]
            anchor.decompose()
    return href, str(soup)


def meta_description(page: str) -> Optional[str]:
    soup = BeautifulSoup(page, "html.parser")
    tag = soup.find("meta", attrs={"name": lambda value: value and value.lower() == "description"})
    if tag is None or tag.get("content") is None:
        return None
    return tag["content"]


def first_url(text: str) -> Optional[str]:
    """First bare ``https://`` URL in ``text``, without trailing punctuation."""
    match = URL_RE.search(text)
    if not match:
        return None
    return match.group(0).rstrip(URL_TRAILING_PUNCTUATION) or None


# ------------------------------
# RESOLVERS
# ------------------------------

class LinkResolver:
    """Shared attribution and composition for both resolution strategies."""

    name = "base"

    def __init__(self, fetcher: Fetcher, publishers: Optional[Dict[str, str]] = None):
        self.fetcher = fetcher
        self.publishers = dict(publishers or {})

    def resolve(self, post: PendingPost) -> bool:
        """Update ``post`` in place. Returns False when the link was left alone."""
        raise NotImplementedError

    def publisher_for(self, link: str) -> Tuple[str, str]:
        """Map a link to ``(display_name, profile_url)`` via the allow-list."""
        for prefix, display_name in self.publishers.items():
            if link.startswith(prefix):
                return display_name, prefix.rstrip("/")
        raise UnknownAttributionSource(f"No user can be attributed for {link}")

    def apply(
        self,
        post: PendingPost,
        author: str,
        target: str,
        comment: str,
        new_link: Optional[str],
    ):
        original = post.link or ""
        post.remove_from_text(original)
        comment = comment.replace(original, "").strip() if original else comment

        via = f"via [{author}]({target}): {comment}".rstrip()
        post.text = f"{via}\n\n{post.text}" if post.text else via
        post.attribution = ATTRIBUTION
        post.link = new_link if new_link and new_link != original else None
        logger.info("Resolved %s via %s (%s)", original, self.name, author)


class ActivityPubResolver(LinkResolver):
    name = "activitypub"

    def resolve(self, post: PendingPost) -> bool:
        link = post.link
        if not link:
            return False

        try:
            note = self.fetcher.get_json(link)
        except FetchError as exc:
            logger.warning("Could not fetch status %s: %s", link, exc)
            return False

        content = note.get("content")
        if not isinstance(content, str):
            logger.warning("Status %s has no content", link)
            return False

        actor = _actor_id(note.get("attributedTo"))
        if actor:
            author, target = self.lookup_actor(actor)
        else:
            author, target = self.publisher_for(link)

        new_link, remaining = split_first_anchor(content)
        self.apply(post, author, target, strip_paragraphs(remaining), new_link)
        return True

    def lookup_actor(self, actor: str) -> Tuple[str, str]:
        try:
            data = self.fetcher.get_json(actor)
        except FetchError as exc:
            raise AttributionLookupError(f"Could not fetch author {actor}: {exc}") from exc

        author = data.get("name") or data.get("preferredUsername")
        if not author:
            raise AttributionLookupError(f"Author {actor} has no name")

        url = data.get("url")
        return author, url if isinstance(url, str) and url else actor


def _actor_id(value) -> Optional[str]:
    """``attributedTo`` may be a string, an object, or a list of either."""
    if isinstance(value, list):
        for item in value:
            actor = _actor_id(item)
            if actor:
                return actor
        return None
    if isinstance(value, dict):
        value = value.get("id")
    return value if isinstance(value, str) and value else None


class HtmlScrapeResolver(LinkResolver):
    name = "html"

    def resolve(self, post: PendingPost) -> bool:
        link = post.link
        if not link:
            return False

        try:
            page = self.fetcher.get_text(link)
        except FetchError as exc:
            logger.warning("Could not fetch page %s: %s", link, exc)
            return False

        description = meta_description(page)
        if description is None:
            logger.info("No description found in %s", link)
            return False

        author, target = self.publisher_for(link)

        new_link = first_url(description)
        if new_link:
            description = description.replace(new_link, "")

        self.apply(post, author, target, strip_paragraphs(description), new_link)
        return True


class ResolverPolicy:
    """Chooses a resolver for a link.

    Hosts in ``html_hosts`` are scraped. Hosts in ``api_hosts``, or any
    link whose path looks like a status, go through ActivityPub.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        api_hosts: Iterable[str] = (),
        html_hosts: Iterable[str] = (),
        publishers: Optional[Dict[str, str]] = None,
    ):
        self.api_hosts = {h.lower() for h in api_hosts}
        self.html_hosts = {h.lower() for h in html_hosts}
        self.activitypub = ActivityPubResolver(fetcher, publishers)
        self.html = HtmlScrapeResolver(fetcher, publishers)

    def select(self, link: Optional[str]) -> Optional[LinkResolver]:
        if not link:
            return None
        parsed = urlparse(link)
        host = (parsed.hostname or "").lower()

        if host in self.html_hosts:
            return self.html
        if host in self.api_hosts or STATUS_PATH_RE.match(parsed.path):
            return self.activitypub
        return None

    def resolve(self, post: PendingPost) -> bool:
        resolver = self.select(post.link)
        if resolver is None:
            logger.debug("No resolver applies to %s", post.link)
            return False
        return resolver.resolve(post)
