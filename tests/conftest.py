"""Shared fixtures: raw e-mail builder and an in-memory fetcher."""

from typing import Dict, List, Optional

import pytest

from tmbu.errors import FetchError
from tmbu.post.canonical import CanonicalTagTable


def build_raw(
    body_lines: List[str],
    boundary: Optional[str] = "X",
    date: Optional[str] = "Mon, 1 Jan 2024 00:00:00 +0000",
    subject: Optional[str] = "A post #demo",
    content_type: str = "Content-Type: text/plain; charset=utf-8",
    crlf: bool = False,
) -> bytes:
    """Assemble a minimal multipart notification e-mail."""
    headers = ["From: Share Bot <bot@example.com>", "To: me@example.com"]
    if date is not None:
        headers.append(f"Date: {date}")
    if subject is not None:
        headers.append(f"Subject: {subject}")
    headers.append("MIME-Version: 1.0")
    if boundary is not None:
        headers.append("Content-Type: multipart/mixed;")
        headers.append(f' boundary="{boundary}"')
    else:
        headers.append("Content-Type: text/plain")

    lines = headers + [""]
    if boundary is not None:
        lines += [f"--{boundary}", content_type, ""]
        lines += body_lines
        lines += [f"--{boundary}--", ""]
    else:
        lines += body_lines

    newline = "\r\n" if crlf else "\n"
    return newline.join(lines).encode("utf-8")


class FakeFetcher:
    """Serves canned JSON/HTML by URL; anything else is a FetchError."""

    def __init__(
        self,
        json_docs: Optional[Dict[str, dict]] = None,
        pages: Optional[Dict[str, str]] = None,
    ):
        self.json_docs = json_docs or {}
        self.pages = pages or {}
        self.calls: List[str] = []

    def get_json(self, url, accept="application/activity+json"):
        self.calls.append(url)
        if url not in self.json_docs:
            raise FetchError(url, "HTTP 404")
        return self.json_docs[url]

    def get_text(self, url, headers=None):
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(url, "HTTP 404")
        return self.pages[url]


@pytest.fixture
def raw_message():
    return build_raw


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


@pytest.fixture
def tag_table():
    return CanonicalTagTable({"aws": "AWS", "github": "GitHub", "ios": "iOS"})
