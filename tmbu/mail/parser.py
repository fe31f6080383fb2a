"""Line-oriented scanner for notification e-mails.

Only the shape these notifications actually have is supported: one
multipart boundary, one ``text/plain`` part. The scan runs as a small state
machine so each transition (headers done, boundary seen, part headers done,
payload done) can be exercised on its own.

    IN_HEADERS ──blank──▶ SEEKING_BOUNDARY ──boundary──▶ EXPECT_CONTENT_TYPE
         EXPECT_CONTENT_TYPE ──text/plain──▶ PART_HEADERS ──blank──▶ IN_TEXT_PART
         IN_TEXT_PART ──boundary──▶ DONE
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import List, Optional, Set

from tmbu.errors import EncodingError, MalformedDateError, MissingDateOrLink, NoBoundaryError
from tmbu.mail.base import ParsedMessage
from tmbu.mail.tags import extract_tags

logger = logging.getLogger(__name__)


class ParseState(Enum):
    IN_HEADERS = "in_headers"
    SEEKING_BOUNDARY = "seeking_boundary"
    EXPECT_CONTENT_TYPE = "expect_content_type"
    PART_HEADERS = "part_headers"
    IN_TEXT_PART = "in_text_part"
    DONE = "done"


@dataclass
class _Scan:
    """Mutable state for a single parse run."""

    state: ParseState = ParseState.IN_HEADERS
    headers: List[str] = field(default_factory=list)
    date: Optional[datetime] = None
    subject: str = ""
    boundary: Optional[str] = None
    link: Optional[str] = None
    lines: List[str] = field(default_factory=list)
    tags: Set[str] = field(default_factory=set)


def decode_body(raw: bytes) -> str:
    """Decode a raw RFC 822 body, which must be UTF-8."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EncodingError(f"Message was not valid UTF-8: {exc}") from exc


def parse_date(value: str) -> datetime:
    """Parse an RFC 2822 date-time, keeping its offset."""
    try:
        date = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError) as exc:
        raise MalformedDateError(f"Unparseable Date header: {value!r}") from exc
    if date is None:
        raise MalformedDateError(f"Unparseable Date header: {value!r}")
    # "-0000" means "offset unknown" and comes back naive.
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return date


class MimeBodyParser:
    """Turns a raw e-mail into a ``ParsedMessage``.

    Raises ``NoBoundaryError`` or ``MissingDateOrLink`` for messages that are
    not post candidates, ``EncodingError`` / ``MalformedDateError`` for
    messages that are broken.
    """

    BOUNDARY_RE = re.compile(r'boundary=(?:"([^"]+)"|([^\s;]+))', re.IGNORECASE)
    TEXT_PLAIN_RE = re.compile(r"^content-type:\s*text/plain\s*(;.*)?$", re.IGNORECASE)
    LINK_PREFIX = "https://"

    def parse(self, raw: bytes) -> ParsedMessage:
        scan = _Scan()

        for line in self.split_lines(decode_body(raw)):
            self.feed(scan, line)
            if scan.state is ParseState.DONE:
                break

        if scan.state is ParseState.IN_HEADERS:
            # Headers ran to the end of the input without a blank line.
            self._close_headers(scan)

        if scan.date is None or scan.link is None:
            raise MissingDateOrLink(
                f"Message has no {'date' if scan.date is None else 'link'}"
            )

        return ParsedMessage(
            date=scan.date,
            subject=scan.subject,
            link=scan.link,
            text="\n".join(scan.lines).strip(),
            tags=frozenset(scan.tags),
        )

    @staticmethod
    def split_lines(body: str) -> List[str]:
        return [line.rstrip("\r") for line in body.split("\n")]

    def feed(self, scan: _Scan, line: str) -> None:
        """Advance the state machine by one line."""
        if scan.state is ParseState.IN_HEADERS:
            if line == "":
                self._close_headers(scan)
                scan.state = ParseState.SEEKING_BOUNDARY
            elif line[:1] in (" ", "\t") and scan.headers:
                scan.headers[-1] += " " + line.strip()
            else:
                scan.headers.append(line)

        elif scan.state is ParseState.SEEKING_BOUNDARY:
            if self._is_boundary(scan, line):
                scan.state = ParseState.EXPECT_CONTENT_TYPE

        elif scan.state is ParseState.EXPECT_CONTENT_TYPE:
            if self.TEXT_PLAIN_RE.match(line.strip()):
                scan.state = ParseState.PART_HEADERS
            elif not self._is_boundary(scan, line):
                scan.state = ParseState.SEEKING_BOUNDARY

        elif scan.state is ParseState.PART_HEADERS:
            if line.strip() == "":
                scan.state = ParseState.IN_TEXT_PART

        elif scan.state is ParseState.IN_TEXT_PART:
            if self._is_boundary(scan, line):
                scan.state = ParseState.DONE
            else:
                self._take_payload_line(scan, line)

    def _close_headers(self, scan: _Scan) -> None:
        for header in scan.headers:
            name, _, value = header.partition(":")
            name = name.strip().lower()

            if name == "date" and scan.date is None:
                scan.date = parse_date(value)
            elif name == "subject":
                subject, tags = extract_tags(value)
                scan.subject = subject.strip()
                scan.tags |= tags
            elif name == "content-type" and scan.boundary is None:
                match = self.BOUNDARY_RE.search(value)
                if match:
                    scan.boundary = "--" + (match.group(1) or match.group(2))

        scan.headers = []
        if scan.boundary is None:
            raise NoBoundaryError("No boundary value found")

    def _is_boundary(self, scan: _Scan, line: str) -> bool:
        stripped = line.rstrip()
        return stripped == scan.boundary or stripped == f"{scan.boundary}--"

    def _take_payload_line(self, scan: _Scan, line: str) -> None:
        if line.startswith(self.LINK_PREFIX):
            if scan.link is None:
                scan.link = line.strip()
                return
            # Only the first link is used; later ones stay in the text.
            logger.warning("Additional link kept as text: %s", line.strip())

        text, tags = extract_tags(line)
        scan.lines.append(text)
        scan.tags |= tags


def parse_message(raw: bytes) -> ParsedMessage:
    """Convenience wrapper around ``MimeBodyParser().parse``."""
    return MimeBodyParser().parse(raw)
