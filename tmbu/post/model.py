"""Mutable post record carried through the enrichment stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Set

from tmbu.mail.base import ParsedMessage


@dataclass
class PendingPost:
    """A post being assembled from one message.

    ``link`` starts as the message link and is replaced or cleared once its
    content has been inlined into ``text``.
    """

    date: datetime
    subject: str
    text: str
    link: Optional[str] = None
    tags: Set[str] = field(default_factory=set)
    attribution: Optional[str] = None

    @classmethod
    def from_message(cls, message: ParsedMessage) -> "PendingPost":
        return cls(
            date=message.date,
            subject=message.subject,
            text=message.text,
            link=message.link,
            tags=set(message.tags),
        )

    def remove_from_text(self, needle: str):
        """Drop every literal occurrence of ``needle`` from the text."""
        if needle:
            self.text = self.text.replace(needle, "").strip()
