"""Parsed message dataclass shared by the mail readers and the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet


@dataclass(frozen=True)
class ParsedMessage:
    """One notification e-mail reduced to the fields a post needs.

    ``subject`` and ``text`` already have their hashtags removed; the tags
    from both are merged into ``tags``.
    """

    date: datetime
    subject: str
    link: str
    text: str
    tags: FrozenSet[str] = field(default_factory=frozenset)
