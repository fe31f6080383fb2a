"""Hashtag extraction from free text."""

from __future__ import annotations

import re
from typing import Set, Tuple

TAG_RE = re.compile(r"#(\w+)")


def extract_tags(text: str) -> Tuple[str, Set[str]]:
    """Strip ``#tag`` tokens from text.

    Returns the text with every token removed and the set of tag names
    (without ``#``). Surrounding whitespace is left as-is; trimming is up
    to the caller.
    """
    if not text:
        return "", set()

    tags = set(TAG_RE.findall(text))
    return TAG_RE.sub("", text), tags
