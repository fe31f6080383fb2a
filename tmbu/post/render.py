"""Render a finished post as a front-matter markdown file."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import tomli_w

from tmbu.config import PATH_LAYOUTS
from tmbu.post.model import PendingPost

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "+++"
EXCERPT_MARKER = "<!-- more -->"

NON_WORD_RE = re.compile(r"\W+")
BLANK_LINE_RE = re.compile(r"\n[ \t]*\n")


def slugify(subject: str) -> str:
    """``"Hello, World! 2.0"`` -> ``"hello-world-2-0"``."""
    slug = NON_WORD_RE.sub("-", subject)
    if slug.endswith("-"):
        slug = slug[:-1]
    return slug.lower() or "untitled"


def post_path(root: Union[str, Path], date: datetime, slug: str, layout: str = "nested") -> Path:
    """Date-partitioned location of a post under ``<root>/content``.

    nested: ``<year>/<month>/<day>-<slug>.md``
    flat:   ``<year>/<month>-<day>-<slug>.md``
    """
    content = Path(root) / "content" / f"{date.year}"
    if layout == "nested":
        return content / f"{date.month:02}" / f"{date.day:02}-{slug}.md"
    if layout == "flat":
        return content / f"{date.month:02}-{date.day:02}-{slug}.md"
    raise ValueError(f"Unknown path layout {layout!r}. Use one of {list(PATH_LAYOUTS)}")


def split_excerpt(text: str) -> Tuple[str, str]:
    """Split at the first blank line into (summary, rest), both trimmed."""
    parts = BLANK_LINE_RE.split(text.strip(), maxsplit=1)
    before = parts[0].strip()
    after = parts[1].strip() if len(parts) > 1 else ""
    return before, after


@dataclass(frozen=True)
class RenderedDocument:
    path: Path
    frontmatter: Dict[str, Any]
    body: str
    markdown: str = field(repr=False)


def render_frontmatter(frontmatter: Dict[str, Any]) -> str:
    """TOML block between ``+++`` lines; ``[taxonomies]`` only when non-empty."""
    data: Dict[str, Any] = {"title": frontmatter["title"], "date": frontmatter["date"]}

    taxonomies: Dict[str, Any] = {}
    if frontmatter.get("tags"):
        taxonomies["tag"] = list(frontmatter["tags"])
    if frontmatter.get("via"):
        taxonomies["via"] = [frontmatter["via"]]
    if taxonomies:
        data["taxonomies"] = taxonomies

    return f"{FRONTMATTER_DELIMITER}\n{tomli_w.dumps(data)}{FRONTMATTER_DELIMITER}"


def render_body(text: str) -> str:
    before, after = split_excerpt(text)
    body = f"{before}\n\n{EXCERPT_MARKER}\n"
    if after:
        body += f"\n{after}\n"
    return body


def render_post(post: PendingPost, root: Union[str, Path] = ".", layout: str = "nested") -> RenderedDocument:
    """Build the document for ``post``. Nothing is written."""
    frontmatter: Dict[str, Any] = {
        "title": post.subject,
        "date": post.date,
        "tags": sorted(post.tags),
    }
    if post.attribution:
        frontmatter["via"] = post.attribution

    body = render_body(post.text)
    markdown = f"{render_frontmatter(frontmatter)}\n\n{body}"
    path = post_path(root, post.date, slugify(post.subject), layout)

    return RenderedDocument(path=path, frontmatter=frontmatter, body=body, markdown=markdown)


def write_document(doc: RenderedDocument, overwrite: bool = False) -> Path:
    """Write ``doc`` as UTF-8, creating parent directories."""
    if doc.path.exists() and not overwrite:
        raise FileExistsError(f"{doc.path} already exists")
    doc.path.parent.mkdir(parents=True, exist_ok=True)
    doc.path.write_text(doc.markdown, encoding="utf-8")
    logger.info("Wrote %s", doc.path)
    return doc.path
