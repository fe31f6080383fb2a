"""Canonical display forms for hashtags.

Tags arrive in whatever case the author typed. Each one is title-cased and
then looked up in a table of preferred spellings (acronyms, brand casing).
The table lives in YAML so it can grow without code changes:

    Aws: AWS
    Github: GitHub
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Set, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_TABLE_PATH = Path(__file__).with_name("canonical_tags.yaml")


def titlecase(tag: str) -> str:
    """Upper-case the first letter of each ``_``-separated word, lower the rest."""
    return "_".join(word[:1].upper() + word[1:].lower() for word in tag.split("_"))


class CanonicalTagTable:
    """Read-only title-cased tag -> display form mapping.

    Keys are normalised with ``titlecase`` on construction, and every display
    form is registered under its own title-cased spelling, so running a tag
    through the table twice gives the same result as running it once.
    """

    def __init__(self, entries: Optional[Mapping[str, str]] = None):
        table: Dict[str, str] = {}
        for key, value in (entries or {}).items():
            table[titlecase(str(key))] = str(value)

        for value in list(table.values()):
            own_key = titlecase(value)
            existing = table.get(own_key)
            if existing is None:
                table[own_key] = value
            elif existing != value:
                logger.warning(
                    "Canonical form %r conflicts with entry %r -> %r; keeping %r",
                    value, own_key, existing, existing,
                )
        self._table = table

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, key: str) -> bool:
        return key in self._table

    def lookup(self, tag: str) -> str:
        cased = titlecase(tag)
        return self._table.get(cased, cased)

    def canonicalize(self, tags: Iterable[str]) -> Set[str]:
        return {self.lookup(tag) for tag in tags if tag}


def load_table(path: Optional[Union[str, Path]] = None) -> CanonicalTagTable:
    """Load a table from YAML, falling back to the bundled one."""
    table_path = Path(path).expanduser() if path else DEFAULT_TABLE_PATH

    try:
        data = yaml.safe_load(table_path.read_text(encoding="utf-8"))
    except OSError as exc:
        logger.error("Cannot read tag table %s: %s", table_path, exc)
        raise
    except yaml.YAMLError as exc:
        logger.error("Failed to parse YAML in %s: %s", table_path, exc)
        raise

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Tag table {table_path} must be a mapping")

    table = CanonicalTagTable(data)
    logger.debug("Loaded %d canonical tags from %s", len(table), table_path)
    return table


def canonicalize(tags: Iterable[str], table: Optional[CanonicalTagTable] = None) -> Set[str]:
    """Canonicalize with ``table`` or the bundled default table."""
    return (table or load_table()).canonicalize(tags)
