"""Commit new posts to the blog's git repository."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Union

from tmbu.errors import VcsError

logger = logging.getLogger(__name__)


def _git(repo_root: Path, args: List[str]) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=repo_root,
        capture_output=True, text=True,
    )
    if result.returncode != 0:
        raise VcsError(f"git {' '.join(args)} failed: {result.stderr.strip()}")
    return result.stdout


def commit_post(repo_root: Union[str, Path], path: Union[str, Path], message: str):
    """Stage ``path`` and commit it with ``message``."""
    root = Path(repo_root)
    target = str(Path(path).resolve())

    _git(root, ["add", "--", target])
    _git(root, ["commit", "-m", message, "--", target])
    logger.info("Committed %s", target)
