"""Settings for the mail-to-post pipeline.

Resolution order, later wins:
1. built-in defaults
2. JSON config file (``TMBU_CONFIG`` or ``~/.tmbu/config.json``)
3. ``TMBU_*`` environment variables
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".tmbu" / "config.json"

PATH_LAYOUTS = ("nested", "flat")

DEFAULT_USER_AGENT = "tmbu/0.1 (+https://github.com/tmbu)"

# Known publishers for statuses that carry no author, keyed by link prefix.
DEFAULT_KNOWN_PUBLISHERS = {
    "https://mastodon.social/@Mastodon/": "Mastodon",
    "https://fosstodon.org/@fosstodon/": "Fosstodon",
}

_ENV_OVERRIDES = {
    "TMBU_IMAP_HOST": "imap_host",
    "TMBU_IMAP_USERNAME": "imap_username",
    "TMBU_IMAP_PASSWORD": "imap_password",
    "TMBU_IMAP_MAILBOX": "imap_mailbox",
    "TMBU_BLOG_ROOT": "blog_root",
    "TMBU_PATH_LAYOUT": "path_layout",
    "TMBU_HTTP_TIMEOUT": "http_timeout",
}


@dataclass
class Settings:
    blog_root: str = "."
    path_layout: str = "nested"
    http_timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    api_hosts: List[str] = field(default_factory=list)
    html_hosts: List[str] = field(default_factory=list)
    known_publishers: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_KNOWN_PUBLISHERS)
    )
    canonical_tags_path: Optional[str] = None
    imap_host: str = ""
    imap_port: int = 993
    imap_username: str = ""
    imap_password: str = ""
    imap_mailbox: str = "INBOX"

    def __post_init__(self):
        if self.path_layout not in PATH_LAYOUTS:
            raise ValueError(
                f"Unknown path_layout {self.path_layout!r}. Use one of {list(PATH_LAYOUTS)}"
            )
        self.http_timeout = float(self.http_timeout)
        self.imap_port = int(self.imap_port)

    @property
    def root(self) -> Path:
        return Path(self.blog_root).expanduser()

    def missing_imap(self) -> List[str]:
        """Names of the IMAP settings that are still empty."""
        return [
            name for name in ("imap_host", "imap_username", "imap_password")
            if not getattr(self, name)
        ]


def config_path() -> Path:
    env_path = os.environ.get("TMBU_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not an object", path)
        return {}
    return data


def load_settings(path: Optional[Path] = None, use_env: bool = True) -> Settings:
    """Build Settings from defaults, the config file and (unless ``use_env`` is
    False) the environment."""
    known = {f.name for f in fields(Settings)}
    values: Dict[str, Any] = {}

    for key, value in _read_config_file(path or config_path()).items():
        if key in known:
            values[key] = value
        else:
            logger.warning("Unknown config key %r ignored", key)

    if use_env:
        for env_var, key in _ENV_OVERRIDES.items():
            value = os.environ.get(env_var)
            if value:
                values[key] = value

    return Settings(**values)


def save_settings(changes: Dict[str, Any], path: Optional[Path] = None) -> Path:
    """Merge ``changes`` into the config file.

    Only keys already in the file and the given changes are written, so
    environment overrides never end up on disk.
    """
    target = path or config_path()
    data = _read_config_file(target)
    data.update(changes)

    known = {f.name for f in fields(Settings)}
    Settings(**{k: v for k, v in data.items() if k in known})

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return target
