"""Message -> post pipeline.

One raw message goes through the stages in a fixed order:

    parse -> resolve status link -> enrich link title -> canonicalize tags
          -> (confirm) -> render

Each stage may leave the post unchanged. Skipped and aborted messages are
reported as an ``Outcome`` instead of escaping, so a batch never stops
because of one message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional, Tuple

from tmbu.config import Settings
from tmbu.errors import MessageAborted, MessageSkipped, TmbuError
from tmbu.mail.parser import MimeBodyParser
from tmbu.post.canonical import CanonicalTagTable, load_table
from tmbu.post.enrich import enrich_link_title
from tmbu.post.fetch import Fetcher
from tmbu.post.model import PendingPost
from tmbu.post.render import RenderedDocument, render_post
from tmbu.post.resolver import ResolverPolicy

logger = logging.getLogger(__name__)

RENDERED = "rendered"
SKIPPED = "skipped"
ABORTED = "aborted"


@dataclass
class Outcome:
    """Result of processing one message."""

    status: str
    document: Optional[RenderedDocument] = None
    post: Optional[PendingPost] = None
    error: Optional[TmbuError] = None

    @property
    def stored(self) -> bool:
        """Whether the message produced a document to store."""
        return self.status == RENDERED

    @property
    def reason(self) -> str:
        return str(self.error) if self.error else ""


class Pipeline:
    """Holds the collaborators shared by every message in a run.

    With ``offline=True`` nothing is fetched: status links are not resolved
    and the post link is appended without a title.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        fetcher: Optional[Fetcher] = None,
        table: Optional[CanonicalTagTable] = None,
        policy: Optional[ResolverPolicy] = None,
        confirm: Optional[Callable[[PendingPost], None]] = None,
        offline: bool = False,
    ):
        self.settings = settings or Settings()
        self.parser = MimeBodyParser()
        self.table = table or load_table(self.settings.canonical_tags_path)
        self.confirm = confirm

        if offline:
            self.fetcher = None
            self.policy = None
        else:
            self.fetcher = fetcher or Fetcher(
                timeout=self.settings.http_timeout,
                user_agent=self.settings.user_agent,
            )
            self.policy = policy or ResolverPolicy(
                self.fetcher,
                api_hosts=self.settings.api_hosts,
                html_hosts=self.settings.html_hosts,
                publishers=self.settings.known_publishers,
            )

    def build(self, raw: bytes) -> Tuple[PendingPost, RenderedDocument]:
        """Run every stage, raising on skip/abort."""
        message = self.parser.parse(raw)
        post = PendingPost.from_message(message)
        logger.debug("Parsed %r (%s)", post.subject, post.link)

        if self.policy is not None:
            resolved = self.policy.resolve(post)
            logger.debug("Resolved: %s", resolved)

        enrich_link_title(post, self.fetcher)
        post.tags = self.table.canonicalize(post.tags)

        if self.confirm is not None:
            self.confirm(post)

        doc = render_post(post, self.settings.root, self.settings.path_layout)
        logger.debug("Rendered %s", doc.path)
        return post, doc

    def process(self, raw: bytes) -> Outcome:
        try:
            post, doc = self.build(raw)
        except MessageSkipped as exc:
            logger.warning("Skipping message: %s", exc)
            return Outcome(SKIPPED, error=exc)
        except MessageAborted as exc:
            logger.warning("Aborted message: %s", exc)
            return Outcome(ABORTED, error=exc)
        return Outcome(RENDERED, document=doc, post=post)

    def process_batch(self, raws: Iterable[bytes]) -> Iterator[Outcome]:
        for raw in raws:
            yield self.process(raw)
