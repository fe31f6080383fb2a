"""Post assembly: resolution, enrichment, tag canonicalization, rendering."""

from tmbu.post.canonical import CanonicalTagTable, canonicalize, load_table, titlecase
from tmbu.post.enrich import enrich_link_title
from tmbu.post.fetch import Fetcher, FetchResponse
from tmbu.post.model import PendingPost
from tmbu.post.pipeline import Outcome, Pipeline
from tmbu.post.render import RenderedDocument, post_path, render_post, slugify, write_document
from tmbu.post.resolver import (
    ActivityPubResolver,
    HtmlScrapeResolver,
    LinkResolver,
    ResolverPolicy,
)

__all__ = [
    "CanonicalTagTable",
    "canonicalize",
    "load_table",
    "titlecase",
    "enrich_link_title",
    "Fetcher",
    "FetchResponse",
    "PendingPost",
    "Outcome",
    "Pipeline",
    "RenderedDocument",
    "post_path",
    "render_post",
    "slugify",
    "write_document",
    "ActivityPubResolver",
    "HtmlScrapeResolver",
    "LinkResolver",
    "ResolverPolicy",
]
