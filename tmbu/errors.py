"""Error taxonomy for the mail-to-post pipeline.

Two families matter to callers:

- ``MessageSkipped``: the message can never become a post (no boundary,
  no date or link). The driver drops it and moves on.
- ``MessageAborted``: processing stopped part-way (bad encoding, bad date,
  attribution could not be established). No partial document is produced.

``FetchError`` is raised by the HTTP collaborator; most stages catch it and
degrade, the per-user attribution lookup turns it into an abort.
"""

from __future__ import annotations


class TmbuError(Exception):
    """Base class for all pipeline errors."""


class MessageSkipped(TmbuError):
    """The message is not a post candidate."""


class MessageAborted(TmbuError):
    """Processing of the message was stopped."""


class NoBoundaryError(MessageSkipped):
    """No multipart ``boundary=`` parameter in the headers."""


class MissingDateOrLink(MessageSkipped):
    """The message has no Date header or no https:// link line."""


class EncodingError(MessageAborted):
    """The raw body is not valid UTF-8."""


class MalformedDateError(MessageAborted):
    """The Date header is present but not an RFC 2822 date-time."""


class AttributionLookupError(MessageAborted):
    """The author of a status could not be fetched."""


class UnknownAttributionSource(MessageAborted):
    """No author and no known publisher matches the link."""


class FetchError(TmbuError):
    """An HTTP fetch failed (network, status code, charset or JSON)."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class VcsError(TmbuError):
    """A git command exited with a non-zero status."""
