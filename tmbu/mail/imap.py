"""IMAP mailbox reader: fetches one raw message at a time over SSL."""

from __future__ import annotations

import imaplib
import logging
from typing import Optional, Tuple

from tmbu.errors import TmbuError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 993


class MailboxError(TmbuError):
    """The IMAP server rejected a command."""


class Mailbox:
    """Thin session wrapper used as a context manager.

    Only message number 1 of the selected mailbox is ever fetched; the
    driver handles one message per run and deletes it once stored.
    """

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        mailbox: str = "INBOX",
        port: int = DEFAULT_PORT,
    ):
        self.host = host
        self.username = username
        self.password = password
        self.mailbox = mailbox
        self.port = port
        self._conn: Optional[imaplib.IMAP4_SSL] = None

    def __enter__(self) -> "Mailbox":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def connect(self):
        logger.debug("Connecting to %s:%d as %s", self.host, self.port, self.username)
        conn = imaplib.IMAP4_SSL(self.host, self.port)
        conn.login(self.username, self.password)
        typ, data = conn.select(self.mailbox)
        if typ != "OK":
            conn.logout()
            raise MailboxError(f"Cannot select {self.mailbox}: {data!r}")
        self._conn = conn

    def close(self):
        if self._conn is None:
            return
        try:
            self._conn.close()
        except imaplib.IMAP4.error as exc:
            logger.debug("CLOSE failed: %s", exc)
        self._conn.logout()
        self._conn = None

    @property
    def conn(self) -> imaplib.IMAP4_SSL:
        if self._conn is None:
            raise MailboxError("Mailbox is not connected")
        return self._conn

    def fetch_first(self) -> Optional[Tuple[str, bytes]]:
        """Return ``(message_id, raw_rfc822)`` for message 1, or None if empty."""
        typ, data = self.conn.search(None, "ALL")
        if typ != "OK":
            raise MailboxError(f"SEARCH failed: {data!r}")
        ids = data[0].split() if data and data[0] else []
        if not ids:
            return None

        msg_id = ids[0].decode()
        typ, data = self.conn.fetch(msg_id, "(RFC822)")
        if typ != "OK":
            raise MailboxError(f"FETCH {msg_id} failed: {data!r}")

        for part in data:
            if isinstance(part, tuple) and len(part) == 2:
                return msg_id, part[1]

        raise MailboxError(f"Message {msg_id} did not have a body")

    def mark_deleted(self, msg_id: str):
        typ, data = self.conn.store(msg_id, "+FLAGS", "\\Deleted")
        if typ != "OK":
            raise MailboxError(f"STORE {msg_id} failed: {data!r}")
        logger.info("Marked message %s deleted", msg_id)
