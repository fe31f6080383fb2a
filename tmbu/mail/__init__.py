from tmbu.mail.base import ParsedMessage
from tmbu.mail.imap import Mailbox, MailboxError
from tmbu.mail.parser import MimeBodyParser, ParseState, parse_message
from tmbu.mail.tags import extract_tags

__all__ = [
    "ParsedMessage",
    "Mailbox",
    "MailboxError",
    "MimeBodyParser",
    "ParseState",
    "parse_message",
    "extract_tags",
]
