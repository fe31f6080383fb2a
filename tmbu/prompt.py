"""Interactive confirmation of the post subject and tags."""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Set

import click

from tmbu.post.model import PendingPost

Ask = Callable[..., str]


def tag_line(tags: Iterable[str]) -> str:
    """``{"b", "a"}`` -> ``"#a #b"``."""
    return " ".join(f"#{tag}" for tag in sorted(tags))


def parse_tag_line(line: str) -> Set[str]:
    """Inverse of ``tag_line``; tolerates missing ``#`` and extra spaces."""
    return {word.lstrip("#") for word in line.split() if word.lstrip("#")}


def read_line(
    prompt: str,
    default: Optional[str] = None,
    validate: Optional[Callable[[str], bool]] = None,
    ask: Ask = click.prompt,
) -> str:
    """Prompt until ``validate`` accepts the trimmed answer.

    An empty answer takes ``default``. The default validator rejects empty
    answers.
    """
    validate = validate or (lambda value: bool(value))
    while True:
        answer = ask(prompt, default=default or "", show_default=bool(default))
        answer = (answer or "").strip()
        if not answer and default:
            answer = default
        if validate(answer):
            return answer


def confirm_post(post: PendingPost, ask: Ask = click.prompt):
    """Let the user edit the subject and tag line of ``post`` in place."""
    post.subject = read_line("Title", default=post.subject, ask=ask)
    tags = read_line(
        "Tags",
        default=tag_line(post.tags),
        validate=lambda value: True,
        ask=ask,
    )
    post.tags = parse_tag_line(tags)
