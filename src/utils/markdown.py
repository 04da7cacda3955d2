"""Plain-text excerpts from markdown post bodies."""

from __future__ import annotations

import re

# Applied in order; later patterns assume earlier ones already ran.
_MARKDOWN_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"<[^>]*>"), ""),                          # HTML tags
    (re.compile(r"^#{1,6}\s+", re.MULTILINE), ""),          # headers
    (re.compile(r"(\*\*|__)(.*?)\1"), r"\2"),               # bold
    (re.compile(r"(\*|_)(.*?)\1"), r"\2"),                  # italic
    (re.compile(r"~~(.*?)~~"), r"\1"),                      # strikethrough
    (re.compile(r"```[\s\S]*?```"), ""),                    # code fences
    (re.compile(r"`([^`]+)`"), r"\1"),                      # inline code
    (re.compile(r"!\[([^\]]*)\]\([^)]+\)"), r"\1"),         # images
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),          # links
    (re.compile(r"^>\s+", re.MULTILINE), ""),               # blockquotes
    (re.compile(r"^(-{3,}|\*{3,}|_{3,})$", re.MULTILINE), ""),  # rules
    (re.compile(r"^[\s-]*[*\-+]\s+", re.MULTILINE), ""),    # bullet markers
    (re.compile(r"^\s*\d+\.\s+", re.MULTILINE), ""),        # numbered markers
    (re.compile(r"\s+"), " "),
]


def strip_markdown(text: str) -> str:
    """Remove markdown/HTML syntax and collapse whitespace."""
    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def generate_excerpt(content: str, max_length: int = 200) -> str:
    """Return at most *max_length* characters of plain text, with ``...`` if cut."""
    plain = strip_markdown(content)
    if len(plain) > max_length:
        return f"{plain[:max_length].strip()}..."
    return plain
