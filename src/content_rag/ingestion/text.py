"""Text normalisation and lightweight extraction helpers."""

from __future__ import annotations

import math
import re
import unicodedata

SUMMARY_LENGTH = 200

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_MENTION = re.compile(r"@([\w-]+)")
_HASHTAG = re.compile(r"(?<![\w#])#([\w-]+)")
_CHECKBOX = re.compile(r"\[( |x|X)\]")
_OPEN_CHECKBOX = re.compile(r"[-*] \[ \]")
_CODE = re.compile(r"```[\s\S]*?```|`[^`\n]+`")


def sanitize_text(text: str) -> str:
    """Unicode NFC, strip control chars, collapse whitespace.

    Newlines survive (at most one blank line in a row) so that the
    markdown splitter can still find paragraph boundaries.
    """
    text = unicodedata.normalize("NFC", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _CONTROL_CHARS.sub("", text)
    text = re.sub(r"[^\S\n]+", " ", text)  # collapse spaces (keep \n)
    text = re.sub(r" ?\n ?", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)  # max two consecutive newlines
    return text.strip()


def summarize(text: str, length: int = SUMMARY_LENGTH) -> str:
    """Truncate *text* to *length* characters, adding an ellipsis when cut."""
    if len(text) <= length:
        return text
    return text[:length] + "..."


def clean_terms(terms: list[str] | None) -> list[str]:
    """Strip, de-duplicate and drop empty terms, preserving order.

    Commas are replaced because list fields are comma-joined on the wire.
    """
    seen: dict[str, None] = {}
    for term in terms or []:
        term = term.replace(",", " ").strip()
        if term:
            seen.setdefault(term, None)
    return list(seen)


def unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(i for i in items if i))


def extract_markdown_links(text: str) -> list[tuple[str, str]]:
    """Return ``(label, url)`` pairs for every ``[label](url)`` link."""
    return [(label, url) for label, url in _MARKDOWN_LINK.findall(text) if label and url]


def extract_mentions(text: str) -> list[str]:
    return _MENTION.findall(text)


def extract_hashtags(text: str) -> list[str]:
    return _HASHTAG.findall(text)


def has_open_checkboxes(text: str) -> bool:
    return bool(_OPEN_CHECKBOX.search(text))


def checklist_progress(text: str) -> int:
    """Percentage of ticked ``[x]`` boxes among all checkboxes (0 when none)."""
    boxes = _CHECKBOX.findall(text)
    if not boxes:
        return 0
    checked = sum(1 for mark in boxes if mark in ("x", "X"))
    return round(checked / len(boxes) * 100)


def contains_code(text: str) -> bool:
    return bool(_CODE.search(text))


def reading_time_minutes(text: str, words_per_minute: int = 200) -> int:
    return math.ceil(len(text.split()) / words_per_minute)
