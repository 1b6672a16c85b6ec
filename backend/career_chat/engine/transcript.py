"""Transcript log — the append-only chat history shown to the user.

Each message is parsed once, at creation, into text and fenced-code blocks.
"""

from __future__ import annotations

import random
import string
import time
from typing import Iterable, Optional

from career_chat.engine.state import ContentBlock, TranscriptEntry

FENCE = "```"
_ID_ALPHABET = string.digits + string.ascii_lowercase


def make_id(prefix: str = "msg") -> str:
    """Clock value plus a short random suffix, e.g. ``msg-1718000000000-k3j9x0a1b``.

    Not collision-proof; fine for one user typing into one conversation.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def _read_tag(text: str, start: int) -> tuple[str, int] | None:
    """Read the optional language tag after an opening fence.

    Returns (tag, index after the newline), or None when the fence is not
    followed by ``\\w*`` and a newline.
    """
    i = start
    n = len(text)
    while i < n and (text[i].isalnum() or text[i] == "_"):
        i += 1
    if i < n and text[i] == "\n":
        return text[start:i], i + 1
    return None


def parse_content(text: str) -> list[ContentBlock]:
    """Split a message into text and fenced code blocks.

    Single left-to-right pass. An opening fence is three backticks, an
    optional word tag and a newline; the next three backticks close it.
    Whitespace-only text between blocks is dropped. An unclosed fence stays
    plain text.
    """
    blocks: list[ContentBlock] = []
    last = 0
    search_from = 0

    while True:
        open_at = text.find(FENCE, search_from)
        if open_at == -1:
            break
        tag = _read_tag(text, open_at + len(FENCE))
        if tag is None:
            search_from = open_at + len(FENCE)
            continue
        language, body_start = tag
        close_at = text.find(FENCE, body_start)
        if close_at == -1:
            break

        before = text[last:open_at]
        if before.strip():
            blocks.append(ContentBlock(kind="text", content=before))
        blocks.append(ContentBlock(kind="code", content=text[body_start:close_at], language=language or None))
        last = close_at + len(FENCE)
        search_from = last

    rest = text[last:]
    if rest.strip():
        blocks.append(ContentBlock(kind="text", content=rest))

    if not blocks:
        blocks.append(ContentBlock(kind="text", content=text))
    return blocks


def new_entry(
    role: str,
    text: str,
    *,
    prefix: str = "msg",
    is_question: bool = False,
    is_preview: bool = False,
) -> TranscriptEntry:
    """Build a transcript entry. User text is kept raw; assistant text is parsed."""
    return TranscriptEntry(
        id=make_id(prefix),
        role=role,
        text=text,
        parsed_content=parse_content(text) if role == "assistant" else None,
        is_question=is_question,
        is_preview=is_preview,
    )


class Transcript:
    """Ordered, append-only list of transcript entries."""

    def __init__(self, entries: Optional[Iterable[TranscriptEntry]] = None):
        self._entries: list[TranscriptEntry] = list(entries or [])
        self._index: dict[str, int] = {e.id: i for i, e in enumerate(self._entries)}

    def append(self, entry: TranscriptEntry) -> TranscriptEntry:
        self._index[entry.id] = len(self._entries)
        self._entries.append(entry)
        return entry

    def all(self) -> list[TranscriptEntry]:
        return list(self._entries)

    def find(self, entry_id: str) -> Optional[TranscriptEntry]:
        i = self._index.get(entry_id)
        return self._entries[i] if i is not None else None

    def last_question(self) -> Optional[TranscriptEntry]:
        for entry in reversed(self._entries):
            if entry.role == "assistant" and entry.is_question:
                return entry
        return None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)
