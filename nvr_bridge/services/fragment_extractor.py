# nvr_bridge/services/fragment_extractor.py
"""
Frames EventNotificationAlert records out of the alertStream byte stream.

The alertStream is an endless multipart HTTP body. A single read can hold half a
record, several records back to back, or only boundary lines / keep-alive whitespace.
The record schema never nests EventNotificationAlert inside itself, so one non-greedy
match between the open and close tag is enough.
"""

import codecs
import re

RECORD_ROOT = "EventNotificationAlert"
_OPEN_TAG = f"<{RECORD_ROOT}"
_RECORD_RE = re.compile(
    rf"<{RECORD_ROOT}(?:\s[^>]*)?>.*?</{RECORD_ROOT}\s*>",
    re.DOTALL,
)


def extract_fragments(text: str) -> tuple[list[str], str]:
    """
    Split accumulated stream text into (complete records, remainder).

    Everything up to the end of the last complete record is consumed. The remainder
    keeps whatever could still start a record: from the next open tag onwards, or,
    when there is none, only a tail short enough to be a partial open tag.
    """
    fragments: list[str] = []
    consumed = 0
    for match in _RECORD_RE.finditer(text):
        fragments.append(match.group(0))
        consumed = match.end()

    remainder = text[consumed:]
    start = remainder.find(_OPEN_TAG)
    if start >= 0:
        remainder = remainder[start:]
    else:
        # Keep a possible "<EventNotif" split across chunks, drop the noise before it
        lt = remainder.rfind("<", max(0, len(remainder) - len(_OPEN_TAG) + 1))
        remainder = remainder[lt:] if lt >= 0 and _OPEN_TAG.startswith(remainder[lt:]) else ""
    return fragments, remainder


class StreamBuffer:
    """
    Per-connection accumulator for alertStream bytes.

    Owned by the streaming session and recreated on every reconnect. Bytes are decoded
    incrementally so a multi-byte UTF-8 character split across reads survives.
    Memory is not bounded here: the session checks `size` against its ceiling.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self.text = ""

    @property
    def size(self) -> int:
        return len(self.text)

    def feed(self, chunk: bytes) -> list[str]:
        """Append a chunk and return every record it completed (possibly none)."""
        self.text += self._decoder.decode(chunk)
        fragments, self.text = extract_fragments(self.text)
        return fragments

    def clear(self) -> None:
        self._decoder.reset()
        self.text = ""
