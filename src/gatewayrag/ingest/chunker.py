"""Line-preserving chunker with a hard size bound.

Text is packed greedily line by line into segments of at most ``max_len``
characters. Short lines are never split mid-word; a single line longer than
``max_len`` is hard-split into ``max_len`` pieces, each emitted on its own.
"""

from __future__ import annotations

from gatewayrag.ingest.sanitize import sanitize

DEFAULT_MAX_LEN = 2000


class LineChunker:
    """Split normalized text into ordered segments bounded by ``max_len``.

    Args:
        max_len: Maximum segment length in characters.
    """

    def __init__(self, max_len: int = DEFAULT_MAX_LEN) -> None:
        if max_len < 1:
            raise ValueError("max_len must be >= 1")
        self.max_len = max_len

    def chunk(self, text: str) -> list[str]:
        """Return the segments of *text*, trimmed and sanitized, in source order."""
        content = sanitize(text.strip())
        if not content:
            return []
        if len(content) <= self.max_len:
            return [content]

        segments: list[str] = []
        buf: list[str] = []
        buf_len = 0

        def flush() -> None:
            nonlocal buf_len
            if buf:
                segment = sanitize("".join(buf).strip())
                if segment:
                    segments.append(segment)
            buf.clear()
            buf_len = 0

        for raw_line in content.split("\n"):
            line = raw_line.strip()
            if not line:
                continue

            while len(line) > self.max_len:
                piece, line = line[: self.max_len], line[self.max_len :]
                flush()
                buf.append(piece)
                flush()

            if buf_len + len(line) + 1 > self.max_len:
                flush()

            buf.append(line)
            buf.append("\n")
            buf_len += len(line) + 1

        flush()
        return segments


def split_into_chunks(text: str, max_len: int = DEFAULT_MAX_LEN) -> list[str]:
    """Convenience wrapper around ``LineChunker(max_len).chunk(text)``."""
    return LineChunker(max_len).chunk(text)


def part_titles(title: str, count: int) -> list[str]:
    """Return one title per segment: ``"{title} (parte N)"`` when *count* > 1."""
    if count <= 1:
        return [title] * count
    return [f"{title} (parte {i})" for i in range(1, count + 1)]
