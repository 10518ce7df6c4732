"""Split page text into overlapping, sentence-aware chunks.

Offsets are measured in UTF-8 bytes of the page's full text. Every chunk
boundary falls on a code point boundary, chunks are emitted in increasing
start order, and consecutive chunks overlap by roughly ``overlap`` bytes.
"""

from __future__ import annotations

from typing import List, Optional

from .config import ChunkingOptions
from .document import TextChunk


def _next_boundary(data: bytes, pos: int) -> int:
    """Smallest code point boundary at or after ``pos``."""
    while pos < len(data) and (data[pos] & 0xC0) == 0x80:
        pos += 1
    return pos


def chunk_text(
    full_text: str, url: str, options: Optional[ChunkingOptions] = None
) -> List[TextChunk]:
    """Split ``full_text`` into chunks identified as ``{url}#chunk{index}``.

    A chunk is cut at ``chunk_size`` bytes unless a sentence terminator
    (``". "``) occurs before ``chunk_size + lookahead`` bytes, in which case
    the chunk ends right after the last such terminator. The next chunk then
    starts ``overlap`` bytes before the end of the previous one.

    Raises:
        ValueError: If ``chunk_size`` is not positive or ``overlap`` is negative.
    """
    opts = options or ChunkingOptions()
    if opts.chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {opts.chunk_size}")
    if opts.overlap < 0:
        raise ValueError(f"overlap must not be negative, got {opts.overlap}")

    data = full_text.encode("utf-8")
    total = len(data)
    terminator = opts.sentence_terminator.encode("utf-8")

    chunks: List[TextChunk] = []
    start = 0
    index = 0
    while True:
        start = _next_boundary(data, start)
        if start >= total:
            break

        target_end = _next_boundary(data, min(start + opts.chunk_size, total))
        if target_end <= start:
            target_end = _next_boundary(data, start + 1)

        end = target_end
        if target_end < total and terminator:
            limit = _next_boundary(data, min(target_end + opts.lookahead, total))
            pos = data.rfind(terminator, start, limit)
            if pos != -1 and pos + len(terminator) > start:
                end = pos + len(terminator)

        text = data[start:end].decode("utf-8").strip()
        if text:
            chunks.append(
                TextChunk(
                    chunk_id=f"{url}#chunk{index}",
                    text=text,
                    char_start=start,
                    char_end=end,
                )
            )
            index += 1

        if end >= total:
            break
        next_start = end - opts.overlap
        start = next_start if next_start > start else end

    return chunks
