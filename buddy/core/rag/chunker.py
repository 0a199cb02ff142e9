"""
Text chunker for document ingestion.

Splits normalized text into overlapping character windows, preferring to end
each chunk at a sentence boundary near the end of the window, then at a word
boundary, and hard-cutting only when neither exists.

Dependencies: None (pure text processing)
System role: Ingestion step between raw document text and embedding
"""

import re

DEFAULT_CHUNK_SIZE = 500
DEFAULT_CHUNK_OVERLAP = 50

# How far back from the window end to look for a sentence break.
SENTENCE_LOOKBACK = 100

_WHITESPACE = re.compile(r"\s+")
_SENTENCE_BREAK = re.compile(r"[.!?]\s+(?=[A-Z])")


def normalize_text(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def _find_chunk_end(text: str, start: int, chunk_size: int) -> int:
    end = start + chunk_size
    if end >= len(text):
        return end

    window_start = max(start, end - SENTENCE_LOOKBACK)
    last_break = None
    for match in _SENTENCE_BREAK.finditer(text, window_start, end):
        last_break = match
    if last_break is not None and last_break.start() > window_start:
        # Keep the punctuation and the following space in this chunk.
        return last_break.start() + 2

    last_space = text.rfind(" ", 0, end + 1)
    if last_space > start:
        return last_space

    return end


def split_text_into_chunks(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[str]:
    """
    Split text into overlapping chunks for embedding.

    Args:
        text: Raw document text
        chunk_size: Maximum characters per chunk
        chunk_overlap: Characters re-read at the start of the next chunk

    Returns:
        list[str]: Non-empty chunks in document order; a non-blank text no longer
            than chunk_size yields exactly one chunk, blank text none
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    cleaned = normalize_text(text)
    if not cleaned:
        return []
    if len(cleaned) <= chunk_size:
        return [cleaned]

    chunks: list[str] = []
    start = 0
    while start < len(cleaned):
        end = _find_chunk_end(cleaned, start, chunk_size)

        chunk = cleaned[start:end].strip()
        if chunk:
            chunks.append(chunk)
        if end >= len(cleaned):
            break

        next_start = end - chunk_overlap
        start = next_start if next_start > start else end

    return chunks
