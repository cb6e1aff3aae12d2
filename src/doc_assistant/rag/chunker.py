"""
Document Chunker

Splits document text into size-bounded chunks at sentence boundaries.

Known limitation: a single sentence longer than the limit is emitted as its
own oversized chunk. It is never truncated.
"""

import re

# A sentence is any run of non-terminators followed by a run of terminators,
# or the trailing text after the last terminator.
SENTENCE_PATTERN = re.compile(r"[^.!?]*(?:[.!?]+|$)")


def split_sentences(text: str) -> list[str]:
    """
    Split text into sentences, keeping each sentence's leading whitespace.

    Concatenating the result reproduces the input, minus trailing whitespace.
    """
    return [s for s in SENTENCE_PATTERN.findall(text) if s.strip()]


def split_into_chunks(text: str, max_chunk_size: int = 1000, overlap: int = 0) -> list[str]:
    """
    Split text into chunks of at most max_chunk_size characters.

    Args:
        text: Full document text
        max_chunk_size: Maximum characters per chunk
        overlap: Characters of trailing whole sentences to repeat at the
            start of the next chunk (0 disables overlap)

    Returns:
        Ordered list of trimmed chunks
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")

    chunks: list[str] = []
    current: list[str] = []
    current_len = 0

    for sentence in split_sentences(text):
        if current and current_len + len(sentence) > max_chunk_size:
            chunks.append("".join(current).strip())
            current = _carry_over(current, overlap, len(sentence), max_chunk_size)
            current_len = sum(len(s) for s in current)

        current.append(sentence)
        current_len += len(sentence)

    if current:
        chunks.append("".join(current).strip())

    return chunks


def _carry_over(sentences: list[str], overlap: int, next_len: int, max_chunk_size: int) -> list[str]:
    """Pick the trailing sentences that fit in `overlap` and still leave room for the next one."""
    if overlap <= 0:
        return []

    carried: list[str] = []
    total = 0
    for sentence in reversed(sentences):
        if total + len(sentence) > overlap:
            break
        carried.insert(0, sentence)
        total += len(sentence)

    if total + next_len > max_chunk_size:
        return []
    return carried
