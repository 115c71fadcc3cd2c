################################################################################
# Doc Reader MCP - Chunking
# Splits continuous text into bounded units for formats without pagination
################################################################################

import re
from typing import List, Sequence, TypeVar

EMPTY_TEXT_MARKER = "(no text content)"
PARAGRAPH_SEPARATOR = "\n\n"

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")

T = TypeVar("T")


def split_paragraphs(text: str) -> List[str]:
    """Split text on blank lines, dropping empty paragraphs.

    Each paragraph is stripped of surrounding whitespace.
    """
    if not text:
        return []
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def chunk_paragraphs(text: str, max_size: int = 2000) -> List[str]:
    """
    Greedily pack whole paragraphs into chunks of at most max_size characters.

    Paragraphs are joined with a blank line. A chunk is closed when adding the
    next paragraph (plus separator) would exceed max_size. A single paragraph
    longer than max_size is kept whole as an oversized chunk.

    Args:
        text: Continuous extracted text
        max_size: Size threshold in characters

    Returns:
        Ordered list of chunk strings, never empty. Text with no content
        produces a single EMPTY_TEXT_MARKER chunk.

    Example:
        >>> chunk_paragraphs("one\\n\\ntwo\\n\\nthree", max_size=8)
        ['one\\n\\ntwo', 'three']
    """
    paragraphs = split_paragraphs(text)
    if not paragraphs:
        return [EMPTY_TEXT_MARKER]

    chunks: List[str] = []
    current = ""
    for para in paragraphs:
        if current and len(current) + len(PARAGRAPH_SEPARATOR) + len(para) > max_size:
            chunks.append(current)
            current = para
        else:
            current = current + PARAGRAPH_SEPARATOR + para if current else para
    if current:
        chunks.append(current)

    return chunks


def chunk_fixed(text: str, max_size: int = 2000) -> List[str]:
    """Hard-cut text every max_size characters, dropping blank slices."""
    if max_size < 1:
        raise ValueError("max_size must be positive")
    chunks = []
    for start in range(0, len(text or ""), max_size):
        piece = text[start:start + max_size].strip()
        if piece:
            chunks.append(piece)
    return chunks or [EMPTY_TEXT_MARKER]


def chunk_text(text: str, max_size: int = 2000) -> List[str]:
    """Chunk on paragraph boundaries when the text has any, else hard-cut."""
    if text and _PARAGRAPH_BREAK.search(text.strip()):
        return chunk_paragraphs(text, max_size)
    return chunk_fixed(text, max_size)


def chunk_rows(rows: Sequence[T], rows_per_chunk: int = 50) -> List[List[T]]:
    """Partition rows into consecutive groups of rows_per_chunk."""
    if rows_per_chunk < 1:
        raise ValueError("rows_per_chunk must be positive")
    return [list(rows[i:i + rows_per_chunk]) for i in range(0, len(rows), rows_per_chunk)]
