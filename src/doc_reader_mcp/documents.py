################################################################################
# Doc Reader MCP - Unit Access & Search
# Bounds-checked unit retrieval, literal search and result formatting
################################################################################

import logging
import os
import re
from typing import Any, Dict, List, Optional, Union

from .extractors import CsvExtractor, DocumentExtractor, DocumentUnit
from .errors import UnitOutOfRangeError

logger = logging.getLogger(__name__)

_WHITESPACE_RUN = re.compile(r"\s+")
_INTEGER = re.compile(r"[+-]?\d+")


class SearchMatch:
    """A unit containing the query, with a snippet around the first hit."""

    def __init__(self, identifier: Union[int, str], label: str, snippet: str):
        self.identifier = identifier
        self.label = label
        self.snippet = snippet

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "label": self.label,
            "snippet": self.snippet,
        }


def parse_unit_number(identifier: Any) -> Optional[int]:
    """Interpret a page/chunk/slide identifier as an integer, or None."""
    if isinstance(identifier, bool):
        return None
    if isinstance(identifier, int):
        return identifier
    if isinstance(identifier, float):
        return int(identifier) if identifier.is_integer() else None
    if isinstance(identifier, str) and _INTEGER.fullmatch(identifier.strip()):
        return int(identifier.strip())
    return None


def get_unit(extractor: DocumentExtractor, identifier: Union[int, str]) -> DocumentUnit:
    """
    Fetch one unit of a document with its total unit count.

    Args:
        extractor: Extractor bound to the document
        identifier: 1-indexed number for paged/chunked kinds, exact sheet name for Excel

    Returns:
        DocumentUnit with text, label and total

    Raises:
        UnitOutOfRangeError: Non-integer identifier or number outside 1..total
        SheetNotFoundError: Unknown sheet name
    """
    if extractor.name_addressed:
        return extractor.fetch(str(identifier))

    number = parse_unit_number(identifier)
    if number is None:
        raise UnitOutOfRangeError(identifier, extractor.count_units(), extractor.unit_label)
    return extractor.fetch(number)


def make_snippet(text: str, query: str, padding: int = 100) -> Optional[str]:
    """
    Cut a window of `padding` characters either side of the first occurrence
    of `query` (case-insensitive). Whitespace runs collapse to one space.

    Returns None when the query does not occur in the text.

    Example:
        >>> make_snippet("alpha\\nbeta gamma", "BETA", padding=3)
        'ha beta ga'
    """
    index = text.lower().find(query.lower())
    if index < 0:
        return None
    start = max(0, index - padding)
    end = min(len(text), index + len(query) + padding)
    return _WHITESPACE_RUN.sub(" ", text[start:end]).strip()


def search_units(extractor: DocumentExtractor, query: str, padding: int = 100) -> List[SearchMatch]:
    """Return one SearchMatch per unit containing the query, in unit order."""
    matches = []
    for identifier, text in extractor.iter_searchable():
        snippet = make_snippet(text, query, padding)
        if snippet is not None:
            matches.append(SearchMatch(identifier, extractor.unit_label, snippet))
    logger.info(f"Search for {query!r} in {extractor.file_path}: {len(matches)} matching units")
    return matches


def format_size(size: int) -> str:
    """Human-readable file size (B, KB, MB)."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def format_unit(unit: DocumentUnit) -> str:
    return f"--- {unit.heading} ---\n\n{unit.text}"


def format_matches(matches: List[SearchMatch], query: str) -> str:
    if not matches:
        return f'No matches found for "{query}".'
    blocks = [f"[{match.label} {match.identifier}]:\n...{match.snippet}..." for match in matches]
    return f'Found "{query}" in {len(matches)} location(s):\n\n' + "\n\n".join(blocks)


def content_title(extractor: DocumentExtractor) -> str:
    """Short kind name used in full-read banners, e.g. "PDF" or "CSV"."""
    return extractor.display_name.split()[0]


def describe_document(extractor: DocumentExtractor) -> str:
    """Summary shown by get_document_info."""
    name = os.path.basename(extractor.file_path)
    size = format_size(os.path.getsize(extractor.file_path))
    lines = [f"File: {name} ({size})", extractor.describe()]
    if extractor.name_addressed:
        lines.append("Use read_document_page with a sheet name to read a sheet.")
    else:
        label = extractor.unit_label.lower()
        lines.append(f"Use read_document_page with a {label} number to read a {label}.")
    return "\n".join(lines)


def read_full(extractor: DocumentExtractor, max_chunks: int) -> str:
    """
    Concatenate up to max_chunks units of a document.

    A CSV file whose chunks all fit is returned verbatim. Otherwise units are
    printed with their headings and, when the document has more units than
    max_chunks, a closing notice states how many were left out.
    """
    title = content_title(extractor)

    if isinstance(extractor, CsvExtractor):
        total_chunks = extractor.count_units()
        if total_chunks <= max_chunks:
            return f"=== {title} Content ===\n\n{extractor.read_all()}"

    units = list(extractor.iter_units())
    total = len(units)
    shown = units[:max_chunks]
    plural = extractor.unit_label.lower() + ("" if total == 1 else "s")

    blocks = [f"=== {title} Content ({total} {plural}) ==="]
    for identifier, text in shown:
        blocks.append(f"--- {extractor.unit_heading(identifier, total)} ---\n\n{text}")

    omitted = total - len(shown)
    if omitted > 0:
        logger.info(f"Full read of {extractor.file_path} truncated at {len(shown)} of {total} units")
        blocks.append(
            f"... [Truncated: showing {len(shown)} of {total} {plural}, "
            f"{omitted} not shown. Use read_document_page for the rest.]"
        )
    return "\n\n".join(blocks)
