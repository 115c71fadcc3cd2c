# Copyright (c) 2025
# This source code is licensed under MIT License.

"""
Doc Reader MCP Server

A Model Context Protocol server that lets an assistant read local documents
in bounded slices: pages, chunks, slides or sheets. Supports PDF (including
password-protected and scanned PDFs via OCR), Word, Excel, PowerPoint and CSV.
"""

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Optional, Union

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from .config import get_config
from .documents import (
    describe_document,
    format_matches,
    format_size,
    format_unit,
    get_unit,
    parse_unit_number,
    read_full,
    search_units,
)
from .errors import (
    DocumentNotFoundError,
    DocumentReaderError,
    ExtractionError,
    MissingArgumentError,
    UnitOutOfRangeError,
    UnsupportedFormatError,
)
from .extractors import SUPPORTED_EXTENSIONS, DocumentExtractor, detect_format, get_extractor
from .ocr import PdfOcrEngine

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("doc_reader_mcp-server")


@contextmanager
def tool_errors(tool_name: str):
    """
    Run a tool body and convert failures into MCP tool errors.

    Reader errors keep their message; any other exception is wrapped in an
    ExtractionError first. Either way the caller sees
    "Error executing <tool_name>: <message>".
    """
    try:
        yield
    except DocumentReaderError as e:
        logger.error(f"Error executing {tool_name}: {e}")
        raise ToolError(f"Error executing {tool_name}: {e}") from e
    except Exception as e:
        logger.exception(f"Unexpected failure in {tool_name}")
        wrapped = ExtractionError(tool_name, e)
        raise ToolError(f"Error executing {tool_name}: {wrapped}") from wrapped


def require_argument(value: Any, name: str) -> Any:
    """Reject None and blank strings for a required argument."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingArgumentError(name)
    return value


def require_file(file_path: Optional[str]) -> str:
    require_argument(file_path, "file_path")
    if not os.path.isfile(file_path):
        raise DocumentNotFoundError(file_path)
    return file_path


def open_document(file_path: Optional[str], password: Optional[str] = None) -> DocumentExtractor:
    """Validate the path and bind the matching extractor. No parsing happens here."""
    require_file(file_path)
    return get_extractor(file_path, password=password or None, config=get_config())


@mcp.tool()
async def get_document_info(file_path: str, password: Optional[str] = None) -> str:
    """Get a summary of a document: its kind and how many pages, chunks, slides or sheets it has.

    USAGE STRATEGY:
    - Call this first to learn how a document is divided before reading it
    - CSV files also report the total row count and the column names
    - Excel files list their sheet names; read sheets by exact name

    Args:
        file_path: Absolute path to the document (.pdf, .docx, .xlsx, .xls, .pptx, .ppt, .csv)
        password: Password for an encrypted PDF

    Returns:
        A short text summary including the unit totals.
    """
    with tool_errors("get_document_info"):
        logger.info(f"get_document_info: {file_path}")
        extractor = open_document(file_path, password)
        return describe_document(extractor)


@mcp.tool()
async def read_document_page(
    file_path: str,
    page_or_sheet: Union[int, str],
    password: Optional[str] = None,
) -> str:
    """Read one page, chunk, slide or sheet of a document.

    Args:
        file_path: Absolute path to the document
        page_or_sheet: 1-indexed page/chunk/slide number, or the exact sheet name for Excel files
        password: Password for an encrypted PDF

    Returns:
        A "--- Page i of N ---" style header followed by the unit text.
    """
    with tool_errors("read_document_page"):
        logger.info(f"read_document_page: {file_path} [{page_or_sheet}]")
        extractor = open_document(file_path, password)
        require_argument(page_or_sheet, "page_or_sheet")
        return format_unit(get_unit(extractor, page_or_sheet))


@mcp.tool()
async def search_document(file_path: str, query: str, password: Optional[str] = None) -> str:
    """Search a document for text (case-insensitive, literal).

    Returns each page, chunk, slide or sheet containing the query with a
    snippet around the first occurrence in that unit.

    Args:
        file_path: Absolute path to the document
        query: Text to look for
        password: Password for an encrypted PDF

    Returns:
        "[Page i]:" blocks with snippets, or a no-matches message.
    """
    with tool_errors("search_document"):
        logger.info(f"search_document: {file_path} query={query!r}")
        extractor = open_document(file_path, password)
        require_argument(query, "query")
        matches = search_units(extractor, query, get_config().snippet_padding)
        return format_matches(matches, query)


@mcp.tool()
async def list_directory(directory_path: str) -> str:
    """List the supported documents in a directory (not recursive).

    Args:
        directory_path: Absolute path to the directory

    Returns:
        One line per supported file with its size.
    """
    with tool_errors("list_directory"):
        require_argument(directory_path, "directory_path")
        if not os.path.isdir(directory_path):
            raise DocumentNotFoundError(directory_path, kind="Directory")

        entries = []
        for name in sorted(os.listdir(directory_path)):
            full_path = os.path.join(directory_path, name)
            if not os.path.isfile(full_path):
                continue
            if os.path.splitext(name)[1].lower().lstrip(".") not in SUPPORTED_EXTENSIONS:
                continue
            entries.append(f"  {name} ({format_size(os.path.getsize(full_path))})")

        logger.info(f"list_directory: {directory_path} ({len(entries)} supported files)")
        if not entries:
            return f"No supported documents found in {directory_path}."
        return f"Supported documents in {directory_path} ({len(entries)}):\n" + "\n".join(entries)


@mcp.tool()
async def read_full_document(
    file_path: str,
    max_chunks: Optional[int] = None,
    password: Optional[str] = None,
) -> str:
    """Read a whole document in one call, up to a number of units.

    USAGE STRATEGY:
    - Good for short documents; for long ones prefer get_document_info + read_document_page
    - Output past max_chunks units is omitted and the result says how much was left out

    Args:
        file_path: Absolute path to the document
        max_chunks: Maximum number of pages/chunks/slides/sheets to include. Default: 10, at most 50.
        password: Password for an encrypted PDF

    Returns:
        The concatenated units under an "=== <Kind> Content ===" banner.
    """
    with tool_errors("read_full_document"):
        config = get_config()
        extractor = open_document(file_path, password)
        limit = config.full_read_default_chunks if max_chunks is None else max_chunks
        limit = max(1, min(int(limit), config.full_read_max_chunks))
        logger.info(f"read_full_document: {file_path} (max {limit} units)")
        return read_full(extractor, limit)


@mcp.tool()
async def ocr_pdf(
    file_path: str,
    page_number: Optional[int] = None,
    password: Optional[str] = None,
) -> str:
    """Recognize text in a scanned PDF with Tesseract OCR.

    USAGE STRATEGY:
    - Use when read_document_page returns little or no text for a PDF page
    - Pass page_number to OCR a single page; without it the first 20 pages are processed

    Args:
        file_path: Absolute path to the PDF
        page_number: 1-indexed page to OCR. Default: all pages, up to the limit.
        password: Password for an encrypted PDF

    Returns:
        "--- OCR Page i of N ---" blocks with the recognized text.
    """
    with tool_errors("ocr_pdf"):
        config = get_config()
        require_file(file_path)
        extension = detect_format(file_path)
        if extension != "pdf":
            raise UnsupportedFormatError(extension, ("pdf",))

        engine = PdfOcrEngine(
            file_path,
            language=config.ocr_language,
            scale=config.ocr_scale,
            password=password or None,
        )
        with engine:
            total = engine.page_count
            if page_number is not None:
                number = parse_unit_number(page_number)
                if number is None:
                    raise UnitOutOfRangeError(page_number, total, "Page")
                logger.info(f"ocr_pdf: {file_path} page {number}")
                return _format_ocr_page(number, total, engine.recognize_page(number))

            logger.info(f"ocr_pdf: {file_path} ({total} pages)")
            texts, total = engine.recognize_all(config.ocr_max_pages)

        blocks = [_format_ocr_page(number, total, text) for number, text in enumerate(texts, start=1)]
        if total > len(texts):
            blocks.append(
                f"... [OCR limited to the first {len(texts)} of {total} pages. "
                f"Pass page_number to OCR a later page.]"
            )
        return "\n\n".join(blocks)


def _format_ocr_page(number: int, total: int, text: str) -> str:
    return f"--- OCR Page {number} of {total} ---\n\n{text or '(no text detected)'}"


@mcp.tool()
async def get_supported_formats() -> Dict[str, Any]:
    """Get the supported file formats and how each is divided into units.

    Returns:
        A dictionary mapping each extension to its description.
    """
    return {
        "success": True,
        "formats": {
            "pdf": "PDF documents - one unit per page (scanned pages via ocr_pdf)",
            "docx": "Word documents - paragraph-aware chunks",
            "xlsx": "Excel workbooks - one unit per sheet, addressed by name",
            "xls": "Legacy Excel workbooks - one unit per sheet, addressed by name",
            "pptx": "PowerPoint presentations - one unit per slide",
            "ppt": "Legacy PowerPoint presentations - text chunks (requires LibreOffice for conversion)",
            "csv": "CSV files - chunks of rows, header repeated in each chunk",
        },
    }


def main():
    """Main entry point for running MCP server."""
    import argparse

    parser = argparse.ArgumentParser(description="Doc Reader MCP Server - Page-level document reading tools")
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport method: 'stdio' or 'http' (default: stdio)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port to use when running with HTTP transport (default: 8080)",
    )
    parser.add_argument(
        "--path",
        type=str,
        default="/mcp",
        help="URL path to use when running with HTTP transport (default: /mcp)",
    )

    args = parser.parse_args()
    logger.info(f"Starting Doc Reader MCP server ({args.transport}) with {get_config()!r}")

    if args.transport == "stdio":
        mcp.run(transport="stdio")
    else:
        mcp.run(transport="streamable-http", port=args.port, path=args.path)


if __name__ == "__main__":
    main()
