################################################################################
# Doc Reader MCP - Document Extractors
# One extractor per document kind, all exposing the same unit interface
################################################################################

import csv
import io
import logging
import math
import os
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import mammoth
import openpyxl
import pandas as pd
from markitdown import MarkItDown
from pdfminer.high_level import extract_pages
from pdfminer.layout import LAParams, LTChar, LTTextBox, LTTextLine
from pdfminer.pdfdocument import PDFDocument, PDFEncryptionError
from pdfminer.pdfpage import PDFPage
from pdfminer.pdfparser import PDFParser
from pptx import Presentation
from pptx.shapes.group import GroupShape

from .chunking import chunk_paragraphs, chunk_rows, chunk_text
from .config import Config, get_config
from .errors import (
    PasswordRequiredError,
    SheetNotFoundError,
    UnitOutOfRangeError,
    UnsupportedFormatError,
)

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ("pdf", "docx", "xlsx", "xls", "pptx", "ppt", "csv")

EMPTY_CSV_MARKER = "(empty CSV file)"

UnitId = Union[int, str]


def detect_format(file_path: str) -> str:
    """
    Map a file path to its document kind by extension.

    Args:
        file_path: Any path string

    Returns:
        Lower-cased extension without the dot, e.g. "pdf"

    Raises:
        UnsupportedFormatError: If the extension is not supported

    Example:
        >>> detect_format("/tmp/Report.PDF")
        'pdf'
    """
    extension = os.path.splitext(file_path)[1].lower().lstrip(".")
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(extension, SUPPORTED_EXTENSIONS)
    return extension


class DocumentUnit:
    """One addressable slice of a document.

    Attributes:
        identifier: Page/chunk/slide number (1-indexed) or sheet name
        label: Unit kind shown to the caller ("Page", "Chunk", "Slide", "Sheet")
        text: Extracted text of the unit
        total_units: Number of units in the document
        heading: Position line, e.g. "Page 2 of 7"
    """

    def __init__(
        self,
        identifier: UnitId,
        label: str,
        text: str,
        total_units: int,
        heading: Optional[str] = None,
    ):
        self.identifier = identifier
        self.label = label
        self.text = text
        self.total_units = total_units
        self.heading = heading or f"{label} {identifier} of {total_units}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "label": self.label,
            "text": self.text,
            "total_units": self.total_units,
            "heading": self.heading,
        }


class DocumentExtractor:
    """
    Base class for per-format extractors.

    An extractor is bound to one file for the duration of one request. It
    never caches parsed content: every call re-reads the file from disk.
    Subclasses either implement load_units() (documents split into numbered
    units) or override the access methods entirely (Excel, PDF).
    """

    kind = "document"
    display_name = "Document"
    unit_label = "Unit"
    name_addressed = False

    def __init__(self, file_path: str, password: Optional[str] = None, config: Optional[Config] = None):
        self.file_path = file_path
        self.password = password
        self.config = config or get_config()
        self.extension = detect_format(file_path)

    def load_units(self) -> List[str]:
        """Parse the file and return the text of every unit in order."""
        raise NotImplementedError

    def count_units(self) -> int:
        return len(self.load_units())

    def list_units(self) -> List[UnitId]:
        return list(range(1, self.count_units() + 1))

    def fetch(self, identifier: UnitId) -> DocumentUnit:
        """Return one unit together with the total unit count."""
        units = self.load_units()
        number = self._check_number(identifier, len(units))
        return DocumentUnit(
            number, self.unit_label, units[number - 1], len(units),
            heading=self.unit_heading(number, len(units)),
        )

    def read_unit(self, identifier: UnitId) -> str:
        return self.fetch(identifier).text

    def iter_units(self) -> Iterator[Tuple[UnitId, str]]:
        """Yield (identifier, text) pairs in unit order."""
        for number, text in enumerate(self.load_units(), start=1):
            yield number, text

    def iter_searchable(self) -> Iterator[Tuple[UnitId, str]]:
        """Yield the text search should scan for each unit; the unit text by default."""
        return self.iter_units()

    def unit_heading(self, identifier: UnitId, total: int) -> str:
        return f"{self.unit_label} {identifier} of {total}"

    def describe(self) -> str:
        total = self.count_units()
        return f"{self.display_name} divided into {total} readable {self._plural(total)}."

    def _plural(self, count: int) -> str:
        label = self.unit_label.lower()
        return label if count == 1 else label + "s"

    def _check_number(self, identifier: UnitId, total: int) -> int:
        if isinstance(identifier, bool) or not isinstance(identifier, int):
            raise UnitOutOfRangeError(identifier, total, self.unit_label)
        if identifier < 1 or identifier > total:
            raise UnitOutOfRangeError(identifier, total, self.unit_label)
        return identifier


# ============================================================================
# PDF
# ============================================================================

# Baselines closer than this (in points) count as the same output line
BASELINE_TOLERANCE = 1.0


def _line_baseline(line: LTTextLine) -> float:
    """Baseline of a text line: the y translation of its first glyph."""
    for item in line:
        if isinstance(item, LTChar):
            return item.matrix[5]
    return line.y0


def _layout_page_text(layout_page) -> str:
    """
    Rebuild the text of one pdfminer layout page line by line.

    Text lines are keyed on their baseline, not their bounding box, so text
    of different font sizes sitting on the same baseline stays together.
    Rows are ordered top-to-bottom and items within a row left-to-right;
    items whose baselines lie within BASELINE_TOLERANCE share an output line.
    """
    positioned = []
    for element in layout_page:
        if isinstance(element, LTTextBox):
            lines = [line for line in element if isinstance(line, LTTextLine)]
        elif isinstance(element, LTTextLine):
            lines = [element]
        else:
            continue
        for line in lines:
            text = line.get_text().strip()
            if text:
                positioned.append((_line_baseline(line), line.x0, text))

    positioned.sort(key=lambda item: (-item[0], item[1]))

    rows: List[List[Tuple[float, str]]] = []
    row_baseline = None
    for baseline, x0, text in positioned:
        if rows and abs(baseline - row_baseline) <= BASELINE_TOLERANCE:
            rows[-1].append((x0, text))
        else:
            rows.append([(x0, text)])
            row_baseline = baseline
    return "\n".join(" ".join(text for _, text in sorted(row)) for row in rows)


class PdfExtractor(DocumentExtractor):
    """Native PDF pages via pdfminer.six layout analysis."""

    kind = "pdf"
    display_name = "PDF document"
    unit_label = "Page"

    @contextmanager
    def _encryption_guard(self):
        try:
            yield
        except PDFEncryptionError as e:
            logger.info(f"PDF requires a password: {self.file_path} ({type(e).__name__})")
            raise PasswordRequiredError(self.file_path, password_given=bool(self.password)) from e

    def count_units(self) -> int:
        with self._encryption_guard():
            with open(self.file_path, "rb") as fp:
                parser = PDFParser(fp)
                document = PDFDocument(parser, password=self.password or "")
                return sum(1 for _ in PDFPage.create_pages(document))

    def load_units(self) -> List[str]:
        return [text for _, text in self.iter_units()]

    def iter_units(self) -> Iterator[Tuple[UnitId, str]]:
        with self._encryption_guard():
            pages = extract_pages(self.file_path, password=self.password or "", laparams=LAParams())
            try:
                for number, layout_page in enumerate(pages, start=1):
                    yield number, _layout_page_text(layout_page)
            finally:
                pages.close()

    def fetch(self, identifier: UnitId) -> DocumentUnit:
        total = self.count_units()
        number = self._check_number(identifier, total)
        with self._encryption_guard():
            pages = extract_pages(
                self.file_path,
                password=self.password or "",
                page_numbers=[number - 1],
                laparams=LAParams(),
            )
            try:
                text = "".join(_layout_page_text(page) for page in pages)
            finally:
                pages.close()
        return DocumentUnit(number, self.unit_label, text.strip(), total)

    def describe(self) -> str:
        total = self.count_units()
        return f"PDF document with {total} {self._plural(total)}."


# ============================================================================
# Word
# ============================================================================

class WordExtractor(DocumentExtractor):
    """Word .docx: mammoth raw text, then paragraph-aware chunks."""

    kind = "word"
    display_name = "Word document"
    unit_label = "Chunk"

    def extract_text(self) -> str:
        with open(self.file_path, "rb") as docx_file:
            result = mammoth.extract_raw_text(docx_file)
        for message in result.messages:
            logger.debug(f"mammoth: {message}")
        return result.value

    def load_units(self) -> List[str]:
        return chunk_paragraphs(self.extract_text(), self.config.chunk_size)


# ============================================================================
# Excel
# ============================================================================

def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def rows_to_csv(rows: List[List[Any]]) -> str:
    """
    Serialize sheet rows as comma-separated text.

    Fully blank rows and fully blank columns are dropped; fields are quoted
    only when they contain a delimiter, quote or newline.
    """
    cleaned = [[_cell_text(value) for value in row] for row in rows]
    cleaned = [row for row in cleaned if any(cell.strip() for cell in row)]
    if not cleaned:
        return ""

    width = max(len(row) for row in cleaned)
    padded = [row + [""] * (width - len(row)) for row in cleaned]
    keep = [col for col in range(width) if any(row[col].strip() for row in padded)]

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for row in padded:
        writer.writerow([row[col] for col in keep])
    return buffer.getvalue().rstrip("\n")


class _OpenpyxlWorkbook:
    def __init__(self, workbook):
        self._workbook = workbook
        self.sheet_names = list(workbook.sheetnames)

    def rows(self, sheet_name: str) -> List[List[Any]]:
        sheet = self._workbook[sheet_name]
        if not hasattr(sheet, "iter_rows"):
            # Chartsheets carry no cells
            return []
        return [list(row) for row in sheet.iter_rows(values_only=True)]


class _PandasWorkbook:
    def __init__(self, workbook: pd.ExcelFile):
        self._workbook = workbook
        self.sheet_names = [str(name) for name in workbook.sheet_names]

    def rows(self, sheet_name: str) -> List[List[Any]]:
        frame = self._workbook.parse(sheet_name, header=None)
        return frame.values.tolist()


class ExcelExtractor(DocumentExtractor):
    """Excel workbooks, one unit per sheet addressed by exact name."""

    kind = "excel"
    display_name = "Excel document"
    unit_label = "Sheet"
    name_addressed = True

    @contextmanager
    def _open_workbook(self):
        if self.extension == "xls":
            with pd.ExcelFile(self.file_path, engine="xlrd") as workbook:
                yield _PandasWorkbook(workbook)
        else:
            workbook = openpyxl.load_workbook(self.file_path, read_only=True, data_only=True)
            try:
                yield _OpenpyxlWorkbook(workbook)
            finally:
                workbook.close()

    def list_units(self) -> List[UnitId]:
        with self._open_workbook() as workbook:
            return list(workbook.sheet_names)

    def count_units(self) -> int:
        return len(self.list_units())

    def load_units(self) -> List[str]:
        return [text for _, text in self.iter_units()]

    def fetch(self, identifier: UnitId) -> DocumentUnit:
        sheet_name = str(identifier)
        with self._open_workbook() as workbook:
            if sheet_name not in workbook.sheet_names:
                raise SheetNotFoundError(sheet_name, workbook.sheet_names)
            text = rows_to_csv(workbook.rows(sheet_name))
            position = workbook.sheet_names.index(sheet_name) + 1
            total = len(workbook.sheet_names)
        return DocumentUnit(
            sheet_name, self.unit_label, text, total,
            heading=f"{self.unit_heading(sheet_name, total)} ({position} of {total})",
        )

    def iter_units(self) -> Iterator[Tuple[UnitId, str]]:
        with self._open_workbook() as workbook:
            sheets = [(name, rows_to_csv(workbook.rows(name))) for name in workbook.sheet_names]
        yield from sheets

    def unit_heading(self, identifier: UnitId, total: int) -> str:
        return f"Sheet: {identifier}"

    def describe(self) -> str:
        names = self.list_units()
        return f"Excel document with {len(names)} {self._plural(len(names))}: {', '.join(names)}."


# ============================================================================
# PowerPoint
# ============================================================================

LIBREOFFICE_COMMANDS = ("soffice", "libreoffice")
CONVERSION_TIMEOUT = 120


def find_libreoffice() -> Optional[str]:
    """Locate the LibreOffice CLI on PATH."""
    for command in LIBREOFFICE_COMMANDS:
        path = shutil.which(command)
        if path:
            return path
    return None


def convert_with_libreoffice(file_path: str, target: str, output_dir: str) -> str:
    """
    Convert an office file with headless LibreOffice.

    Args:
        file_path: Source document
        target: Target extension, e.g. "pptx"
        output_dir: Directory receiving the converted file

    Returns:
        Path to the converted file

    Raises:
        RuntimeError: If LibreOffice is missing, fails or times out
    """
    soffice = find_libreoffice()
    if soffice is None:
        raise RuntimeError(
            "LibreOffice is required to read legacy .ppt files. "
            "Install it and make sure 'soffice' is on PATH."
        )

    logger.info(f"Converting {file_path} to .{target} with LibreOffice")
    try:
        result = subprocess.run(
            [soffice, "--headless", "--convert-to", target, "--outdir", output_dir, file_path],
            capture_output=True,
            text=True,
            timeout=CONVERSION_TIMEOUT,
        )
    except subprocess.TimeoutExpired as e:
        raise RuntimeError(f"LibreOffice conversion timed out after {CONVERSION_TIMEOUT}s") from e

    if result.returncode != 0:
        logger.error(f"LibreOffice conversion failed: {result.stderr}")
        raise RuntimeError(f"LibreOffice conversion failed: {result.stderr.strip()}")

    stem = os.path.splitext(os.path.basename(file_path))[0]
    converted = os.path.join(output_dir, f"{stem}.{target}")
    if not os.path.exists(converted):
        raise RuntimeError("LibreOffice conversion completed but produced no output file")
    return converted


def _shape_texts(shape) -> List[str]:
    """Collect text from a shape: text frames, table cells, grouped shapes."""
    if isinstance(shape, GroupShape):
        texts = []
        for child in shape.shapes:
            texts.extend(_shape_texts(child))
        return texts
    if shape.has_text_frame:
        return [shape.text_frame.text]
    if shape.has_table:
        return [
            " | ".join(cell.text.strip() for cell in row.cells)
            for row in shape.table.rows
        ]
    return []


class PowerPointExtractor(DocumentExtractor):
    """
    PowerPoint presentations.

    .pptx files expose slide boundaries through python-pptx, so every slide is
    one unit (a slide without text still gets a placeholder unit to keep
    numbering stable). Legacy .ppt files have no slide boundaries available;
    they are converted to .pptx with LibreOffice and their flat text (via
    MarkItDown) goes through the chunking policy.
    """

    kind = "powerpoint"
    display_name = "PowerPoint document"

    @property
    def slide_aware(self) -> bool:
        return self.extension == "pptx"

    @property
    def unit_label(self) -> str:
        return "Slide" if self.slide_aware else "Chunk"

    def load_slides(self) -> List[str]:
        with open(self.file_path, "rb") as pptx_file:
            presentation = Presentation(pptx_file)

        slides = []
        for number, slide in enumerate(presentation.slides, start=1):
            parts = []
            for shape in slide.shapes:
                parts.extend(text.strip() for text in _shape_texts(shape))
            text = "\n".join(part for part in parts if part)
            slides.append(text or f"(Slide {number} has no text)")
        return slides

    def load_flat_chunks(self) -> List[str]:
        with tempfile.TemporaryDirectory(prefix="ppt_convert_") as output_dir:
            converted = convert_with_libreoffice(self.file_path, "pptx", output_dir)
            result = MarkItDown(enable_plugins=True).convert(converted)
        return chunk_text(result.text_content or "", self.config.chunk_size)

    def load_units(self) -> List[str]:
        if self.slide_aware:
            return self.load_slides()
        return self.load_flat_chunks()


# ============================================================================
# CSV
# ============================================================================

def format_csv_rows(rows: List[List[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue().rstrip("\n")


class CsvExtractor(DocumentExtractor):
    """CSV files: header row plus row-range chunks."""

    kind = "csv"
    display_name = "CSV file"
    unit_label = "Chunk"

    def read_records(self) -> List[List[str]]:
        """All non-blank records, header first. Quoted fields are honored."""
        with open(self.file_path, "r", encoding="utf-8-sig", errors="replace", newline="") as f:
            return [row for row in csv.reader(f) if any(cell.strip() for cell in row)]

    def read_all(self) -> str:
        """The whole file as text."""
        with open(self.file_path, "r", encoding="utf-8-sig", errors="replace") as f:
            return f.read().strip()

    def get_info(self) -> Dict[str, Any]:
        records = self.read_records()
        rows_per_chunk = self.config.csv_rows_per_chunk
        total_rows = max(0, len(records) - 1)
        return {
            "total_rows": total_rows,
            "columns": [column.strip() for column in records[0]] if records else [],
            "total_chunks": max(1, math.ceil(total_rows / rows_per_chunk)),
            "rows_per_chunk": rows_per_chunk,
        }

    def load_units(self) -> List[str]:
        records = self.read_records()
        if not records:
            return [EMPTY_CSV_MARKER]
        header, data = records[0], records[1:]
        groups = chunk_rows(data, self.config.csv_rows_per_chunk)
        if not groups:
            return [format_csv_rows([header])]
        return [format_csv_rows([header] + group) for group in groups]

    def iter_searchable(self) -> Iterator[Tuple[UnitId, str]]:
        """Data rows of each chunk, without the repeated header."""
        records = self.read_records()
        groups = chunk_rows(records[1:], self.config.csv_rows_per_chunk)
        for number, group in enumerate(groups, start=1):
            yield number, format_csv_rows(group)

    def row_range(self, chunk_number: int, total_rows: int) -> Tuple[int, int]:
        rows_per_chunk = self.config.csv_rows_per_chunk
        start = (chunk_number - 1) * rows_per_chunk + 1
        end = min(chunk_number * rows_per_chunk, total_rows)
        return start, end

    def fetch(self, identifier: UnitId) -> DocumentUnit:
        unit = super().fetch(identifier)
        total_rows = max(0, len(self.read_records()) - 1)
        if total_rows:
            start, end = self.row_range(unit.identifier, total_rows)
            unit.heading = f"{unit.heading} (rows {start}-{end} of {total_rows})"
        return unit

    def describe(self) -> str:
        info = self.get_info()
        return (
            f"CSV file with {info['total_rows']} data rows.\n"
            f"Total rows: {info['total_rows']}\n"
            f"Columns: {', '.join(info['columns']) if info['columns'] else '(none)'}\n"
            f"Total chunks: {info['total_chunks']} ({info['rows_per_chunk']} rows per chunk)"
        )


# ============================================================================
# Selection
# ============================================================================

EXTRACTORS = {
    "pdf": PdfExtractor,
    "docx": WordExtractor,
    "xlsx": ExcelExtractor,
    "xls": ExcelExtractor,
    "pptx": PowerPointExtractor,
    "ppt": PowerPointExtractor,
    "csv": CsvExtractor,
}


def get_extractor(
    file_path: str,
    password: Optional[str] = None,
    config: Optional[Config] = None,
) -> DocumentExtractor:
    """
    Select the extractor for a file by its extension.

    Args:
        file_path: Path to the document
        password: Password for encrypted PDFs (ignored by other kinds)
        config: Optional configuration override

    Returns:
        A DocumentExtractor bound to the file

    Raises:
        UnsupportedFormatError: If the extension is not supported
    """
    extension = detect_format(file_path)
    return EXTRACTORS[extension](file_path, password=password, config=config)
