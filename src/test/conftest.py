"""
Shared fixtures: sample documents generated at test time.

Each fixture writes a small but real document with the same libraries the
readers use, so extraction runs end to end without checked-in binaries.
"""

import csv
import sys
import zipfile
from pathlib import Path

import fitz
import openpyxl
import pytest
from pptx import Presentation
from pptx.util import Inches

sys.path.insert(0, str(Path(__file__).parent.parent))

PDF_PASSWORD = "secret"

CSV_ROWS = [
    ["Name", "Age", "City"],
    ["Alice", "30", "New York"],
    ["Bob", "25", "London"],
    ["Charlie", "35", "Tokyo"],
    ["Dave", "41", "Paris, France"],
    ["Eve", "28", "Berlin"],
    ["Frank", "52", "Madrid"],
    ["Grace", "33", "Rome"],
    ["Heidi", "47", "Oslo"],
    ["Henry", "39", "Dublin"],
]


def write_pdf(path: Path, pages, **save_kwargs) -> Path:
    """
    Write a PDF with one page per entry. Each entry is a list of (x, y, text)
    or (x, y, text, fontsize) tuples; the font size defaults to 12.
    """
    doc = fitz.open()
    for lines in pages:
        page = doc.new_page()
        for x, y, text, *size in lines:
            page.insert_text((x, y), text, fontsize=size[0] if size else 12)
    doc.save(str(path), **save_kwargs)
    doc.close()
    return path


SAMPLE_PDF_PAGES = [
    [(72, 72, "Quarterly report"), (72, 100, "Revenue grew in Tokyo")],
    [],
    [(72, 72, "Closing remarks"), (72, 100, "Left"), (300, 100, "Right")],
]


@pytest.fixture
def sample_pdf(tmp_path):
    """Three pages; page 2 is blank."""
    return write_pdf(tmp_path / "report.pdf", SAMPLE_PDF_PAGES)


@pytest.fixture
def encrypted_pdf(tmp_path):
    return write_pdf(
        tmp_path / "locked.pdf",
        [[(72, 72, "Confidential figures")]],
        encryption=fitz.PDF_ENCRYPT_AES_128,
        owner_pw="owner-" + PDF_PASSWORD,
        user_pw=PDF_PASSWORD,
    )


@pytest.fixture
def sample_csv(tmp_path):
    path = tmp_path / "people.csv"
    with open(path, "w", encoding="utf-8", newline="") as f:
        csv.writer(f).writerows(CSV_ROWS)
    return path


@pytest.fixture
def sample_xlsx(tmp_path):
    path = tmp_path / "test.xlsx"
    workbook = openpyxl.Workbook()
    employees = workbook.active
    employees.title = "Employees"
    for row in [["Name", "Age", "City"], ["Alice", 30, "New York"], ["Bob", 25, "London"], ["Charlie", 35, "Tokyo"]]:
        employees.append(row)
    products = workbook.create_sheet("Products")
    for row in [["Product", "Price", "Stock"], ["Widget", 9.99, 100], ["Gadget", 19.99, 50], ["Doohickey", 4.99, 200]]:
        products.append(row)
    workbook.save(path)
    workbook.close()
    return path


@pytest.fixture
def sample_pptx(tmp_path):
    """Slide 1 has text, slide 2 is empty, slide 3 has a title and a table."""
    path = tmp_path / "deck.pptx"
    presentation = Presentation()

    first = presentation.slides.add_slide(presentation.slide_layouts[1])
    first.shapes.title.text = "Welcome"
    first.placeholders[1].text = "Our office in Tokyo"

    presentation.slides.add_slide(presentation.slide_layouts[6])

    third = presentation.slides.add_slide(presentation.slide_layouts[5])
    third.shapes.title.text = "Summary"
    table = third.shapes.add_table(2, 2, Inches(1), Inches(2), Inches(4), Inches(1)).table
    table.cell(0, 0).text = "Metric"
    table.cell(0, 1).text = "Value"
    table.cell(1, 0).text = "Growth"
    table.cell(1, 1).text = "12%"

    presentation.save(str(path))
    return path


_CONTENT_TYPES = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
    '<Default Extension="xml" ContentType="application/xml"/>'
    '<Override PartName="/word/document.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
    '</Types>'
)

_PACKAGE_RELS = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
    '<Relationship Id="rId1" '
    'Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" '
    'Target="word/document.xml"/>'
    '</Relationships>'
)

_DOCUMENT_RELS = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships"/>'
)


def write_docx(path: Path, paragraphs) -> Path:
    """Write a minimal WordprocessingML package with plain paragraphs."""
    body = "".join(
        f'<w:p><w:r><w:t xml:space="preserve">{text}</w:t></w:r></w:p>' for text in paragraphs
    )
    document = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
        f'<w:body>{body}</w:body>'
        '</w:document>'
    )
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as package:
        package.writestr("[Content_Types].xml", _CONTENT_TYPES)
        package.writestr("_rels/.rels", _PACKAGE_RELS)
        package.writestr("word/document.xml", document)
        package.writestr("word/_rels/document.xml.rels", _DOCUMENT_RELS)
    return path


DOCX_PARAGRAPHS = [
    f"Paragraph {i} " + " ".join(["lorem ipsum"] * 15) + (" Tokyo" if i == 17 else "")
    for i in range(1, 31)
]


@pytest.fixture
def sample_docx(tmp_path):
    """Thirty ~190 character paragraphs; only paragraph 17 mentions Tokyo."""
    return write_docx(tmp_path / "notes.docx", DOCX_PARAGRAPHS)
