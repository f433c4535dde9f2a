"""Tests for per-format extraction and reconstruction."""

import csv
import io
import shutil
import zipfile
from pathlib import Path

import pytest
from docx import Document
from openpyxl import Workbook, load_workbook
from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.cell.text import InlineFont
from pptx import Presentation
from pypdf import PdfReader
import reportlab
from reportlab.lib.pagesizes import letter
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from translator.exceptions import ReconstructionFailure, UnsupportedFileType
from translator.formats import DocumentKind, default_handlers, missing_kinds
from translator.formats import pdf as pdf_format
from translator.formats.csv_format import CsvHandler, build_csv, extract_csv_text
from translator.formats.pdf import FALLBACK_FONT, build_pdf, extract_pdf_text, select_font, wrap_text
from translator.formats.presentation import PresentationHandler, extract_slide_texts
from translator.formats.spreadsheet import SpreadsheetHandler
from translator.formats.text import TextHandler
from translator.formats.word import WordHandler, build_docx, extract_docx_text


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------

VERA_TTF = Path(reportlab.__file__).parent / "fonts" / "Vera.ttf"


def _cp1252_encodable(ch: str) -> bool:
    try:
        ch.encode("cp1252")
    except UnicodeEncodeError:
        return False
    return True


def _pptx_zip(slides: dict) -> bytes:
    """Minimal archive holding only slide parts, keyed by part name."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        for name, body in slides.items():
            archive.writestr(name, f'<p:sld xmlns:a="a" xmlns:p="p">{body}</p:sld>')
    return buffer.getvalue()


def _slide_texts(data: bytes) -> list:
    deck = Presentation(io.BytesIO(data))
    return [[shape.text_frame.text for shape in slide.shapes] for slide in deck.slides]


def _workbook_bytes(workbook: Workbook) -> bytes:
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _pdf_with_pages(*pages: str) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=letter)
    for text in pages:
        pdf.drawString(72, 720, text)
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# DocumentKind
# ---------------------------------------------------------------------------

class TestDocumentKind:
    @pytest.mark.parametrize(
        "filename, kind",
        [
            ("report.pdf", DocumentKind.PDF),
            ("Report.PDF", DocumentKind.PDF),
            ("letter.docx", DocumentKind.WORD),
            ("budget.XLSX", DocumentKind.SPREADSHEET),
            ("deck.pptx", DocumentKind.PRESENTATION),
            ("people.csv", DocumentKind.CSV),
            ("notes.txt", DocumentKind.TEXT),
        ],
    )
    def test_from_filename(self, filename, kind):
        assert DocumentKind.from_filename(filename) is kind

    def test_unknown_extension(self):
        with pytest.raises(UnsupportedFileType, match="Unsupported file type: .xyz") as exc:
            DocumentKind.from_filename("archive.xyz")
        assert exc.value.extension == ".xyz"

    def test_no_extension(self):
        with pytest.raises(UnsupportedFileType, match=r"\(none\)"):
            DocumentKind.from_filename("README")

    def test_default_handlers_cover_every_kind(self):
        handlers = default_handlers()
        assert missing_kinds(handlers) == []
        assert all(handlers[kind].kind is kind for kind in DocumentKind)


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

class TestCsv:
    def test_extract_flattens_rows(self):
        text = extract_csv_text(b"name,age\nAlice,30\n\nBob,25\n")
        assert text == "name|||age\n\nAlice|||30\n\nBob|||25"

    def test_extract_empty(self):
        assert extract_csv_text(b"") == ""

    def test_build_fills_missing_values(self):
        assert build_csv("a ||| b\n\nx") == b"a,b\nx,\n"

    def test_build_header_only(self):
        assert build_csv("name|||age") == b"name,age\n"

    def test_build_empty(self):
        assert build_csv("") == b""

    async def test_round_trip_through_handler(self, make_context, fake_client):
        output = await CsvHandler().translate(b"name,age\nAlice,30\nBob,25\n", make_context())

        rows = list(csv.DictReader(io.StringIO(output.decode("utf-8"))))
        assert len(rows) == 2
        assert list(rows[0].keys()) == ["T:name", "age"]
        assert rows[0] == {"T:name": "Alice", "age": "30"}
        assert rows[1] == {"T:name": "Bob", "age": "25"}
        assert len(fake_client.calls) == 1


# ---------------------------------------------------------------------------
# TXT
# ---------------------------------------------------------------------------

class TestText:
    async def test_translates_utf8(self, make_context):
        output = await TextHandler().translate("Chào bạn".encode("utf-8"), make_context())
        assert output.decode("utf-8") == "T:Chào bạn"

    async def test_invalid_bytes_are_replaced(self, make_context):
        output = await TextHandler().translate(b"caf\xff", make_context())
        assert output.decode("utf-8") == "T:caf\ufffd"


# ---------------------------------------------------------------------------
# DOCX
# ---------------------------------------------------------------------------

class TestWord:
    def test_extract_paragraphs_and_tables(self):
        document = Document()
        document.add_paragraph("Hello")
        table = document.add_table(rows=1, cols=2)
        table.cell(0, 0).text = "Left"
        table.cell(0, 1).text = "Right"
        document.add_paragraph("World")
        buffer = io.BytesIO()
        document.save(buffer)

        text = extract_docx_text(buffer.getvalue()).strip()
        assert text == "Hello\n\nLeft\n\nRight\n\nWorld"

    def test_build_one_paragraph_per_block(self):
        document = Document(io.BytesIO(build_docx("First\n\nSecond\n\nThird")))
        assert [p.text for p in document.paragraphs if p.text] == ["First", "Second", "Third"]

    async def test_handler(self, make_context):
        document = Document()
        document.add_paragraph("Hello")
        buffer = io.BytesIO()
        document.save(buffer)

        output = await WordHandler().translate(buffer.getvalue(), make_context())
        paragraphs = [p.text for p in Document(io.BytesIO(output)).paragraphs if p.text]
        assert paragraphs == ["T:Hello"]


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------

class TestWrapText:
    def test_wraps_under_width(self):
        assert wrap_text("aaa bbb ccc", 10, len) == ["aaa bbb", "ccc"]

    def test_newline_forces_break(self):
        assert wrap_text("aaa\nbbb", 100, len) == ["aaa", "bbb"]

    def test_blank_line_is_kept(self):
        assert wrap_text("aaa\n\nbbb", 100, len) == ["aaa", "", "bbb"]

    def test_long_word_gets_its_own_line(self):
        assert wrap_text("a verylongword b", 5, len) == ["a", "verylongword", "b"]


class TestPdf:
    def test_extract_joins_pages(self):
        text = extract_pdf_text(_pdf_with_pages("Page one", "Page two"))
        assert "\n\n" in text
        assert text.index("Page one") < text.index("Page two")

    def test_latin_text_uses_builtin_font(self, monkeypatch, tmp_path):
        monkeypatch.setattr(pdf_format, "SYSTEM_FONT_FILES", ())
        assert select_font("Bonjour café", "French", str(tmp_path)) == FALLBACK_FONT

    def test_unrenderable_text_is_rejected(self, monkeypatch, tmp_path):
        monkeypatch.setattr(pdf_format, "SYSTEM_FONT_FILES", ())

        with pytest.raises(ReconstructionFailure, match="Roboto-Regular.ttf"):
            build_pdf("Xin chào thế giới", "Vietnamese", str(tmp_path))

    def test_cjk_falls_back_to_cid_font(self, monkeypatch, tmp_path):
        monkeypatch.setattr(pdf_format, "SYSTEM_FONT_FILES", ())

        assert select_font("日本語のテキスト", "Japanese", str(tmp_path)) == "HeiseiKakuGo-W5"
        assert build_pdf("日本語のテキスト", "Japanese", str(tmp_path)).startswith(b"%PDF")

    def test_mapped_font_round_trips_non_latin_text(self, monkeypatch, tmp_path):
        monkeypatch.setattr(pdf_format, "SYSTEM_FONT_FILES", ())
        shutil.copy(VERA_TTF, tmp_path / "Roboto-Regular.ttf")
        covered = TTFont("VeraCoverage", str(VERA_TTF)).face.charToGlyph
        sample = "".join(
            ch for ch in "ΩπŁł≤≥∞√" if ord(ch) in covered and not _cp1252_encodable(ch)
        )
        assert sample

        output = build_pdf(f"Hello {sample}", "Vietnamese", str(tmp_path))

        text = PdfReader(io.BytesIO(output)).pages[0].extract_text()
        assert sample in text

    def test_build_paginates(self, tmp_path):
        text = "\n".join(f"Line {i}" for i in range(120))
        reader = PdfReader(io.BytesIO(build_pdf(text, "French", str(tmp_path))))

        assert len(reader.pages) >= 3
        assert "Line 0" in reader.pages[0].extract_text()
        assert "Line 119" in reader.pages[-1].extract_text()

    async def test_handler(self, make_context):
        output = await default_handlers()[DocumentKind.PDF].translate(
            _pdf_with_pages("Hello"), make_context()
        )
        assert "T:Hello" in PdfReader(io.BytesIO(output)).pages[0].extract_text()


# ---------------------------------------------------------------------------
# XLSX
# ---------------------------------------------------------------------------

class TestSpreadsheet:
    async def test_distinct_texts_translated_once(self, make_context, fake_client):
        workbook = Workbook()
        sheet = workbook.active
        sheet["A1"] = "Hello"
        sheet["A2"] = "Hello"
        sheet["B1"] = "World"
        sheet["B2"] = 42
        sheet["C1"] = "   "
        sheet["D1"] = "=SUM(B2:B2)"
        other = workbook.create_sheet("Other")
        other["A1"] = "World"

        output = await SpreadsheetHandler().translate(_workbook_bytes(workbook), make_context())

        translated_texts = sorted(call[1] for call in fake_client.calls)
        assert translated_texts == ["42", "Hello", "World"]

        result = load_workbook(io.BytesIO(output))
        sheet = result["Sheet"]
        assert sheet["A1"].value == "T:Hello"
        assert sheet["A2"].value == "T:Hello"
        assert sheet["B1"].value == "T:World"
        assert sheet["B2"].value == "T:42"
        assert sheet["D1"].value == "=SUM(B2:B2)"
        assert result["Other"]["A1"].value == "T:World"

    async def test_rich_text_keeps_first_run_font(self, make_context):
        workbook = Workbook()
        workbook.active["A1"] = CellRichText(
            [TextBlock(InlineFont(b=True), "Bold"), TextBlock(InlineFont(i=True), " italic")]
        )

        output = await SpreadsheetHandler().translate(_workbook_bytes(workbook), make_context())

        value = load_workbook(io.BytesIO(output), rich_text=True).active["A1"].value
        assert isinstance(value, CellRichText)
        assert len(value) == 1
        assert value[0].text == "T:Bold italic"
        assert value[0].font.b

    async def test_no_text_returns_input_unchanged(self, make_context, fake_client):
        workbook = Workbook()
        workbook.active["A1"] = "  "
        data = _workbook_bytes(workbook)

        assert await SpreadsheetHandler().translate(data, make_context()) == data
        assert fake_client.calls == []


# ---------------------------------------------------------------------------
# PPTX
# ---------------------------------------------------------------------------

class TestPresentation:
    def test_extract_orders_slides_numerically(self):
        data = _pptx_zip(
            {
                "ppt/slides/slide3.xml": "<a:t>Three</a:t>",
                "ppt/slides/slide10.xml": "<a:t>Ten</a:t>",
                "ppt/slides/slide1.xml": "<a:t>One</a:t>",
                "ppt/slides/slide2.xml": "<a:t>Two</a:t>",
                "ppt/slides/_rels/slide1.xml.rels": "<a:t>ignored</a:t>",
            }
        )
        assert extract_slide_texts(data) == ["One", "Two", "Three", "Ten"]

    def test_extract_joins_runs_and_unescapes(self):
        data = _pptx_zip(
            {
                "ppt/slides/slide1.xml": (
                    '<a:t xml:space="preserve">Tom &amp; Jerry</a:t><a:t>  run two </a:t>'
                )
            }
        )
        assert extract_slide_texts(data) == ["Tom & Jerry   run two"]

    async def test_output_slides_follow_slide_numbers(self, make_context):
        data = _pptx_zip(
            {
                "ppt/slides/slide3.xml": "<a:t>Three</a:t>",
                "ppt/slides/slide1.xml": "<a:t>One</a:t>",
                "ppt/slides/slide2.xml": "<a:t>Two</a:t>",
            }
        )
        output = await PresentationHandler().translate(data, make_context())

        assert _slide_texts(output) == [
            ["T:One", "Slide 1"],
            ["T:Two", "Slide 2"],
            ["T:Three", "Slide 3"],
        ]

    async def test_blank_slide_is_not_translated(self, make_context, fake_client):
        data = _pptx_zip(
            {
                "ppt/slides/slide1.xml": "<a:t>One</a:t>",
                "ppt/slides/slide2.xml": "<p:empty/>",
            }
        )
        output = await PresentationHandler().translate(data, make_context())

        assert _slide_texts(output)[1] == ["(Empty Slide)", "Slide 2"]
        assert [call[1] for call in fake_client.calls] == ["One"]

    async def test_no_slides(self, make_context):
        output = await PresentationHandler().translate(_pptx_zip({}), make_context())
        assert _slide_texts(output) == [["No content translated."]]
