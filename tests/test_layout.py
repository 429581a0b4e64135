"""
Tests for journal page layout module.
"""

import math
import pytest
import sys
from datetime import datetime
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from manuscript_press.config import PipelineConfig
from manuscript_press.utils.assembler import ManuscriptRecord, Section, JournalMetadata
from manuscript_press.utils.tables import Table
from manuscript_press.utils.layout import (
    FlowCursor,
    LayoutEngine,
    PageGeometry,
    RenderError,
    output_filename,
    sanitize_filename,
    split_drop_cap,
    to_latin1,
    wrap_hanging,
)


@pytest.fixture
def engine():
    return LayoutEngine(PipelineConfig())


@pytest.fixture
def record():
    return ManuscriptRecord(
        title="A Study of X",
        authors="J. Doe¹, A. Smith²",
        affiliations=["¹Univ A", "²Univ B"],
        abstract="This paper studies X.",
        keywords=["x", "y", "z"],
        sections=[Section("Introduction", "We study X.")],
        references=["Doe, J. (2020)."],
    )


def long_record(lines: int = 600) -> ManuscriptRecord:
    body = "\n".join(f"Body line {i} of a long methodology section." for i in range(lines))
    return ManuscriptRecord(
        title="A Long Manuscript",
        authors="J. Doe",
        abstract="Short abstract.",
        sections=[Section("Methodology", body)],
    )


class TestPageGeometry:
    """Test PageGeometry class."""

    def test_two_column_widths(self):
        geometry = PageGeometry(columns=2)
        assert geometry.content_width == pytest.approx(174.0)
        assert geometry.column_width == pytest.approx(83.0)
        assert geometry.column_x(0) == pytest.approx(18.0)
        assert geometry.column_x(1) == pytest.approx(109.0)

    def test_single_column_width(self):
        geometry = PageGeometry(columns=1)
        assert geometry.column_width == geometry.content_width

    def test_bottom(self):
        assert PageGeometry().bottom == pytest.approx(277.0)


class TestFlowCursor:
    """Tests for column and page overflow."""

    def test_left_column_spills_right_at_same_y(self):
        """The right column starts at the left column's start y."""
        geometry = PageGeometry(columns=2)
        pages = []
        cursor = FlowCursor(geometry, y=100, column=0, on_new_page=lambda: pages.append(1))

        positions = [cursor.place(5) for _ in range(36)]

        assert positions[34] == (geometry.column_x(0), 270)
        assert positions[35] == (geometry.column_x(1), 100)
        assert cursor.column_switches == 1
        assert pages == []

    def test_right_column_spills_to_new_page(self):
        geometry = PageGeometry(columns=2)
        pages = []
        cursor = FlowCursor(geometry, y=100, column=1, on_new_page=lambda: pages.append(1))

        for _ in range(36):
            x, y = cursor.place(5)

        assert pages == [1]
        assert (x, y) == (geometry.column_x(0), geometry.body_top)
        assert cursor.column == 0

    def test_single_column_spills_to_new_page(self):
        geometry = PageGeometry(columns=1)
        cursor = FlowCursor(geometry, y=geometry.body_top)

        capacity = int((geometry.bottom - geometry.body_top) // 5)
        for _ in range(capacity + 1):
            cursor.place(5)

        assert cursor.pages_added == 1
        assert cursor.column_switches == 0

    @pytest.mark.parametrize("n_lines", [1, 46, 47, 94, 95, 200, 1000])
    def test_page_count_for_full_pages(self, n_lines):
        """Pages used = ceil(N / (2 * lines per column))."""
        geometry = PageGeometry(columns=2)
        cursor = FlowCursor(geometry, y=geometry.body_top)
        capacity = int((geometry.bottom - geometry.body_top) // 5)

        for _ in range(n_lines):
            cursor.place(5)

        assert 1 + cursor.pages_added == math.ceil(n_lines / (2 * capacity))

    def test_skip_triggers_no_page(self):
        cursor = FlowCursor(PageGeometry(), y=270)
        cursor.skip(50)
        assert cursor.pages_added == 0
        assert not cursor.fits(1)


class TestLayoutEngine:
    """Tests for the full page composition."""

    def test_basic_render(self, engine, record):
        result = engine.build(record, JournalMetadata())

        assert result.page_count == 1
        assert result.abstract_mode == "column"
        assert result.to_bytes().startswith(b"%PDF")

    def test_footer_stamps(self, engine):
        """Every page is stamped with its own number and the same total."""
        result = engine.build(long_record(), JournalMetadata())
        total = result.page_count

        assert total > 1
        assert result.footer_stamps == [(i, total) for i in range(1, total + 1)]
        for page in range(1, total + 1):
            label = f"Page {page} of {total}".encode("latin-1")
            assert label in bytes(result.pdf.pages[page].contents)

    def test_body_overflow_switches_columns(self, engine):
        result = engine.build(long_record(), JournalMetadata(columns=2))
        assert result.column_switches >= 1

    def test_single_column_mode(self, engine):
        result = engine.build(long_record(), JournalMetadata(columns=1))

        assert result.abstract_mode == "full"
        assert result.column_switches == 0
        assert result.page_count > 1

    def test_long_abstract_full_width(self, engine):
        """An abstract too long for the column box spans the page width."""
        record = ManuscriptRecord(title="T", authors="A", abstract="word " * 3000)
        result = engine.build(record, JournalMetadata(columns=2))

        assert result.abstract_mode == "full"
        assert result.page_count >= 2

    def test_each_table_on_own_page(self, engine, record):
        record.tables = [
            Table(caption="Table 1: Scores", head=["Name", "Score"], body=[["A", "1"], ["B", "2"]]),
            Table(caption="Table 2", head=["Only"], body=[]),
        ]
        result = engine.build(record, JournalMetadata())
        assert result.page_count == 3

    def test_long_table_breaks_across_pages(self, engine, record):
        body = [[f"Row {i}", str(i)] for i in range(150)]
        record.tables = [Table(caption="Table 1", head=["Name", "Value"], body=body)]
        result = engine.build(record, JournalMetadata())
        assert result.page_count >= 3

    def test_empty_record(self, engine):
        """A title-only manuscript still lays out."""
        record = ManuscriptRecord(title="Only A Title", authors="Author names not found")
        result = engine.build(record, JournalMetadata())

        assert result.page_count == 1
        assert result.to_bytes().startswith(b"%PDF")

    def test_non_latin_text(self, engine, record):
        record.title = "Étude “quoted” — α ≠ β"
        record.keywords = "naïve; café"
        rendered = engine.render(record, JournalMetadata())
        assert rendered.data.startswith(b"%PDF")

    def test_render_filename(self, engine, record):
        rendered = engine.render(record, JournalMetadata(year="2025"))
        assert rendered.filename == "IJSR_Manuscript_2025.pdf"
        assert rendered.page_count == 1

    def test_render_wraps_failures(self, engine, record, monkeypatch):
        def boom(self, record, metadata):
            raise ValueError("font table corrupted")

        monkeypatch.setattr(LayoutEngine, "build", boom)
        with pytest.raises(RenderError, match="font table corrupted"):
            engine.render(record, JournalMetadata())


class TestDropCap:
    """Tests for the abstract and lead-section drop caps."""

    @pytest.fixture
    def pdf(self):
        from fpdf import FPDF

        pdf = FPDF()
        pdf.add_page()
        pdf.set_font("times", "", 10)
        return pdf

    def test_split(self):
        assert split_drop_cap("  Hello world") == ("H", "ello world")
        assert split_drop_cap("") == ("", "")
        assert split_drop_cap("(a) list") == ("", "(a) list")

    def test_hanging_wrap_keeps_every_word(self, pdf):
        text = "lorem ipsum dolor sit amet " * 40
        lines = wrap_hanging(pdf, text, 80, 9, 2)
        assert " ".join(lines).split() == text.split()

    def test_hanging_wrap_widths(self, pdf):
        """Only the first lines are narrowed; later lines use the full width."""
        text = "lorem ipsum dolor sit amet " * 40
        lines = wrap_hanging(pdf, text, 80, 9, 2)

        assert all(pdf.get_string_width(line) <= 71 for line in lines[:2])
        assert max(pdf.get_string_width(line) for line in lines[2:]) > 71

    def test_hanging_wrap_later_paragraphs(self, pdf):
        lines = wrap_hanging(pdf, "short first\nsecond paragraph", 80, 9, 2)
        assert lines == ["short first", "second paragraph"]

    def test_drawn_for_abstract_and_lead_section(self, engine, record):
        result = engine.build(record, JournalMetadata())
        contents = bytes(result.pdf.pages[1].contents)

        assert b" 30.00 Tf" in contents
        assert b"his paper studies X." in contents
        assert b"This paper studies X." not in contents
        assert b"e study X." in contents
        assert b"We study X." not in contents

    def test_lead_prefers_introduction(self, engine):
        sections = [Section("Background", "b"), Section("Introduction", "i"), Section("Results", "r")]
        assert engine._lead_section(sections).title == "Introduction"
        assert engine._lead_section([Section("Methods", ""), Section("Results", "r")]).title == "Results"

    def test_disabled(self, record):
        config = PipelineConfig()
        config.page.drop_caps = False
        result = LayoutEngine(config).build(record, JournalMetadata())
        contents = bytes(result.pdf.pages[1].contents)

        assert b"This paper studies X." in contents
        assert b"We study X." in contents


class TestTextHelpers:
    """Tests for Latin-1 normalization and filenames."""

    def test_typography_mapped(self):
        assert to_latin1("“Hi” — there…") == '"Hi" - there...'

    def test_unencodable_replaced(self):
        assert to_latin1("α") == "?"
        assert to_latin1("café") == "café"

    def test_empty(self):
        assert to_latin1(None) == ""

    def test_sanitize_filename(self):
        assert sanitize_filename("A Study: of X?") == "A_Study_of_X"


class TestOutputFilename:
    """Tests for download filename derivation."""

    def test_year(self):
        assert output_filename(JournalMetadata(year="2025")) == "IJSR_Manuscript_2025.pdf"

    def test_timestamp(self):
        name = output_filename(JournalMetadata(), source="timestamp", now=datetime(2026, 1, 2, 3, 4, 5))
        assert name == "IJSR_Manuscript_20260102_030405.pdf"

    def test_title(self, record):
        record.title = "A Study: of X?"
        assert output_filename(JournalMetadata(), record, source="title") == "IJSR_A_Study_of_X.pdf"

    def test_title_empty(self):
        record = ManuscriptRecord(title="???", authors="")
        assert output_filename(JournalMetadata(), record, source="title") == "IJSR_Manuscript.pdf"

    def test_short_name(self):
        assert output_filename(JournalMetadata(year="2026"), short_name="JBMS") == "JBMS_Manuscript_2026.pdf"
