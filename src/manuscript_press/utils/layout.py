"""
Journal page layout module.

Provides:
- Page geometry for single- and two-column templates
- Flow cursor tracking (column, y) through column and page overflow
- JournalPDF surface with the running header band
- LayoutEngine composing title, boxes, abstract, body, references and tables
- Footer stamping once the total page count is known
- Output filename derivation

Uses fpdf2 core fonts; text is normalized to Latin-1 before drawing.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple, Callable

from fpdf import FPDF
from fpdf.enums import MethodReturnValue, TableCellFillMode
from fpdf.fonts import FontFace

from .assembler import ManuscriptRecord, JournalMetadata

logger = logging.getLogger(__name__)


# ============================================================================
# Errors and Text Helpers
# ============================================================================

class RenderError(RuntimeError):
    """The PDF could not be produced; no partial output is returned."""


_TYPOGRAPHY = str.maketrans({
    "‘": "'", "’": "'", "‚": "'",
    "“": '"', "”": '"', "„": '"',
    "–": "-", "—": "-", "−": "-",
    "…": "...", "•": "-", " ": " ",
    "⁰": "0", "⁴": "4", "⁵": "5", "⁶": "6",
    "⁷": "7", "⁸": "8", "⁹": "9",
})


def to_latin1(text: Optional[str]) -> str:
    """Map typographic characters and drop what core fonts cannot encode."""
    if not text:
        return ""
    return text.translate(_TYPOGRAPHY).encode("latin-1", "replace").decode("latin-1")


def wrap_text(pdf: FPDF, text: str, width: float) -> List[str]:
    """Word-wrap text to a width using the currently selected font."""
    text = to_latin1(text)
    if not text.strip():
        return []
    lines = pdf.multi_cell(width, 5, text, dry_run=True, output=MethodReturnValue.LINES)
    return list(lines or [])


def split_drop_cap(text: Optional[str]) -> Tuple[str, str]:
    """Split off the opening letter for a drop cap; ('', text) if there is none."""
    stripped = (text or "").lstrip()
    if not stripped or not stripped[0].isalnum():
        return "", text or ""
    return stripped[0], stripped[1:]


def wrap_hanging(pdf: FPDF, text: str, width: float, indent: float, indented_lines: int = 2) -> List[str]:
    """
    Word-wrap text with its first ``indented_lines`` lines narrowed by ``indent``.

    Only the first paragraph is narrowed; the rest of it and any further
    paragraphs are re-wrapped to the full width.
    """
    text = to_latin1(text)
    first, _, remainder = text.partition("\n")
    flat = " ".join(first.split())

    lines = wrap_text(pdf, flat, width - indent)
    if len(lines) > indented_lines:
        pos = 0
        for line in lines[:indented_lines]:
            found = flat.find(line, pos)
            if found < 0:
                break
            pos = found + len(line)
        else:
            lines = lines[:indented_lines] + wrap_text(pdf, flat[pos:].strip(), width)

    return lines + wrap_text(pdf, remainder, width)


# ============================================================================
# Geometry and Flow
# ============================================================================

@dataclass
class PageGeometry:
    """Page size, margins and column placement (mm)."""
    width: float = 210.0
    height: float = 297.0
    margin_top: float = 35.0
    margin_bottom: float = 20.0
    margin_left: float = 18.0
    margin_right: float = 18.0
    column_gap: float = 8.0
    columns: int = 2
    body_top: float = 40.0

    @classmethod
    def from_config(cls, page_config, columns: int = 2, width: float = 210.0, height: float = 297.0):
        return cls(
            width=width,
            height=height,
            margin_top=page_config.margin_top,
            margin_bottom=page_config.margin_bottom,
            margin_left=page_config.margin_left,
            margin_right=page_config.margin_right,
            column_gap=page_config.column_gap,
            columns=2 if columns >= 2 else 1,
            body_top=page_config.body_top
        )

    @property
    def content_width(self) -> float:
        return self.width - self.margin_left - self.margin_right

    @property
    def column_width(self) -> float:
        if self.columns == 2:
            return (self.content_width - self.column_gap) / 2
        return self.content_width

    @property
    def bottom(self) -> float:
        return self.height - self.margin_bottom

    def column_x(self, column: int) -> float:
        if column == 0:
            return self.margin_left
        return self.margin_left + self.column_width + self.column_gap


class FlowCursor:
    """
    Tracks where the next line of body text goes.

    ``y`` is the baseline of the next line. Overflow is resolved column
    first: the left column spills into the right column at the same start
    y, the right column (or a single column) spills onto a new page.
    """

    def __init__(
        self,
        geometry: PageGeometry,
        y: float,
        column: int = 0,
        on_new_page: Optional[Callable[[], None]] = None
    ):
        self.geometry = geometry
        self.column = column
        self.y = y
        self.column_top = y
        self.on_new_page = on_new_page
        self.pages_added = 0
        self.column_switches = 0

    @property
    def x(self) -> float:
        return self.geometry.column_x(self.column)

    @property
    def width(self) -> float:
        return self.geometry.column_width

    def fits(self, height: float) -> bool:
        return self.y + height <= self.geometry.bottom

    def ensure_room(self, height: float):
        if self.fits(height):
            return
        if self.geometry.columns == 2 and self.column == 0:
            self.column = 1
            self.y = self.column_top
            self.column_switches += 1
            if self.fits(height):
                return
        self.new_page()

    def new_page(self):
        if self.on_new_page is not None:
            self.on_new_page()
        self.pages_added += 1
        self.column = 0
        self.y = self.geometry.body_top
        self.column_top = self.geometry.body_top

    def place(self, height: float) -> Tuple[float, float]:
        """Reserve a line of ``height`` and return its (x, baseline y)."""
        self.ensure_room(height)
        position = (self.x, self.y)
        self.y += height
        return position

    def skip(self, height: float):
        self.y += height


# ============================================================================
# PDF Surface
# ============================================================================

class JournalPDF(FPDF):
    """FPDF surface that draws the journal header band on every new page."""

    def __init__(self, journal, page_config):
        super().__init__(orientation=page_config.orientation, unit="mm", format=page_config.page_format)
        self.journal = journal
        self.style = page_config
        self.set_margins(page_config.margin_left, page_config.margin_top, page_config.margin_right)
        self.set_auto_page_break(False)

    def header(self):
        style = self.style
        left = style.margin_left
        right = self.w - style.margin_right

        self.set_draw_color(*style.main_blue)
        self.set_line_width(0.3)
        self.line(left, 15, right, 15)
        self.line(left, 28, right, 28)

        self.set_font("times", "B", 16)
        self.set_text_color(*style.main_blue)
        self.text(left, 21, to_latin1(self.journal.name))

        self.set_font("times", "I", 9)
        self.text(left, 25, to_latin1(self.journal.tagline))

        self.set_font("helvetica", "", 8)
        self.set_text_color(50, 50, 50)
        for y, label in ((21, f"Email: {self.journal.email}"), (25, f"Website: {self.journal.website}")):
            label = to_latin1(label)
            self.text(right - self.get_string_width(label), y, label)

    def footer(self):
        # Footers need the final page count; see stamp_footers()
        pass

    def _draw_footer(self, page: int, total: int, issn: str):
        style = self.style
        y = self.h - 10

        # Revisited pages keep their own font state; force re-selection
        self.set_font("helvetica", "", 1)
        self.set_font("times", "", 8)
        self.set_fill_color(255, 255, 255)
        self.set_draw_color(200, 200, 200)
        self.set_line_width(0.2)
        self.line(style.margin_left, y - 4, self.w - style.margin_right, y - 4)

        self.set_text_color(120, 120, 120)
        label = to_latin1(f"{self.journal.name} | ISSN: {issn} | Page {page} of {total}")
        self.text((self.w - self.get_string_width(label)) / 2, y, label)

    def stamp_footers(self, issn: str) -> List[Tuple[int, int]]:
        """Draw the footer on every page; returns the (page, total) stamps."""
        total = len(self.pages)
        stamps = []
        for page in range(1, total + 1):
            self.page = page
            self._draw_footer(page, total, issn)
            stamps.append((page, total))
        self.page = total
        return stamps


# ============================================================================
# Layout Engine
# ============================================================================

@dataclass
class LayoutResult:
    """A finished layout run."""
    pdf: JournalPDF
    page_count: int
    footer_stamps: List[Tuple[int, int]] = field(default_factory=list)
    column_switches: int = 0
    abstract_mode: str = "column"

    def to_bytes(self) -> bytes:
        return bytes(self.pdf.output())


@dataclass
class RenderedManuscript:
    """PDF bytes ready for download."""
    data: bytes
    filename: str
    page_count: int = 0


class LayoutEngine:
    """
    Composes a ManuscriptRecord onto the journal template.

    Page 1 carries the title, author box, dates/citation box and abstract;
    body sections and references flow through one or two columns; every
    table gets its own page. Footers are stamped after layout completes.
    """

    def __init__(self, config=None):
        if config is None:
            from ..config import get_config
            config = get_config()
        self.config = config
        self.style = config.page
        self.journal = config.journal

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, record: ManuscriptRecord, metadata: JournalMetadata) -> LayoutResult:
        pdf = JournalPDF(self.journal, self.style)
        geometry = PageGeometry.from_config(
            self.style, columns=metadata.columns, width=pdf.w, height=pdf.h
        )

        pdf.add_page()
        y = self._draw_title(pdf, geometry, record, self.style.first_content_y)
        y = self._draw_author_box(pdf, geometry, record, y)
        y = self._draw_dates_box(pdf, geometry, record, metadata, y)
        cursor, abstract_mode = self._draw_abstract(pdf, geometry, record, y)

        lead = self._lead_section(record.sections)
        for section in record.sections:
            self._flow_block(pdf, cursor, section.title, section.content, drop_cap=section is lead)
        if record.references:
            self._flow_references(pdf, cursor, record.references)

        for table in record.tables:
            self._draw_table(pdf, geometry, table)

        stamps = pdf.stamp_footers(metadata.issn)
        logger.info(
            f"Laid out {len(pdf.pages)} page(s): {len(record.sections)} sections, "
            f"{len(record.tables)} tables, {geometry.columns} column(s)"
        )

        return LayoutResult(
            pdf=pdf,
            page_count=len(pdf.pages),
            footer_stamps=stamps,
            column_switches=cursor.column_switches,
            abstract_mode=abstract_mode
        )

    def render(
        self,
        record: ManuscriptRecord,
        metadata: JournalMetadata,
        filename_source: str = "year"
    ) -> RenderedManuscript:
        """
        Lay out the manuscript and serialize the PDF.

        Raises:
            RenderError: If the PDF library fails at any point
        """
        try:
            result = self.build(record, metadata)
            data = result.to_bytes()
        except Exception as e:
            logger.error(f"PDF rendering failed: {e}")
            raise RenderError(f"PDF generation failed: {e}") from e

        filename = output_filename(metadata, record, self.journal.short_name, filename_source)
        return RenderedManuscript(data=data, filename=filename, page_count=result.page_count)

    # ------------------------------------------------------------------
    # Page 1 regions
    # ------------------------------------------------------------------

    def _draw_title(self, pdf, geometry: PageGeometry, record, y: float) -> float:
        pdf.set_font("times", "B", 20)
        pdf.set_text_color(*self.style.main_blue)
        lines = wrap_text(pdf, record.title.upper(), geometry.content_width)
        for i, line in enumerate(lines):
            pdf.text((pdf.w - pdf.get_string_width(line)) / 2, y + i * self.style.title_line_height, line)
        return y + len(lines) * self.style.title_line_height + 5

    def _draw_author_box(self, pdf, geometry: PageGeometry, record, y: float) -> float:
        style = self.style
        left = geometry.margin_left
        inner = geometry.content_width - 10

        pdf.set_font("times", "B", 11)
        author_lines = wrap_text(pdf, record.authors, inner)
        pdf.set_font("times", "", 9)
        affiliation_lines = wrap_text(pdf, "\n".join(record.affiliations), inner)

        needed = 7 + len(author_lines) * style.line_height + len(affiliation_lines) * style.small_line_height + style.box_padding
        height = max(style.author_box_min_height, needed)

        pdf.set_draw_color(*style.main_blue)
        pdf.set_line_width(0.3)
        pdf.rect(left, y, geometry.content_width, height, style="D")

        baseline = y + 7
        pdf.set_font("times", "B", 11)
        pdf.set_text_color(*style.main_blue)
        for line in author_lines:
            pdf.text(left + 5, baseline, line)
            baseline += style.line_height

        pdf.set_font("times", "", 9)
        pdf.set_text_color(*style.text_gray)
        for line in affiliation_lines:
            pdf.text(left + 5, baseline + 1, line)
            baseline += style.small_line_height

        return y + height + 5

    def _draw_dates_box(self, pdf, geometry: PageGeometry, record, metadata, y: float) -> float:
        style = self.style
        left = geometry.margin_left
        right = left + geometry.content_width

        cite_text = (
            f"{record.first_author} ({metadata.year}). {record.title}. {self.journal.name}, "
            f"Vol. {metadata.volume}({metadata.issue}), ISSN: {metadata.issn}."
        )
        pdf.set_font("times", "", 8)
        cite_lines = wrap_text(pdf, cite_text, geometry.content_width - 27)
        height = max(15.0, 11 + max(len(cite_lines) - 1, 0) * style.small_line_height + 4)

        pdf.set_fill_color(*style.light_blue_bg)
        pdf.rect(left, y, geometry.content_width, height, style="F")

        pdf.set_text_color(*style.main_blue)
        dates = to_latin1(
            f"Received: [{metadata.received}]  |  Accepted: [{metadata.accepted}]  |  "
            f"Published: [{metadata.published}]"
        )
        dates_x = right - 5 - pdf.get_string_width(dates)
        pdf.text(dates_x, y + 5, dates)
        issue_label = to_latin1(f"Vol. {metadata.volume}, Issue {metadata.issue}")
        if left + 5 + pdf.get_string_width(issue_label) + 5 < dates_x:
            pdf.text(left + 5, y + 5, issue_label)

        pdf.set_font("times", "B", 8)
        pdf.text(left + 5, y + 11, "How to cite:")
        pdf.set_font("times", "", 8)
        pdf.set_text_color(0, 0, 0)
        for i, line in enumerate(cite_lines):
            pdf.text(left + 22, y + 11 + i * style.small_line_height, line)

        return y + height + 10

    def _abstract_entries(self, pdf, record, width: float) -> List[Tuple[str, str]]:
        """Abstract body and keyword lines as (kind, text) pairs."""
        style = self.style
        pdf.set_font("times", "", 9)
        letter, rest = split_drop_cap(record.abstract) if style.drop_caps else ("", record.abstract)
        if letter:
            lines = wrap_hanging(pdf, rest, width, style.drop_cap_indent, style.drop_cap_lines)
            lines += [""] * (style.drop_cap_lines - len(lines))
            entries = [("drop_cap", letter)]
            entries.extend(
                ("indented" if i < style.drop_cap_lines else "text", line)
                for i, line in enumerate(lines)
            )
        else:
            entries = [("text", line) for line in wrap_text(pdf, record.abstract, width)]

        pdf.set_font("times", "B", 9)
        label_width = pdf.get_string_width("Keywords: ")
        pdf.set_font("times", "", 9)
        keyword_lines = wrap_text(pdf, record.keywords_text, width - label_width) or [""]
        entries.append(("gap", ""))
        entries.append(("keywords_first", keyword_lines[0]))
        entries.extend(("keywords", line) for line in keyword_lines[1:])
        return entries

    @staticmethod
    def _line_count(entries: List[Tuple[str, str]]) -> int:
        return sum(1 for kind, _ in entries if kind != "drop_cap")

    @staticmethod
    def _take_lines(entries: List[Tuple[str, str]], count: int):
        """Split entries after ``count`` drawn lines."""
        taken = 0
        for i, (kind, _) in enumerate(entries):
            if kind != "drop_cap":
                if taken == count:
                    return entries[:i], entries[i:]
                taken += 1
        return entries, []

    def _draw_entries(self, pdf, x: float, y: float, entries: List[Tuple[str, str]]):
        lh = self.style.small_line_height
        pdf.set_font("times", "B", 9)
        label_width = pdf.get_string_width("Keywords: ")

        for kind, text in entries:
            if kind == "drop_cap":
                self._draw_drop_cap(pdf, x, y + (self.style.drop_cap_lines - 1) * lh, text)
                continue
            if kind == "keywords_first":
                pdf.set_font("times", "B", 9)
                pdf.set_text_color(*self.style.main_blue)
                pdf.text(x, y, "Keywords:")
            if kind in ("keywords_first", "keywords"):
                pdf.set_font("times", "", 9)
                pdf.set_text_color(0, 0, 0)
                pdf.text(x + label_width, y, text)
            elif kind in ("text", "indented") and text:
                offset = self.style.drop_cap_indent if kind == "indented" else 0
                pdf.set_font("times", "", 9)
                pdf.set_text_color(0, 0, 0)
                pdf.text(x + offset, y, text)
            y += lh

    def _draw_drop_cap(self, pdf, x: float, baseline: float, letter: str):
        pdf.set_font("times", "B", self.style.drop_cap_size)
        pdf.set_text_color(*self.style.main_blue)
        pdf.text(x, baseline, to_latin1(letter))

    def _draw_abstract_heading(self, pdf, x: float, width: float, y: float, centered: bool):
        pdf.set_font("times", "B", 12)
        pdf.set_text_color(*self.style.main_blue)
        heading_x = x + (width - pdf.get_string_width("Abstract")) / 2 if centered else x
        pdf.text(heading_x, y, "Abstract")

    def _draw_abstract(self, pdf, geometry: PageGeometry, record, y: float) -> Tuple[FlowCursor, str]:
        """Draw the abstract region and return the body flow cursor."""
        style = self.style
        pad = style.box_padding
        on_new_page = pdf.add_page

        if geometry.columns == 2:
            width = geometry.column_width
            entries = self._abstract_entries(pdf, record, width - 2 * pad)
            top = y - 5
            needed = 5 + 8 + self._line_count(entries) * style.small_line_height + pad
            height = max(style.abstract_box_min_height, needed)

            if top + height <= geometry.bottom:
                pdf.set_draw_color(*style.main_blue)
                pdf.set_fill_color(*style.abstract_bg)
                pdf.rect(geometry.margin_left, top, width, height, style="DF")
                self._draw_abstract_heading(pdf, geometry.margin_left, width, y, centered=True)
                self._draw_entries(pdf, geometry.margin_left + pad, y + 8, entries)

                # Body text starts in the right column beside the abstract
                return FlowCursor(geometry, y=y, column=1, on_new_page=on_new_page), "column"

        y = self._draw_full_width_abstract(pdf, geometry, record, y)
        return FlowCursor(geometry, y=y, column=0, on_new_page=on_new_page), "full"

    def _draw_full_width_abstract(self, pdf, geometry: PageGeometry, record, y: float) -> float:
        style = self.style
        pad = style.box_padding
        lh = style.small_line_height
        left = geometry.margin_left
        width = geometry.content_width

        entries = self._abstract_entries(pdf, record, width - 2 * pad)
        first = True

        while True:
            if geometry.bottom - y < 8 + lh + 2 * pad:
                pdf.add_page()
                y = geometry.body_top

            capacity = max(1, int((geometry.bottom - y - 8 - 2 * pad) // lh))
            chunk, entries = self._take_lines(entries, capacity)
            needed = 8 + self._line_count(chunk) * lh + 2 * pad
            height = min(max(30.0 if first else 0.0, needed), geometry.bottom - y)

            pdf.set_draw_color(*style.main_blue)
            pdf.set_fill_color(*style.abstract_bg)
            pdf.rect(left, y, width, height, style="DF")
            self._draw_abstract_heading(pdf, left + pad, width, y + pad + 1, centered=False)
            self._draw_entries(pdf, left + pad, y + pad + 8, chunk)

            y += height + 8
            first = False
            if not entries:
                return y
            pdf.add_page()
            y = geometry.body_top

    # ------------------------------------------------------------------
    # Body flow
    # ------------------------------------------------------------------

    def _flow_block(self, pdf, cursor: FlowCursor, title: str, content: str, drop_cap: bool = False):
        """Section title followed by its wrapped body text."""
        style = self.style
        lh = style.line_height
        heading_height = 6.0

        pdf.set_font("times", "B", 12)
        title_lines = wrap_text(pdf, title, cursor.width)
        # Keep the heading together with its first body lines
        cursor.ensure_room(heading_height * max(len(title_lines), 1) + 2 * style.line_height)
        for line in title_lines:
            x, y = cursor.place(heading_height)
            pdf.set_font("times", "B", 12)
            pdf.set_text_color(*style.main_blue)
            pdf.text(x, y, line)
        cursor.skip(1)

        pdf.set_font("times", "", 10)
        pdf.set_text_color(0, 0, 0)
        letter, rest = split_drop_cap(content) if drop_cap else ("", content)
        if letter:
            indented = style.drop_cap_lines
            lines = wrap_hanging(pdf, rest, cursor.width, style.drop_cap_indent, indented)
            lines += [""] * (indented - len(lines))
            # The drop cap and its indented lines stay in one column
            cursor.ensure_room(indented * lh)
        else:
            indented = 0
            lines = wrap_text(pdf, content, cursor.width)

        for i, line in enumerate(lines):
            x, y = cursor.place(lh)
            if letter and i == 0:
                self._draw_drop_cap(pdf, x, y + (indented - 1) * lh, letter)
            if not line:
                continue
            offset = style.drop_cap_indent if i < indented else 0
            pdf.set_font("times", "", 10)
            pdf.set_text_color(0, 0, 0)
            pdf.text(x + offset, y, line)
        cursor.skip(4)

    def _lead_section(self, sections):
        """The section that opens with a drop cap: Introduction, else the first with text."""
        if not self.style.drop_caps:
            return None
        with_text = [s for s in sections if s.content.strip()]
        for section in with_text:
            if "introduction" in section.title.lower():
                return section
        return with_text[0] if with_text else None

    def _flow_references(self, pdf, cursor: FlowCursor, references: List[str]):
        style = self.style
        cursor.ensure_room(6 + 2 * style.small_line_height)

        x, y = cursor.place(6)
        pdf.set_font("times", "B", 12)
        pdf.set_text_color(*style.main_blue)
        pdf.text(x, y, "References")
        cursor.skip(1)

        for reference in references:
            pdf.set_font("times", "", 9)
            for line in wrap_text(pdf, reference, cursor.width):
                x, y = cursor.place(style.small_line_height + 0.5)
                pdf.set_font("times", "", 9)
                pdf.set_text_color(0, 0, 0)
                pdf.text(x, y, line)
            cursor.skip(1.5)

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _column_widths(self, pdf, rows: List[List[str]], total_width: float) -> Tuple[float, ...]:
        """Relative column widths sized to content, capped by the page width."""
        num_cols = max((len(r) for r in rows), default=0)
        natural = []
        for i in range(num_cols):
            widest = max((pdf.get_string_width(r[i]) for r in rows if i < len(r)), default=0)
            natural.append(min(max(widest + 4, 12.0), total_width * 0.6))
        scale = total_width / sum(natural)
        return tuple(w * scale for w in natural)

    def _draw_table(self, pdf, geometry: PageGeometry, table):
        style = self.style
        pdf.add_page()

        pdf.set_font("times", "B", 10)
        pdf.set_text_color(*style.main_blue)
        for i, line in enumerate(wrap_text(pdf, table.caption, geometry.content_width)):
            pdf.text(geometry.margin_left, geometry.body_top + i * style.line_height, line)

        rows = [[to_latin1(cell) for cell in row] for row in table.padded_rows()]
        if not rows or not rows[0]:
            return

        pdf.set_font("times", "", 9)
        pdf.set_text_color(0, 0, 0)
        pdf.set_draw_color(*style.border_gray)
        pdf.set_line_width(0.2)
        widths = self._column_widths(pdf, rows, geometry.content_width)

        pdf.set_xy(geometry.margin_left, geometry.body_top + 4)
        # Long tables break onto further pages (header band redrawn)
        pdf.set_auto_page_break(True, margin=geometry.margin_bottom + 5)
        try:
            with pdf.table(
                width=geometry.content_width,
                col_widths=widths,
                headings_style=FontFace(emphasis="BOLD", color=(255, 255, 255), fill_color=style.main_blue),
                cell_fill_color=style.stripe_fill,
                cell_fill_mode=TableCellFillMode.ROWS,
                line_height=style.line_height,
                text_align="LEFT",
                first_row_as_headings=True
            ) as grid:
                for row in rows:
                    grid_row = grid.row()
                    for cell in row:
                        grid_row.cell(cell)
        finally:
            pdf.set_auto_page_break(False)


# ============================================================================
# Output Naming
# ============================================================================

def sanitize_filename(text: str, max_length: int = 60) -> str:
    """Collapse anything outside [A-Za-z0-9_-] to single underscores."""
    cleaned = re.sub(r"[^A-Za-z0-9_-]+", "_", text or "").strip("_")
    return cleaned[:max_length].rstrip("_")


def output_filename(
    metadata: JournalMetadata,
    record: Optional[ManuscriptRecord] = None,
    short_name: str = "IJSR",
    source: str = "year",
    now: Optional[datetime] = None
) -> str:
    """
    Derive the download filename.

    Args:
        source: 'year' (configured year), 'timestamp' (generation time) or
            'title' (sanitized manuscript title)
    """
    prefix = sanitize_filename(short_name) or "Journal"

    if source == "title":
        title = sanitize_filename(record.title if record else "") or "Manuscript"
        return f"{prefix}_{title}.pdf"

    if source == "timestamp":
        stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
        return f"{prefix}_Manuscript_{stamp}.pdf"

    year = sanitize_filename(str(metadata.year)) or str((now or datetime.now()).year)
    return f"{prefix}_Manuscript_{year}.pdf"
