"""
Manuscript structure extraction.

Heuristic, first-match scanning of the manuscript's plain text:
- Title, authors and affiliations from the opening lines
- Abstract and keywords from marker patterns
- Sections from a fixed heading keyword set
- References from the lines after the references marker

Every rule degrades to an empty value or a fallback literal; nothing here
raises for content reasons.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from .assembler import Section, ManuscriptRecord
from .tables import extract_tables
from ..config import HEADING_MATCH_MODES

logger = logging.getLogger(__name__)


SUPERSCRIPT_MARKER = re.compile(r"[¹²³⁴⁵⁶⁷⁸⁹⁰]")

# "1.", "2.1", "2.1.", "IV." ahead of a heading keyword
SECTION_NUMBER = re.compile(r"^(?:\d+(?:\.\d+)*\.?|[IVXLC]+\.)\s+", re.IGNORECASE)

KEYWORD_SPLIT = re.compile(r"[,;]")


# ============================================================================
# Matcher Rules
# ============================================================================

@dataclass
class HeadingMatcher:
    """Decides whether a line is a section heading."""
    keywords: Sequence[str]
    mode: str = "prefix"
    max_length: int = 50

    def __post_init__(self):
        if self.mode not in HEADING_MATCH_MODES:
            raise ValueError(f"Unknown heading match mode: {self.mode}")
        self._lowered = [k.lower() for k in self.keywords]

    def match(self, line: str) -> Optional[str]:
        """Return the matched keyword, or None if the line is not a heading."""
        text = line.strip()
        # Long lines are prose that merely mentions a keyword
        if not text or len(text) >= self.max_length:
            return None

        if self.mode == "prefix":
            lowered = SECTION_NUMBER.sub("", text).lower()
            for keyword, lowered_kw in zip(self.keywords, self._lowered):
                if lowered.startswith(lowered_kw):
                    return keyword
        else:
            lowered = text.lower()
            for keyword, lowered_kw in zip(self.keywords, self._lowered):
                if lowered_kw in lowered:
                    return keyword
        return None

    def is_heading(self, line: str) -> bool:
        return self.match(line) is not None


@dataclass
class MarkerPattern:
    """Captures the text between a start marker and the first end marker."""
    start: str
    ends: Sequence[str]
    _regex: "re.Pattern" = field(init=False, repr=False)

    def __post_init__(self):
        ends = "|".join(self.ends)
        self._regex = re.compile(
            rf"{self.start}:?(.*?)(?:{ends})",
            re.IGNORECASE | re.DOTALL
        )

    def search(self, text: str) -> str:
        if not text:
            return ""
        match = self._regex.search(text)
        return match.group(1).strip() if match else ""


ABSTRACT_MARKER = MarkerPattern("Abstract", [r"Keywords", r"1\.", r"Introduction"])
KEYWORDS_MARKER = MarkerPattern("Keywords", [r"1\.", r"Introduction", r"Methodology"])


# ============================================================================
# Field Extraction
# ============================================================================

def split_lines(raw_text: str) -> List[str]:
    """Non-empty, stripped lines of the raw document text."""
    if not raw_text:
        return []
    return [line.strip() for line in raw_text.splitlines() if line.strip()]


def extract_title(lines: Sequence[str], fallback: str = "Untitled Manuscript") -> str:
    """First line of the document, or the fallback literal."""
    if lines and lines[0].strip():
        return lines[0].strip()
    return fallback


def extract_authors_index(lines: Sequence[str], scan_window: int = 10) -> Optional[int]:
    """
    Index of the author line.

    The first line among lines 1..scan_window-1 carrying a superscript
    affiliation marker wins; otherwise the second line is used.
    """
    for i in range(1, min(scan_window, len(lines))):
        if SUPERSCRIPT_MARKER.search(lines[i]):
            return i
    if len(lines) > 1:
        return 1
    return None


def extract_authors(
    lines: Sequence[str],
    scan_window: int = 10,
    fallback: str = "Author names not found"
) -> str:
    index = extract_authors_index(lines, scan_window)
    if index is None:
        return fallback
    return lines[index].strip()


def extract_affiliations(
    lines: Sequence[str],
    start_index: int,
    window: int = 6,
    strict: bool = False,
    min_length: int = 10
) -> List[str]:
    """
    Collect affiliation lines following the author line.

    Stops at the first line mentioning "abstract" or after ``window`` lines.
    In strict mode a line of ``min_length`` characters or fewer also stops
    the scan.
    """
    affiliations = []
    if start_index < 0:
        return affiliations

    for line in lines[start_index:start_index + window]:
        if "abstract" in line.lower():
            break
        if strict and len(line.strip()) <= min_length:
            break
        affiliations.append(line.strip())

    return affiliations


def extract_abstract(full_text: str) -> str:
    return ABSTRACT_MARKER.search(full_text)


def extract_keywords(full_text: str, as_list: bool = True) -> Union[List[str], str]:
    """Keywords after the "Keywords" marker, split on commas/semicolons."""
    raw = KEYWORDS_MARKER.search(full_text)
    if not as_list:
        return raw
    return [token.strip() for token in KEYWORD_SPLIT.split(raw) if token.strip()]


def extract_sections(
    lines: Sequence[str],
    matcher: HeadingMatcher,
    joiner: str = "\n",
    references_as_section: bool = False
) -> List[Section]:
    """
    Split the document into sections in a single left-to-right scan.

    A heading line closes the open section and opens a new one titled with
    that line; other lines extend the open section. Lines before the first
    heading are not claimed by any section.
    """
    sections = []
    title = None
    content: List[str] = []

    for line in lines:
        keyword = matcher.match(line)
        if keyword is not None:
            if title is not None:
                sections.append(Section(title=title, content=joiner.join(content)))
            content = []
            if keyword.lower() == "references" and not references_as_section:
                # Reference lines belong to extract_references
                title = None
            else:
                title = line.strip()
        elif title is not None:
            content.append(line)

    if title is not None:
        sections.append(Section(title=title, content=joiner.join(content)))

    return sections


def extract_references(lines: Sequence[str]) -> List[str]:
    """Every line after the first one mentioning "reference"."""
    references = []
    seen_marker = False

    for line in lines:
        if seen_marker:
            if line.strip():
                references.append(line)
        elif "reference" in line.lower():
            seen_marker = True

    return references


# ============================================================================
# Record Extraction
# ============================================================================

class ManuscriptExtractor:
    """
    Builds a ManuscriptRecord from raw text and HTML.

    All heuristics are driven by an ExtractionConfig so that matching
    strictness (prefix vs substring headings, keyword list vs raw string,
    strict affiliations) can be switched without code changes.
    """

    def __init__(self, config=None):
        if config is None:
            from ..config import ExtractionConfig
            config = ExtractionConfig()
        self.config = config
        self.heading_matcher = HeadingMatcher(
            keywords=config.heading_keywords,
            mode=config.heading_match_mode,
            max_length=config.heading_max_length
        )

    def extract(
        self,
        raw_text: str,
        html: Optional[str] = None,
        source_file: str = ""
    ) -> ManuscriptRecord:
        cfg = self.config
        lines = split_lines(raw_text)
        full_text = "\n".join(lines)

        author_index = extract_authors_index(lines, cfg.author_scan_window)
        start = author_index + 1 if author_index is not None else len(lines)

        record = ManuscriptRecord(
            title=extract_title(lines, cfg.title_fallback),
            authors=extract_authors(lines, cfg.author_scan_window, cfg.authors_fallback),
            affiliations=extract_affiliations(
                lines, start,
                window=cfg.affiliation_window,
                strict=cfg.strict_affiliations,
                min_length=cfg.affiliation_min_length
            ),
            abstract=extract_abstract(full_text),
            keywords=extract_keywords(full_text, as_list=cfg.keywords_as_list),
            sections=extract_sections(
                lines,
                self.heading_matcher,
                joiner=cfg.section_joiner,
                references_as_section=cfg.references_as_section
            ),
            tables=extract_tables(html),
            references=extract_references(lines),
            source_file=source_file
        )

        logger.info(
            f"Extracted '{record.title[:60]}': {len(record.sections)} sections, "
            f"{len(record.tables)} tables, {len(record.references)} references"
        )
        return record
