"""
Manuscript assembler module.

Provides:
- Manuscript data model (ManuscriptRecord, Section, JournalMetadata)
- Extraction metrics (completeness counts shown to the user)
- Pipeline orchestration from Word bytes to a record
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Dict, Any, Union
from pathlib import Path

from ..config import JSON_SCHEMA_VERSION

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class Section:
    """A titled run of body text between two recognized headings."""
    title: str
    content: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "content": self.content}


@dataclass
class ExtractionMetrics:
    """Completeness counts for an extracted manuscript."""
    sections_total: int = 0
    tables_total: int = 0
    references_total: int = 0
    affiliations_total: int = 0
    keywords_total: int = 0
    abstract_words: int = 0
    completeness: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sections": self.sections_total,
            "tables": self.tables_total,
            "references": self.references_total,
            "affiliations": self.affiliations_total,
            "keywords": self.keywords_total,
            "abstract_words": self.abstract_words,
            "completeness": round(self.completeness, 3)
        }


@dataclass
class ManuscriptRecord:
    """Structured extraction result for one uploaded manuscript."""
    title: str
    authors: str
    affiliations: List[str] = field(default_factory=list)
    abstract: str = ""
    keywords: Union[List[str], str] = field(default_factory=list)
    sections: List[Section] = field(default_factory=list)
    tables: List[Any] = field(default_factory=list)
    references: List[str] = field(default_factory=list)

    # Bookkeeping
    source_file: str = ""
    created_at: str = ""
    schema_version: str = JSON_SCHEMA_VERSION

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now().isoformat()

    @property
    def keyword_list(self) -> List[str]:
        if isinstance(self.keywords, str):
            return [k.strip() for k in self.keywords.replace(";", ",").split(",") if k.strip()]
        return list(self.keywords)

    @property
    def keywords_text(self) -> str:
        if isinstance(self.keywords, str):
            return self.keywords
        return ", ".join(self.keywords)

    @property
    def first_author(self) -> str:
        return self.authors.split(",")[0].strip()

    @property
    def metrics(self) -> ExtractionMetrics:
        from ..config import ExtractionConfig
        defaults = ExtractionConfig()

        filled = [
            bool(self.title) and self.title != defaults.title_fallback,
            bool(self.authors) and self.authors != defaults.authors_fallback,
            bool(self.affiliations),
            bool(self.abstract),
            bool(self.keyword_list),
            bool(self.sections),
            bool(self.tables),
            bool(self.references),
        ]

        return ExtractionMetrics(
            sections_total=len(self.sections),
            tables_total=len(self.tables),
            references_total=len(self.references),
            affiliations_total=len(self.affiliations),
            keywords_total=len(self.keyword_list),
            abstract_words=len(self.abstract.split()),
            completeness=sum(filled) / len(filled)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "source_file": self.source_file,
            "created_at": self.created_at,
            "title": self.title,
            "authors": self.authors,
            "affiliations": self.affiliations,
            "abstract": self.abstract,
            "keywords": self.keywords,
            "sections": [s.to_dict() for s in self.sections],
            "tables": [t.to_dict() for t in self.tables],
            "references": self.references,
            "metrics": self.metrics.to_dict()
        }


def format_journal_date(day: date) -> str:
    """Format a date the way the journal prints it, e.g. '26th Dec 2025'."""
    if 11 <= day.day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day.day % 10, "th")
    return f"{day.day}{suffix} {day.strftime('%b %Y')}"


def _today() -> str:
    return format_journal_date(date.today())


def _this_year() -> str:
    return str(date.today().year)


@dataclass
class JournalMetadata:
    """User-editable publication metadata; defaults are recomputed per instance."""
    received: str = field(default_factory=_today)
    accepted: str = field(default_factory=_today)
    published: str = field(default_factory=_today)
    issn: str = "1234-5678"
    volume: str = "1"
    issue: str = "1"
    year: str = field(default_factory=_this_year)
    columns: int = 2

    @property
    def is_two_column(self) -> bool:
        return self.columns >= 2

    def to_dict(self) -> Dict[str, Any]:
        return {
            "received": self.received,
            "accepted": self.accepted,
            "published": self.published,
            "issn": self.issn,
            "volume": self.volume,
            "issue": self.issue,
            "year": self.year,
            "columns": self.columns
        }


# ============================================================================
# Manuscript Assembler
# ============================================================================

class ManuscriptAssembler:
    """
    Orchestrates conversion and extraction.

    Coordinates:
    - Word document conversion (raw text and HTML)
    - Structure extraction into a ManuscriptRecord
    """

    def __init__(self, config=None):
        if config is None:
            from ..config import get_config
            config = get_config()
        self.config = config
        self._extractor = None

    @property
    def extractor(self):
        if self._extractor is None:
            from .extractor import ManuscriptExtractor
            self._extractor = ManuscriptExtractor(self.config.extraction)
        return self._extractor

    def process_bytes(self, data: bytes, source_file: str = "") -> ManuscriptRecord:
        """
        Convert Word bytes and extract the manuscript structure.

        Raises:
            ConversionError: If the document cannot be decoded
        """
        from .io import extract_raw_text, convert_to_html

        raw_text = extract_raw_text(data)
        html = convert_to_html(data)
        logger.debug(f"Converted {source_file or 'upload'}: {len(raw_text)} chars of text")

        return self.extractor.extract(raw_text, html, source_file=source_file)

    def process_file(self, path: Union[str, Path]) -> ManuscriptRecord:
        from .io import load_docx, validate_upload

        path = Path(path)
        data = load_docx(path)
        validate_upload(
            path.name,
            len(data),
            allowed_extensions=self.config.input.allowed_extensions,
            max_bytes=self.config.input.max_upload_bytes
        )
        return self.process_bytes(data, source_file=path.name)
