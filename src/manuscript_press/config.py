"""
Configuration and constants for the manuscript formatting pipeline.

This module provides:
- Global logging setup
- Input gating (accepted extension, upload size limit)
- Extraction heuristics (heading keywords, matching strictness)
- Page geometry and journal template colours
- Journal branding used by headers, footers and citations
"""

import os
from dataclasses import dataclass, field
from typing import List, Tuple
import logging

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("manuscript_press")


Color = Tuple[int, int, int]


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class InputConfig:
    """Upload gating configuration."""
    allowed_extensions: Tuple[str, ...] = (".docx",)
    max_upload_mb: float = 10.0

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_mb * 1024 * 1024)


@dataclass
class ExtractionConfig:
    """Manuscript structure extraction configuration."""
    heading_keywords: List[str] = field(default_factory=lambda: [
        "Introduction",
        "Methodology",
        "Method",
        "Literature Review",
        "Results",
        "Result",
        "Discussion",
        "Conclusion",
        "References",
        "Acknowledgment",
    ])
    # prefix: line starts with a keyword; substring: keyword anywhere in line
    heading_match_mode: str = "prefix"
    heading_max_length: int = 50
    section_joiner: str = "\n"
    # References heading closes the open section instead of opening one
    references_as_section: bool = False
    keywords_as_list: bool = True
    author_scan_window: int = 10
    affiliation_window: int = 6
    strict_affiliations: bool = False
    affiliation_min_length: int = 10
    title_fallback: str = "Untitled Manuscript"
    authors_fallback: str = "Author names not found"


@dataclass
class PageConfig:
    """PDF page geometry and template styling (units: mm, points for fonts)."""
    page_format: str = "A4"
    orientation: str = "P"
    margin_top: float = 35.0
    margin_bottom: float = 20.0
    margin_left: float = 18.0
    margin_right: float = 18.0
    column_gap: float = 8.0
    body_top: float = 40.0
    first_content_y: float = 45.0
    line_height: float = 5.0
    small_line_height: float = 4.0
    title_line_height: float = 8.0
    author_box_min_height: float = 35.0
    abstract_box_min_height: float = 120.0
    box_padding: float = 6.0
    drop_caps: bool = True
    drop_cap_size: float = 30.0
    drop_cap_indent: float = 9.0
    drop_cap_lines: int = 2
    main_blue: Color = (0, 51, 102)
    light_blue_bg: Color = (240, 245, 255)
    abstract_bg: Color = (252, 252, 255)
    border_gray: Color = (180, 180, 180)
    text_gray: Color = (80, 80, 80)
    stripe_fill: Color = (240, 245, 255)


@dataclass
class JournalConfig:
    """Journal branding stamped onto every page."""
    name: str = "International Journal of Scholarly Resources"
    short_name: str = "IJSR"
    tagline: str = "Business & Management Studies - A Peer-Reviewed Academic Publication"
    email: str = "editor@ijsr.org.ng"
    website: str = "www.ijsr.org.ng"


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    input: InputConfig = field(default_factory=InputConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    page: PageConfig = field(default_factory=PageConfig)
    journal: JournalConfig = field(default_factory=JournalConfig)

    # Global settings
    debug_mode: bool = False
    default_columns: int = 2
    filename_source: str = "year"  # year, timestamp, title


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    if os.environ.get("MANUSCRIPT_PRESS_DEBUG", "").lower() == "true":
        config.debug_mode = True

    max_mb = os.environ.get("MANUSCRIPT_PRESS_MAX_UPLOAD_MB")
    if max_mb:
        try:
            config.input.max_upload_mb = float(max_mb)
        except ValueError:
            logger.warning(f"Ignoring invalid MANUSCRIPT_PRESS_MAX_UPLOAD_MB: {max_mb}")

    heading_mode = os.environ.get("MANUSCRIPT_PRESS_HEADING_MODE", "").lower()
    if heading_mode in HEADING_MATCH_MODES:
        config.extraction.heading_match_mode = heading_mode

    journal_name = os.environ.get("MANUSCRIPT_PRESS_JOURNAL_NAME")
    if journal_name:
        config.journal.name = journal_name

    short_name = os.environ.get("MANUSCRIPT_PRESS_JOURNAL_SHORT_NAME")
    if short_name:
        config.journal.short_name = short_name

    return config


# ============================================================================
# Constants
# ============================================================================

HEADING_MATCH_MODES = ("prefix", "substring")

FILENAME_SOURCES = ("year", "timestamp", "title")

JSON_SCHEMA_VERSION = "1.0"
