"""
Utility modules for the manuscript formatting pipeline.
"""

from .io import (
    validate_upload, extract_raw_text, convert_to_html, load_docx,
    save_json, ensure_dir, InputRejectedError, ConversionError,
)
from .assembler import (
    ManuscriptAssembler, ManuscriptRecord, Section, JournalMetadata, ExtractionMetrics,
)
from .tables import Table, extract_tables
from .extractor import ManuscriptExtractor, HeadingMatcher
from .layout import LayoutEngine, FlowCursor, PageGeometry, RenderError, output_filename
from .export import MarkdownExporter, DocumentExporter
from .session import Session

__all__ = [
    # IO
    "validate_upload", "extract_raw_text", "convert_to_html", "load_docx",
    "save_json", "ensure_dir", "InputRejectedError", "ConversionError",
    # Data model
    "ManuscriptAssembler", "ManuscriptRecord", "Section", "JournalMetadata", "ExtractionMetrics",
    # Extraction
    "Table", "extract_tables", "ManuscriptExtractor", "HeadingMatcher",
    # Layout
    "LayoutEngine", "FlowCursor", "PageGeometry", "RenderError", "output_filename",
    # Export
    "MarkdownExporter", "DocumentExporter",
    # Session
    "Session",
]
