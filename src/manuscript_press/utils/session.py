"""
Session context for one user working on one manuscript.

Holds the current upload, the extracted record, the editable journal
metadata and the last status message. A new upload replaces the record; a
rejected or undecodable upload leaves the previous state untouched.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .assembler import ManuscriptRecord, JournalMetadata, ManuscriptAssembler
from .io import validate_upload, InputRejectedError, ConversionError
from .layout import LayoutEngine, RenderError, RenderedManuscript

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Explicit replacement for module-level UI state."""
    config: object = None
    file_name: Optional[str] = None
    record: Optional[ManuscriptRecord] = None
    metadata: Optional[JournalMetadata] = None
    status: str = ""
    error: bool = False
    progress: int = 0

    def __post_init__(self):
        if self.config is None:
            from ..config import get_config
            self.config = get_config()
        if self.metadata is None:
            self.metadata = JournalMetadata(columns=self.config.default_columns)
        self._assembler = ManuscriptAssembler(self.config)
        self._engine = LayoutEngine(self.config)

    def _fail(self, message: str):
        self.status = message
        self.error = True
        self.progress = 0
        logger.warning(message)

    def load_upload(self, file_name: str, data: bytes) -> bool:
        """
        Validate, convert and extract an uploaded manuscript.

        Returns:
            True if a new record replaced the previous one
        """
        input_cfg = self.config.input
        try:
            validate_upload(
                file_name,
                len(data),
                allowed_extensions=input_cfg.allowed_extensions,
                max_bytes=input_cfg.max_upload_bytes
            )
        except InputRejectedError as e:
            self._fail(str(e))
            return False

        self.progress = 20
        try:
            record = self._assembler.process_bytes(data, source_file=file_name)
        except ConversionError as e:
            self._fail(f"Error parsing Word file: {e}")
            return False
        self.progress = 60

        self.file_name = file_name
        self.record = record
        self.progress = 100
        self.error = False
        self.status = (
            f"Parsed {file_name}: {len(record.sections)} sections found, "
            f"{len(record.tables)} tables found"
        )
        logger.info(self.status)
        return True

    def generate(self, filename_source: Optional[str] = None) -> Optional[RenderedManuscript]:
        """Run the layout for the current record; None on failure."""
        if self.record is None:
            self._fail("Upload a manuscript before generating the PDF.")
            return None

        source = filename_source or self.config.filename_source
        try:
            rendered = self._engine.render(self.record, self.metadata, filename_source=source)
        except RenderError as e:
            self._fail(str(e))
            return None

        self.error = False
        self.status = f"Generated {rendered.filename} ({rendered.page_count} pages)"
        logger.info(self.status)
        return rendered

    def reset(self):
        """Drop the current manuscript and restore default metadata."""
        self.file_name = None
        self.record = None
        self.metadata = JournalMetadata(columns=self.config.default_columns)
        self.status = ""
        self.error = False
        self.progress = 0
