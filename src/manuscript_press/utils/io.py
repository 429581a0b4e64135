"""
I/O utilities for the manuscript formatting pipeline.

Handles:
- Upload gating (extension and size checks)
- Word document conversion to raw text and HTML markup
- JSON serialization
- Directory management
"""

import html
import io
import json
import logging
from pathlib import Path
from typing import Union, Optional, Any, Tuple
from dataclasses import asdict

logger = logging.getLogger(__name__)


SUPERSCRIPT_DIGITS = str.maketrans("0123456789", "⁰¹²³⁴⁵⁶⁷⁸⁹")


# ============================================================================
# Errors
# ============================================================================

class InputRejectedError(ValueError):
    """Upload refused before any conversion (wrong type or too large)."""


class ConversionError(RuntimeError):
    """The Word document could not be decoded."""


# ============================================================================
# Upload Validation
# ============================================================================

def validate_upload(
    file_name: str,
    size_bytes: int,
    allowed_extensions: Tuple[str, ...] = (".docx",),
    max_bytes: Optional[int] = 10 * 1024 * 1024
) -> None:
    """
    Check an upload against the accepted format and size limit.

    Raises:
        InputRejectedError: If the extension is not accepted or the file
            exceeds ``max_bytes``
    """
    suffix = Path(file_name or "").suffix.lower()
    if suffix not in allowed_extensions:
        accepted = ", ".join(allowed_extensions)
        raise InputRejectedError(
            f"Unsupported file type '{suffix or file_name}'. Please upload a {accepted} file."
        )

    if max_bytes is not None and size_bytes > max_bytes:
        raise InputRejectedError(
            f"File is too large ({size_bytes / (1024 * 1024):.1f} MB). "
            f"Maximum allowed size is {max_bytes / (1024 * 1024):.0f} MB."
        )

    if size_bytes == 0:
        raise InputRejectedError(f"File is empty: {file_name}")


# ============================================================================
# Word Document Conversion
# ============================================================================

def _open_docx(data: bytes):
    """Open a Word document from raw bytes with python-docx."""
    from docx import Document as DocxDocument

    try:
        return DocxDocument(io.BytesIO(data))
    except Exception as e:
        raise ConversionError(f"Could not read Word document: {e}") from e


def _paragraph_text(paragraph) -> str:
    """Paragraph text with superscript digits kept as Unicode superscripts."""
    parts = []
    for item in paragraph.iter_inner_content():
        # Hyperlinks wrap their own runs
        runs = item.runs if hasattr(item, "runs") else [item]
        for run in runs:
            text = run.text
            if run.font.superscript:
                text = text.translate(SUPERSCRIPT_DIGITS)
            parts.append(text)
    return "".join(parts)


def _table_rows(table):
    """Rows of (text, span) pairs; a horizontally merged cell appears once."""
    rows = []
    for row in table.rows:
        cells = []
        previous = None
        for cell in row.cells:
            # python-docx repeats a merged cell for every grid column it spans
            if previous is not None and cell._tc is previous:
                text, span = cells[-1]
                cells[-1] = (text, span + 1)
                continue
            cells.append((cell.text, 1))
            previous = cell._tc
        rows.append(cells)
    return rows


def _html_cell(text: str, span: int) -> str:
    colspan = f' colspan="{span}"' if span > 1 else ""
    return f"<td{colspan}>{html.escape(text)}</td>"


def _iter_blocks(document):
    """Yield ('p', text) and ('table', rows) in body order."""
    from docx.table import Table

    for block in document.iter_inner_content():
        if isinstance(block, Table):
            yield "table", _table_rows(block)
        else:
            yield "p", _paragraph_text(block)


def extract_raw_text(data: bytes) -> str:
    """
    Extract the plain text of a Word document.

    One line per paragraph and one line per table cell, in body order.

    Args:
        data: Raw ``.docx`` bytes

    Returns:
        Newline-separated document text

    Raises:
        ConversionError: If the bytes are not a readable Word document
    """
    document = _open_docx(data)
    lines = []

    try:
        for kind, content in _iter_blocks(document):
            if kind == "table":
                for row in content:
                    lines.extend(text for text, _ in row)
            else:
                lines.append(content)
    except Exception as e:
        raise ConversionError(f"Failed to extract text: {e}") from e

    logger.debug(f"Extracted {len(lines)} raw text lines")
    return "\n".join(lines)


def convert_to_html(data: bytes) -> str:
    """
    Render a Word document as simple HTML markup.

    Paragraphs become ``<p>`` elements and tables become
    ``<table>``/``<tr>``/``<td>`` grids; all text is escaped.

    Raises:
        ConversionError: If the bytes are not a readable Word document
    """
    document = _open_docx(data)
    parts = []

    try:
        for kind, content in _iter_blocks(document):
            if kind == "table":
                parts.append("<table>")
                for row in content:
                    cells = "".join(_html_cell(text, span) for text, span in row)
                    parts.append(f"<tr>{cells}</tr>")
                parts.append("</table>")
            elif content.strip():
                parts.append(f"<p>{html.escape(content)}</p>")
    except Exception as e:
        raise ConversionError(f"Failed to convert document to HTML: {e}") from e

    return "\n".join(parts)


def load_docx(docx_path: Union[str, Path]) -> bytes:
    """
    Read a Word document from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    docx_path = Path(docx_path)
    if not docx_path.exists():
        raise FileNotFoundError(f"Document not found: {docx_path}")

    data = docx_path.read_bytes()
    logger.debug(f"Loaded document: {docx_path} ({len(data)} bytes)")
    return data


# ============================================================================
# JSON Serialization
# ============================================================================

class EnhancedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles dataclasses and paths."""

    def default(self, obj):
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        if hasattr(obj, '__dataclass_fields__'):
            return asdict(obj)
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(
    data: Any,
    output_path: Union[str, Path],
    indent: int = 2,
    ensure_ascii: bool = False
) -> Path:
    """
    Save data to a JSON file.

    Args:
        data: Data to serialize (dict, list, dataclass, etc.)
        output_path: Path to save the JSON file
        indent: Indentation level for pretty printing
        ensure_ascii: If True, escape non-ASCII characters

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii, cls=EnhancedJSONEncoder)

    logger.debug(f"Saved JSON: {output_path}")
    return output_path


# ============================================================================
# Directory Management
# ============================================================================

def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
