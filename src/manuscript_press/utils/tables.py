"""
Table extraction module for manuscript formatting.

Provides:
- Table data class (caption, header row, body rows)
- Discovery of tables in the HTML rendering of a manuscript
- Markdown and CSV representations for previews and exports
"""

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


Row = List[str]

CAPTION_PATTERN = re.compile(r"^\s*table\b", re.IGNORECASE)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class Table:
    """A manuscript table: caption, header row and body rows."""
    caption: str
    head: Row
    body: List[Row] = field(default_factory=list)

    @property
    def rows(self) -> List[Row]:
        return [self.head] + self.body

    @property
    def num_cols(self) -> int:
        return max((len(r) for r in self.rows), default=0)

    def padded_rows(self) -> List[Row]:
        """All rows padded with empty cells to a uniform width."""
        width = self.num_cols
        return [list(r) + [""] * (width - len(r)) for r in self.rows]

    def to_markdown(self) -> str:
        """Build Markdown table representation."""
        if self.num_cols == 0:
            return ""

        grid = self.padded_rows()
        lines = []

        header = "| " + " | ".join(grid[0]) + " |"
        lines.append(header)

        separator = "| " + " | ".join("---" for _ in range(self.num_cols)) + " |"
        lines.append(separator)

        for row in grid[1:]:
            lines.append("| " + " | ".join(row) + " |")

        return "\n".join(lines)

    def to_csv(self) -> str:
        """Build CSV representation."""
        if self.num_cols == 0:
            return ""

        output = io.StringIO()
        writer = csv.writer(output)
        for row in self.padded_rows():
            writer.writerow(row)
        return output.getvalue()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "caption": self.caption,
            "head": self.head,
            "body": self.body,
            "num_rows": len(self.rows),
            "num_cols": self.num_cols,
        }


# ============================================================================
# HTML Table Discovery
# ============================================================================

def _cell_text(cell) -> str:
    return cell.get_text(" ", strip=True)


def _find_caption(table, index: int) -> str:
    """Caption from <caption>, else a preceding "Table ..." paragraph."""
    caption = table.find("caption")
    if caption is not None and _cell_text(caption):
        return _cell_text(caption)

    previous = table.find_previous_sibling(True)
    if previous is not None and previous.name == "p":
        text = _cell_text(previous)
        if CAPTION_PATTERN.match(text):
            return text

    return f"Table {index}"


def extract_tables(html: Optional[str]) -> List[Table]:
    """
    Collect every ``<table>`` in document order.

    Each ``<tr>`` becomes a row of trimmed ``<td>``/``<th>`` texts. The first
    row is promoted to the header; tables without rows are skipped.

    Args:
        html: HTML rendering of the manuscript

    Returns:
        List of Table objects (empty if the markup holds no tables)
    """
    if not html:
        return []

    soup = BeautifulSoup(html, "html.parser")
    tables = []

    for element in soup.find_all("table"):
        rows = []
        for tr in element.find_all("tr"):
            rows.append([_cell_text(c) for c in tr.find_all(["td", "th"])])

        if not rows:
            logger.debug("Skipping table without rows")
            continue

        caption = _find_caption(element, len(tables) + 1)
        tables.append(Table(caption=caption, head=rows[0], body=rows[1:]))

    logger.debug(f"Found {len(tables)} table(s) in HTML")
    return tables
