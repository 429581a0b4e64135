"""
Export module for manuscript formatting.

Provides:
- Markdown export of the extracted structure (preview and review copy)
- JSON export of the manuscript record
- CSV export of the manuscript tables
- Journal-formatted PDF export (via the layout engine)
"""

import logging
from pathlib import Path
from typing import Dict, Optional, List, Union

from .assembler import ManuscriptRecord, JournalMetadata

logger = logging.getLogger(__name__)


# ============================================================================
# Markdown Exporter
# ============================================================================

class MarkdownExporter:
    """Export a manuscript record to Markdown."""

    def __init__(self, include_tables: bool = True, include_references: bool = True):
        self.include_tables = include_tables
        self.include_references = include_references

    def export(
        self,
        record: ManuscriptRecord,
        output_path: Union[str, Path]
    ) -> Path:
        """
        Export record to Markdown file.

        Args:
            record: Extracted manuscript
            output_path: Output file path

        Returns:
            Path to the generated Markdown file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(self.generate(record))

        logger.info(f"Exported Markdown to: {output_path}")
        return output_path

    def generate(self, record: ManuscriptRecord) -> str:
        """Generate Markdown from the record structure."""
        lines = [f"# {record.title}", ""]

        if record.authors:
            lines.append(f"**Authors:** {record.authors}")
            lines.append("")

        for affiliation in record.affiliations:
            lines.append(f"- {affiliation}")
        if record.affiliations:
            lines.append("")

        lines.append("## Abstract")
        lines.append("")
        lines.append(record.abstract)
        lines.append("")

        if record.keyword_list:
            lines.append(f"**Keywords:** {record.keywords_text}")
            lines.append("")

        for section in record.sections:
            lines.append(f"## {section.title}")
            lines.append("")
            if section.content:
                lines.append(section.content)
                lines.append("")

        if self.include_tables:
            for table in record.tables:
                lines.append(f"*{table.caption}*")
                lines.append("")
                lines.append(table.to_markdown())
                lines.append("")

        if self.include_references and record.references:
            lines.append("## References")
            lines.append("")
            for i, reference in enumerate(record.references, 1):
                lines.append(f"{i}. {reference}")
            lines.append("")

        return "\n".join(lines)


# ============================================================================
# Multi-Format Exporter
# ============================================================================

class DocumentExporter:
    """Convenience class for exporting to multiple formats."""

    def __init__(
        self,
        output_dir: Union[str, Path],
        base_name: str = "manuscript",
        config=None
    ):
        self.output_dir = Path(output_dir)
        self.base_name = base_name
        self.config = config

        self.markdown_exporter = MarkdownExporter()

    def export(
        self,
        record: ManuscriptRecord,
        metadata: Optional[JournalMetadata] = None,
        formats: List[str] = None,
        filename_source: str = "year"
    ) -> Dict[str, Path]:
        """
        Export a record to multiple formats.

        Args:
            record: Extracted manuscript
            metadata: Journal metadata for the PDF (defaults if omitted)
            formats: List of formats ('pdf', 'json', 'markdown', 'csv', 'all')
            filename_source: How the PDF filename is derived

        Returns:
            Dictionary mapping format to output path

        Raises:
            RenderError: If the PDF could not be produced
        """
        from .io import save_json, ensure_dir

        if formats is None:
            formats = ["pdf", "json"]

        if "all" in formats:
            formats = ["pdf", "json", "markdown", "csv"]

        ensure_dir(self.output_dir)
        results = {}

        if "json" in formats:
            path = self.output_dir / f"{self.base_name}.json"
            results["json"] = save_json(record.to_dict(), path)

        if "markdown" in formats:
            path = self.output_dir / f"{self.base_name}.md"
            results["markdown"] = self.markdown_exporter.export(record, path)

        if "csv" in formats and record.tables:
            results["csv"] = self.export_tables_csv(record)

        if "pdf" in formats:
            from .layout import LayoutEngine

            engine = LayoutEngine(self.config)
            rendered = engine.render(record, metadata or JournalMetadata(), filename_source=filename_source)
            path = self.output_dir / rendered.filename
            path.write_bytes(rendered.data)
            logger.info(f"Exported PDF ({rendered.page_count} pages) to: {path}")
            results["pdf"] = path

        return results

    def export_tables_csv(self, record: ManuscriptRecord) -> Path:
        """Write each table to `<base>_tables/table_<n>.csv`; returns the directory."""
        from .io import ensure_dir

        tables_dir = ensure_dir(self.output_dir / f"{self.base_name}_tables")
        for i, table in enumerate(record.tables, 1):
            path = tables_dir / f"table_{i}.csv"
            path.write_text(table.to_csv(), encoding="utf-8")
        logger.info(f"Exported {len(record.tables)} table(s) as CSV to: {tables_dir}")
        return tables_dir
