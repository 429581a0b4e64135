"""
End-to-end integration tests for the manuscript formatting pipeline.
"""

import io
import json
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from manuscript_press.config import PipelineConfig, get_config


def build_manuscript() -> bytes:
    """Write a small but complete manuscript with python-docx."""
    from docx import Document

    document = Document()
    document.add_paragraph("A Study of X")

    authors = document.add_paragraph("J. Doe")
    authors.add_run("1").font.superscript = True
    authors.add_run(", A. Smith")
    authors.add_run("2").font.superscript = True

    document.add_paragraph("¹Univ A")
    document.add_paragraph("²Univ B")
    document.add_paragraph("Abstract: This paper studies X. Keywords: x, y, z")
    document.add_paragraph("Introduction")
    document.add_paragraph("We study X.")
    document.add_paragraph("Table 1: Scores")

    table = document.add_table(rows=2, cols=2)
    for r, row in enumerate([["Name", "Score"], ["A", "1"]]):
        for c, value in enumerate(row):
            table.cell(r, c).text = value

    document.add_paragraph("References")
    document.add_paragraph("Doe, J. (2020).")

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def manuscript_bytes():
    return build_manuscript()


@pytest.fixture
def manuscript_path(tmp_path, manuscript_bytes):
    path = tmp_path / "paper.docx"
    path.write_bytes(manuscript_bytes)
    return path


class TestAssembler:
    """Word bytes to manuscript record."""

    def test_process_bytes(self, manuscript_bytes):
        from manuscript_press.utils.assembler import ManuscriptAssembler

        record = ManuscriptAssembler(PipelineConfig()).process_bytes(manuscript_bytes, "paper.docx")

        assert record.title == "A Study of X"
        assert record.authors == "J. Doe¹, A. Smith²"
        assert record.affiliations == ["¹Univ A", "²Univ B"]
        assert record.abstract == "This paper studies X."
        assert record.keywords == ["x", "y", "z"]
        assert [s.title for s in record.sections] == ["Introduction"]
        assert record.references == ["Doe, J. (2020)."]
        assert record.source_file == "paper.docx"

    def test_tables_from_html(self, manuscript_bytes):
        from manuscript_press.utils.assembler import ManuscriptAssembler

        record = ManuscriptAssembler(PipelineConfig()).process_bytes(manuscript_bytes)

        assert len(record.tables) == 1
        assert record.tables[0].caption == "Table 1: Scores"
        assert record.tables[0].head == ["Name", "Score"]
        assert record.tables[0].body == [["A", "1"]]

    def test_process_file_rejects_extension(self, tmp_path, manuscript_bytes):
        from manuscript_press.utils.assembler import ManuscriptAssembler
        from manuscript_press.utils.io import InputRejectedError

        path = tmp_path / "paper.pdf"
        path.write_bytes(manuscript_bytes)
        with pytest.raises(InputRejectedError):
            ManuscriptAssembler(PipelineConfig()).process_file(path)

    def test_record_serializable(self, manuscript_bytes):
        from manuscript_press.utils.assembler import ManuscriptAssembler

        record = ManuscriptAssembler(PipelineConfig()).process_bytes(manuscript_bytes)
        data = json.loads(json.dumps(record.to_dict()))

        assert data["schema_version"] == "1.0"
        assert data["tables"][0]["caption"] == "Table 1: Scores"
        assert data["metrics"]["completeness"] == 1.0


class TestSession:
    """Upload, generate and reset through one session."""

    @pytest.fixture
    def session(self):
        from manuscript_press.utils.session import Session
        return Session(config=PipelineConfig())

    def test_load_upload(self, session, manuscript_bytes):
        assert session.load_upload("paper.docx", manuscript_bytes)

        assert session.record.title == "A Study of X"
        assert session.file_name == "paper.docx"
        assert session.progress == 100
        assert session.status == "Parsed paper.docx: 1 sections found, 1 tables found"
        assert not session.error

    def test_wrong_type_rejected(self, session, manuscript_bytes):
        assert not session.load_upload("paper.pdf", manuscript_bytes)
        assert session.record is None
        assert session.error

    def test_oversize_rejected(self, session):
        assert not session.load_upload("paper.docx", b"x" * (10 * 1024 * 1024 + 1))
        assert "too large" in session.status
        assert session.record is None

    def test_failed_upload_keeps_previous_record(self, session, manuscript_bytes):
        """A broken upload leaves the last good manuscript in place."""
        session.load_upload("paper.docx", manuscript_bytes)

        assert not session.load_upload("broken.docx", b"not a word document")
        assert session.record.title == "A Study of X"
        assert session.file_name == "paper.docx"
        assert session.status.startswith("Error parsing Word file")

    def test_generate(self, session, manuscript_bytes):
        session.load_upload("paper.docx", manuscript_bytes)
        session.metadata.year = "2025"

        rendered = session.generate()

        assert rendered.data.startswith(b"%PDF")
        assert rendered.filename == "IJSR_Manuscript_2025.pdf"
        assert rendered.page_count == 2

    def test_generate_by_title(self, session, manuscript_bytes):
        session.load_upload("paper.docx", manuscript_bytes)
        assert session.generate("title").filename == "IJSR_A_Study_of_X.pdf"

    def test_generate_without_record(self, session):
        assert session.generate() is None
        assert session.error

    def test_generate_render_failure(self, session, manuscript_bytes, monkeypatch):
        from manuscript_press.utils.layout import LayoutEngine

        def boom(self, record, metadata):
            raise RuntimeError("layout exploded")

        session.load_upload("paper.docx", manuscript_bytes)
        monkeypatch.setattr(LayoutEngine, "build", boom)

        assert session.generate() is None
        assert "layout exploded" in session.status
        assert session.record is not None

    def test_reset(self, session, manuscript_bytes):
        session.load_upload("paper.docx", manuscript_bytes)
        session.metadata.volume = "9"

        session.reset()

        assert session.record is None
        assert session.file_name is None
        assert session.metadata.volume == "1"
        assert session.status == ""

    def test_column_default_from_config(self):
        from manuscript_press.utils.session import Session

        config = PipelineConfig(default_columns=1)
        assert Session(config=config).metadata.columns == 1

    def test_supplied_metadata_kept(self):
        """Metadata passed in is used as given, not reset to config defaults."""
        from manuscript_press.utils.assembler import JournalMetadata
        from manuscript_press.utils.session import Session

        metadata = JournalMetadata(columns=1, volume="7")
        session = Session(config=PipelineConfig(default_columns=2), metadata=metadata)

        assert session.metadata is metadata
        assert session.metadata.columns == 1
        assert session.metadata.volume == "7"


class TestExport:
    """Multi-format export."""

    @pytest.fixture
    def record(self, manuscript_bytes):
        from manuscript_press.utils.assembler import ManuscriptAssembler
        return ManuscriptAssembler(PipelineConfig()).process_bytes(manuscript_bytes)

    def test_markdown(self, record):
        from manuscript_press.utils.export import MarkdownExporter

        markdown = MarkdownExporter().generate(record)

        assert markdown.startswith("# A Study of X")
        assert "## Introduction" in markdown
        assert "**Keywords:** x, y, z" in markdown
        assert "*Table 1: Scores*" in markdown
        assert "1. Doe, J. (2020)." in markdown

    def test_all_formats(self, record, tmp_path):
        from manuscript_press.utils.assembler import JournalMetadata
        from manuscript_press.utils.export import DocumentExporter

        exporter = DocumentExporter(tmp_path, "paper", config=PipelineConfig())
        results = exporter.export(record, JournalMetadata(year="2025"), formats=["all"])

        assert set(results) == {"pdf", "json", "markdown", "csv"}
        assert results["pdf"].name == "IJSR_Manuscript_2025.pdf"
        assert results["pdf"].read_bytes().startswith(b"%PDF")
        assert json.loads(results["json"].read_text(encoding="utf-8"))["title"] == "A Study of X"
        assert results["markdown"].suffix == ".md"
        assert results["csv"].name == "paper_tables"
        csv_lines = (results["csv"] / "table_1.csv").read_text(encoding="utf-8").splitlines()
        assert csv_lines == ["Name,Score", "A,1"]

    def test_csv_skipped_without_tables(self, record, tmp_path):
        from manuscript_press.utils.export import DocumentExporter

        record.tables = []
        exporter = DocumentExporter(tmp_path, "paper", config=PipelineConfig())
        assert exporter.export(record, formats=["csv"]) == {}
        assert not (tmp_path / "paper_tables").exists()


class TestCLI:
    """Command-line pipeline."""

    def run(self, *argv):
        from manuscript_press.cli import setup_argparser, run_pipeline
        args = setup_argparser().parse_args(list(argv))
        return run_pipeline(args)

    def test_pdf_and_json(self, manuscript_path, tmp_path):
        out = tmp_path / "out"
        assert self.run("-i", str(manuscript_path), "-o", str(out), "--year", "2025", "-q") == 0

        assert (out / "IJSR_Manuscript_2025.pdf").exists()
        assert (out / "paper.json").exists()

    def test_overrides(self, manuscript_path, tmp_path):
        out = tmp_path / "out"
        code = self.run(
            "-i", str(manuscript_path), "-o", str(out),
            "--format", "json", "--keywords-as-text", "-q"
        )

        assert code == 0
        data = json.loads((out / "paper.json").read_text(encoding="utf-8"))
        assert data["keywords"] == "x, y, z"

    def test_csv_tables(self, manuscript_path, tmp_path):
        out = tmp_path / "out"
        assert self.run("-i", str(manuscript_path), "-o", str(out), "--format", "csv", "-q") == 0

        assert (out / "paper_tables" / "table_1.csv").exists()
        assert not (out / "paper.json").exists()

    def test_missing_input(self, tmp_path):
        assert self.run("-i", str(tmp_path / "nope.docx"), "-o", str(tmp_path), "-q") == 1

    def test_rejected_input(self, tmp_path):
        path = tmp_path / "paper.txt"
        path.write_text("A Study of X")
        assert self.run("-i", str(path), "-o", str(tmp_path), "-q") == 1

    def test_unreadable_docx(self, tmp_path):
        path = tmp_path / "paper.docx"
        path.write_bytes(b"garbage")
        assert self.run("-i", str(path), "-o", str(tmp_path), "-q") == 1


class TestConfig:
    """Environment overrides."""

    def test_defaults(self):
        config = PipelineConfig()
        assert config.input.max_upload_bytes == 10 * 1024 * 1024
        assert config.extraction.heading_match_mode == "prefix"
        assert config.default_columns == 2

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("MANUSCRIPT_PRESS_HEADING_MODE", "substring")
        monkeypatch.setenv("MANUSCRIPT_PRESS_MAX_UPLOAD_MB", "2")
        monkeypatch.setenv("MANUSCRIPT_PRESS_JOURNAL_SHORT_NAME", "JBMS")

        config = get_config()

        assert config.extraction.heading_match_mode == "substring"
        assert config.input.max_upload_bytes == 2 * 1024 * 1024
        assert config.journal.short_name == "JBMS"

    def test_invalid_env_ignored(self, monkeypatch):
        monkeypatch.setenv("MANUSCRIPT_PRESS_MAX_UPLOAD_MB", "lots")
        monkeypatch.setenv("MANUSCRIPT_PRESS_HEADING_MODE", "fuzzy")

        config = get_config()

        assert config.input.max_upload_mb == 10.0
        assert config.extraction.heading_match_mode == "prefix"
