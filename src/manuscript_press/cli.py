#!/usr/bin/env python
"""
Command-line interface for Manuscript Press.

Usage:
    manuscript-press --input <manuscript.docx> --output <output_dir> [options]

Examples:
    # Two-column journal PDF plus the extracted structure as JSON
    manuscript-press --input paper.docx --output ./output

    # Single-column layout with explicit publication dates
    manuscript-press -i paper.docx -o ./output --columns 1 --received "2nd Jan 2026"

    # Everything, with the filename derived from the title
    manuscript-press -i paper.docx -o ./output --format all --filename-source title
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from .config import FILENAME_SOURCES, HEADING_MATCH_MODES

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("manuscript_press")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        description="Manuscript Press - Format Word manuscripts as journal-styled PDFs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Format a manuscript with the default two-column template:
    manuscript-press --input paper.docx --output ./output

  Single-column layout, custom volume and issue:
    manuscript-press --input paper.docx --output ./output --columns 1 --volume 3 --issue 2

  Looser heading detection for unusual manuscripts:
    manuscript-press --input paper.docx --output ./output --heading-mode substring
        """
    )

    # Required arguments
    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Input Word manuscript (.docx)"
    )

    parser.add_argument(
        "--output", "-o",
        required=True,
        help="Output directory for generated files"
    )

    # Optional arguments
    parser.add_argument(
        "--format", "-f",
        nargs="+",
        default=["pdf", "json"],
        choices=["pdf", "json", "markdown", "csv", "all"],
        help="Output format(s); csv writes one file per table (default: pdf json)"
    )

    parser.add_argument(
        "--columns",
        type=int,
        choices=[1, 2],
        default=None,
        help="Body text columns (default: 2)"
    )

    # Journal metadata
    parser.add_argument("--received", help="Received date (default: today)")
    parser.add_argument("--accepted", help="Accepted date (default: today)")
    parser.add_argument("--published", help="Published date (default: today)")
    parser.add_argument("--issn", help="Journal ISSN")
    parser.add_argument("--volume", help="Volume number")
    parser.add_argument("--issue", help="Issue number")
    parser.add_argument("--year", help="Publication year (default: current year)")

    parser.add_argument(
        "--filename-source",
        choices=list(FILENAME_SOURCES),
        default=None,
        help="How the PDF filename is derived (default: year)"
    )

    parser.add_argument(
        "--heading-mode",
        choices=list(HEADING_MATCH_MODES),
        default=None,
        help="Section heading matching: line starts with / contains a keyword (default: prefix)"
    )

    parser.add_argument(
        "--keywords-as-text",
        action="store_true",
        help="Keep keywords as the raw string instead of a list"
    )

    parser.add_argument(
        "--strict-affiliations",
        action="store_true",
        help="Stop affiliation collection at short lines"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Re-raise errors with full tracebacks"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    return parser


def build_config(args):
    """Apply command-line overrides to the environment-derived configuration."""
    from .config import get_config

    config = get_config()
    if args.heading_mode:
        config.extraction.heading_match_mode = args.heading_mode
    if args.keywords_as_text:
        config.extraction.keywords_as_list = False
    if args.strict_affiliations:
        config.extraction.strict_affiliations = True
    if args.columns:
        config.default_columns = args.columns
    if args.filename_source:
        config.filename_source = args.filename_source
    if args.debug:
        config.debug_mode = True
    return config


def build_metadata(args, config):
    """Journal metadata from defaults plus any values given on the command line."""
    from .utils.assembler import JournalMetadata

    metadata = JournalMetadata(columns=config.default_columns)
    for name in ("received", "accepted", "published", "issn", "volume", "issue", "year"):
        value = getattr(args, name)
        if value:
            setattr(metadata, name, value)
    return metadata


def run_pipeline(args) -> int:
    """Run extraction and layout for one manuscript."""
    from .utils.assembler import ManuscriptAssembler
    from .utils.export import DocumentExporter
    from .utils.io import ensure_dir, InputRejectedError, ConversionError
    from .utils.layout import RenderError

    start_time = time.time()
    config = build_config(args)

    output_dir = Path(args.output)
    ensure_dir(output_dir)

    input_path = Path(args.input)
    logger.info(f"Reading manuscript: {input_path}")

    assembler = ManuscriptAssembler(config)
    try:
        record = assembler.process_file(input_path)
    except (FileNotFoundError, InputRejectedError) as e:
        logger.error(f"Input rejected: {e}")
        return 1
    except ConversionError as e:
        logger.error(f"Conversion failed: {e}")
        if args.debug:
            raise
        return 1

    metadata = build_metadata(args, config)
    exporter = DocumentExporter(output_dir, input_path.stem, config=config)
    try:
        results = exporter.export(
            record,
            metadata,
            formats=args.format,
            filename_source=config.filename_source
        )
    except RenderError as e:
        logger.error(f"Rendering failed: {e}")
        if args.debug:
            raise
        return 1

    for fmt, path in results.items():
        logger.info(f"Exported {fmt}: {path}")

    elapsed = time.time() - start_time
    metrics = record.metrics

    if not args.quiet:
        print("\n" + "=" * 60)
        print("MANUSCRIPT FORMATTING COMPLETE")
        print("=" * 60)
        print(f"Source: {input_path}")
        print(f"Output: {output_dir}")
        print(f"Processing time: {elapsed:.2f}s")
        print()
        print("Structure detected:")
        print(f"  Title: {record.title[:80]}")
        print(f"  Authors: {record.authors}")
        print(f"  Affiliations: {metrics.affiliations_total}")
        print(f"  Abstract: {metrics.abstract_words} words")
        print(f"  Keywords: {metrics.keywords_total}")
        print(f"  Sections: {metrics.sections_total} found")
        print(f"  Tables: {metrics.tables_total} found")
        print(f"  References: {metrics.references_total}")
        print(f"  Completeness: {metrics.completeness:.0%}")
        print("=" * 60)

    return 0


def main():
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    try:
        exit_code = run_pipeline(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.debug:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
