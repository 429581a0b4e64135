"""
Manuscript Press
================

Formats Word manuscripts as journal-styled PDFs.

Main components:
- Upload gating and Word document conversion
- Heuristic structure extraction (title, authors, abstract, sections, tables, references)
- Journal template layout with one- or two-column text flow
- Running headers and page-numbered footers
- JSON and Markdown exports of the extracted structure
"""

__version__ = "1.0.0"
__author__ = "Manuscript Press Team"
