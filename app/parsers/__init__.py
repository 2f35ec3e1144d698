"""
Workbook parsing for pricing submissions.
"""

from app.parsers.workbook_parser import (
    HEADER_ROW_COUNT,
    FIRST_DATA_ROW,
    HeaderColumn,
    WorkbookHeader,
    WorkbookParser,
)

__all__ = [
    "HEADER_ROW_COUNT",
    "FIRST_DATA_ROW",
    "HeaderColumn",
    "WorkbookHeader",
    "WorkbookParser",
]
