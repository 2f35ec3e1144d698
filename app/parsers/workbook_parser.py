"""
app/parsers/workbook_parser.py

Turns a pricing workbook into ordered, bucketed row records.

Layout of the first worksheet:

    row 1   category      (e.g. "Retail", may be a merged cell)
    row 2   subcategory   (e.g. "Brand")
    row 3   field header  Metadata_<Name> | Parameter_<Name> | ProductValue_<FieldType>
    row 4+  data

Columns whose row-3 header carries none of the three prefixes are ignored.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time
from io import BytesIO
from typing import Any

from openpyxl import load_workbook
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from app.domain.pricing_submission import ParsedRecord, normalize_parameter_name
from app.errors import WorkbookParseError

logger = logging.getLogger(__name__)

CATEGORY_ROW = 1
SUBCATEGORY_ROW = 2
FIELD_ROW = 3
HEADER_ROW_COUNT = 3
FIRST_DATA_ROW = HEADER_ROW_COUNT + 1

METADATA_PREFIX = "METADATA_"
PARAMETER_PREFIX = "PARAMETER_"
PRODUCT_VALUE_PREFIX = "PRODUCTVALUE_"


class ColumnKind:
    METADATA = "metadata"
    PARAMETER = "parameter"
    PRODUCT_VALUE = "product_value"


@dataclass(frozen=True)
class HeaderColumn:
    """
    One recognized row-3 header and the record key it populates.
    """

    column: int
    header: str
    kind: str
    key: str
    category: str = ""
    subcategory: str = ""


@dataclass(frozen=True)
class WorkbookHeader:
    columns: tuple[HeaderColumn, ...]

    def headers_of(self, kind: str) -> list[str]:
        return [column.header for column in self.columns if column.kind == kind]


def classify_header(header: str) -> str | None:
    """
    Return the column kind for a row-3 header, matching prefixes case-insensitively.
    """

    upper = header.upper()
    if upper.startswith(METADATA_PREFIX):
        return ColumnKind.METADATA
    if upper.startswith(PARAMETER_PREFIX):
        return ColumnKind.PARAMETER
    if upper.startswith(PRODUCT_VALUE_PREFIX):
        return ColumnKind.PRODUCT_VALUE
    return None


class WorkbookParser:
    """
    Reads pricing workbooks with openpyxl.
    """

    def load_workbook(self, buffer: bytes) -> Workbook:
        if not buffer:
            raise WorkbookParseError("Failed to parse Excel file: file is empty.")
        try:
            return load_workbook(BytesIO(buffer), data_only=True)
        except Exception as exc:
            raise WorkbookParseError(f"Failed to parse Excel file: {exc}") from exc

    def first_worksheet(self, workbook: Workbook) -> Worksheet:
        if not workbook.worksheets:
            raise WorkbookParseError("Excel file does not contain any worksheets.")
        return workbook.worksheets[0]

    def read_header(self, worksheet: Worksheet) -> WorkbookHeader:
        categories = _header_row_values(worksheet, CATEGORY_ROW)
        subcategories = _header_row_values(worksheet, SUBCATEGORY_ROW)

        columns: list[HeaderColumn] = []
        for column in range(1, worksheet.max_column + 1):
            raw = worksheet.cell(row=FIELD_ROW, column=column).value
            header = str(raw).strip() if raw is not None else ""
            if not header:
                continue
            kind = classify_header(header)
            if kind is None:
                continue

            if kind == ColumnKind.METADATA:
                key = normalize_parameter_name(header[len(METADATA_PREFIX):])
                columns.append(HeaderColumn(column=column, header=header, kind=kind, key=key))
            elif kind == ColumnKind.PARAMETER:
                key = header[len(PARAMETER_PREFIX):]
                columns.append(HeaderColumn(column=column, header=header, kind=kind, key=key))
            else:
                field_type = header[len(PRODUCT_VALUE_PREFIX):].upper()
                category = categories.get(column, "")
                subcategory = subcategories.get(column, "")
                columns.append(
                    HeaderColumn(
                        column=column,
                        header=header,
                        kind=kind,
                        key=f"{category}|{subcategory}|{field_type}",
                        category=category,
                        subcategory=subcategory,
                    )
                )
                logger.debug(
                    "Mapped product value column %d: %s > %s > %s",
                    column,
                    category,
                    subcategory,
                    field_type,
                )

        return WorkbookHeader(columns=tuple(columns))

    def parse(self, buffer: bytes) -> list[ParsedRecord]:
        """
        Parse workbook bytes into records, skipping fully blank rows.
        """

        workbook = self.load_workbook(buffer)
        try:
            return self.parse_workbook(workbook)
        except WorkbookParseError:
            raise
        except Exception as exc:
            raise WorkbookParseError(f"Failed to parse Excel file: {exc}") from exc

    def parse_workbook(self, workbook: Workbook) -> list[ParsedRecord]:
        worksheet = self.first_worksheet(workbook)
        header = self.read_header(worksheet)

        records: list[ParsedRecord] = []
        last_row = worksheet.max_row
        if last_row < FIRST_DATA_ROW or not header.columns:
            return records

        for row_number, row in enumerate(
            worksheet.iter_rows(min_row=FIRST_DATA_ROW, max_row=last_row, values_only=True),
            start=FIRST_DATA_ROW,
        ):
            record = self._build_record(row_number=row_number, row=row, header=header)
            if record.is_empty():
                continue
            records.append(record)

        logger.debug("Parsed %d records from %d data rows", len(records), last_row - HEADER_ROW_COUNT)
        return records

    def _build_record(
        self,
        *,
        row_number: int,
        row: tuple[Any, ...],
        header: WorkbookHeader,
    ) -> ParsedRecord:
        metadata: dict[str, Any] = {}
        parameters: dict[str, Any] = {}
        values: dict[str, Any] = {}

        for column in header.columns:
            index = column.column - 1
            if index >= len(row):
                continue
            value = _cell_value(row[index])
            if value is None:
                continue

            if column.kind == ColumnKind.METADATA:
                metadata[column.key] = value
            elif column.kind == ColumnKind.PARAMETER:
                parameters[column.key] = value
            else:
                values[column.key] = coerce_product_value(value)

        return ParsedRecord(
            row_number=row_number,
            metadata=metadata,
            parameters=parameters,
            values=values,
        )


def coerce_product_value(value: Any) -> Any:
    """
    Numeric strings become floats; a trailing ``%`` divides by 100.
    """

    if not isinstance(value, str):
        return value

    text = value.strip()
    percent = text.endswith("%")
    if percent:
        text = text[:-1].strip()
    try:
        number = float(text)
    except ValueError:
        return value
    # "nan" / "inf" parse as floats but cannot be stored as JSON numbers.
    if not math.isfinite(number):
        return value
    return number / 100 if percent else number


def _cell_value(raw: Any) -> Any:
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, (date, time)):
        return raw.isoformat()
    if isinstance(raw, str):
        stripped = raw.strip()
        return stripped if stripped else None
    if isinstance(raw, (bool, int, float)):
        return raw
    # timedelta and other non-JSON scalars
    return str(raw)


def _header_row_values(worksheet: Worksheet, row: int) -> dict[int, str]:
    """
    Column -> trimmed header text for one header row, spreading merged cells.
    """

    values: dict[int, str] = {}
    for column in range(1, worksheet.max_column + 1):
        raw = worksheet.cell(row=row, column=column).value
        text = str(raw).strip() if raw is not None else ""
        if text:
            values[column] = text

    for merged in worksheet.merged_cells.ranges:
        if not merged.min_row <= row <= merged.max_row:
            continue
        anchor = worksheet.cell(row=merged.min_row, column=merged.min_col).value
        text = str(anchor).strip() if anchor is not None else ""
        if not text:
            continue
        for column in range(merged.min_col, merged.max_col + 1):
            values[column] = text

    return values
