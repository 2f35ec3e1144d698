from __future__ import annotations

from datetime import datetime, time

import pytest

from app.errors import WorkbookParseError
from app.parsers.workbook_parser import (
    ColumnKind,
    WorkbookParser,
    classify_header,
    coerce_product_value,
)
from conftest import DEFAULT_COLUMNS, build_workbook_bytes, make_row


class TestClassifyHeader:
    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ("Metadata_EffectiveDate", ColumnKind.METADATA),
            ("METADATA_expirydate", ColumnKind.METADATA),
            ("parameter_Formulary", ColumnKind.PARAMETER),
            ("ProductValue_Discount", ColumnKind.PRODUCT_VALUE),
            ("Notes", None),
        ],
    )
    def test_prefixes_match_case_insensitively(self, header: str, expected: str | None) -> None:
        assert classify_header(header) == expected


class TestCoerceProductValue:
    def test_percent_string_is_divided_by_100(self) -> None:
        assert coerce_product_value("18%") == pytest.approx(0.18)

    def test_numeric_string_becomes_float(self) -> None:
        assert coerce_product_value(" 1.75 ") == pytest.approx(1.75)

    def test_non_numeric_text_is_kept(self) -> None:
        assert coerce_product_value("AWP-15") == "AWP-15"
        assert coerce_product_value("n/a%") == "n/a%"

    def test_numbers_pass_through(self) -> None:
        assert coerce_product_value(3) == 3

    @pytest.mark.parametrize("text", ["nan", "NaN", "inf", "-Infinity", "nan%"])
    def test_non_finite_text_is_kept(self, text: str) -> None:
        assert coerce_product_value(text) == text


class TestWorkbookParser:
    def setup_method(self) -> None:
        self.parser = WorkbookParser()

    def test_rows_are_bucketed_by_header_prefix(self) -> None:
        records = self.parser.parse(build_workbook_bytes([make_row()]))

        assert len(records) == 1
        record = records[0]
        assert record.row_number == 4
        assert record.metadata == {
            "PRICERECORDNAME": "Acme Retail 2026",
            "EFFECTIVEDATE": "2026-01-01",
            "EXPIRYDATE": "2026-12-31",
        }
        assert record.parameters == {
            "PharmacyBenefitsManager": "CVS",
            "Formulary": "Standard",
            "Decremented Rate": 2,
            "ClientName": "Acme Corp",
        }
        assert record.values["Retail|Brand|DISCOUNT"] == pytest.approx(0.18)
        assert record.values["Retail|Brand|DISPENSING FEE"] == pytest.approx(1.5)
        assert record.values["Retail|Generic|DISCOUNT"] == pytest.approx(0.8)
        assert record.values["Overall Fee & Credit||PRICING FEE"] == pytest.approx(2.25)
        assert record.values["LDD Blended Specialty||REBATE"] == 150

    def test_percent_is_only_decoded_in_product_value_columns(self) -> None:
        records = self.parser.parse(build_workbook_bytes([make_row(client_name="10%")]))

        assert records[0].parameters["ClientName"] == "10%"

    def test_merged_category_cells_apply_to_every_spanned_column(self) -> None:
        records = self.parser.parse(build_workbook_bytes([make_row()], merge_categories=True))

        values = records[0].values
        assert "Retail|Brand|DISCOUNT" in values
        assert "Retail|Brand|DISPENSING FEE" in values
        assert "Retail|Generic|DISCOUNT" in values

    def test_blank_rows_are_skipped_and_row_numbers_kept(self) -> None:
        blank = {name: None for name, _, _, _ in DEFAULT_COLUMNS}
        payload = build_workbook_bytes([make_row(), blank, make_row(price_record_name="Second")])

        records = self.parser.parse(payload)

        assert [record.row_number for record in records] == [4, 6]
        assert records[1].metadata["PRICERECORDNAME"] == "Second"

    def test_whitespace_only_cells_are_treated_as_empty(self) -> None:
        records = self.parser.parse(build_workbook_bytes([make_row(expiry_date="   ")]))

        assert "EXPIRYDATE" not in records[0].metadata

    def test_datetime_cells_become_iso_dates(self) -> None:
        records = self.parser.parse(
            build_workbook_bytes([make_row(effective_date=datetime(2026, 3, 15, 12, 30))])
        )

        assert records[0].metadata["EFFECTIVEDATE"] == "2026-03-15"

    def test_time_cells_become_iso_times(self) -> None:
        records = self.parser.parse(
            build_workbook_bytes([make_row(client_name=time(10, 30), pricing_fee=time(8, 0))])
        )

        assert records[0].parameters["ClientName"] == "10:30:00"
        assert records[0].values["Overall Fee & Credit||PRICING FEE"] == "08:00:00"

    def test_header_only_workbook_has_no_records(self) -> None:
        assert self.parser.parse(build_workbook_bytes([])) == []

    def test_unprefixed_columns_are_ignored(self) -> None:
        columns = DEFAULT_COLUMNS + (("notes", "", "", "Notes"),)
        records = self.parser.parse(build_workbook_bytes([make_row(notes="ignore me")], columns=columns))

        payload = records[0].to_payload()
        assert "ignore me" not in str(payload)

    def test_read_header_lists_columns_per_kind(self) -> None:
        workbook = self.parser.load_workbook(build_workbook_bytes([]))
        header = self.parser.read_header(self.parser.first_worksheet(workbook))

        assert header.headers_of(ColumnKind.METADATA) == [
            "Metadata_PriceRecordName",
            "Metadata_EffectiveDate",
            "Metadata_ExpiryDate",
        ]
        assert len(header.headers_of(ColumnKind.PARAMETER)) == 4
        assert len(header.headers_of(ColumnKind.PRODUCT_VALUE)) == 5

    def test_unreadable_bytes_raise_parse_error(self) -> None:
        with pytest.raises(WorkbookParseError, match="Failed to parse Excel file"):
            self.parser.parse(b"not a workbook")

    def test_empty_buffer_raises_parse_error(self) -> None:
        with pytest.raises(WorkbookParseError):
            self.parser.parse(b"")
