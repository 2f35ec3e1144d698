"""
Shared fixtures: in-memory SQLite database, in-memory byte store, a seeded
parameter catalog and openpyxl workbook builders.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator, Sequence
from datetime import date, datetime, timedelta, timezone
from io import BytesIO
from typing import Any

import pytest
from openpyxl import Workbook
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401 registers all ORM models on Base.metadata
from app.domain.pricing_submission import ControlledValue, ParameterDefinition, normalize_parameter_name
from app.validators.parameter_catalog import ParameterCatalog, SQLAlchemyCatalogSource
from db.base import Base
from db.models.parameter import Parameter, ParameterValidValue
from db.repositories.errors import StoredObjectNotFoundError
from db.session import build_session_factory

# (column name, category, subcategory, row-3 header)
DEFAULT_COLUMNS: tuple[tuple[str, str, str, str], ...] = (
    ("price_record_name", "", "", "Metadata_PriceRecordName"),
    ("effective_date", "", "", "Metadata_EffectiveDate"),
    ("expiry_date", "", "", "Metadata_ExpiryDate"),
    ("pbm", "", "", "Parameter_PharmacyBenefitsManager"),
    ("formulary", "", "", "Parameter_Formulary"),
    ("decremented_rate", "", "", "Parameter_Decremented Rate"),
    ("client_name", "", "", "Parameter_ClientName"),
    ("retail_brand_discount", "Retail", "Brand", "ProductValue_Discount"),
    ("retail_brand_dispensing_fee", "Retail", "Brand", "ProductValue_Dispensing Fee"),
    ("retail_generic_discount", "Retail", "Generic", "ProductValue_Discount"),
    ("pricing_fee", "Overall Fee & Credit", "", "ProductValue_Pricing Fee"),
    ("ldd_rebate", "LDD Blended Specialty", "", "ProductValue_Rebate"),
)

CATALOG_PARAMETERS: tuple[tuple[str, bool, tuple[tuple[str, str | None], ...]], ...] = (
    ("PharmacyBenefitsManager", False, (("CVS", None), ("ESI", None))),
    ("Formulary", True, (("Standard", None), ("Premium", "CVS"))),
    ("Decremented Rate", False, (("2%", None), ("3%", None))),
    ("ClientName", False, ()),
)


def make_row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "price_record_name": "Acme Retail 2026",
        "effective_date": datetime(2026, 1, 1),
        "expiry_date": "2026-12-31",
        "pbm": "CVS",
        "formulary": "Standard",
        "decremented_rate": 2,
        "client_name": "Acme Corp",
        "retail_brand_discount": "18%",
        "retail_brand_dispensing_fee": 1.5,
        "retail_generic_discount": "80%",
        "pricing_fee": 2.25,
        "ldd_rebate": 150,
    }
    row.update(overrides)
    return row


def build_workbook_bytes(
    rows: Sequence[dict[str, Any]],
    *,
    columns: Sequence[tuple[str, str, str, str]] = DEFAULT_COLUMNS,
    merge_categories: bool = False,
) -> bytes:
    """
    Write a pricing workbook: categories, subcategories, headers, then ``rows``.

    With ``merge_categories`` a run of equal category cells is written once and
    merged, the way spreadsheet authors lay out channel groups.
    """

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Pricing"

    for index, (_, category, subcategory, header) in enumerate(columns, start=1):
        worksheet.cell(row=1, column=index, value=category or None)
        worksheet.cell(row=2, column=index, value=subcategory or None)
        worksheet.cell(row=3, column=index, value=header)

    if merge_categories:
        start = 1
        while start <= len(columns):
            category = columns[start - 1][1]
            end = start
            while end < len(columns) and category and columns[end][1] == category:
                end += 1
            if category and end > start:
                for column in range(start + 1, end + 1):
                    worksheet.cell(row=1, column=column, value=None)
                worksheet.merge_cells(start_row=1, start_column=start, end_row=1, end_column=end)
            start = end + 1

    for row_offset, row in enumerate(rows):
        for index, (name, _, _, _) in enumerate(columns, start=1):
            value = row.get(name)
            if value is not None:
                worksheet.cell(row=4 + row_offset, column=index, value=value)

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class InMemoryFileStorage:
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str | None] = {}

    def put(self, content: bytes, key: str, content_type: str | None = None) -> None:
        self.objects[key] = content
        self.content_types[key] = content_type

    def get(self, key: str) -> bytes:
        if key not in self.objects:
            raise StoredObjectNotFoundError(f"Stored object not found: {key}")
        return self.objects[key]

    def delete(self, key: str) -> None:
        if key not in self.objects:
            raise StoredObjectNotFoundError(f"Stored object not found: {key}")
        del self.objects[key]
        self.content_types.pop(key, None)


class StaticCatalogSource:
    """
    Catalog source over fixed definitions; counts loads.
    """

    def __init__(
        self,
        parameters: Sequence[ParameterDefinition],
        values: Sequence[ControlledValue],
    ) -> None:
        self._parameters = list(parameters)
        self._values = list(values)
        self.load_calls = 0

    def load_parameters(self) -> list[ParameterDefinition]:
        self.load_calls += 1
        return list(self._parameters)

    def load_valid_values(self) -> list[ControlledValue]:
        return list(self._values)


def static_catalog_source() -> StaticCatalogSource:
    parameters: list[ParameterDefinition] = []
    values: list[ControlledValue] = []
    for index, (name, is_pbm_specific, controlled) in enumerate(CATALOG_PARAMETERS, start=1):
        parameter_id = f"param-{index}"
        parameters.append(
            ParameterDefinition(
                parameter_id=parameter_id,
                name=name,
                normalized_name=normalize_parameter_name(name),
                is_pbm_specific=is_pbm_specific,
            )
        )
        values.extend(
            ControlledValue(parameter_id=parameter_id, value=value, pbm_id=pbm_id)
            for value, pbm_id in controlled
        )
    return StaticCatalogSource(parameters, values)


@pytest.fixture()
def engine() -> Iterator[Engine]:
    sqlite_engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(sqlite_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(sqlite_engine)
    try:
        yield sqlite_engine
    finally:
        Base.metadata.drop_all(sqlite_engine)
        sqlite_engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return build_session_factory(engine)


@pytest.fixture()
def seeded_catalog(session_factory: sessionmaker[Session]) -> dict[str, uuid.UUID]:
    """
    Store CATALOG_PARAMETERS; returns normalized name -> parameter id.
    """

    effective_from = datetime.now(timezone.utc) - timedelta(days=1)
    parameter_ids: dict[str, uuid.UUID] = {}
    with session_factory() as db, db.begin():
        for name, is_pbm_specific, controlled in CATALOG_PARAMETERS:
            parameter = Parameter(name=name, is_pbm_specific=is_pbm_specific, is_active=True)
            db.add(parameter)
            db.flush()
            parameter_ids[normalize_parameter_name(name)] = parameter.parameter_id
            for value, pbm_id in controlled:
                db.add(
                    ParameterValidValue(
                        parameter_id=parameter.parameter_id,
                        value=value,
                        pbm_id=pbm_id,
                        effective_from=effective_from,
                    )
                )
    return parameter_ids


@pytest.fixture()
def catalog(session_factory: sessionmaker[Session], seeded_catalog: dict[str, uuid.UUID]) -> ParameterCatalog:
    return ParameterCatalog(SQLAlchemyCatalogSource(session_factory))


@pytest.fixture()
def storage() -> InMemoryFileStorage:
    return InMemoryFileStorage()


@pytest.fixture()
def valid_workbook() -> bytes:
    return build_workbook_bytes(
        [
            make_row(),
            make_row(price_record_name="Acme Retail 2027", effective_date=date(2027, 1, 1)),
            make_row(price_record_name="Acme Mail 2026", formulary="Premium"),
        ]
    )
