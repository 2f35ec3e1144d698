"""
Persistence for products created from accepted pricing rows.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models.product import Product, ProductValue
from db.repositories.errors import ProductPersistenceError
from db.repositories.types import ProductCreate

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
)


class ProductRepository:
    """
    Inserts a product header and its structured values.

    The caller owns the transaction; one product is one unit of work.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def create_product(self, payload: ProductCreate) -> Product:
        effective_date = coerce_date(payload.effective_date, field_name="EffectiveDate")
        if effective_date is None:
            raise ProductPersistenceError("EffectiveDate is required.")
        expiry_date = coerce_date(payload.expiry_date, field_name="ExpiryDate")

        product = Product(
            price_record_name=str(payload.price_record_name).strip(),
            effective_date=effective_date,
            expiry_date=expiry_date,
            parameters=dict(payload.parameters),
            source_file_id=payload.source_file_id,
            source_row_number=payload.source_row_number,
        )
        self._session.add(product)
        self._session.flush()

        self._session.add(ProductValue(product_id=product.id, values=payload.values))
        self._session.flush()
        return product

    def count_for_file(self, file_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Product).where(Product.source_file_id == file_id)
        return int(self._session.scalar(stmt) or 0)

    def list_for_file(self, file_id: uuid.UUID) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.source_file_id == file_id)
            .order_by(Product.source_row_number)
        )
        return list(self._session.scalars(stmt).all())


def coerce_date(value: Any, *, field_name: str) -> date | None:
    """
    Convert a workbook date value into a ``date``; empty values become None.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    raw = str(value).strip()
    if not raw:
        return None

    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue

    raise ProductPersistenceError(f"Invalid {field_name} value: {raw!r}")
