"""
db/models/product.py

Products created from accepted pricing rows and their structured values.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, JSONType, TimestampMixin


class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    price_record_name: Mapped[str] = mapped_column(String(255), nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiry_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="NULL means the price record never expires",
    )
    parameters: Mapped[dict[str, str]] = mapped_column(
        JSONType,
        nullable=False,
        comment="Parameter id -> normalized value",
    )
    source_file_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("pricing_files.id", ondelete="SET NULL"),
        nullable=True,
    )
    source_row_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    product_values: Mapped[ProductValue | None] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        uselist=False,
    )

    __table_args__ = (
        Index("ix_products_price_record_name", "price_record_name"),
        Index("ix_products_source_file_id", "source_file_id"),
        Index("ix_products_effective_date", "effective_date"),
    )


class ProductValue(Base, TimestampMixin):
    __tablename__ = "product_values"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    values: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        comment="Channel x drug type x fee type pricing structure",
    )

    product: Mapped[Product] = relationship(back_populates="product_values")
