"""
db/models/parameter.py

Parameter catalog: active pricing parameters and their controlled vocabularies.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin


class Parameter(Base, TimestampMixin):
    __tablename__ = "parameters"

    parameter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name, matched against Parameter_<Name> columns",
    )
    is_pbm_specific: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    valid_values: Mapped[list[ParameterValidValue]] = relationship(
        back_populates="parameter",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_parameters_is_active", "is_active"),
    )


class ParameterValidValue(Base, TimestampMixin):
    __tablename__ = "parameter_valid_values"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    parameter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("parameters.parameter_id", ondelete="CASCADE"),
        nullable=False,
    )
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    pbm_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="NULL means the value is valid for every PBM",
    )
    effective_from: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    effective_to: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    parameter: Mapped[Parameter] = relationship(back_populates="valid_values")

    __table_args__ = (
        Index("ix_parameter_valid_values_parameter_id", "parameter_id"),
        Index("ix_parameter_valid_values_parameter_pbm", "parameter_id", "pbm_id"),
    )
