"""
Read-only queries over the parameter catalog tables.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from db.models.parameter import Parameter, ParameterValidValue


class ParameterRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list_active_parameters(self) -> list[Parameter]:
        stmt = select(Parameter).where(Parameter.is_active.is_(True)).order_by(Parameter.name)
        return list(self._session.scalars(stmt).all())

    def list_effective_valid_values(
        self,
        *,
        as_of: datetime | None = None,
    ) -> list[ParameterValidValue]:
        """
        Controlled values of active parameters that are in effect at ``as_of``.
        """

        moment = as_of or datetime.now(timezone.utc)
        stmt = (
            select(ParameterValidValue)
            .join(Parameter, ParameterValidValue.parameter_id == Parameter.parameter_id)
            .where(Parameter.is_active.is_(True))
            .where(ParameterValidValue.effective_from <= moment)
            .where(
                or_(
                    ParameterValidValue.effective_to.is_(None),
                    ParameterValidValue.effective_to > moment,
                )
            )
        )
        return list(self._session.scalars(stmt).all())
