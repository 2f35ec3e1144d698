"""
app/validators/parameter_catalog.py

In-memory snapshot of active pricing parameters and their controlled values.

The catalog is constructed explicitly and injected where needed. The first
``initialize()`` call loads it once; concurrent first callers share that single
load through a lock. ``refresh()`` forces a reload.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Protocol

from sqlalchemy.orm import Session, sessionmaker

from app.domain.pricing_submission import (
    ControlledValue,
    ParameterDefinition,
    normalize_parameter_name,
)
from app.errors import CatalogLoadError
from db.repositories.parameter_repository import ParameterRepository

logger = logging.getLogger(__name__)


class ParameterCatalogSource(Protocol):
    def load_parameters(self) -> Sequence[ParameterDefinition]:
        ...

    def load_valid_values(self) -> Sequence[ControlledValue]:
        ...


class SQLAlchemyCatalogSource:
    """
    Loads the catalog from the relational store, one short session per load.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

    def load_parameters(self) -> list[ParameterDefinition]:
        with self._session_factory() as db:
            parameters = ParameterRepository(db).list_active_parameters()
            return [
                ParameterDefinition(
                    parameter_id=str(parameter.parameter_id),
                    name=parameter.name,
                    normalized_name=normalize_parameter_name(parameter.name),
                    is_pbm_specific=bool(parameter.is_pbm_specific),
                )
                for parameter in parameters
            ]

    def load_valid_values(self) -> list[ControlledValue]:
        with self._session_factory() as db:
            rows = ParameterRepository(db).list_effective_valid_values()
            return [
                ControlledValue(
                    parameter_id=str(row.parameter_id),
                    value=row.value,
                    pbm_id=row.pbm_id,
                )
                for row in rows
            ]


@dataclass(frozen=True)
class _CatalogSnapshot:
    by_name: dict[str, ParameterDefinition]
    by_id: dict[str, ParameterDefinition]
    # parameter id -> pbm id (None = global) -> allowed values
    valid_values: dict[str, dict[str | None, frozenset[str]]]
    value_count: int


_EMPTY_SNAPSHOT = _CatalogSnapshot(by_name={}, by_id={}, valid_values={}, value_count=0)


class ParameterCatalog:
    """
    Lookup surface used by structure and record validation.
    """

    def __init__(self, source: ParameterCatalogSource) -> None:
        self._source = source
        self._lock = threading.Lock()
        self._initialized = False
        self._snapshot = _EMPTY_SNAPSHOT

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """
        Load the catalog once; later calls are no-ops.
        """

        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            self._snapshot = self._load()
            self._initialized = True

    def refresh(self) -> None:
        """
        Discard the current snapshot and load a new one.
        """

        with self._lock:
            self._snapshot = self._load()
            self._initialized = True

    def _load(self) -> _CatalogSnapshot:
        try:
            parameters = list(self._source.load_parameters())
            controlled_values = list(self._source.load_valid_values())
        except Exception as exc:
            logger.error("Error initializing parameter validation cache: %s", exc)
            raise CatalogLoadError(f"Failed to load parameter catalog: {exc}") from exc

        buckets: dict[str, dict[str | None, set[str]]] = {}
        for controlled in controlled_values:
            per_pbm = buckets.setdefault(controlled.parameter_id, {})
            per_pbm.setdefault(controlled.pbm_id, set()).add(controlled.value)

        by_name: dict[str, ParameterDefinition] = {}
        by_id: dict[str, ParameterDefinition] = {}
        for parameter in parameters:
            definition = replace(
                parameter,
                normalized_name=normalize_parameter_name(parameter.name),
                allows_free_text=parameter.parameter_id not in buckets,
            )
            by_name[definition.normalized_name] = definition
            by_id[definition.parameter_id] = definition

        snapshot = _CatalogSnapshot(
            by_name=by_name,
            by_id=by_id,
            valid_values={
                parameter_id: {pbm_id: frozenset(values) for pbm_id, values in per_pbm.items()}
                for parameter_id, per_pbm in buckets.items()
            },
            value_count=len(controlled_values),
        )
        logger.info(
            "Parameter validation cache initialized with %d parameters and %d valid values",
            len(by_name),
            snapshot.value_count,
        )
        return snapshot

    def definitions(self) -> list[ParameterDefinition]:
        return list(self._snapshot.by_name.values())

    def get_parameter(self, normalized_name: str) -> ParameterDefinition | None:
        return self._snapshot.by_name.get(normalized_name)

    def get_parameter_by_id(self, parameter_id: str) -> ParameterDefinition | None:
        return self._snapshot.by_id.get(parameter_id)

    def build_parameter_map(self, normalized_names: Iterable[str]) -> dict[str, ParameterDefinition]:
        """
        Definitions for the given normalized names; unknown names are left out.
        """

        parameter_map: dict[str, ParameterDefinition] = {}
        for name in normalized_names:
            definition = self._snapshot.by_name.get(normalize_parameter_name(name))
            if definition is not None:
                parameter_map[definition.normalized_name] = definition
        return parameter_map

    def is_free_text_field(self, parameter_id: str) -> bool:
        definition = self._snapshot.by_id.get(parameter_id)
        return definition.allows_free_text if definition is not None else True

    def is_valid_value(self, parameter_id: str, value: str, pbm_id: str | None = None) -> bool:
        per_pbm = self._snapshot.valid_values.get(parameter_id)
        if per_pbm is None:
            return True

        if pbm_id and value in per_pbm.get(pbm_id, frozenset()):
            return True
        return value in per_pbm.get(None, frozenset())

    def get_valid_values(self, parameter_id: str, pbm_id: str | None = None) -> list[str]:
        per_pbm = self._snapshot.valid_values.get(parameter_id)
        if per_pbm is None:
            return []

        result: list[str] = sorted(per_pbm.get(None, frozenset()))
        if pbm_id:
            seen = set(result)
            result.extend(value for value in sorted(per_pbm.get(pbm_id, frozenset())) if value not in seen)
        return result
