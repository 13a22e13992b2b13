"""Row model → entity mapping by attribute name."""
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable


class FieldMapper:
    """Build ``entity_cls`` from a row model's same-named fields.

    Extra column values overlay the row's values, so a constant such as
    the upload's source name can be stamped on every entity. Keys the
    entity has no attribute for are ignored.
    """

    def __init__(self, entity_cls: type) -> None:
        self.entity_cls = entity_cls
        self._attrs = _entity_attributes(entity_cls)

    def map(self, row: BaseModel, column_values: Mapping[str, Any] | None = None) -> Any:
        data = row.model_dump()
        if column_values:
            data.update(column_values)
        return self.entity_cls(**{k: v for k, v in data.items() if k in self._attrs})


def _entity_attributes(entity_cls: type) -> frozenset[str]:
    try:
        return frozenset(inspect(entity_cls).attrs.keys())
    except NoInspectionAvailable:
        # Plain classes: take annotated attributes (dataclasses, simple records).
        names: set[str] = set()
        for klass in reversed(entity_cls.__mro__):
            names.update(getattr(klass, "__annotations__", {}))
        return frozenset(names)
