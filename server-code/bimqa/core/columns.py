# bimqa/core/columns.py
"""
Column names of the `elements` table that may appear as SQL identifiers.

Anything coming out of the reasoning service is mapped through
`ElementColumn.lookup`; only enum members are ever rendered into SQL text.
"""
from __future__ import annotations
from enum import Enum
from typing import Any, Optional

TABLE = "elements"


class ElementColumn(str, Enum):
    COMPONENT_TYPE = "component_type"
    LEVEL_NUMBER = "level_number"
    ROOM_NAME = "room_name"
    ROOM_TYPE = "room_type"
    SYSTEM_NAME = "system_name"
    SYSTEM_TYPE = "system_type"
    MANUFACTURER = "manufacturer"
    MODEL_NAME = "model_name"
    TYPE_NAME = "type_name"
    FAMILY_NAME = "family_name"
    OMNICLASS_TITLE = "omniclass_title"

    @property
    def sql(self) -> str:
        return self.value

    @classmethod
    def lookup(cls, name: Any) -> Optional["ElementColumn"]:
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            return None
        try:
            return cls(name.strip())
        except ValueError:
            return None


CATEGORY_FIELD = ElementColumn.COMPONENT_TYPE

# filterParam / targetParam allow-list (the category column is filtered separately)
ALLOWED_PARAMS = frozenset(c for c in ElementColumn if c is not CATEGORY_FIELD)

SAMPLE_FIELDS = (
    ElementColumn.LEVEL_NUMBER,
    ElementColumn.ROOM_NAME,
    ElementColumn.ROOM_TYPE,
    ElementColumn.SYSTEM_NAME,
    ElementColumn.SYSTEM_TYPE,
    ElementColumn.MANUFACTURER,
    ElementColumn.MODEL_NAME,
    ElementColumn.OMNICLASS_TITLE,
    ElementColumn.TYPE_NAME,
    ElementColumn.FAMILY_NAME,
)

# Projection used by the list task
LIST_COLUMNS = (
    "id", "urn", "guid", "db_id", "name",
    "component_type", "type_name", "family_name",
    "level_number", "room_name", "room_type",
    "system_type", "system_name",
    "manufacturer", "model_name",
    "omniclass_title", "omniclass_number",
)


def allowed_param(name: Any) -> Optional[ElementColumn]:
    col = ElementColumn.lookup(name)
    return col if col in ALLOWED_PARAMS else None
