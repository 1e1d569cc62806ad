"""Field metadata schemas.

Only the parts of a field definition the engine needs: its name, declared
type and optional id. Field types drive value coercion in the evaluator and
how the compiler renders a condition.
"""

from collections.abc import Iterable
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FieldType(str, Enum):
    """Available field types."""

    # Basic Types
    TEXT = "text"
    LONG_TEXT = "long_text"
    NUMBER = "number"
    CHECKBOX = "checkbox"

    # Selection Types
    SINGLE_SELECT = "single_select"
    MULTI_SELECT = "multi_select"

    # Date/Time Types
    DATE = "date"
    DATETIME = "datetime"

    # Reference Types
    LINK_TO_TABLE = "link_to_table"
    LOOKUP = "lookup"

    # Computed Types
    FORMULA = "formula"
    AUTONUMBER = "autonumber"

    # Media Types
    ATTACHMENT = "attachment"
    URL = "url"
    EMAIL = "email"
    PHONE = "phone"

    # Timestamp Types
    CREATED_TIME = "created_time"
    LAST_MODIFIED_TIME = "last_modified_time"

    # Special Types
    RATING = "rating"
    CURRENCY = "currency"
    PERCENT = "percent"


NUMERIC_FIELD_TYPES = frozenset({"number", "currency", "percent", "rating", "autonumber"})
DATE_FIELD_TYPES = frozenset({"date", "datetime", "created_time", "last_modified_time"})
MULTI_VALUE_FIELD_TYPES = frozenset({"multi_select", "link_to_table", "lookup", "attachment"})
CHECKBOX_FIELD_TYPES = frozenset({"checkbox"})


class FieldDescriptor(BaseModel):
    """Declared field: name plus type. Unknown types are treated as text."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Field name as used in formulas")
    type: str = Field(default=FieldType.TEXT.value, description="Declared field type")
    id: Optional[str] = Field(default=None, description="Stable field id, if any")

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> str:
        """Accept FieldType members and any casing."""
        value = getattr(v, "value", v)
        return str(value).strip().lower() if value else FieldType.TEXT.value

    @property
    def is_numeric(self) -> bool:
        return self.type in NUMERIC_FIELD_TYPES

    @property
    def is_date(self) -> bool:
        return self.type in DATE_FIELD_TYPES

    @property
    def is_multi_value(self) -> bool:
        return self.type in MULTI_VALUE_FIELD_TYPES

    @property
    def is_checkbox(self) -> bool:
        return self.type in CHECKBOX_FIELD_TYPES


def to_field_descriptors(fields: Optional[Iterable[Any]]) -> list[FieldDescriptor]:
    """
    Coerce field metadata into descriptors.

    Accepts descriptors, dicts with ``name``/``type`` (or ``field_type``) keys,
    or plain field names.
    """
    descriptors: list[FieldDescriptor] = []
    for item in fields or ():
        if isinstance(item, FieldDescriptor):
            descriptors.append(item)
        elif isinstance(item, str):
            descriptors.append(FieldDescriptor(name=item))
        elif isinstance(item, dict):
            if not item.get("name"):
                raise ValueError(f"Field metadata is missing a name: {item!r}")
            field_type = item.get("type") or item.get("field_type") or FieldType.TEXT.value
            field_id = item.get("id")
            descriptors.append(
                FieldDescriptor(
                    name=item["name"],
                    type=str(getattr(field_type, "value", field_type)),
                    id=str(field_id) if field_id is not None else None,
                )
            )
        else:
            raise ValueError(f"Unsupported field metadata: {item!r}")
    return descriptors


def find_field(fields: Iterable[FieldDescriptor], key: Any) -> Optional[FieldDescriptor]:
    """
    Find a field by id or name.

    Exact id/name matches win over a case-insensitive name match.
    """
    if key is None:
        return None
    key = str(key)
    fields = list(fields)
    for field in fields:
        if field.id == key or field.name == key:
            return field
    lowered = key.lower()
    for field in fields:
        if field.name.lower() == lowered:
            return field
    return None
