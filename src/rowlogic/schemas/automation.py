"""Automation trigger schemas."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rowlogic.schemas.field import FieldDescriptor, to_field_descriptors


class TriggerType(str, Enum):
    """Types of automation triggers."""

    # Record triggers
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    RECORD_MATCHES_CONDITIONS = "record_matches_conditions"

    # Field triggers
    FIELD_CHANGED = "field_changed"

    # Time triggers
    SCHEDULED = "scheduled"

    # External triggers
    WEBHOOK_RECEIVED = "webhook_received"


# Older trigger names still found in stored automations
TRIGGER_TYPE_ALIASES: dict[str, TriggerType] = {
    "row_created": TriggerType.RECORD_CREATED,
    "row_updated": TriggerType.RECORD_UPDATED,
    "row_deleted": TriggerType.RECORD_DELETED,
    "condition": TriggerType.RECORD_MATCHES_CONDITIONS,
    "schedule": TriggerType.SCHEDULED,
    "webhook": TriggerType.WEBHOOK_RECEIVED,
}


class TriggerConfig(BaseModel):
    """Trigger configuration stored on an automation."""

    table_id: Optional[str] = None
    watch_fields: list[str] = Field(default_factory=list, description="Fields whose change fires")
    formula: Optional[str] = Field(default=None, description="Condition formula")
    conditions: Any = Field(default=None, description="Condition filter tree")
    fields: list[FieldDescriptor] = Field(default_factory=list, description="Declared table fields")

    @field_validator("fields", mode="before")
    @classmethod
    def coerce_fields(cls, v: Any) -> list[FieldDescriptor]:
        return to_field_descriptors(v)


class TriggerContext(BaseModel):
    """Context handed to automation actions when a trigger fires."""

    trigger_type: TriggerType
    trigger_data: dict[str, Any] = Field(default_factory=dict)
    table_id: Optional[str] = None
    record_id: Optional[str] = None


class TriggerEvaluationResult(BaseModel):
    """Outcome of evaluating a trigger against an event."""

    model_config = ConfigDict(frozen=True)

    should_run: bool
    context: Optional[TriggerContext] = None
