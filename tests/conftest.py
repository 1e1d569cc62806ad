"""
Pytest configuration and fixtures for rowlogic tests.
"""

from datetime import datetime

import pytest

from rowlogic.formula import dates
from rowlogic.schemas.field import FieldDescriptor

# Wednesday, mid-morning local time
FIXED_NOW = datetime(2024, 1, 17, 10, 30, 0)


@pytest.fixture
def fixed_now(monkeypatch: pytest.MonkeyPatch) -> datetime:
    """Pin the engine clock to FIXED_NOW."""
    monkeypatch.setattr(dates, "now", lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture
def task_fields() -> list[FieldDescriptor]:
    """Field metadata for a simple task table."""
    return [
        FieldDescriptor(name="Name", type="text", id="fld_name"),
        FieldDescriptor(name="Status", type="single_select", id="fld_status"),
        FieldDescriptor(name="Priority", type="number", id="fld_priority"),
        FieldDescriptor(name="Due Date", type="date", id="fld_due"),
        FieldDescriptor(name="Done", type="checkbox", id="fld_done"),
        FieldDescriptor(name="Tags", type="multi_select", id="fld_tags"),
        FieldDescriptor(name="Owner", type="text", id="fld_owner"),
    ]


@pytest.fixture
def task_row() -> dict:
    """A task row matching task_fields."""
    return {
        "Name": "Write report",
        "Status": "done",
        "Priority": 3,
        "Due Date": "2024-01-17",
        "Done": True,
        "Tags": ["urgent", "finance"],
        "Owner": "Ada",
    }
