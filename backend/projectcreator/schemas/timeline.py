"""Timeline Schemas - Gantt item payloads.

Invariants:
    - Dates travel as YYYY-MM-DD strings; parsing and range checks live in core/timeline_rules.py
    - "" on update clears a date, absent leaves it unchanged
"""

from pydantic import BaseModel, ConfigDict, Field


class TimelineItemCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    label: str | None = None
    start_date: str | None = Field(None, alias="startDate")
    end_date: str | None = Field(None, alias="endDate")
    color: str | None = Field(None, max_length=7)
    item_type: str | None = Field(None, alias="itemType")


class TimelineItemUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    label: str | None = None
    start_date: str | None = Field(None, alias="startDate")
    end_date: str | None = Field(None, alias="endDate")
    color: str | None = Field(None, max_length=7)
    item_type: str | None = Field(None, alias="itemType")
    order_index: int | None = Field(None, alias="orderIndex")


class TimelineReorder(BaseModel):
    ids: list[int] = []
