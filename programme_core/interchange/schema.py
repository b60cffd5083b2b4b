"""
Task interchange schema.

Column contract for schedules exchanged with external tooling (CSV/XML
exporters, spreadsheets). Dates are ISO calendar dates with no time part.

File: <schedule>.csv
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskExportRow(BaseModel):
    """
    One task per row.

    dependencies holds the typed incoming links as FROM:TYPE:LAG entries
    joined by ';' (e.g. "A:FS:0;B:SS:-2").
    """
    model_config = ConfigDict(extra='forbid')

    task_id: str = Field(description="Unique task identifier")
    name: Optional[str] = Field(default=None, description="Task name")
    start_date: str = Field(description="Start date (YYYY-MM-DD)")
    end_date: str = Field(description="End date (YYYY-MM-DD, exclusive)")
    duration: int = Field(description="Duration in days")
    percent_complete: int = Field(description="Progress 0-100")
    status: str = Field(description="not-started, in-progress or completed")
    resource: Optional[str] = Field(default=None, description="Assigned resource")
    budgeted_cost: float = Field(description="Planned value basis")
    actual_cost: float = Field(description="Actual cost to date")
    level: int = Field(description="Hierarchy depth 0-5")
    parent_id: Optional[str] = Field(default=None, description="Parent task id")
    position: int = Field(description="Order among siblings")
    task_type: str = Field(description="normal or milestone")
    constraint_type: Optional[str] = Field(default=None, description="Scheduling constraint type")
    constraint_date: Optional[str] = Field(default=None, description="Constraint date (YYYY-MM-DD)")
    dependencies: Optional[str] = Field(default=None, description="Typed predecessor links")

    @field_validator('start_date', 'end_date', 'constraint_date')
    @classmethod
    def _iso_date(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return date.fromisoformat(value).isoformat()
