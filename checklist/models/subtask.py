# checklist/models/subtask.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from checklist.core.errors import SubtaskError


class Subtask(BaseModel):
    """
    One row of the `subtasks` table, as read from the store.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    task_id: str
    parent_id: Optional[str] = None
    title: str
    is_completed: bool = False
    position: int = 0
    created_at: datetime
    updated_at: datetime

    @field_validator("position", mode="before")
    @classmethod
    def _null_position(cls, v):
        # position is nullable in the database
        return 0 if v is None else v


class SubtaskNode(Subtask):
    """
    Tree view of a Subtask. `children` is derived, never persisted.
    """
    children: List[SubtaskNode] = Field(default_factory=list)


@dataclass
class OpResult:
    error: Optional[SubtaskError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ReorderResult:
    failed_ids: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_ids
