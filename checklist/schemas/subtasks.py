# checklist/schemas/subtasks.py

from __future__ import annotations
from typing import Optional, Annotated, List
from pydantic import BaseModel, ConfigDict, StringConstraints

from checklist.models.subtask import Subtask, SubtaskNode

# String with min_length and whitespace trimming (Pydantic v2)
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

class SubtaskCreate(BaseModel):
    title: NonEmptyStr
    parent_id: Optional[str] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {"title": "Buy screws", "parent_id": None}
    })

class SubtaskUpdate(BaseModel):
    title: Optional[NonEmptyStr] = None
    is_completed: Optional[bool] = None
    position: Optional[int] = None

class SubtaskReorder(BaseModel):
    ids: List[str]

class ChecklistOut(BaseModel):
    task_id: str
    items: List[Subtask]
    tree: List[SubtaskNode]
    completed: int
    total: int
    all_completed: bool
