# tests/conftest.py

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Set

import pytest

from checklist.core.errors import StoreError
from checklist.models.subtask import Subtask

BASE_TS = datetime(2025, 12, 25, 18, 0, tzinfo=timezone.utc)


def make_subtask(
    id: str,
    title: Optional[str] = None,
    position: int = 0,
    parent_id: Optional[str] = None,
    is_completed: bool = False,
    task_id: str = "t1",
    minute: int = 0,
) -> Subtask:
    ts = BASE_TS + timedelta(minutes=minute)
    return Subtask(
        id=id,
        task_id=task_id,
        parent_id=parent_id,
        title=title or id.upper(),
        is_completed=is_completed,
        position=position,
        created_at=ts,
        updated_at=ts,
    )


class FakeSubtaskStore:
    """
    In-memory SubtaskStore.

    - records every call, in order, in `calls`
    - `fail_on[op]` holds subtask ids (or "*") whose `op` call raises StoreError
    - `before_update` / `before_list` hooks let tests look at manager state
      at the exact moment a store call happens
    """

    def __init__(self) -> None:
        self.rows: Dict[str, Subtask] = {}
        self.calls: List[tuple] = []
        self.fail_on: Dict[str, Set[str]] = {}
        self.completed_tasks: List[str] = []
        self.before_update: Optional[Callable[[str, Dict[str, Any]], None]] = None
        self.before_list: Optional[Callable[[str], None]] = None
        self._seq = 0

    def seed(self, items: List[Subtask]) -> None:
        for s in items:
            self.rows[s.id] = s

    def _maybe_fail(self, op: str, key: str) -> None:
        targets = self.fail_on.get(op, set())
        if "*" in targets or key in targets:
            raise StoreError(f"[{op}] boom on {key}")

    async def list_for_task(self, task_id: str) -> List[Subtask]:
        self.calls.append(("list", task_id))
        if self.before_list:
            self.before_list(task_id)
        self._maybe_fail("list", task_id)
        rows = [s for s in self.rows.values() if s.task_id == task_id]
        return sorted(rows, key=lambda s: (s.position, s.created_at))

    async def insert(self, *, task_id, title, position, parent_id=None) -> Subtask:
        self.calls.append(("insert", task_id, title, position, parent_id))
        self._maybe_fail("insert", task_id)
        self._seq += 1
        row = make_subtask(
            f"new{self._seq}",
            title=title,
            position=position,
            parent_id=parent_id,
            task_id=task_id,
            minute=100 + self._seq,
        )
        self.rows[row.id] = row
        return row

    async def update(self, subtask_id: str, fields: Dict[str, Any]) -> None:
        self.calls.append(("update", subtask_id, dict(fields)))
        if self.before_update:
            self.before_update(subtask_id, fields)
        self._maybe_fail("update", subtask_id)
        row = self.rows[subtask_id]
        self.rows[subtask_id] = row.model_copy(
            update={**fields, "updated_at": row.updated_at + timedelta(seconds=1)}
        )

    async def delete(self, subtask_id: str) -> None:
        self.calls.append(("delete", subtask_id))
        self._maybe_fail("delete", subtask_id)
        self.rows.pop(subtask_id, None)

    async def mark_task_completed(self, task_id: str) -> None:
        self.calls.append(("complete_task", task_id))
        self.completed_tasks.append(task_id)

    def updates(self) -> List[tuple]:
        return [c for c in self.calls if c[0] == "update"]


@pytest.fixture()
def subtask() -> Callable[..., Subtask]:
    return make_subtask


@pytest.fixture()
def store() -> FakeSubtaskStore:
    return FakeSubtaskStore()
