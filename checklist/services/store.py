# checklist/services/store.py

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

import httpx
from pydantic import ValidationError
from supabase import AsyncClient, PostgrestAPIError

from checklist.core.errors import StoreError
from checklist.models.subtask import Subtask

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "is_completed", "position")


class SubtaskStore(Protocol):
    """
    Record store port used by the tree manager.
    Every method raises StoreError on failure.
    """

    async def list_for_task(self, task_id: str) -> List[Subtask]: ...

    async def insert(
        self,
        *,
        task_id: str,
        title: str,
        position: int,
        parent_id: Optional[str] = None,
    ) -> Optional[Subtask]: ...

    async def update(self, subtask_id: str, fields: Dict[str, Any]) -> None: ...

    async def delete(self, subtask_id: str) -> None: ...

    async def mark_task_completed(self, task_id: str) -> None: ...


def clean_update_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields not updatable: {sorted(unknown)}")
    return {k: v for k, v in fields.items() if v is not None}


class SupabaseSubtaskStore:
    """
    `subtasks` table through PostgREST (supabase-py async client).

    Writes don't chain .select(); callers re-read when they need
    server-assigned fields.
    """

    table = "subtasks"

    def __init__(self, client: AsyncClient) -> None:
        self.client = client

    async def _execute(self, query, what: str):
        try:
            return await query.execute()
        except PostgrestAPIError as e:
            raise StoreError(f"[{what}] {e.message or e}") from e
        except httpx.HTTPError as e:
            raise StoreError(f"[{what}] {e}") from e

    async def list_for_task(self, task_id: str) -> List[Subtask]:
        query = (
            self.client.table(self.table)
            .select("*")
            .eq("task_id", task_id)
            .order("position", desc=False)
            .order("created_at", desc=False)
        )
        res = await self._execute(query, "subtasks.list")
        try:
            return [Subtask.model_validate(row) for row in (res.data or [])]
        except ValidationError as e:
            raise StoreError(f"[subtasks.list] unexpected row shape: {e}") from e

    async def insert(
        self,
        *,
        task_id: str,
        title: str,
        position: int,
        parent_id: Optional[str] = None,
    ) -> Optional[Subtask]:
        payload = {
            "task_id": task_id,
            "parent_id": parent_id,
            "title": title,
            "position": position,
        }
        res = await self._execute(self.client.table(self.table).insert(payload), "subtasks.insert")
        data = getattr(res, "data", None)
        # Some setups return the inserted row, others nothing
        if isinstance(data, list) and data:
            return Subtask.model_validate(data[0])
        return None

    async def update(self, subtask_id: str, fields: Dict[str, Any]) -> None:
        payload = clean_update_fields(fields)
        if not payload:
            raise ValueError("No fields to update")
        query = self.client.table(self.table).update(payload).eq("id", subtask_id)
        await self._execute(query, "subtasks.update")

    async def delete(self, subtask_id: str) -> None:
        query = self.client.table(self.table).delete().eq("id", subtask_id)
        await self._execute(query, "subtasks.delete")

    async def mark_task_completed(self, task_id: str) -> None:
        query = (
            self.client.table("tasks")
            .update({
                "is_completed": True,
                "completed_at": datetime.now(timezone.utc).isoformat(),
            })
            .eq("id", task_id)
            .eq("is_completed", False)
        )
        await self._execute(query, "tasks.complete")
        logger.info("Task %s marked completed (all subtasks done)", task_id)
