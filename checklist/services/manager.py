# checklist/services/manager.py

import inspect
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from checklist.core.errors import (
    InvalidParentError,
    StoreError,
    SubtaskError,
    SubtaskNotFoundError,
)
from checklist.models.subtask import OpResult, ReorderResult, Subtask, SubtaskNode
from checklist.services import tree
from checklist.services.store import SubtaskStore

logger = logging.getLogger(__name__)

AllCompletedCallback = Callable[[], Union[None, Awaitable[None]]]


def _as_record(item: Subtask, **changes: Any) -> Subtask:
    data = item.model_dump(exclude={"children"})
    data.update(changes)
    return Subtask(**data)


class SubtaskTreeManager:
    """
    Holds the checklist of one task: the flat list as ordered by the store
    (position, then created_at) and the tree derived from it.

    Every mutation goes to the store and then re-reads the whole list, so
    the visible tree always reflects the latest server state. `reorder` is
    the exception: it shows the new order right away and persists after.

    `on_all_completed` fires each time the list goes from "something left
    to do" to "everything done" (non-empty list only).
    """

    build_tree = staticmethod(tree.build_tree)
    flatten_tree = staticmethod(tree.flatten_tree)

    def __init__(
        self,
        store: SubtaskStore,
        task_id: Optional[str] = None,
        on_all_completed: Optional[AllCompletedCallback] = None,
    ) -> None:
        self.store = store
        self.task_id = task_id
        self.on_all_completed = on_all_completed
        self.subtasks: List[Subtask] = []
        self.tree: List[SubtaskNode] = []
        self.loading = False
        self.load_error: Optional[StoreError] = None
        self._all_completed = False

    # ---- state ----

    @property
    def all_completed(self) -> bool:
        return tree.all_completed(self.subtasks)

    def progress(self) -> Tuple[int, int]:
        return tree.progress(self.subtasks)

    def get(self, subtask_id: str) -> Optional[Subtask]:
        for s in self.subtasks:
            if s.id == subtask_id:
                return s
        return None

    async def _set_flat(self, flat: Sequence[Subtask]) -> None:
        self.subtasks = list(flat)
        self.tree = tree.build_tree(self.subtasks)
        await self._notify_if_all_completed()

    async def _notify_if_all_completed(self) -> None:
        was_completed = self._all_completed
        self._all_completed = tree.all_completed(self.subtasks)
        if not self._all_completed or was_completed or self.on_all_completed is None:
            return
        logger.debug("All subtasks completed for task %s", self.task_id)
        result = self.on_all_completed()
        if inspect.isawaitable(result):
            await result

    # ---- reads ----

    async def load(self, task_id: Optional[str]) -> None:
        """
        Fetches the subtasks of `task_id`. Read failures are logged, kept in
        `load_error`, and leave the previous state (task_id included) as is.
        """
        if not task_id:
            self.task_id = None
            self.subtasks = []
            self.tree = []
            self.load_error = None
            self._all_completed = False
            return

        self.loading = True
        try:
            flat = await self.store.list_for_task(task_id)
        except StoreError as e:
            logger.exception("Error fetching subtasks for task %s", task_id)
            self.load_error = e
            return
        finally:
            self.loading = False

        if task_id != self.task_id:
            self._all_completed = False
        self.task_id = task_id
        self.load_error = None
        await self._set_flat(flat)

    async def refetch(self) -> None:
        await self.load(self.task_id)

    # ---- writes ----

    async def add(self, title: str, parent_id: Optional[str] = None) -> OpResult:
        if not self.task_id:
            return OpResult(error=SubtaskError("No task selected"))

        parent_id = parent_id or None
        if parent_id is not None and self.get(parent_id) is None:
            # A brand-new row has no id yet, so a known parent can't close a loop
            return OpResult(error=InvalidParentError(
                f"Parent subtask {parent_id} does not belong to task {self.task_id}"
            ))

        position = tree.next_position(self.subtasks, parent_id)
        try:
            await self.store.insert(
                task_id=self.task_id,
                title=title,
                position=position,
                parent_id=parent_id,
            )
        except StoreError as e:
            logger.warning("Error adding subtask to task %s: %s", self.task_id, e)
            return OpResult(error=e)

        await self.refetch()
        return OpResult()

    async def update(
        self,
        subtask_id: str,
        *,
        title: Optional[str] = None,
        is_completed: Optional[bool] = None,
        position: Optional[int] = None,
    ) -> OpResult:
        fields = {
            k: v
            for k, v in (("title", title), ("is_completed", is_completed), ("position", position))
            if v is not None
        }
        if not fields:
            return OpResult(error=SubtaskError("No fields to update"))

        try:
            await self.store.update(subtask_id, fields)
        except StoreError as e:
            logger.warning("Error updating subtask %s: %s", subtask_id, e)
            return OpResult(error=e)

        await self.refetch()
        return OpResult()

    async def toggle(self, subtask_id: str) -> OpResult:
        current = self.get(subtask_id)
        if current is None:
            return OpResult(error=SubtaskNotFoundError(f"Subtask {subtask_id} not found"))
        return await self.update(subtask_id, is_completed=not current.is_completed)

    async def rename(self, subtask_id: str, title: str) -> OpResult:
        return await self.update(subtask_id, title=title)

    async def delete(self, subtask_id: str) -> OpResult:
        """
        Deletes only this record. Children are left alone here; if any
        survive they show up at root level on the next load.
        """
        try:
            await self.store.delete(subtask_id)
        except StoreError as e:
            logger.warning("Error deleting subtask %s: %s", subtask_id, e)
            return OpResult(error=e)

        await self.refetch()
        return OpResult()

    async def reorder(self, new_order: Sequence[Subtask]) -> ReorderResult:
        """
        Shows `new_order` immediately, then saves position = index for each
        item, one write at a time and in order.

        Failed writes are collected, not raised. If any failed, the list is
        re-read so what is shown matches what the store holds.
        """
        ordered = [_as_record(s, position=i) for i, s in enumerate(new_order)]
        await self._set_flat(ordered)

        failed: List[str] = []
        for item in ordered:
            try:
                await self.store.update(item.id, {"position": item.position})
            except StoreError as e:
                logger.warning("Error saving position %s for subtask %s: %s", item.position, item.id, e)
                failed.append(item.id)

        result = ReorderResult(failed_ids=failed)
        if not result.ok:
            await self.refetch()
        return result
