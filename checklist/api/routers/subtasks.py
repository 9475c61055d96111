# checklist/api/routers/subtasks.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from supabase import AsyncClient

from checklist.core.errors import (
    StoreError,
    SubtaskError,
    SubtaskNotFoundError,
)
from checklist.core.supabase_client import get_supabase_for_request
from checklist.models.subtask import OpResult
from checklist.schemas.subtasks import (
    ChecklistOut,
    SubtaskCreate,
    SubtaskReorder,
    SubtaskUpdate,
)
from checklist.services.manager import SubtaskTreeManager
from checklist.services.store import SubtaskStore, SupabaseSubtaskStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks/{task_id}/subtasks", tags=["Subtasks"])


def get_subtask_store(supa: AsyncClient = Depends(get_supabase_for_request)) -> SubtaskStore:
    return SupabaseSubtaskStore(supa)


async def get_manager(task_id: str, store: SubtaskStore = Depends(get_subtask_store)) -> SubtaskTreeManager:
    """
    One manager per request, loaded with the task's checklist.

    The auto-complete hook is attached after the initial read, so only a
    mutation that finishes the checklist completes the parent task; a GET
    never writes.
    """
    async def _complete_task() -> None:
        try:
            await store.mark_task_completed(task_id)
        except StoreError as e:
            logger.warning("Could not auto-complete task %s: %s", task_id, e)

    manager = SubtaskTreeManager(store)
    await manager.load(task_id)
    if manager.load_error is not None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(manager.load_error) or "Cannot read subtasks",
        )
    manager.on_all_completed = _complete_task
    return manager


def _raise_for(result: OpResult, fallback_msg: str = "Operation failed") -> None:
    err: Optional[SubtaskError] = result.error
    if err is None:
        return
    if isinstance(err, SubtaskNotFoundError):
        raise HTTPException(status_code=404, detail=str(err))
    if isinstance(err, StoreError):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(err) or fallback_msg)
    # InvalidParentError and plain validation problems
    raise HTTPException(status_code=400, detail=str(err) or fallback_msg)


def _view(manager: SubtaskTreeManager) -> ChecklistOut:
    done, total = manager.progress()
    return ChecklistOut(
        task_id=manager.task_id or "",
        items=manager.subtasks,
        tree=manager.tree,
        completed=done,
        total=total,
        all_completed=manager.all_completed,
    )


@router.get("", response_model=ChecklistOut)
async def get_checklist(manager: SubtaskTreeManager = Depends(get_manager)):
    return _view(manager)


@router.post("", response_model=ChecklistOut, status_code=201)
async def create_subtask(body: SubtaskCreate, manager: SubtaskTreeManager = Depends(get_manager)):
    result = await manager.add(body.title, body.parent_id)
    _raise_for(result, "Cannot create subtask")
    return _view(manager)


@router.put("/order", response_model=ChecklistOut)
async def reorder_subtasks(body: SubtaskReorder, manager: SubtaskTreeManager = Depends(get_manager)):
    known = {s.id: s for s in manager.subtasks}
    if len(body.ids) != len(known) or set(body.ids) != set(known):
        raise HTTPException(400, "ids must list every subtask of the task exactly once")

    result = await manager.reorder([known[i] for i in body.ids])
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": "Some positions were not saved", "failed_ids": result.failed_ids},
        )
    return _view(manager)


@router.patch("/{subtask_id}", response_model=ChecklistOut)
async def update_subtask(
    subtask_id: str,
    body: SubtaskUpdate,
    manager: SubtaskTreeManager = Depends(get_manager),
):
    payload = body.model_dump(exclude_none=True)
    if not payload:
        raise HTTPException(400, "No fields to update")
    if manager.get(subtask_id) is None:
        raise HTTPException(404, "Subtask not found")
    result = await manager.update(subtask_id, **payload)
    _raise_for(result, "Cannot update subtask")
    return _view(manager)


@router.post("/{subtask_id}/toggle", response_model=ChecklistOut)
async def toggle_subtask(subtask_id: str, manager: SubtaskTreeManager = Depends(get_manager)):
    result = await manager.toggle(subtask_id)
    _raise_for(result, "Cannot toggle subtask")
    return _view(manager)


@router.delete("/{subtask_id}", status_code=204)
async def delete_subtask(subtask_id: str, manager: SubtaskTreeManager = Depends(get_manager)):
    if manager.get(subtask_id) is None:
        raise HTTPException(404, "Subtask not found")
    result = await manager.delete(subtask_id)
    _raise_for(result, "Cannot delete subtask")
    return Response(status_code=204)
