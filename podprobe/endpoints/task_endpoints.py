"""
Task manager endpoints on the async SQLAlchemy session.

Every response carries the pod name so a client can see which replica handled
each call.
"""

from typing import Annotated, Any, Optional

import structlog
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from podprobe.db import TaskDB, get_async_db_session
from podprobe.identity import InstanceIdentity, get_identity, utcnow
from podprobe.schemas import TaskCreate, TaskUpdate, describe_errors

logger = structlog.get_logger(__name__)

# Router configuration
task_router = APIRouter(prefix="/api/tasks", tags=["Tasks"])

Db = Annotated[AsyncSession, Depends(get_async_db_session)]
Identity = Annotated[InstanceIdentity, Depends(get_identity)]


def task_to_dict(task: TaskDB) -> dict:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "category": task.category,
        "priority": task.priority,
        "completed": task.completed,
        "dueDate": task.due_date.isoformat() if task.due_date else None,
        "tags": list(task.tags or []),
        "createdAt": task.created_at.isoformat(),
        "updatedAt": task.updated_at.isoformat(),
    }


def task_not_found() -> JSONResponse:
    return JSONResponse({"success": False, "error": "Task not found"}, status_code=404)


def bad_request(message: str, identity: InstanceIdentity) -> JSONResponse:
    return JSONResponse({"success": False, "error": message, "pod": identity.pod_name}, status_code=400)


@task_router.get("")
async def list_tasks(
    db: Db,
    identity: Identity,
    category: Optional[str] = None,
    priority: Optional[str] = None,
    completed: Optional[str] = None,
) -> dict:
    """Tasks newest first, optionally filtered by category, priority and completion."""
    query = select(TaskDB)
    if category:
        query = query.where(TaskDB.category == category)
    if priority:
        query = query.where(TaskDB.priority == priority)
    if completed is not None:
        query = query.where(TaskDB.completed == (completed == "true"))
    query = query.order_by(TaskDB.created_at.desc(), TaskDB.id.desc())

    tasks = (await db.execute(query)).scalars().all()
    return {
        "success": True,
        "count": len(tasks),
        "pod": identity.pod_name,
        "data": [task_to_dict(t) for t in tasks],
    }


@task_router.get("/stats/summary")
async def task_stats(db: Db, identity: Identity) -> dict:
    """Totals by completion, category and priority."""
    total = (await db.execute(select(func.count(TaskDB.id)))).scalar_one()
    completed = (await db.execute(select(func.count(TaskDB.id)).where(TaskDB.completed.is_(True)))).scalar_one()
    by_category = (await db.execute(select(TaskDB.category, func.count(TaskDB.id)).group_by(TaskDB.category))).all()
    by_priority = (await db.execute(select(TaskDB.priority, func.count(TaskDB.id)).group_by(TaskDB.priority))).all()
    return {
        "success": True,
        "pod": identity.pod_name,
        "data": {
            "total": total,
            "completed": completed,
            "pending": total - completed,
            "byCategory": [{"category": name, "count": count} for name, count in by_category],
            "byPriority": [{"priority": name, "count": count} for name, count in by_priority],
        },
    }


@task_router.get("/{task_id}")
async def get_task(task_id: int, db: Db, identity: Identity):
    task = await db.get(TaskDB, task_id)
    if task is None:
        return task_not_found()
    return {"success": True, "pod": identity.pod_name, "data": task_to_dict(task)}


@task_router.post("", status_code=201)
async def create_task(db: Db, identity: Identity, payload: Annotated[Any, Body()] = None):
    try:
        fields = TaskCreate.model_validate(payload)
    except ValidationError as e:
        return bad_request(describe_errors(e), identity)

    task = TaskDB(**fields.model_dump())
    db.add(task)
    await db.commit()
    await db.refresh(task)
    logger.info("Task created", task_id=task.id, pod=identity.pod_name)
    return JSONResponse(
        {"success": True, "pod": identity.pod_name, "data": task_to_dict(task)},
        status_code=201,
    )


@task_router.put("/{task_id}")
async def update_task(task_id: int, db: Db, identity: Identity, payload: Annotated[Any, Body()] = None):
    try:
        changes = TaskUpdate.model_validate(payload).changes()
    except ValidationError as e:
        return bad_request(describe_errors(e), identity)

    task = await db.get(TaskDB, task_id)
    if task is None:
        return task_not_found()

    for key, value in changes.items():
        setattr(task, key, value)
    task.updated_at = utcnow()
    await db.commit()
    await db.refresh(task)
    logger.info("Task updated", task_id=task_id, fields=sorted(changes), pod=identity.pod_name)
    return {"success": True, "pod": identity.pod_name, "data": task_to_dict(task)}


@task_router.delete("/{task_id}")
async def delete_task(task_id: int, db: Db, identity: Identity):
    task = await db.get(TaskDB, task_id)
    if task is None:
        return task_not_found()

    await db.delete(task)
    await db.commit()
    logger.info("Task deleted", task_id=task_id, pod=identity.pod_name)
    return {"success": True, "pod": identity.pod_name, "message": "Task deleted successfully"}
