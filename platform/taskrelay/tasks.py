from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

STATUS_BACKLOG = "backlog"
STATUS_IN_PROGRESS = "in-progress"
STATUS_DONE = "done"
TASK_STATUSES = (STATUS_BACKLOG, STATUS_IN_PROGRESS, STATUS_DONE)


def normalize_status(raw: str) -> Optional[str]:
    text = (raw or "").strip().lower()
    mappings = {
        "backlog": STATUS_BACKLOG,
        "todo": STATUS_BACKLOG,
        "to do": STATUS_BACKLOG,
        "to-do": STATUS_BACKLOG,
        "pending": STATUS_BACKLOG,
        "new": STATUS_BACKLOG,
        "in-progress": STATUS_IN_PROGRESS,
        "in progress": STATUS_IN_PROGRESS,
        "in_progress": STATUS_IN_PROGRESS,
        "progress": STATUS_IN_PROGRESS,
        "doing": STATUS_IN_PROGRESS,
        "wip": STATUS_IN_PROGRESS,
        "done": STATUS_DONE,
        "finished": STATUS_DONE,
        "complete": STATUS_DONE,
        "completed": STATUS_DONE,
    }
    return mappings.get(text)


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class Task:
    task_id: str
    title: str
    status: str
    owner_id: str = ""
    created_at: str = ""
    updated_at: str = ""
    raw: Dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Task":
        if "id" not in payload:
            raise ValueError(f"Task payload has no id: {dict(payload)!r}")
        return cls(
            task_id=str(payload["id"]),
            title=str(payload.get("title") or ""),
            status=str(payload.get("status") or ""),
            owner_id=str(payload.get("discord_id") or ""),
            created_at=str(payload.get("created_at") or ""),
            updated_at=str(payload.get("updated_at") or ""),
            raw=dict(payload),
        )


@dataclass
class TaskPage:
    tasks: List[Task]
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TaskPage":
        items = payload.get("tasks") or []
        if not isinstance(items, list):
            raise ValueError("Task list payload has no 'tasks' array")
        tasks = [Task.from_payload(item) for item in items]
        return cls(
            tasks=tasks,
            total=_as_int(payload.get("total"), len(tasks)),
            page=_as_int(payload.get("page"), 1),
            limit=_as_int(payload.get("limit"), len(tasks)),
            total_pages=_as_int(payload.get("total_pages"), 1 if tasks else 0),
        )
