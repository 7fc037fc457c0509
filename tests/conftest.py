"""
Shared fixtures and fakes for the task relay tests.

The todo backend is replaced by FakeBackend, an in-memory stand-in with the
same coroutine API as TaskBackendClient, so no test touches the network.
"""
import math
import sys
from pathlib import Path
from typing import List, Optional

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
for extra in (REPO_ROOT / "platform", REPO_ROOT / "tools" / "telegram_bot"):
    if str(extra) not in sys.path:
        sys.path.insert(0, str(extra))

from taskrelay.backend import Err, Ok  # noqa: E402
from taskrelay.conversation import ConversationEngine  # noqa: E402
from taskrelay.pagination import PaginationTracker  # noqa: E402
from taskrelay.rendering import ListRenderer  # noqa: E402
from taskrelay.state import UserStateStore  # noqa: E402
from taskrelay.tasks import Task, TaskPage  # noqa: E402

USER_ID = 4242


def make_tasks(count: int, *, statuses=("backlog", "in-progress", "done")) -> List[Task]:
    return [
        Task(
            task_id=f"t{i + 1}",
            title=f"Task {i + 1}",
            status=statuses[i % len(statuses)],
            owner_id=str(USER_ID),
        )
        for i in range(count)
    ]


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBackend:
    """In-memory todo backend recording every call."""

    def __init__(self, tasks: Optional[List[Task]] = None):
        self.tasks = list(tasks or [])
        self.calls: list = []
        self.list_error: Optional[Err] = None
        self.create_result = Ok({"id": "new"})
        self.update_result = Ok({"message": "updated"})
        self.delete_result = Ok({"message": "deleted"})

    def mutating_calls(self) -> list:
        return [call for call in self.calls if call[0] != "list"]

    async def list_tasks(self, owner_id, page, limit):
        self.calls.append(("list", owner_id, page, limit))
        if self.list_error is not None:
            return self.list_error
        start = (page - 1) * limit
        chunk = self.tasks[start:start + limit]
        total_pages = math.ceil(len(self.tasks) / limit) if self.tasks else 0
        return Ok(
            TaskPage(tasks=chunk, total=len(self.tasks), page=page, limit=limit, total_pages=total_pages)
        )

    async def create_task(self, title, status, owner_id):
        self.calls.append(("create", title, status, owner_id))
        return self.create_result

    async def update_task(self, task_id, title, status, owner_id):
        self.calls.append(("update", task_id, title, status, owner_id))
        return self.update_result

    async def delete_task(self, task_id, owner_id):
        self.calls.append(("delete", task_id, owner_id))
        return self.delete_result

    async def close(self):
        pass


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return FakeBackend(make_tasks(7))


@pytest.fixture
def store(clock):
    return UserStateStore(conversation_ttl=600, clock=clock)


@pytest.fixture
def tracker(backend, store):
    return PaginationTracker(backend, store)


@pytest.fixture
def renderer(tracker):
    return ListRenderer(tracker, default_page_size=5)


@pytest.fixture
def engine(backend, tracker, store):
    return ConversationEngine(backend, tracker, store)
