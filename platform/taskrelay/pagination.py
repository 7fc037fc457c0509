from __future__ import annotations

import logging
from typing import Optional

from .backend import Err, TaskBackendClient
from .errors import BackendRequestError, ResolutionNotFoundError, StateNotFoundError
from .state import PaginationState, UserStateStore
from .tasks import Task, TaskPage

logger = logging.getLogger(__name__)


def display_number(row: int, page: int, page_size: int) -> int:
    """1-based number shown for ``row`` (0-based) of ``page`` (1-based)."""
    return row + 1 + (page - 1) * page_size


class PaginationTracker:
    def __init__(self, backend: TaskBackendClient, store: UserStateStore) -> None:
        self.backend = backend
        self.store = store

    async def render(self, user_id: int, page: int, page_size: int) -> TaskPage:
        """Fetch ``page`` and replace the user's display mapping with it.

        A failed fetch raises BackendRequestError and leaves the previous
        mapping in place.
        """
        result = await self.backend.list_tasks(user_id, page, page_size)
        if isinstance(result, Err):
            raise BackendRequestError(result.message, kind=result.kind, status_code=result.status_code)
        task_page: TaskPage = result.payload
        index = {
            display_number(row, page, page_size): task
            for row, task in enumerate(task_page.tasks)
        }
        self.store.set_pagination(
            user_id,
            PaginationState(current_page=page, page_size=page_size, display_index=index),
        )
        logger.debug("Rendered page %s for user %s with %d task(s).", page, user_id, len(index))
        return task_page

    def has_rendered(self, user_id: int) -> bool:
        return self.store.get_pagination(user_id) is not None

    def current_page(self, user_id: int) -> Optional[int]:
        state = self.store.get_pagination(user_id)
        return state.current_page if state else None

    def last_page_size(self, user_id: int) -> Optional[int]:
        state = self.store.get_pagination(user_id)
        return state.page_size if state else None

    def lookup(self, user_id: int, number: int) -> Task:
        state = self.store.get_pagination(user_id)
        if state is None:
            raise StateNotFoundError(user_id)
        task = state.display_index.get(number)
        if task is None:
            raise ResolutionNotFoundError(user_id=user_id, display_number=number)
        return task

    def resolve(self, user_id: int, number: int) -> str:
        return self.lookup(user_id, number).task_id
