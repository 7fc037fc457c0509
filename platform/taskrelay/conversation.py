"""Multi-step task wizards (create, update, delete) driven one message at a time.

Each user has at most one ConversationState in the UserStateStore. Entry
operations overwrite whatever was there; ``step`` consumes one message and
returns the replies to send. Backend calls happen only on the final step of a
flow, and display numbers are resolved against the user's last rendered page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .backend import Err, TaskBackendClient
from .errors import ResolutionNotFoundError, StateNotFoundError
from .pagination import PaginationTracker
from .state import Action, ConversationState, UserStateStore
from .tasks import TASK_STATUSES, Task, normalize_status

logger = logging.getLogger(__name__)

SKIP_KEYWORD = "skip"
CONFIRM_KEYWORD = "yes"
MAX_INVALID_ATTEMPTS = 3

STATUS_HINT = ", ".join(TASK_STATUSES)

CREATE_TITLE_PROMPT = "New task.\nQ1/2: What's the title? You can /cancel at any time."
CREATE_STATUS_PROMPT = f"Q2/2: What's the status? Reply with one of: {STATUS_HINT}."
UPDATE_TITLE_PROMPT = "Q1/2: New title for task #{number}? Reply 'skip' to keep the current title."
UPDATE_STATUS_PROMPT = f"Q2/2: New status ({STATUS_HINT})? Reply 'skip' to keep the current status."
DELETE_CONFIRM_PROMPT = "Delete task #{number}? Reply 'yes' to confirm, anything else cancels."
NO_LIST_MESSAGE = "I don't have a task list for you yet. Run /todo_list first, then try again."
TOO_MANY_ATTEMPTS_MESSAGE = (
    "Task #{number} still isn't on your current list after {attempts} tries. "
    "Conversation ended; run /todo_list and start again."
)
RETRY_MESSAGE = (
    "Task #{number} isn't on your current list (attempt {attempts}/{limit}). "
    "Use /todo_list to refresh the numbers if needed, then let's try again."
)
SESSION_EXPIRED_MESSAGE = "That conversation expired. Start again with /todo_create, /todo_update or /todo_delete."


@dataclass
class _Resolution:
    task: Optional[Task] = None
    messages: List[str] = field(default_factory=list)
    finished: bool = False


class ConversationEngine:
    def __init__(
        self,
        backend: TaskBackendClient,
        tracker: PaginationTracker,
        store: UserStateStore,
        *,
        max_attempts: int = MAX_INVALID_ATTEMPTS,
    ) -> None:
        self.backend = backend
        self.tracker = tracker
        self.store = store
        self.max_attempts = max_attempts

    # ── Entry points ───────────────────────────────────────────────

    def is_active(self, user_id: int) -> bool:
        return self.store.get_conversation(user_id) is not None

    def expiry_notice(self, user_id: int) -> List[str]:
        if self.store.take_expired(user_id):
            return [SESSION_EXPIRED_MESSAGE]
        return []

    def start_create(self, user_id: int) -> List[str]:
        self._begin(user_id, ConversationState(action=Action.CREATE))
        return [CREATE_TITLE_PROMPT]

    def start_update(self, user_id: int, number: int) -> List[str]:
        self._begin(user_id, ConversationState(action=Action.UPDATE, target_display_number=number))
        return [UPDATE_TITLE_PROMPT.format(number=number)]

    def start_delete(self, user_id: int, number: int) -> List[str]:
        self._begin(user_id, ConversationState(action=Action.DELETE, target_display_number=number))
        return [DELETE_CONFIRM_PROMPT.format(number=number)]

    def cancel(self, user_id: int) -> List[str]:
        if self.store.clear_conversation(user_id):
            return ["Cancelled. Nothing was changed."]
        return ["There is nothing to cancel."]

    def _begin(self, user_id: int, state: ConversationState) -> None:
        previous = self.store.get_conversation(user_id)
        if previous is not None:
            logger.info(
                "User %s started %s while %s was at step %s; replacing it.",
                user_id,
                state.action.value,
                previous.action.value,
                previous.step,
            )
        self.store.set_conversation(user_id, state)

    def _end(self, user_id: int) -> None:
        self.store.clear_conversation(user_id)

    # ── Dispatch ───────────────────────────────────────────────────

    async def step(self, user_id: int, text: Optional[str]) -> List[str]:
        state = self.store.get_conversation(user_id)
        if state is None:
            self.store.take_expired(user_id)
            return [SESSION_EXPIRED_MESSAGE]
        text = (text or "").strip()
        if state.action is Action.CREATE:
            return await self._step_create(user_id, state, text)
        if state.action is Action.UPDATE:
            return await self._step_update(user_id, state, text)
        return await self._step_delete(user_id, state, text)

    # ── Create ─────────────────────────────────────────────────────

    async def _step_create(self, user_id: int, state: ConversationState, text: str) -> List[str]:
        if state.step == 1:
            if not text:
                self.store.set_conversation(user_id, state)
                return ["Please send a title for the task."]
            state.pending_title = text
            state.step = 2
            self.store.set_conversation(user_id, state)
            return [CREATE_STATUS_PROMPT]

        if not text:
            self.store.set_conversation(user_id, state)
            return [f"Please send a status: {STATUS_HINT}."]
        status = normalize_status(text) or text.lower()
        title = state.pending_title or ""
        self._end(user_id)
        result = await self.backend.create_task(title, status, user_id)
        if isinstance(result, Err):
            return [f"Could not create the task: {result.message}"]
        return [f"Task created: {title} ({status})."]

    # ── Update ─────────────────────────────────────────────────────

    async def _step_update(self, user_id: int, state: ConversationState, text: str) -> List[str]:
        number = state.target_display_number or 0
        if state.step == 1:
            if not text:
                self.store.set_conversation(user_id, state)
                return ["Please send a new title, or 'skip' to keep the current one."]
            state.pending_title = None if text.lower() == SKIP_KEYWORD else text
            state.step = 2
            self.store.set_conversation(user_id, state)
            return [UPDATE_STATUS_PROMPT]

        if not text:
            self.store.set_conversation(user_id, state)
            return ["Please send a new status, or 'skip' to keep the current one."]
        if text.lower() != SKIP_KEYWORD:
            state.pending_status = normalize_status(text) or text.lower()

        resolution = self._resolve_target(user_id, state)
        if resolution.task is None:
            if resolution.finished:
                return resolution.messages
            state.step = 1
            state.pending_title = None
            state.pending_status = None
            self.store.set_conversation(user_id, state)
            return resolution.messages + [UPDATE_TITLE_PROMPT.format(number=number)]

        task = resolution.task
        title = state.pending_title if state.pending_title is not None else task.title
        status = state.pending_status if state.pending_status is not None else task.status
        self._end(user_id)
        result = await self.backend.update_task(task.task_id, title, status, user_id)
        if isinstance(result, Err):
            return [f"Could not update task #{number}: {result.message}"]
        return [f"Task #{number} updated: {title} ({status})."]

    # ── Delete ─────────────────────────────────────────────────────

    async def _step_delete(self, user_id: int, state: ConversationState, text: str) -> List[str]:
        number = state.target_display_number or 0
        if text.lower() != CONFIRM_KEYWORD:
            self._end(user_id)
            return ["Deletion cancelled. Nothing was changed."]

        resolution = self._resolve_target(user_id, state)
        if resolution.task is None:
            if resolution.finished:
                return resolution.messages
            self.store.set_conversation(user_id, state)
            return resolution.messages + [DELETE_CONFIRM_PROMPT.format(number=number)]

        task = resolution.task
        self._end(user_id)
        result = await self.backend.delete_task(task.task_id, user_id)
        if isinstance(result, Err):
            return [f"Could not delete task #{number}: {result.message}"]
        return [f"Task #{number} ({task.title}) deleted."]

    # ── Resolution ─────────────────────────────────────────────────

    def _resolve_target(self, user_id: int, state: ConversationState) -> _Resolution:
        """Look up the target task; on failure apply the bounded-retry policy.

        A missing list ends the conversation at once without counting an
        attempt. An unknown number counts one attempt and ends the
        conversation when the limit is reached.
        """
        number = state.target_display_number or 0
        try:
            return _Resolution(task=self.tracker.lookup(user_id, number))
        except StateNotFoundError:
            logger.info("User %s tried to %s #%s before any list render.", user_id, state.action.value, number)
            self._end(user_id)
            return _Resolution(messages=[NO_LIST_MESSAGE], finished=True)
        except ResolutionNotFoundError:
            state.invalid_attempts += 1
            logger.info(
                "User %s referenced unknown task #%s (attempt %s/%s).",
                user_id,
                number,
                state.invalid_attempts,
                self.max_attempts,
            )
            if state.invalid_attempts >= self.max_attempts:
                self._end(user_id)
                return _Resolution(
                    messages=[TOO_MANY_ATTEMPTS_MESSAGE.format(number=number, attempts=state.invalid_attempts)],
                    finished=True,
                )
            return _Resolution(
                messages=[
                    RETRY_MESSAGE.format(number=number, attempts=state.invalid_attempts, limit=self.max_attempts)
                ]
            )
