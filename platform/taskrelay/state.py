from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Set

from .tasks import Task

logger = logging.getLogger(__name__)


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class ConversationState:
    action: Action
    step: int = 1
    pending_title: Optional[str] = None
    pending_status: Optional[str] = None
    target_display_number: Optional[int] = None
    invalid_attempts: int = 0
    touched_at: float = 0.0


@dataclass
class PaginationState:
    current_page: int
    page_size: int
    display_index: Dict[int, Task] = field(default_factory=dict)


class UserStateStore:
    """Per-user conversation and pagination state.

    Handlers serialize work for one user with ``lock_for(user_id)``; the maps
    themselves are only touched through the methods below. Conversations that
    sit idle longer than ``conversation_ttl`` seconds are dropped on the next
    read or by ``evict_expired``; the owner is remembered until
    ``take_expired`` reports it once.
    """

    def __init__(
        self,
        *,
        conversation_ttl: float = 900.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.conversation_ttl = conversation_ttl
        self._clock = clock
        self._conversations: Dict[int, ConversationState] = {}
        self._pagination: Dict[int, PaginationState] = {}
        self._locks: Dict[int, asyncio.Lock] = {}
        self._expired_users: Set[int] = set()

    def lock_for(self, user_id: int) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    def _expired(self, state: ConversationState) -> bool:
        return self._clock() - state.touched_at > self.conversation_ttl

    def get_conversation(self, user_id: int) -> Optional[ConversationState]:
        state = self._conversations.get(user_id)
        if state is None:
            return None
        if self._expired(state):
            logger.info("Conversation for user %s expired at step %s.", user_id, state.step)
            self._conversations.pop(user_id, None)
            self._expired_users.add(user_id)
            return None
        return state

    def set_conversation(self, user_id: int, state: ConversationState) -> None:
        state.touched_at = self._clock()
        self._conversations[user_id] = state
        self._expired_users.discard(user_id)

    def clear_conversation(self, user_id: int) -> bool:
        self._expired_users.discard(user_id)
        return self._conversations.pop(user_id, None) is not None

    def get_pagination(self, user_id: int) -> Optional[PaginationState]:
        return self._pagination.get(user_id)

    def set_pagination(self, user_id: int, state: PaginationState) -> None:
        self._pagination[user_id] = state

    def evict_expired(self) -> int:
        expired = [user_id for user_id, state in self._conversations.items() if self._expired(state)]
        for user_id in expired:
            self._conversations.pop(user_id, None)
            self._expired_users.add(user_id)
            lock = self._locks.get(user_id)
            if lock is not None and not lock.locked() and user_id not in self._pagination:
                self._locks.pop(user_id, None)
        if expired:
            logger.info("Evicted %d idle conversation(s).", len(expired))
        return len(expired)

    def take_expired(self, user_id: int) -> bool:
        if user_id in self._expired_users:
            self._expired_users.discard(user_id)
            return True
        return False

    @property
    def active_conversations(self) -> int:
        return len(self._conversations)
