from __future__ import annotations

import logging
from dataclasses import dataclass

from .backend import TaskBackendClient
from .config import Settings
from .conversation import ConversationEngine
from .pagination import PaginationTracker
from .rendering import ListRenderer
from .state import UserStateStore
from .summarizer import SummarizerClient

logger = logging.getLogger(__name__)


@dataclass
class RelayServices:
    settings: Settings
    backend: TaskBackendClient
    summarizer: SummarizerClient
    store: UserStateStore
    tracker: PaginationTracker
    renderer: ListRenderer
    engine: ConversationEngine

    async def aclose(self) -> None:
        await self.backend.close()
        await self.summarizer.close()
        logger.info("Closed HTTP clients.")


def build_services(settings: Settings) -> RelayServices:
    backend = TaskBackendClient(settings.todo_api_url, timeout=settings.http_timeout)
    summarizer = SummarizerClient(
        settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout=settings.summarizer_timeout,
        max_input_chars=settings.max_page_content_chars,
    )
    store = UserStateStore(conversation_ttl=settings.conversation_ttl)
    tracker = PaginationTracker(backend, store)
    renderer = ListRenderer(tracker, default_page_size=settings.page_size)
    engine = ConversationEngine(backend, tracker, store)
    if not settings.gemini_api_key:
        logger.warning("GEMINI_CREDS is not set; /summarize commands will report an error.")
    return RelayServices(
        settings=settings,
        backend=backend,
        summarizer=summarizer,
        store=store,
        tracker=tracker,
        renderer=renderer,
        engine=engine,
    )
