from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .config import DEFAULT_PAGE_SIZE
from .pagination import PaginationTracker, display_number
from .parsing import NEXT_PAGE_PREFIX, PREV_PAGE_PREFIX
from .tasks import STATUS_BACKLOG, STATUS_DONE, STATUS_IN_PROGRESS, TaskPage

STATUS_GLYPHS = {
    STATUS_DONE: "✅",
    STATUS_IN_PROGRESS: "🚧",
    STATUS_BACKLOG: "📝",
}
DEFAULT_GLYPH = "❔"
EMPTY_LIST_TEXT = "You have no tasks here yet. Use /todo_create to add one."
EMPTY_PAGE_TEXT = "Page {page} is empty (you have {total} task(s)). Try /todo_list 1."


@dataclass(frozen=True)
class PageControl:
    label: str
    page: int
    callback_data: str


@dataclass(frozen=True)
class DisplayPayload:
    text: str
    controls: Tuple[PageControl, ...] = ()
    empty: bool = False


def status_glyph(status: str) -> str:
    return STATUS_GLYPHS.get((status or "").strip().lower(), DEFAULT_GLYPH)


def build_list_payload(task_page: TaskPage, *, page: int, page_size: int) -> DisplayPayload:
    if not task_page.tasks:
        if task_page.total > 0:
            return DisplayPayload(text=EMPTY_PAGE_TEXT.format(page=page, total=task_page.total), empty=True)
        return DisplayPayload(text=EMPTY_LIST_TEXT, empty=True)

    total_pages = max(task_page.total_pages, 1)
    lines: List[str] = ["Your tasks:"]
    for row, task in enumerate(task_page.tasks):
        number = display_number(row, page, page_size)
        lines.append(f"{number}. {status_glyph(task.status)} {task.title} ({task.status or 'unknown'})")
    lines.append("")
    lines.append(f"Page {page}/{total_pages} · {task_page.total} task(s) total")

    controls: List[PageControl] = []
    if page > 1:
        controls.append(
            PageControl(label="◀️ Prev", page=page - 1, callback_data=f"{PREV_PAGE_PREFIX}{page - 1}")
        )
    if page < total_pages:
        controls.append(
            PageControl(label="Next ▶️", page=page + 1, callback_data=f"{NEXT_PAGE_PREFIX}{page + 1}")
        )
    return DisplayPayload(text="\n".join(lines), controls=tuple(controls))


class ListRenderer:
    def __init__(self, tracker: PaginationTracker, *, default_page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self.tracker = tracker
        self.default_page_size = default_page_size

    async def render(self, user_id: int, page: int = 1, page_size: Optional[int] = None) -> DisplayPayload:
        if page_size is None:
            page_size = self.tracker.last_page_size(user_id) or self.default_page_size
        task_page = await self.tracker.render(user_id, page, page_size)
        return build_list_payload(task_page, page=page, page_size=page_size)
