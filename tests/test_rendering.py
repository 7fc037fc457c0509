"""Tests for the task list payloads and their page controls."""
import pytest

from conftest import USER_ID, make_tasks
from taskrelay.rendering import (
    DEFAULT_GLYPH,
    EMPTY_LIST_TEXT,
    EMPTY_PAGE_TEXT,
    build_list_payload,
    status_glyph,
)
from taskrelay.tasks import TaskPage


def _numbers(payload):
    return [int(line.split(".", 1)[0]) for line in payload.text.splitlines() if line[:1].isdigit()]


class TestStatusGlyph:
    def test_known_statuses(self):
        assert status_glyph("done") == "✅"
        assert status_glyph("in-progress") == "🚧"
        assert status_glyph("backlog") == "📝"

    def test_unknown_status_uses_default(self):
        assert status_glyph("blocked") == DEFAULT_GLYPH
        assert status_glyph("") == DEFAULT_GLYPH


class TestBuildListPayload:
    def test_empty_page_has_no_controls(self):
        payload = build_list_payload(
            TaskPage(tasks=[], total=0, page=1, limit=5, total_pages=0), page=1, page_size=5
        )
        assert payload.empty is True
        assert payload.text == EMPTY_LIST_TEXT
        assert payload.controls == ()

    def test_page_past_the_end_mentions_total(self):
        payload = build_list_payload(
            TaskPage(tasks=[], total=7, page=9, limit=5, total_pages=2), page=9, page_size=5
        )
        assert payload.empty is True
        assert payload.text == EMPTY_PAGE_TEXT.format(page=9, total=7)
        assert "Page 9 is empty" in payload.text
        assert payload.controls == ()

    def test_lines_include_number_glyph_title_and_status(self):
        tasks = make_tasks(2)
        payload = build_list_payload(
            TaskPage(tasks=tasks, total=2, page=1, limit=5, total_pages=1), page=1, page_size=5
        )
        assert "1. 📝 Task 1 (backlog)" in payload.text
        assert "2. 🚧 Task 2 (in-progress)" in payload.text
        assert "Page 1/1 · 2 task(s) total" in payload.text
        assert payload.controls == ()

    def test_middle_page_has_both_controls(self):
        tasks = make_tasks(15)[5:10]
        payload = build_list_payload(
            TaskPage(tasks=tasks, total=15, page=2, limit=5, total_pages=3), page=2, page_size=5
        )
        assert [c.callback_data for c in payload.controls] == ["todo_prev_1", "todo_next_3"]
        assert _numbers(payload) == [6, 7, 8, 9, 10]


class TestListRenderer:
    @pytest.mark.asyncio
    async def test_two_page_navigation_scenario(self, renderer, tracker):
        first = await renderer.render(USER_ID, 1, 5)

        assert _numbers(first) == [1, 2, 3, 4, 5]
        assert [(c.page, c.callback_data) for c in first.controls] == [(2, "todo_next_2")]

        second = await renderer.render(USER_ID, first.controls[0].page)

        assert _numbers(second) == [6, 7]
        assert [(c.page, c.callback_data) for c in second.controls] == [(1, "todo_prev_1")]
        assert "Page 2/2 · 7 task(s) total" in second.text
        assert tracker.resolve(USER_ID, 6) == "t6"

    @pytest.mark.asyncio
    async def test_default_page_size_is_five(self, renderer, backend):
        await renderer.render(USER_ID)
        assert backend.calls[-1] == ("list", USER_ID, 1, 5)

    @pytest.mark.asyncio
    async def test_controls_reuse_last_page_size(self, renderer, backend):
        await renderer.render(USER_ID, 1, 3)
        await renderer.render(USER_ID, 2)
        assert backend.calls[-1] == ("list", USER_ID, 2, 3)

    @pytest.mark.asyncio
    async def test_empty_backend_gives_empty_payload(self, renderer, backend, tracker):
        backend.tasks = []
        payload = await renderer.render(USER_ID)
        assert payload.empty is True
        assert tracker.has_rendered(USER_ID) is True
