"""Tests for PaginationTracker display numbering and resolution."""
import pytest

from conftest import USER_ID, make_tasks
from taskrelay.backend import Err
from taskrelay.errors import BackendRequestError, ErrorKind, ResolutionNotFoundError, StateNotFoundError
from taskrelay.pagination import display_number


class TestDisplayNumber:
    def test_first_page_starts_at_one(self):
        assert display_number(0, 1, 5) == 1
        assert display_number(4, 1, 5) == 5

    def test_later_pages_continue_numbering(self):
        assert display_number(0, 2, 5) == 6
        assert display_number(2, 3, 10) == 23

    @pytest.mark.parametrize("page_size", [1, 3, 5, 7])
    def test_pages_never_overlap(self, page_size):
        total = 20
        seen = set()
        pages = -(-total // page_size)
        for page in range(1, pages + 1):
            rows = min(page_size, total - (page - 1) * page_size)
            numbers = {display_number(row, page, page_size) for row in range(rows)}
            expected = set(range((page - 1) * page_size + 1, min(page * page_size, total) + 1))
            assert numbers == expected
            assert not numbers & seen
            seen |= numbers


class TestRender:
    @pytest.mark.asyncio
    async def test_render_builds_mapping_and_page(self, tracker, store):
        task_page = await tracker.render(USER_ID, 2, 5)

        state = store.get_pagination(USER_ID)
        assert state.current_page == 2
        assert state.page_size == 5
        assert sorted(state.display_index) == [6, 7]
        assert [task.task_id for task in task_page.tasks] == ["t6", "t7"]

    @pytest.mark.asyncio
    async def test_render_replaces_previous_mapping(self, tracker, store):
        await tracker.render(USER_ID, 1, 5)
        await tracker.render(USER_ID, 2, 5)

        assert sorted(store.get_pagination(USER_ID).display_index) == [6, 7]

    @pytest.mark.asyncio
    async def test_empty_page_still_replaces_mapping(self, tracker, store, backend):
        await tracker.render(USER_ID, 1, 5)
        backend.tasks = []

        await tracker.render(USER_ID, 1, 5)

        state = store.get_pagination(USER_ID)
        assert state.display_index == {}

    @pytest.mark.asyncio
    async def test_failed_render_leaves_state_unchanged(self, tracker, store, backend):
        await tracker.render(USER_ID, 1, 5)
        backend.list_error = Err("down", kind=ErrorKind.BACKEND_UNAVAILABLE)

        with pytest.raises(BackendRequestError) as excinfo:
            await tracker.render(USER_ID, 2, 5)

        assert excinfo.value.kind is ErrorKind.BACKEND_UNAVAILABLE
        state = store.get_pagination(USER_ID)
        assert state.current_page == 1
        assert sorted(state.display_index) == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_users_have_independent_mappings(self, tracker, store):
        await tracker.render(USER_ID, 2, 5)
        await tracker.render(7, 1, 5)

        assert sorted(store.get_pagination(USER_ID).display_index) == [6, 7]
        assert sorted(store.get_pagination(7).display_index) == [1, 2, 3, 4, 5]


class TestResolve:
    def test_no_render_raises_state_not_found(self, tracker):
        with pytest.raises(StateNotFoundError):
            tracker.resolve(USER_ID, 1)

    @pytest.mark.asyncio
    async def test_resolve_returns_backend_id(self, tracker):
        await tracker.render(USER_ID, 2, 5)
        assert tracker.resolve(USER_ID, 6) == "t6"
        assert tracker.lookup(USER_ID, 7).title == "Task 7"

    @pytest.mark.asyncio
    async def test_number_from_earlier_render_is_not_found(self, tracker):
        await tracker.render(USER_ID, 1, 5)
        assert tracker.resolve(USER_ID, 3) == "t3"

        await tracker.render(USER_ID, 2, 5)

        with pytest.raises(ResolutionNotFoundError) as excinfo:
            tracker.resolve(USER_ID, 3)
        assert excinfo.value.display_number == 3

    @pytest.mark.asyncio
    async def test_has_rendered_and_current_page(self, tracker, backend):
        backend.tasks = make_tasks(12)
        assert tracker.has_rendered(USER_ID) is False
        assert tracker.current_page(USER_ID) is None

        await tracker.render(USER_ID, 3, 4)

        assert tracker.has_rendered(USER_ID) is True
        assert tracker.current_page(USER_ID) == 3
        assert tracker.last_page_size(USER_ID) == 4
