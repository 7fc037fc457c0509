"""Tests for command argument and page control parsing."""
import pytest

from taskrelay.errors import ErrorKind, InputInvalidError
from taskrelay.parsing import (
    parse_command_argument,
    parse_display_number,
    parse_list_arguments,
    parse_page_control,
)


def test_parse_command_argument():
    assert parse_command_argument("/summarize  some long text ") == "some long text"
    assert parse_command_argument("/todo_list") == ""
    assert parse_command_argument(None) == ""


class TestDisplayNumber:
    def test_accepts_plain_and_hash_prefixed(self):
        assert parse_display_number("3") == 3
        assert parse_display_number("#12") == 12

    @pytest.mark.parametrize("raw", ["abc", "-1", "0", "1.5", "", "²"])
    def test_rejects_invalid(self, raw):
        with pytest.raises(InputInvalidError) as excinfo:
            parse_display_number(raw)
        assert excinfo.value.kind is ErrorKind.INPUT_INVALID


class TestListArguments:
    def test_defaults(self):
        assert parse_list_arguments("/todo_list", max_page_size=50) == (1, None)

    def test_page_and_size(self):
        assert parse_list_arguments("/todo_list 3 10", max_page_size=50) == (3, 10)

    def test_size_above_limit(self):
        with pytest.raises(InputInvalidError):
            parse_list_arguments("/todo_list 1 99", max_page_size=50)

    def test_too_many_arguments(self):
        with pytest.raises(InputInvalidError):
            parse_list_arguments("/todo_list 1 2 3", max_page_size=50)

    def test_non_decimal_digits_are_rejected(self):
        with pytest.raises(InputInvalidError):
            parse_list_arguments("/todo_list ²", max_page_size=50)


class TestPageControl:
    def test_prev_and_next(self):
        assert parse_page_control("todo_prev_1") == 1
        assert parse_page_control("todo_next_12") == 12

    @pytest.mark.parametrize("data", [None, "", "todo_next_", "todo_next_x", "todo_next_0", "menu:tasks"])
    def test_rejects_other_data(self, data):
        assert parse_page_control(data) is None
