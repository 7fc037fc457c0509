from __future__ import annotations

import re
from typing import Optional, Tuple

from .errors import InputInvalidError

PREV_PAGE_PREFIX = "todo_prev_"
NEXT_PAGE_PREFIX = "todo_next_"

_PAGE_CONTROL = re.compile(r"^todo_(?:prev|next)_(\d+)$")


def parse_command_argument(text: str | None) -> str:
    if not text:
        return ""
    parts = text.split(maxsplit=1)
    if len(parts) < 2:
        return ""
    return parts[1].strip()


def parse_positive_int(raw: str, *, label: str) -> int:
    text = (raw or "").strip().lstrip("#")
    if not text.isdecimal():
        raise InputInvalidError(f"{label} must be a positive whole number, got {raw!r}.")
    value = int(text)
    if value < 1:
        raise InputInvalidError(f"{label} must be 1 or greater.")
    return value


def parse_display_number(raw: str) -> int:
    return parse_positive_int(raw, label="Task number")


def parse_list_arguments(text: str | None, *, max_page_size: int) -> Tuple[int, Optional[int]]:
    """Split ``/todo_list [page] [size]`` into a page number and optional size."""
    tokens = parse_command_argument(text).split()
    if len(tokens) > 2:
        raise InputInvalidError("Usage: /todo_list [page] [size]")
    page = parse_positive_int(tokens[0], label="Page") if tokens else 1
    size: Optional[int] = None
    if len(tokens) == 2:
        size = parse_positive_int(tokens[1], label="Page size")
        if size > max_page_size:
            raise InputInvalidError(f"Page size can be at most {max_page_size}.")
    return page, size


def parse_page_control(data: str | None) -> Optional[int]:
    match = _PAGE_CONTROL.match(data or "")
    if not match:
        return None
    page = int(match.group(1))
    return page if page >= 1 else None
