from __future__ import annotations

from .base import PromptSpec, load_prompt_text
from .summarizer.agent import build_prompt as build_summary_prompt
from .summarizer.agent import get_prompt_spec as get_summary_prompt_spec

__all__ = [
    "PromptSpec",
    "build_summary_prompt",
    "get_summary_prompt_spec",
    "load_prompt_text",
]
