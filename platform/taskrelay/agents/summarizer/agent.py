from __future__ import annotations

from pathlib import Path

from ..base import PromptSpec, load_prompt_text

PROMPT_PATH = Path(__file__).with_name("prompt.txt")
PLACEHOLDER = "<<<TEXT>>>"


def get_prompt_spec() -> PromptSpec:
    return PromptSpec(
        name="Summarizer",
        template=load_prompt_text(PROMPT_PATH),
        placeholder=PLACEHOLDER,
    )


def build_prompt(text: str) -> str:
    return get_prompt_spec().render(text.strip())
