from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class PromptSpec:
    name: str
    template: str
    placeholder: str

    def render(self, value: str) -> str:
        if self.placeholder not in self.template:
            return f"{self.template}\n\n{value}"
        return self.template.replace(self.placeholder, value)


def load_prompt_text(path: Path) -> str:
    if not path.exists():
        raise FileNotFoundError(f"Prompt template not found: {path}")
    return path.read_text(encoding="utf-8").strip()
