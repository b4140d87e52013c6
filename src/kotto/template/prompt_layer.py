"""Prompt text for the default template, kept in templates/*.txt."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

TEMPLATES_DIR = Path(__file__).parent / "templates"


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Raw text of ``templates/<name>.txt``, with its {placeholders} intact."""
    return (TEMPLATES_DIR / f"{name}.txt").read_text(encoding="utf-8").strip()


def render_prompt(name: str, **kwargs: str) -> str:
    return load_prompt(name).format(**kwargs)
