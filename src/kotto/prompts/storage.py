"""Save/load a DeclarationIndex as JSON."""

from __future__ import annotations

import json
from pathlib import Path

from kotto.config import settings
from kotto.prompts.models import DeclarationIndex

DEFAULT_FILE = "declarations.json"


def default_index_dir(root: Path) -> Path:
    return root / settings.index_dir


def save_index(index: DeclarationIndex, output_dir: Path | None = None) -> Path:
    """Save the index to a JSON file. Returns the output path."""
    out = output_dir or default_index_dir(Path(index.root_path))
    out.mkdir(parents=True, exist_ok=True)
    path = out / DEFAULT_FILE
    path.write_text(index.model_dump_json(indent=2), encoding="utf-8")
    return path


def load_index(index_dir: Path) -> DeclarationIndex:
    path = index_dir / DEFAULT_FILE
    data = json.loads(path.read_text(encoding="utf-8"))
    return DeclarationIndex.model_validate(data)


def index_exists(index_dir: Path) -> bool:
    return (index_dir / DEFAULT_FILE).is_file()
