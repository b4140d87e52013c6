"""Data models for the declaration index."""

from __future__ import annotations

import hashlib
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class DeclarationKind(str, Enum):
    CLASS = "class"
    METHOD = "method"
    FUNCTION = "function"
    BUILTIN = "builtin"


class Declaration(BaseModel):
    id: str  # e.g. "Calculator.add", "helper", "builtins.exit"
    kind: DeclarationKind
    text: str  # rendered stub shown to the model
    type: str = "python"
    file_path: str = ""
    line_start: int = 0
    docstring: str = ""


class FileChecksum(BaseModel):
    file_path: str
    md5: str

    @staticmethod
    def compute(path: Path, root: Path | None = None) -> FileChecksum:
        content = path.read_bytes()
        rel = str(path.relative_to(root)) if root else str(path)
        return FileChecksum(file_path=rel, md5=hashlib.md5(content).hexdigest())


class DeclarationIndex(BaseModel):
    root_path: str
    declarations: list[Declaration] = Field(default_factory=list)
    checksums: list[FileChecksum] = Field(default_factory=list)

    # Rebuilt on load, not serialized
    _by_key: dict[tuple[DeclarationKind, str], Declaration] = {}

    def model_post_init(self, __context: Any) -> None:
        self._by_key = {(d.kind, d.id): d for d in self.declarations}

    def add(self, declaration: Declaration) -> None:
        self.declarations.append(declaration)
        self._by_key[(declaration.kind, declaration.id)] = declaration

    def get(self, kind: DeclarationKind | str, decl_id: str) -> Declaration | None:
        return self._by_key.get((DeclarationKind(kind), decl_id))

    def of_kind(self, kind: DeclarationKind | str) -> list[Declaration]:
        kind = DeclarationKind(kind)
        return [d for d in self.declarations if d.kind == kind]

    def is_stale(self, root: Path) -> bool:
        """True if any indexed file changed on disk since the index was built."""
        for checksum in self.checksums:
            path = root / checksum.file_path
            if not path.is_file():
                return True
            if FileChecksum.compute(path, root).md5 != checksum.md5:
                return True
        return False
