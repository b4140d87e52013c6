"""Declaration index: what the model is told about an agent's capabilities."""

from __future__ import annotations

import logging
from pathlib import Path

from kotto.prompts.builder import DeclarationBuilder
from kotto.prompts.models import Declaration, DeclarationIndex, DeclarationKind
from kotto.prompts.parser import parse_source
from kotto.prompts.scope import Scope
from kotto.prompts.storage import default_index_dir, index_exists, load_index, save_index

logger = logging.getLogger(__name__)


class Prompts:
    """A loaded declaration index that hands out scopes."""

    def __init__(self, index: DeclarationIndex) -> None:
        self.index = index

    def new_scope(self) -> Scope:
        return Scope(self.index)

    @classmethod
    def load(cls, index_dir: Path) -> Prompts:
        return cls(load_index(index_dir))

    @classmethod
    def from_source(cls, source: Path) -> Prompts:
        """Extract declarations in memory, without writing an index."""
        return cls(DeclarationBuilder(source).build())

    @classmethod
    def from_string(cls, source: str, file_path: str = "<string>") -> Prompts:
        index = DeclarationIndex(root_path=".", declarations=parse_source(source, file_path))
        return cls(index)

    @classmethod
    def build(cls, source: Path, work_dir: Path | None = None) -> Path:
        """Extract declarations from ``source`` and write the index. Returns its path."""
        index = DeclarationBuilder(source).build()
        return save_index(index, work_dir)

    @classmethod
    def for_source(cls, source: Path, index_dir: Path | None = None) -> Prompts:
        """Load the index for ``source``, rebuilding it in memory if missing or stale."""
        source = source.resolve()
        root = source if source.is_dir() else source.parent
        idx = index_dir or default_index_dir(root)
        if index_exists(idx):
            prompts = cls.load(idx)
            if not prompts.index.is_stale(Path(prompts.index.root_path)):
                return prompts
            logger.warning("Declaration index %s is stale, re-extracting in memory", idx)
        return cls.from_source(source)


__all__ = [
    "Declaration",
    "DeclarationBuilder",
    "DeclarationIndex",
    "DeclarationKind",
    "Prompts",
    "Scope",
    "load_index",
    "save_index",
]
