"""Scan Python sources and build a DeclarationIndex."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path

from kotto.prompts.models import DeclarationIndex, FileChecksum
from kotto.prompts.parser import parse_file

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_PATTERNS = [
    "__pycache__",
    ".git",
    ".venv",
    "venv",
    ".tox",
    "*.egg-info",
    ".kotto",
]


class DeclarationBuilder:
    """Builds a DeclarationIndex from a Python file or a directory of them."""

    def __init__(self, source: Path, exclude_patterns: list[str] | None = None) -> None:
        source = source.resolve()
        self.source = source
        self.root_path = source if source.is_dir() else source.parent
        self.exclude_patterns = exclude_patterns or DEFAULT_EXCLUDE_PATTERNS

    def build(self) -> DeclarationIndex:
        files = self._scan_files()
        logger.info("Scanned %d files", len(files))
        index = DeclarationIndex(root_path=str(self.root_path))
        for i, f in enumerate(files, 1):
            logger.info("[%d/%d] Parsing %s", i, len(files), f.relative_to(self.root_path))
            for declaration in parse_file(f, self.root_path):
                index.add(declaration)
            index.checksums.append(FileChecksum.compute(f, self.root_path))
        logger.info("Extracted %d declarations", len(index.declarations))
        return index

    def _scan_files(self) -> list[Path]:
        if self.source.is_file():
            return [self.source]
        files = []
        for f in self.root_path.rglob("*.py"):
            rel = str(f.relative_to(self.root_path))
            if any(
                fnmatch.fnmatch(rel, pat)
                or any(fnmatch.fnmatch(part, pat) for part in f.relative_to(self.root_path).parts)
                for pat in self.exclude_patterns
            ):
                continue
            files.append(f)
        return sorted(files)
