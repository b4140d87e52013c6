"""Scope: the declarations shown to the model in one context prompt."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from kotto.errors import DeclarationNotFound
from kotto.prompts.models import Declaration, DeclarationIndex, DeclarationKind

logger = logging.getLogger(__name__)


class Scope:
    """Accumulates declaration text, in insertion order."""

    def __init__(self, index: DeclarationIndex) -> None:
        self._index = index
        self._declarations: dict[str, Declaration] = {}

    @staticmethod
    def ident(name: str) -> str:
        return name.strip()

    def add_from_id(
        self,
        kind: DeclarationKind | str,
        class_identifier: str | None,
        member_identifier: str,
        exported_as: str | None = None,
    ) -> None:
        """Add the indexed declaration at ``<class>.<member>`` (or ``<member>``).

        ``exported_as`` renames the declaration when the model calls it by a
        different name than the one in the source.
        """
        decl_id = f"{class_identifier}.{member_identifier}" if class_identifier else member_identifier
        declaration = self._index.get(kind, decl_id)
        if declaration is None:
            raise DeclarationNotFound(DeclarationKind(kind).value, decl_id)
        if exported_as and exported_as != member_identifier:
            declaration = declaration.model_copy(
                update={
                    "id": f"{decl_id}@{exported_as}",
                    "text": declaration.text.replace(
                        f"def {member_identifier}(", f"def {exported_as}(", 1
                    ),
                }
            )
        logger.debug("Adding %s '%s' to scope", declaration.kind.value, declaration.id)
        self._declarations.setdefault(declaration.id, declaration)

    def add_node(self, node: Declaration | Mapping[str, Any]) -> None:
        """Add an already rendered declaration, e.g. a built-in."""
        if not isinstance(node, Declaration):
            node = Declaration.model_validate(dict(node))
        self._declarations.setdefault(node.id, node)

    @property
    def declarations(self) -> list[Declaration]:
        return list(self._declarations.values())

    def render(self) -> str:
        return "\n\n".join(d.text for d in self._declarations.values())

    def __len__(self) -> int:
        return len(self._declarations)
