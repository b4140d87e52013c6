"""Capability registry: the operations an agent exposes to the model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterator

if TYPE_CHECKING:
    from kotto.prompts.scope import Scope

logger = logging.getLogger(__name__)

ScopeAdder = Callable[["Scope"], None]

EXPORT_ATTR = "__kotto_export__"


@dataclass(frozen=True)
class CapabilityDescriptor:
    name: str
    target: Callable[..., Any]
    scope_adder: ScopeAdder


class CapabilityRegistry:
    """Name -> capability mapping, iterated in registration order.

    Registering a name twice replaces the first registration.
    """

    def __init__(self) -> None:
        self._capabilities: dict[str, CapabilityDescriptor] = {}

    def register(self, name: str, target: Callable[..., Any], scope_adder: ScopeAdder) -> None:
        if name in self._capabilities:
            logger.debug("Replacing capability '%s'", name)
        self._capabilities[name] = CapabilityDescriptor(name, target, scope_adder)

    def get(self, name: str) -> CapabilityDescriptor | None:
        return self._capabilities.get(name)

    def names(self) -> list[str]:
        return list(self._capabilities)

    def __iter__(self) -> Iterator[CapabilityDescriptor]:
        return iter(list(self._capabilities.values()))

    def __contains__(self, name: object) -> bool:
        return name in self._capabilities

    def __len__(self) -> int:
        return len(self._capabilities)


def use(func: Callable[..., Any] | None = None, *, name: str | None = None):
    """Expose a method to the model.

    Use bare (``@use``) to export under the method name, or
    ``@use(name="other")`` to pick the external name.
    """

    def mark(f: Callable[..., Any]) -> Callable[..., Any]:
        setattr(f, EXPORT_ATTR, name or f.__name__)
        return f

    if func is not None:
        return mark(func)
    return mark


def exported_name(member: Any) -> str | None:
    return getattr(member, EXPORT_ATTR, None)
