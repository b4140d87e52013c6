"""Agent base class.

An agent is a class with at least one ``@use`` method::

    class Calculator(Agent):
        @use
        def add(self, a: int, b: int) -> int:
            \"\"\"Add two numbers.\"\"\"
            return a + b

The model sees the declarations of the exported methods, as extracted by
``kotto build``, and calls them by name.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, ClassVar

from kotto.prompts.models import DeclarationKind
from kotto.prompts.scope import Scope
from kotto.registry import CapabilityRegistry, ScopeAdder, exported_name

if TYPE_CHECKING:
    from kotto.template.base import Template


def method_adder(class_name: str, method_name: str, exported_as: str | None = None) -> ScopeAdder:
    def adder(scope: Scope) -> None:
        scope.add_from_id(
            DeclarationKind.METHOD,
            Scope.ident(class_name),
            Scope.ident(method_name),
            exported_as=exported_as,
        )

    return adder


def function_adder(function_name: str, exported_as: str | None = None) -> ScopeAdder:
    def adder(scope: Scope) -> None:
        scope.add_from_id(
            DeclarationKind.FUNCTION, None, Scope.ident(function_name), exported_as=exported_as
        )

    return adder


def default_scope_adder(target: Callable[..., Any], exported_as: str | None = None) -> ScopeAdder:
    """Guess where ``target`` lives in the declaration index from its qualname."""
    qualname = getattr(target, "__qualname__", "") or getattr(target, "__name__", "")
    if "<locals>" in qualname:
        qualname = getattr(target, "__name__", qualname)
    owner, _, member = qualname.rpartition(".")
    if owner:
        return method_adder(owner, member, exported_as)
    return function_adder(member, exported_as)


def _defining_class(cls: type, attr: str) -> str:
    return next(klass.__name__ for klass in cls.__mro__ if attr in vars(klass))


class Agent:
    """Base class for agents.

    Subclasses may set ``template`` to replace the default prompt strategy,
    ``allow_exit = False`` to hide ``builtins.exit`` from the model and
    ``description`` to give the model a task statement.
    """

    template: ClassVar[Template | None] = None
    allow_exit: ClassVar[bool] = True
    description: ClassVar[str | None] = None

    # external name -> (declaring class name, attribute name)
    _exports: ClassVar[dict[str, tuple[str, str]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        exported: dict[str, str] = {}
        for klass in reversed(cls.__mro__):
            for attr, member in vars(klass).items():
                name = exported_name(getattr(member, "__func__", member))
                if name is not None:
                    exported[name] = attr
        # An override without @use stays exported; its own declaration is shown
        cls._exports = {name: (_defining_class(cls, attr), attr) for name, attr in exported.items()}

    @property
    def capabilities(self) -> CapabilityRegistry:
        registry = self.__dict__.get("_capability_registry")
        if registry is None:
            registry = CapabilityRegistry()
            for name, (owner, attr) in self._exports.items():
                registry.register(name, getattr(self, attr), method_adder(owner, attr, name))
            self.__dict__["_capability_registry"] = registry
        return registry

    def register(
        self,
        name: str,
        target: Callable[..., Any],
        scope_adder: ScopeAdder | None = None,
    ) -> None:
        """Expose ``target`` under ``name`` on this instance only."""
        self.capabilities.register(name, target, scope_adder or default_scope_adder(target, name))

    @property
    def agent_name(self) -> str:
        return type(self).__name__


def description(task: str):
    """Class decorator attaching a task description to an agent."""

    def decorate(cls: type[Agent]) -> type[Agent]:
        cls.description = task
        return cls

    return decorate
