"""Abstract base class for prompt templates."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from kotto.models import FunctionCall
from kotto.prompts.scope import Scope


class Template(ABC):
    """How the controller talks to the model.

    Implementations must be stateless: the controller may call any method at
    any time and in any order.
    """

    @abstractmethod
    def render_context(self, scope: Scope, description: str | None = None) -> str:
        """Render the first message of a run: conventions, declarations, reply shape."""

    @abstractmethod
    def render_output(self, output: Any) -> str:
        """Render a capability's return value as the next user message."""

    @abstractmethod
    def render_error(self, error: BaseException) -> str:
        """Render an error as a system message asking for a corrected reply."""

    @abstractmethod
    def parse_response(self, raw: str) -> FunctionCall:
        """Parse the model's reply. Raises ``ParseError`` if it is not a call."""
