"""Error taxonomy for the agent loop.

``Feedback`` is the model's fault and gets turned into a corrective prompt.
``Interrupt`` carries an application error out of the loop untouched.
``Internal`` is a defect in kotto itself. ``Exit`` is not an error at all:
it carries the run's final output.
"""

from __future__ import annotations

from typing import Any


class KottoError(Exception):
    """Base class for all kotto errors."""


class Feedback(KottoError):
    """The model produced a call that cannot be executed.

    The message is sent back to the model verbatim as a system prompt.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotAFunction(Feedback, TypeError):
    """The model asked for a capability that does not exist or is not callable."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} is not a function")
        self.name = name


class Interrupt(KottoError):
    """Wraps an application error that must abort the run."""

    def __init__(self, inner_error: BaseException) -> None:
        super().__init__(str(inner_error))
        self.inner_error = inner_error


class Internal(KottoError):
    """Something that should not happen."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class DeclarationNotFound(Internal):
    def __init__(self, kind: str, decl_id: str) -> None:
        super().__init__(
            f"no {kind} declaration '{decl_id}' in the index; "
            "rebuild it with `kotto build`"
        )
        self.kind = kind
        self.decl_id = decl_id


class Exit(KottoError):
    """Raised by ``builtins.exit``; ends the run with ``output``."""

    def __init__(self, output: Any = None) -> None:
        super().__init__("exit")
        self.output = output


class ParseError(KottoError, ValueError):
    """The model's reply is not a well-formed call."""
