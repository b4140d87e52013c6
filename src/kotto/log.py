"""Trace logging for the agent loop.

Every event in a run (calls, returns, feedback, exits, the model's reasoning)
is logged at DEBUG on the ``kotto.trace`` logger as rich markup. The
verbosity is process-wide: ``set_log_level("trace")`` shows the events,
``set_log_level("quiet")`` hides them.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from kotto.errors import Exit, Feedback, Interrupt

ROOT_LOGGER = "kotto"
TRACE_LOGGER = "kotto.trace"

STRINGIFIED_MAX_LENGTH = 76
HEADER_WIDTH = 5


class LogLevel(str, Enum):
    TRACE = "trace"
    QUIET = "quiet"


_LEVELS = {
    LogLevel.TRACE: logging.DEBUG,
    LogLevel.QUIET: logging.WARNING,
}

console = Console(stderr=True)

logging.getLogger(ROOT_LOGGER).setLevel(_LEVELS[LogLevel.QUIET])


def configure_logging(level: LogLevel | str | None = None) -> None:
    """Attach a rich handler to the ``kotto`` logger. Safe to call twice."""
    root = logging.getLogger(ROOT_LOGGER)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(
            console=console,
            show_time=False,
            show_path=False,
            markup=True,
            rich_tracebacks=True,
        )
        root.addHandler(handler)
    if level is not None:
        set_log_level(level)


def set_log_level(level: LogLevel | str) -> None:
    """Set the process-wide log level."""
    logging.getLogger(ROOT_LOGGER).setLevel(_LEVELS[LogLevel(level)])


def get_log_level() -> LogLevel:
    """Get the current log level."""
    if logging.getLogger(ROOT_LOGGER).isEnabledFor(logging.DEBUG):
        return LogLevel.TRACE
    return LogLevel.QUIET


def stringify(value: Any, max_length: int = STRINGIFIED_MAX_LENGTH) -> str:
    if value is None:
        return "null"
    try:
        text = json.dumps(value, default=str)
    except (TypeError, ValueError):
        text = repr(value)
    if len(text) > max_length:
        text = text[:max_length].rstrip() + "..."
    return text


class AgentLogger:
    """Renders agent loop events."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(TRACE_LOGGER)

    def trace(self, header: str = "", message: str = "", style: str = "bold") -> None:
        if not self._logger.isEnabledFor(logging.DEBUG):
            return
        padded = header.rjust(HEADER_WIDTH)
        self._logger.debug(f"[dim]trace:[/] [{style}]{escape(padded)}[/] {message}")

    def arrowed(self, color: str, header: str, message: str) -> None:
        self.trace("⮑", f"[bold {color}]{escape(header)}[/] {message}", style=color)

    def calls(self, name: str, args: list[Any]) -> None:
        pretty_args = ", ".join(f"[dim]{escape(stringify(a))}[/]" for a in args)
        self.trace("call", f"[bold cyan]{escape(name)}[/]({pretty_args})")

    def returns(self, value: Any) -> None:
        self.arrowed("magenta", "returns", f"[dim]{escape(stringify(value))}[/]")

    def feedback(self, err: Feedback) -> None:
        self.arrowed("green", "feedback", escape(err.message))

    def interrupt(self, err: Interrupt | BaseException) -> None:
        inner = err.inner_error if isinstance(err, Interrupt) else err
        self.trace("throw", f"[dim]{escape(stringify(repr(inner)))}[/]", style="yellow")

    def error(self, err: BaseException) -> None:
        self.trace("error", escape(f"{type(err).__name__}: {err}"), style="red")

    def exit(self, err: Exit) -> None:
        self.trace("exit", f"[dim]{escape(stringify(err.output))}[/]", style="green")

    def thought(self, message: str) -> None:
        self.trace("╭", f"[bright_black]{escape(message)}[/]", style="bright_black")


logger = AgentLogger()


def eprint(message: str = "", header: str = "kotto", color: str = "cyan") -> None:
    console.print(f"[{color}]{header}[/]: {escape(message)}")


def error(message: str) -> None:
    eprint(message, "[bold]error[/]", "red")
