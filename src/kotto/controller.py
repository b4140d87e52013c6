"""The agent controller: a resumable tick loop between a model and an agent.

Each tick sends one message to the model, parses the reply into a call and
dispatches it. Mistakes by the model (``Feedback``) and failures inside
capabilities are turned into corrective prompts until ``max_retries``
consecutive failures have been absorbed; after that the next failure
propagates. ``Interrupt`` and ``Internal`` always propagate. ``Exit`` ends
the run.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any

from kotto.agent import Agent
from kotto.config import settings
from kotto.errors import Exit, Feedback, Internal, Interrupt, NotAFunction
from kotto.llm import ModelClient
from kotto.log import logger as trace
from kotto.models import Action, Exited, Message, Pending, Role
from kotto.prompts import Prompts
from kotto.prompts.models import Declaration, DeclarationKind
from kotto.registry import CapabilityDescriptor
from kotto.template import Naive, Template

logger = logging.getLogger(__name__)

BUILTINS_PREFIX = "builtins."

EXIT_DECLARATION = Declaration(
    id="builtins.exit",
    kind=DeclarationKind.BUILTIN,
    text=(
        "def builtins.exit(output: Any = None) -> NoReturn:\n"
        '    """Finish the task. `output`, if given, is the result of the whole run."""\n'
        "    ..."
    ),
)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class AgentController:
    """Drives one agent to completion. Not safe to share between tasks."""

    def __init__(
        self,
        agent: Agent,
        prompts: Prompts,
        llm: ModelClient,
        allow_exit: bool | None = None,
        max_retries: int | None = None,
        template: Template | None = None,
    ) -> None:
        self.agent = agent
        self.prompts = prompts
        self.llm = llm
        self.capabilities = agent.capabilities
        self.template: Template = template or agent.template or Naive()
        if allow_exit is None:
            allow_exit = agent.allow_exit and settings.allow_exit
        self.allow_exit = allow_exit
        self.max_retries = settings.max_retries if max_retries is None else max_retries
        self.retries = 0
        self.history: list[Action] = []
        self._exited = False

    @property
    def exited(self) -> bool:
        return self._exited

    def render_context(self) -> str:
        scope = self.prompts.new_scope()
        for descriptor in self.capabilities:
            logger.debug("Adding '%s' to scope", descriptor.name)
            descriptor.scope_adder(scope)
        if self.allow_exit:
            scope.add_node(EXIT_DECLARATION)
        return self.template.render_context(scope, self.agent.description)

    def handle_builtin(self, action: Action) -> None:
        builtin = action.call.name[len(BUILTINS_PREFIX):]
        if builtin != "exit":
            raise Internal(f"unknown builtin '{builtin}'")
        if not self.allow_exit:
            raise NotAFunction(action.call.name)

        args = action.call.arguments
        if len(args) > 1:
            raise Feedback(f"builtins.exit takes at most 1 argument ({len(args)} given)")
        raise Exit(args[0] if args else None)

    def _check_arguments(self, descriptor: CapabilityDescriptor, args: list[Any]) -> None:
        try:
            signature = inspect.signature(descriptor.target)
        except (TypeError, ValueError):
            return
        try:
            signature.bind(*args)
        except TypeError as e:
            raise Feedback(f"bad arguments for {descriptor.name}{signature}: {e}") from e

    async def do_action(self, action: Action) -> None:
        name = action.call.name
        if name.startswith(BUILTINS_PREFIX):
            return self.handle_builtin(action)

        descriptor = self.capabilities.get(name)
        if descriptor is None or not callable(descriptor.target):
            raise NotAFunction(name)

        args = action.call.arguments
        self._check_arguments(descriptor, args)

        trace.calls(name, args)
        output = await _resolve(descriptor.target(*args))
        trace.returns(output)

        action.output = output
        self.history.append(action)

    async def complete(self, prompt: str | None = None, role: Role = "system") -> None:
        if prompt is None:
            if not self.history:
                prompt = self.render_context()
            else:
                prompt = self.template.render_output(self.history[-1].output)

        message = Message(role=role, content=prompt)
        completion = await _resolve(self.llm.complete([message.model_dump()]))

        try:
            call = self.template.parse_response(completion)
        except ValueError as e:
            raise Feedback(self.template.render_error(e)) from e

        trace.thought(call.reasoning or "(no reasoning given)")

        await self.do_action(Action(call=call))

    async def tick(self, pending: Pending | None = None) -> Pending | Exited:
        if self._exited:
            raise Internal("tick() called on a controller that has already exited")
        pending = pending or Pending()

        try:
            await self.complete(pending.prompt, pending.role)
        except Exit as e:
            trace.exit(e)
            self._exited = True
            return Exited(output=e.output)
        except Interrupt as e:
            trace.interrupt(e)
            raise e.inner_error
        except Internal:
            raise
        except Feedback as e:
            if self.retries >= self.max_retries:
                raise
            trace.feedback(e)
            self.retries += 1
            return Pending(role="system", prompt=e.message)
        except asyncio.CancelledError as e:
            trace.interrupt(e)
            raise
        except Exception as e:
            if self.retries >= self.max_retries:
                raise
            trace.error(e)
            self.retries += 1
            return Pending(role="system", prompt=self.template.render_error(e))

        self.retries = 0
        return Pending(role="user")

    async def run_to_completion(self) -> Any:
        result: Pending | Exited = Pending()
        while True:
            result = await self.tick(result)
            if isinstance(result, Exited):
                return result.output
