"""Tests for the AgentController tick loop."""

from __future__ import annotations

import asyncio

import pytest

from helpers import call
from kotto import Exited, Feedback, Internal, NotAFunction, Pending
from kotto.agent import method_adder
from kotto.controller import AgentController
from kotto.errors import DeclarationNotFound
from kotto.template import Naive
from sample_agents import Calculator, Quiet, ScientificCalculator, Subtracting


def tick(controller, pending=None):
    return asyncio.run(controller.tick(pending))


def run(controller):
    return asyncio.run(controller.run_to_completion())


# ---------------------------------------------------------------------------
# Success path
# ---------------------------------------------------------------------------

class TestSuccess:
    def test_add_dispatches_and_records_output(self, make_controller):
        controller, llm = make_controller([call("add", 2, 3), call("builtins.exit")])

        result = tick(controller)

        assert result == Pending(role="user", prompt=None)
        assert len(controller.history) == 1
        assert controller.history[0].call.name == "add"
        assert controller.history[0].output == 5
        assert controller.retries == 0

        tick(controller, result)
        assert llm.received[1] == [{"role": "user", "content": Naive().render_output(5)}]

    def test_first_message_is_the_context(self, make_controller):
        controller, llm = make_controller([call("builtins.exit")])
        tick(controller)

        [message] = llm.received[0]
        assert message["role"] == "user"
        assert "def add(a: int, b: int) -> int:" in message["content"]
        assert "async def double(x: int) -> int:" in message["content"]
        assert "builtins.exit" in message["content"]
        assert "def helper" not in message["content"]

    def test_context_lists_capabilities_in_registration_order(self, make_controller):
        controller, llm = make_controller([call("builtins.exit")])
        tick(controller)
        content = llm.received[0][0]["content"]
        assert content.index("def add(") < content.index("def double(") < content.index("def explode(")
        assert content.index("def finish(") < content.index("builtins.exit")

    def test_inherited_and_renamed_exports(self, make_controller):
        controller, llm = make_controller(
            [call("pow", 3), call("add", 1, 1), call("builtins.exit")],
            agent=ScientificCalculator(),
        )
        assert run(controller) is None
        assert [a.output for a in controller.history] == [9, 2]
        content = llm.received[0][0]["content"]
        assert "def pow(base: float, exponent: float=2) -> float:" in content
        assert "def power(" not in content
        assert "def add(a: int, b: int) -> int:" in content

    def test_unmarked_override_shows_its_own_signature(self, make_controller):
        controller, llm = make_controller([call("add", 5, 3, 1)], agent=Subtracting())
        tick(controller)
        assert "def add(a: int, b: int, c: int=0) -> int:" in llm.received[0][0]["content"]
        assert controller.history[0].output == 1

    def test_async_capability_is_awaited(self, make_controller):
        controller, _ = make_controller([call("double", 21)])
        tick(controller)
        assert controller.history[0].output == 42

    def test_history_grows_by_one_per_success(self, make_controller):
        replies = [call("add", i, i) for i in range(4)]
        controller, _ = make_controller(replies)
        pending = None
        for expected in range(1, 5):
            pending = tick(controller, pending)
            assert len(controller.history) == expected
            assert controller.retries == 0

    def test_reasoning_is_optional(self, make_controller):
        controller, _ = make_controller([call("add", 1, 2, reasoning="because")])
        tick(controller)
        assert controller.history[0].call.reasoning == "because"

    def test_sync_model_client(self, prompts):
        class SyncModel:
            def complete(self, messages):
                return call("builtins.exit", "done")

        controller = AgentController(Calculator(), prompts, SyncModel())
        assert run(controller) == "done"


# ---------------------------------------------------------------------------
# Built-ins
# ---------------------------------------------------------------------------

class TestBuiltins:
    def test_exit_without_arguments(self, make_controller):
        controller, _ = make_controller([call("builtins.exit")])
        assert tick(controller) == Exited(output=None)
        assert controller.exited

    def test_exit_with_value(self, make_controller):
        controller, _ = make_controller([call("builtins.exit", {"answer": 42})])
        assert tick(controller) == Exited(output={"answer": 42})

    def test_exit_with_two_arguments_is_feedback(self, make_controller):
        controller, _ = make_controller([call("builtins.exit", 1, 2)])
        result = tick(controller)
        assert result.role == "system"
        assert "at most 1 argument" in result.prompt
        assert controller.retries == 1

    def test_unknown_builtin_is_internal_even_with_fresh_budget(self, make_controller):
        controller, _ = make_controller([call("builtins.launch")])
        assert controller.retries == 0
        with pytest.raises(Internal, match="unknown builtin 'launch'"):
            tick(controller)

    def test_no_ticks_after_exit(self, make_controller):
        controller, _ = make_controller([call("builtins.exit", 1)])
        assert run(controller) == 1
        with pytest.raises(Internal):
            tick(controller)

    def test_capability_may_raise_exit(self, make_controller):
        controller, _ = make_controller([call("finish", [1, 2])])
        assert run(controller) == [1, 2]

    def test_exit_hidden_when_not_allowed(self, make_controller):
        controller, llm = make_controller([call("builtins.exit")], agent=Quiet())
        result = tick(controller)
        assert "builtins.exit" not in llm.received[0][0]["content"]
        assert result.prompt == "builtins.exit is not a function"

    def test_allow_exit_argument_overrides_agent(self, make_controller):
        controller, llm = make_controller([call("builtins.exit")], allow_exit=False)
        tick(controller)
        assert "builtins.exit" not in llm.received[0][0]["content"]


# ---------------------------------------------------------------------------
# Recoverable failures
# ---------------------------------------------------------------------------

class TestRecoverable:
    def test_malformed_reply(self, make_controller):
        controller, llm = make_controller(["sure, let me add those", call("builtins.exit")])

        result = tick(controller)

        assert isinstance(result, Pending)
        assert result.role == "system"
        assert "could not extract JSON from your response" in result.prompt
        assert '"arguments"' in result.prompt
        assert controller.retries == 1
        assert controller.history == []

        tick(controller, result)
        assert llm.received[1] == [{"role": "system", "content": result.prompt}]

    def test_unregistered_capability_is_feedback(self, make_controller):
        controller, _ = make_controller([call("subtract", 3, 1)])
        result = tick(controller)
        assert result == Pending(role="system", prompt="subtract is not a function")
        assert controller.retries == 1

    def test_non_callable_target_is_feedback(self, make_controller):
        agent = Calculator()
        agent.register("answer", 42, scope_adder=lambda scope: None)
        controller, _ = make_controller([call("answer")], agent=agent)
        result = tick(controller)
        assert result.prompt == "answer is not a function"

    def test_wrong_arity_is_feedback(self, make_controller):
        controller, _ = make_controller([call("add", 1)])
        result = tick(controller)
        assert result.role == "system"
        assert "bad arguments for add" in result.prompt
        assert controller.history == []

    def test_capability_failure_renders_error(self, make_controller):
        controller, _ = make_controller([call("explode")])
        result = tick(controller)
        assert result.role == "system"
        assert "RuntimeError: boom" in result.prompt
        assert '"arguments"' in result.prompt
        assert controller.retries == 1

    def test_model_failure_is_retried(self, prompts):
        class Flaky:
            def __init__(self):
                self.calls = 0

            async def complete(self, messages):
                self.calls += 1
                if self.calls == 1:
                    raise ConnectionError("backend down")
                return call("builtins.exit", "ok")

        controller = AgentController(Calculator(), prompts, Flaky())
        result = tick(controller)
        assert "ConnectionError: backend down" in result.prompt
        assert tick(controller, result) == Exited(output="ok")

    def test_success_resets_retries(self, make_controller):
        controller, _ = make_controller(["nope", "still nope", call("add", 1, 1)])
        pending = tick(controller)
        pending = tick(controller, pending)
        assert controller.retries == 2
        tick(controller, pending)
        assert controller.retries == 0

    def test_fewer_failures_than_budget_keep_going(self, make_controller):
        replies = ["garbage"] * 5 + [call("builtins.exit", "made it")]
        controller, _ = make_controller(replies, max_retries=5)
        assert run(controller) == "made it"

    def test_budget_exhaustion_raises(self, make_controller):
        controller, llm = make_controller(["garbage"] * 6, max_retries=5)
        with pytest.raises(Feedback, match="could not extract JSON"):
            run(controller)
        assert len(llm.received) == 6
        assert controller.retries == 5

    def test_budget_exhaustion_reraises_unclassified_error_unmodified(self, make_controller):
        controller, _ = make_controller([call("explode")] * 3, max_retries=2)
        with pytest.raises(RuntimeError, match="^boom$"):
            run(controller)

    def test_budget_is_shared_between_feedback_and_errors(self, make_controller):
        controller, _ = make_controller(["garbage", call("explode"), call("nope")], max_retries=2)
        with pytest.raises(NotAFunction):
            run(controller)


# ---------------------------------------------------------------------------
# Aborting failures
# ---------------------------------------------------------------------------

class TestAborting:
    def test_interrupt_reraises_inner_error(self, make_controller):
        controller, _ = make_controller([call("abort")])
        with pytest.raises(KeyError, match="stop"):
            tick(controller)

    def test_missing_declaration_is_internal(self, make_controller):
        agent = Calculator()
        agent.register("ghost", agent.helper, scope_adder=method_adder("Ghost", "haunt"))
        controller, _ = make_controller([call("builtins.exit")], agent=agent)
        with pytest.raises(DeclarationNotFound):
            tick(controller)

    def test_cancellation_aborts(self, prompts):
        class Cancelled:
            async def complete(self, messages):
                raise asyncio.CancelledError()

        controller = AgentController(Calculator(), prompts, Cancelled())
        with pytest.raises(asyncio.CancelledError):
            tick(controller)
        assert controller.retries == 0


def test_agent_template_is_used(make_controller):
    class Shouting(Naive):
        def render_output(self, output):
            return f"RESULT: {output}"

    class LoudCalculator(Calculator):
        template = Shouting()

    controller, llm = make_controller([call("add", 1, 2), call("builtins.exit")], agent=LoudCalculator())
    run(controller)
    assert llm.received[1][0]["content"] == "RESULT: 3"
