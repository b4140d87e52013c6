"""kotto: let a language model drive your Python program."""

from kotto.agent import Agent, description
from kotto.controller import AgentController
from kotto.errors import Exit, Feedback, Internal, Interrupt, NotAFunction, ParseError
from kotto.llm import ModelClient, OpenAIChatCompletion, StaticModel
from kotto.log import configure_logging, get_log_level, set_log_level
from kotto.models import Action, Exited, FunctionCall, Pending
from kotto.prompts import Prompts, Scope
from kotto.registry import CapabilityRegistry, use
from kotto.runner import make_controller, run, run_sync
from kotto.template import Naive, Template

__all__ = [
    "Action",
    "Agent",
    "AgentController",
    "CapabilityRegistry",
    "Exit",
    "Exited",
    "Feedback",
    "FunctionCall",
    "Internal",
    "Interrupt",
    "ModelClient",
    "Naive",
    "NotAFunction",
    "OpenAIChatCompletion",
    "ParseError",
    "Pending",
    "Prompts",
    "Scope",
    "StaticModel",
    "Template",
    "configure_logging",
    "description",
    "get_log_level",
    "make_controller",
    "run",
    "run_sync",
    "set_log_level",
    "use",
]
