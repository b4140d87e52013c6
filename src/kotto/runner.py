"""Entry points: load an agent from a module and run it to completion."""

from __future__ import annotations

import asyncio
import importlib
import importlib.util
import logging
import sys
from dataclasses import replace
from pathlib import Path
from types import ModuleType
from typing import Any

from kotto.agent import Agent
from kotto.config import get_model_config
from kotto.controller import AgentController
from kotto.errors import Internal
from kotto.llm import ModelClient, OpenAIChatCompletion
from kotto.prompts import Prompts

logger = logging.getLogger(__name__)

DEFAULT_FACTORY = "create_agent"


def import_source(source: str | Path) -> ModuleType:
    """Import a ``.py`` file by path, or a module by dotted name."""
    path = Path(source)
    if path.suffix == ".py":
        path = path.resolve()
        if not path.is_file():
            raise FileNotFoundError(f"no such file: {path}")
        module_name = f"kotto_agent_{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"cannot import {path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        spec.loader.exec_module(module)
        return module
    return importlib.import_module(str(source))


def source_path(module: ModuleType) -> Path:
    file = getattr(module, "__file__", None)
    if file is None:
        raise Internal(f"module {module.__name__} has no source file to extract declarations from")
    path = Path(file)
    # Packages are indexed as a whole
    if path.name == "__init__.py":
        return path.parent
    return path


def load_agent(
    module: ModuleType,
    factory: str = DEFAULT_FACTORY,
    options: dict[str, Any] | None = None,
) -> Agent:
    make = getattr(module, factory, None)
    if make is None:
        raise Internal(
            f"module {module.__name__} has no `{factory}` factory\n\n"
            "try adding:\n\n"
            f"    def {factory}():\n"
            "        return MyAgent()"
        )
    agent = make(**(options or {}))
    if not isinstance(agent, Agent):
        raise Internal(f"`{factory}` returned {type(agent).__name__}, not an Agent")
    return agent


def default_llm(agent_name: str = "", model: str | None = None) -> OpenAIChatCompletion:
    """A live client configured from ``models.yaml`` for ``agent_name``."""
    config = get_model_config(agent_name)
    if model:
        config = replace(config, model=model)
    return OpenAIChatCompletion(config)


def make_controller(
    source: str | Path,
    prompts: Prompts | None = None,
    llm: ModelClient | None = None,
    options: dict[str, Any] | None = None,
    allow_exit: bool | None = None,
    factory: str = DEFAULT_FACTORY,
    model: str | None = None,
) -> AgentController:
    """Build a controller for the agent defined in ``source``."""
    module = import_source(source)
    agent = load_agent(module, factory, options)
    if prompts is None:
        prompts = Prompts.for_source(source_path(module))
    if llm is None:
        llm = default_llm(agent.agent_name, model)
    logger.info("Running %s with %d capabilities", agent.agent_name, len(agent.capabilities))
    return AgentController(agent, prompts, llm, allow_exit=allow_exit)


async def run(
    agent: Agent,
    prompts: Prompts,
    llm: ModelClient,
    allow_exit: bool | None = None,
) -> Any:
    """Run ``agent`` until it exits and return its output."""
    controller = AgentController(agent, prompts, llm, allow_exit=allow_exit)
    return await controller.run_to_completion()


def run_sync(
    agent: Agent,
    prompts: Prompts,
    llm: ModelClient,
    allow_exit: bool | None = None,
) -> Any:
    return asyncio.run(run(agent, prompts, llm, allow_exit=allow_exit))
