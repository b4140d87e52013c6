from __future__ import annotations

from pathlib import Path

import pytest

import sample_agents
from kotto import Prompts, StaticModel
from kotto.controller import AgentController


@pytest.fixture(scope="session")
def prompts() -> Prompts:
    return Prompts.from_source(Path(sample_agents.__file__))


@pytest.fixture
def make_controller(prompts):
    def make(replies, agent=None, **kwargs):
        llm = StaticModel(replies)
        controller = AgentController(agent or sample_agents.Calculator(), prompts, llm, **kwargs)
        return controller, llm

    return make
