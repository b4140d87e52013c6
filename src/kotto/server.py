"""Serve an agent over HTTP: one fresh agent and controller per request."""

from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import Body, FastAPI, HTTPException
from pydantic_core import to_jsonable_python

from kotto.agent import Agent
from kotto.controller import AgentController
from kotto.errors import Internal
from kotto.llm import ModelClient
from kotto.prompts import Prompts

logger = logging.getLogger(__name__)


def create_app(
    agent_factory: Callable[[dict[str, Any]], Agent],
    prompts: Prompts,
    llm_factory: Callable[[Agent], ModelClient],
    allow_exit: bool | None = None,
) -> FastAPI:
    """Build an app that runs ``agent_factory(request_body)`` to completion per POST /run.

    ``llm_factory`` is called with the new agent, so each request gets its own
    model client configured for that agent.
    """
    app = FastAPI(title="kotto agent server")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/run")
    async def run(payload: dict[str, Any] | None = Body(default=None)):
        try:
            agent = agent_factory(payload or {})
        except Internal as e:
            logger.error("Could not build the agent: %s", e)
            raise HTTPException(status_code=500, detail=str(e)) from e
        except TypeError as e:
            raise HTTPException(status_code=422, detail=f"bad agent options: {e}") from e

        controller = AgentController(agent, prompts, llm_factory(agent), allow_exit=allow_exit)
        try:
            output = await controller.run_to_completion()
        except Internal as e:
            logger.error("Internal error while running %s: %s", agent.agent_name, e)
            raise HTTPException(status_code=500, detail=str(e)) from e
        except Exception as e:
            logger.warning("Run of %s failed: %s", agent.agent_name, e)
            raise HTTPException(status_code=502, detail=f"{type(e).__name__}: {e}") from e
        return {"output": to_jsonable_python(output, fallback=str), "steps": len(controller.history)}

    return app
