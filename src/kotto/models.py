"""Models for the agent loop."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

Role = Literal["user", "system"]


class FunctionCall(BaseModel):
    name: str
    reasoning: str | None = None
    arguments: list[Any]


class Action(BaseModel):
    call: FunctionCall
    output: Any = None


class Message(BaseModel):
    role: Role
    content: str


class Pending(BaseModel):
    """The next message to send to the model.

    ``prompt=None`` lets the controller pick the prompt: the context on the
    first tick, the last output afterwards.
    """

    kind: Literal["pending"] = "pending"
    role: Role = "user"
    prompt: str | None = None


class Exited(BaseModel):
    kind: Literal["exited"] = "exited"
    output: Any = None


TickResult = Annotated[Union[Pending, Exited], Field(discriminator="kind")]
