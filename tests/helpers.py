from __future__ import annotations

import json


def call(name: str, *args, reasoning: str | None = None) -> str:
    """A well-formed model reply calling ``name``."""
    reply: dict = {"name": name, "arguments": list(args)}
    if reasoning is not None:
        reply["reasoning"] = reasoning
    return json.dumps(reply)
