"""The default template: JSON calls, JSON outputs."""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError
from pydantic_core import to_jsonable_python

from kotto.errors import ParseError
from kotto.models import FunctionCall
from kotto.prompts.scope import Scope
from kotto.template.base import Template
from kotto.template.prompt_layer import load_prompt, render_prompt


def _extract_json(raw: str) -> str:
    """Return the outermost ``{...}`` in ``raw``, ignoring fences and prose."""
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end < start:
        return raw.strip()
    return raw[start : end + 1]


class Naive(Template):
    def render_context(self, scope: Scope, description: str | None = None) -> str:
        task = f"\n{render_prompt('description', task=description)}\n" if description else ""
        return render_prompt(
            "context",
            description=task,
            declarations=scope.render(),
            reply_shape=load_prompt("reply_shape"),
        )

    def render_output(self, output: Any) -> str:
        if output is None:
            return "null"
        return json.dumps(to_jsonable_python(output, fallback=str))

    def render_error(self, error: BaseException) -> str:
        return render_prompt(
            "error",
            error_type=type(error).__name__,
            message=str(error),
            reply_shape=load_prompt("reply_shape"),
        )

    def parse_response(self, raw: str) -> FunctionCall:
        try:
            data = json.loads(_extract_json(raw))
        except json.JSONDecodeError as e:
            raise ParseError(f"could not extract JSON from your response: {raw}") from e

        if not isinstance(data, dict):
            raise ParseError(f"expected a JSON object, got: {raw}")

        try:
            return FunctionCall.model_validate(data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'reply'}: {err['msg']}"
                for err in e.errors()
            )
            raise ParseError(f"invalid call ({problems}): {raw}") from e
