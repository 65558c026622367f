"""Lenient JSON extraction from chat-model replies."""

from __future__ import annotations

import json
import re
from typing import Any

_CODE_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)
_OUTERMOST = re.compile(r"[\[{].*[\]}]", re.DOTALL)


def extract_json(text: str) -> Any:
    """Parse the JSON value in *text*.

    Accepts a bare JSON document, one wrapped in a markdown code block, or
    one surrounded by prose.

    Raises:
        ValueError: If no JSON value can be parsed.
    """
    if not text or not text.strip():
        raise ValueError("Empty model reply")

    candidates = [text.strip()]
    block = _CODE_BLOCK.search(text)
    if block:
        candidates.append(block.group(1))
    outer = _OUTERMOST.search(text)
    if outer:
        candidates.append(outer.group(0))

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise ValueError("Model reply is not valid JSON")
