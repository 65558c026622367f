"""Fact surfacing: short, verbatim, user-visible strings from flattened text.

The model only surfaces text.  It never builds schema and its output is
never trusted beyond the ``{"facts": [str, ...]}`` shape checked here.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from schemalift.errors import CollaboratorFailure
from schemalift.llm.client import get_chat_model, response_text
from schemalift.llm.json_utils import extract_json

_log = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You surface short, factual, user-visible text from a web page for a
structured-data pipeline.  You do not build structured data, decide schema
types or infer meaning.

Return strings that are shown to the user verbatim and state a fact rather
than prose: names, brands, authors, prices, ratings, review counts,
quantities, durations, dates, addresses, phone numbers, availability,
opening hours, ingredients, short steps, FAQ questions and answers, SKUs
and breadcrumb labels.

Never guess, normalise, convert, combine or rank values.  Prefer very short
strings ($24, 4.6, XS).  Keep every candidate when several exist.  If
unsure, leave it out.

Reply with JSON only, exactly: {"facts": ["...", "..."]}
Use {"facts": []} when nothing qualifies."""


class _FactsReply(BaseModel):
    facts: list[str]


def build_messages(flattened_text: str) -> list[Any]:
    from langchain_core.messages import HumanMessage, SystemMessage

    return [
        SystemMessage(content=SYSTEM_PROMPT),
        HumanMessage(
            content=(
                "Extract short, factual, user-visible text from this page content:\n\n"
                + flattened_text
            )
        ),
    ]


def surface_facts(
    flattened_text: str,
    llm: Any = None,
    logger: logging.Logger | None = None,
) -> list[str]:
    """Ask the chat model for verbatim facts in *flattened_text*.

    Args:
        flattened_text: Output of the flattener, one line per text fragment.
        llm: LangChain chat model; defaults to :func:`get_chat_model`.
        logger: Destination for diagnostics.

    Raises:
        CollaboratorFailure: (stage ``visibility``) if the call fails or the
            reply is not ``{"facts": [str, ...]}``.
    """
    log = logger or _log
    if not flattened_text.strip():
        log.info("Nothing to surface facts from")
        return []

    log.info("Starting fact surfacing (text length %d)", len(flattened_text))
    try:
        model = llm if llm is not None else get_chat_model()
        reply = model.invoke(build_messages(flattened_text))
    except Exception as exc:
        raise CollaboratorFailure(f"Fact surfacing call failed: {exc}", stage="visibility") from exc

    try:
        parsed = _FactsReply.model_validate(extract_json(response_text(reply)))
    except (ValueError, ValidationError) as exc:
        raise CollaboratorFailure(
            f"Malformed fact surfacing reply: {exc}", stage="visibility"
        ) from exc

    facts = [f for f in parsed.facts if f.strip()]
    log.info("Fact surfacing complete: %d fact(s), sample %s", len(facts), facts[:5])
    return facts
