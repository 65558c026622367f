"""Semantic mapping: ask the chat model to map page content onto Schema.org.

The model is a field mapper only.  Everything it returns is a candidate
for :func:`schemalift.pipeline.validator.validate`, which has the final
word.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic.alias_generators import to_camel

from schemalift.config import settings
from schemalift.errors import CollaboratorFailure
from schemalift.llm.client import get_chat_model, response_text
from schemalift.llm.json_utils import extract_json
from schemalift.pipeline.entities import CANDIDATE_TYPES, required_fields
from schemalift.pipeline.models import ContentBundle

_log = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a Schema.org entity extraction engine.

Identify every distinct Schema.org entity explicitly present in the content.
A page often holds several, for example WebSite + Organization on a home
page, ItemList + Organization on a category page, Article + Organization on
a blog post or Product + Organization on a product page.

Rules:
- Extract only what is explicitly present in the visible content.
- Never guess, infer or invent prices, ratings, dates or authors.
- Never merge unrelated entities or rewrite text.
- Use null for any field that is not present.
- Product: prices must be explicit and offers present.
- Article: the author must be explicitly named.
- ItemList: collection or category pages listing several items.
- WebSite: home pages with site-level information.
- VideoObject: pages centred on a video.

Return each entity as a separate object, using only these types and fields:
{type_catalogue}

Reply with JSON only: {{"schemas": [{{"@type": "...", ...}}, ...]}}"""


def _type_catalogue() -> str:
    lines = []
    for name, model in CANDIDATE_TYPES.items():
        fields = [to_camel(f) for f in model.model_fields if f != "type_"]
        required = ", ".join(required_fields(name)) or "-"
        lines.append(f"- {name} (required: {required}): {', '.join(fields)}")
    return "\n".join(lines)


def build_prompt(bundle: ContentBundle, merged_text: str, page_url: str) -> str:
    """Build the user prompt in SEO signal order.

    URL, META, HEADINGS, MAIN CONTENT, TABLES, IMAGES, LISTS, then LINKS
    capped at ``settings.max_prompt_links``.  Empty sections are left out,
    except MAIN CONTENT.
    """
    parts: list[str] = [f"URL: {page_url}", ""]

    meta_lines = [
        f"name={m.name}: {m.content}" if m.name else f"property={m.property}: {m.content}"
        for m in bundle.meta
        if m.name or m.property
    ]
    if meta_lines:
        parts += ["## META", *meta_lines, ""]

    if bundle.headings:
        parts.append("## HEADINGS")
        parts += [f"{'#' * h.level} {h.text}" for h in bundle.headings]
        parts.append("")

    parts += ["## MAIN CONTENT", merged_text, ""]

    if bundle.tables:
        parts.append("## TABLES")
        for i, table in enumerate(bundle.tables, start=1):
            parts.append(f"Table {i}:")
            if table.headers:
                parts.append(f"Headers: {' | '.join(table.headers)}")
            parts += [f"Row: {' | '.join(row)}" for row in table.rows]
            parts.append("")

    if bundle.images:
        parts.append("## IMAGES")
        parts += [f"- {img.src} (alt: {img.alt})" if img.alt else f"- {img.src}" for img in bundle.images]
        parts.append("")

    if bundle.lists:
        parts.append("## LISTS")
        for i, block in enumerate(bundle.lists, start=1):
            parts.append(f"List {i} ({block.kind}):")
            for j, item in enumerate(block.items, start=1):
                bullet = f"{j}." if block.kind == "ordered" else "-"
                parts.append(f"{bullet} {item}")
            parts.append("")

    if bundle.links:
        parts.append("## LINKS")
        parts += [f"{link.text} → {link.href}" for link in bundle.links[: settings.max_prompt_links]]
        parts.append("")

    parts += [
        "",
        "Extract the structured data from the above content. Choose the most "
        "specific schema type. Return null for any fields where data is not "
        "explicitly present.",
    ]
    return "\n".join(parts)


def _candidates_from(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, Mapping):
        payload = payload.get("schemas")
    if not isinstance(payload, list):
        raise ValueError('expected {"schemas": [...]} or a list of entities')
    # Non-object items are passed through for the validator to reject.
    return list(payload)


def map_entities(
    bundle: ContentBundle,
    merged_text: str,
    page_url: str,
    llm: Any = None,
    logger: logging.Logger | None = None,
    prompt: str | None = None,
) -> list[dict[str, Any]]:
    """Ask the chat model for candidate entities.

    Args:
        bundle: The cleaner's output for the page.
        merged_text: Surfaced facts merged with the visible text.
        page_url: Final URL of the page.
        llm: LangChain chat model; defaults to :func:`get_chat_model`.
        logger: Destination for diagnostics.
        prompt: Pre-built user prompt; built from the other arguments if
            omitted.

    Raises:
        CollaboratorFailure: (stage ``extraction``) if the call fails or the
            reply is not a list of candidate entities.
    """
    from langchain_core.messages import HumanMessage, SystemMessage

    log = logger or _log
    user_prompt = prompt if prompt is not None else build_prompt(bundle, merged_text, page_url)
    log.info(
        "Starting semantic mapping (prompt length %d, ~%d tokens)",
        len(user_prompt),
        bundle.stats.token_estimate,
    )

    messages = [
        SystemMessage(content=SYSTEM_PROMPT.format(type_catalogue=_type_catalogue())),
        HumanMessage(content=user_prompt),
    ]
    try:
        model = llm if llm is not None else get_chat_model()
        reply = model.invoke(messages)
    except Exception as exc:
        raise CollaboratorFailure(f"Semantic mapping call failed: {exc}") from exc

    try:
        candidates = _candidates_from(extract_json(response_text(reply)))
    except ValueError as exc:
        raise CollaboratorFailure(f"Malformed semantic mapping reply: {exc}") from exc

    log.info("Semantic mapping complete: %d candidate(s)", len(candidates))
    return candidates
