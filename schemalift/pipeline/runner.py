"""End-to-end pipeline: URL in, validated JSON-LD out.

    ingest → clean → flatten → surface facts → merge → map entities → validate

Collaborators (fetch and the two model calls) are injectable so the runner
can be driven without network or model access.  Only stage failures
propagate, each as the matching :class:`PipelineError`.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Sequence
from urllib.parse import urlsplit

from schemalift.config import settings
from schemalift.errors import CollaboratorFailure, IngestionFailure, PipelineError, ValidationFailure
from schemalift.llm.mapping import build_prompt, map_entities
from schemalift.llm.visibility import surface_facts
from schemalift.pipeline.cleaner import clean
from schemalift.pipeline.flatten import flatten
from schemalift.pipeline.merge import merge_with_stats
from schemalift.pipeline.models import ContentBundle, ValidationReport
from schemalift.pipeline.validator import validate
from schemalift.pipeline.visible_text import VisibleTextStrategy
from schemalift.scraper import RawPage, fetch_page

_log = logging.getLogger(__name__)

Fetcher = Callable[[str], RawPage]
FactSurfacer = Callable[[str], Sequence[str]]
EntityMapper = Callable[[ContentBundle, str, str], list]


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class PipelineStats:
    ingestion_ms: int = 0
    cleaning_ms: int = 0
    flatten_ms: int = 0
    visibility_ms: int = 0
    extraction_ms: int = 0
    validation_ms: int = 0
    total_ms: int = 0
    fact_count: int = 0
    candidate_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "ingestionTimeMs": self.ingestion_ms,
            "cleaningTimeMs": self.cleaning_ms,
            "flattenTimeMs": self.flatten_ms,
            "visibilityTimeMs": self.visibility_ms,
            "extractionTimeMs": self.extraction_ms,
            "validationTimeMs": self.validation_ms,
            "totalTimeMs": self.total_ms,
            "factCount": self.fact_count,
            "candidateCount": self.candidate_count,
        }


@dataclass
class PipelineResult:
    url: str
    final_url: str
    report: ValidationReport
    stats: PipelineStats = field(default_factory=PipelineStats)

    def to_dict(self) -> dict[str, Any]:
        jsonld = self.report.to_jsonld()
        return {
            "success": True,
            "url": self.url,
            "finalUrl": self.final_url,
            "acceptedEntities": jsonld,
            "rejectedEntities": [r.to_dict() for r in self.report.rejected],
            # Same list as acceptedEntities, kept for older clients.
            "jsonLd": jsonld,
            "entityTypes": self.report.entity_types,
            "repairs": list(self.report.repairs),
            "stats": self.stats.to_dict(),
        }


# ---------------------------------------------------------------------------
# Debug artifacts
# ---------------------------------------------------------------------------

class _Artifacts:
    """Writes each stage's output to ``<dir>/<step>_<timestamp>.<ext>``."""

    def __init__(self, directory: Path | None, log: logging.Logger) -> None:
        self.directory = directory
        self.log = log
        self.stamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S-%f")

    def save(self, step: str, content: Any, ext: str) -> None:
        if self.directory is None:
            return
        path = self.directory / f"{step}_{self.stamp}.{ext}"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                data = content
            else:
                data = json.dumps(content, indent=2, ensure_ascii=False)
            path.write_text(data, encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            self.log.warning("Failed to save artifact %s: %s", path.name, exc)
            return
        self.log.debug("Saved artifact %s", path)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _as_facts(value: Any) -> list[str]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise CollaboratorFailure(
            f"Fact surfacer returned {type(value).__name__}, expected a list of strings",
            stage="visibility",
        )
    if not all(isinstance(fact, str) for fact in value):
        raise CollaboratorFailure("Fact surfacer returned a non-string fact", stage="visibility")
    return list(value)


def _check_url(url: str) -> None:
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise IngestionFailure(f"Invalid URL: {url!r}") from exc
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise IngestionFailure(f"Invalid URL: {url!r}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def run_pipeline(
    url: str,
    *,
    fetcher: Fetcher | None = None,
    fact_surfacer: FactSurfacer | None = None,
    entity_mapper: EntityMapper | None = None,
    strategy: VisibleTextStrategy | None = None,
    artifacts_dir: Path | str | None = None,
    logger: logging.Logger | None = None,
) -> PipelineResult:
    """Run every stage for *url* and return the validated entities.

    Raises:
        IngestionFailure: The URL is invalid or could not be fetched.
        CleaningFailure: The markup could not be cleaned.
        CollaboratorFailure: The semantic-mapping call failed.
        ValidationFailure: No candidate entity survived validation.
    """
    log = logger or _log
    directory = Path(artifacts_dir) if artifacts_dir is not None else settings.artifacts_dir
    artifacts = _Artifacts(directory, log)
    stats = PipelineStats()
    started = time.perf_counter()
    log.info("Starting pipeline for %s", url)

    # Step 1: ingestion
    t = time.perf_counter()
    _check_url(url)
    try:
        page = (fetcher or fetch_page)(url)
    except PipelineError:
        raise
    except Exception as exc:  # noqa: BLE001
        log.error("Ingestion failed for %s: %s", url, exc)
        raise IngestionFailure(f"Could not fetch {url}: {exc}") from exc
    stats.ingestion_ms = _elapsed_ms(t)
    artifacts.save("step1_raw_html", page.html, "html")
    page_url = page.final_url or url

    # Step 2: cleaning
    t = time.perf_counter()
    bundle = clean(page.html, strategy=strategy, logger=log)
    stats.cleaning_ms = _elapsed_ms(t)
    artifacts.save("step2_cleaned_html", bundle.cleaned_markup, "html")
    artifacts.save("step2_visible_text", bundle.text, "txt")
    structured = bundle.to_dict()
    structured.pop("cleanedMarkup")
    structured.pop("visibleText")
    artifacts.save("step2_structured_data", structured, "json")

    # Step 2.5: flatten + surface facts.  Losing the facts still leaves the
    # full visible text, so a failure here is logged and degraded.
    t = time.perf_counter()
    flattened = flatten(bundle.cleaned_markup, logger=log)
    stats.flatten_ms = _elapsed_ms(t)
    artifacts.save("step2_flattened", flattened.text, "txt")

    t = time.perf_counter()
    try:
        if fact_surfacer is None:
            facts = surface_facts(flattened.text, logger=log)
        else:
            facts = _as_facts(fact_surfacer(flattened.text))
    except CollaboratorFailure as exc:
        log.warning("Fact surfacing failed, continuing without facts: %s", exc)
        facts = []
    stats.visibility_ms = _elapsed_ms(t)
    stats.fact_count = len(facts)
    artifacts.save("step2_facts", {"facts": facts}, "json")

    merged = merge_with_stats(facts, bundle.text)
    log.info(
        "Merged %d fact(s): %d -> %d chars",
        merged.fact_count,
        merged.original_length,
        merged.merged_length,
    )

    # Step 3: semantic mapping
    t = time.perf_counter()
    prompt = build_prompt(bundle, merged.text, page_url)
    artifacts.save("step3_prompt", prompt, "txt")
    try:
        if entity_mapper is None:
            candidates = map_entities(bundle, merged.text, page_url, logger=log, prompt=prompt)
        else:
            candidates = list(entity_mapper(bundle, merged.text, page_url))
    except CollaboratorFailure as exc:
        artifacts.save("step3_extraction", exc.to_dict(), "json")
        raise
    stats.extraction_ms = _elapsed_ms(t)
    stats.candidate_count = len(candidates)
    artifacts.save("step3_extraction", {"schemas": candidates}, "json")

    # Step 4: validation
    t = time.perf_counter()
    try:
        report = validate(candidates, page_url=page_url, logger=log)
    except ValidationFailure as exc:
        artifacts.save("step4_jsonld", exc.to_dict(), "json")
        raise
    stats.validation_ms = _elapsed_ms(t)
    artifacts.save("step4_jsonld", report.to_dict(), "json")

    stats.total_ms = _elapsed_ms(started)
    log.info(
        "Pipeline complete: %d accepted %s, %d rejected in %d ms",
        len(report.accepted),
        report.entity_types,
        len(report.rejected),
        stats.total_ms,
    )
    return PipelineResult(url=url, final_url=page_url, report=report, stats=stats)
