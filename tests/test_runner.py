"""Tests for the end-to-end pipeline runner.

Every collaborator (fetch, fact surfacing, semantic mapping) is injected as
a plain function, so these tests need neither network nor a model.
"""

from __future__ import annotations

import json

import httpx
import pytest

from schemalift.errors import (
    CleaningFailure,
    CollaboratorFailure,
    IngestionFailure,
    ValidationFailure,
)
from schemalift.logging_config import null_logger
from schemalift.pipeline.runner import run_pipeline
from schemalift.scraper.models import RawPage

_URL = "https://shop.example.com/widget"
_FINAL_URL = "https://shop.example.com/products/widget"

_HTML = """\
<html><body>
  <h1>Widget</h1>
  <p>$19.99</p>
  <img src="/img/w.png" alt="Widget">
</body></html>
"""


def _fetcher(url: str) -> RawPage:
    return RawPage(url=url, html=_HTML, final_url=_FINAL_URL, status_code=200)


def _facts(text: str) -> list[str]:
    return ["$19.99"]


def _mapper(bundle, merged_text, page_url):
    return [
        {"@type": "Product", "name": "Widget", "image": "/img/w.png",
         "offers": {"price": "$19.99", "priceCurrency": "USD"}},
        {"@type": "Event", "name": "Sale"},
    ]


def _run(**overrides):
    kwargs = {
        "fetcher": _fetcher,
        "fact_surfacer": _facts,
        "entity_mapper": _mapper,
        "logger": null_logger(),
    }
    kwargs.update(overrides)
    return run_pipeline(_URL, **kwargs)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------

class TestRunPipeline:
    def test_result(self) -> None:
        result = _run()
        assert result.url == _URL
        assert result.final_url == _FINAL_URL
        assert result.report.entity_types == ["Product"]
        product = result.report.to_jsonld()[0]
        # Relative URLs resolve against the post-redirect URL.
        assert product["image"] == ["https://shop.example.com/img/w.png"]
        assert product["offers"][0]["price"] == 19.99

    def test_to_dict(self) -> None:
        payload = _run().to_dict()
        assert payload["success"] is True
        assert payload["jsonLd"] == payload["acceptedEntities"]
        assert payload["entityTypes"] == ["Product"]
        assert payload["rejectedEntities"] == [
            {"@type": "Event", "reason": "Missing required field: Event.startDate"}
        ]
        assert payload["stats"]["factCount"] == 1
        assert payload["stats"]["candidateCount"] == 2
        assert payload["stats"]["totalTimeMs"] >= 0

    def test_mapper_sees_merged_text(self) -> None:
        seen = {}

        def mapper(bundle, merged_text, page_url):
            seen["text"] = merged_text
            seen["url"] = page_url
            return [{"@type": "Product", "name": "Widget"}]

        _run(entity_mapper=mapper)
        assert seen["text"].startswith("$19.99\n\nWidget")
        assert seen["url"] == _FINAL_URL

    def test_fact_surfacing_failure_is_degraded(self) -> None:
        def failing(text):
            raise CollaboratorFailure("model offline", stage="visibility")

        seen = {}

        def mapper(bundle, merged_text, page_url):
            seen["text"] = merged_text
            return [{"@type": "Product", "name": "Widget"}]

        result = _run(fact_surfacer=failing, entity_mapper=mapper)
        assert result.report.success
        assert result.stats.fact_count == 0
        assert seen["text"].startswith("Widget")

    def test_model_setup_failure_in_fact_surfacing_is_degraded(self, monkeypatch) -> None:
        def no_key():
            raise RuntimeError("OPENAI_API_KEY is not set")

        monkeypatch.setattr("schemalift.llm.visibility.get_chat_model", no_key)
        result = _run(fact_surfacer=None)
        assert result.report.success
        assert result.stats.fact_count == 0

    @pytest.mark.parametrize("reply", ["$19.99", None, ["$19.99", 5]])
    def test_wrongly_shaped_facts_are_degraded(self, reply) -> None:
        result = _run(fact_surfacer=lambda text: reply)
        assert result.report.success
        assert result.stats.fact_count == 0


# ---------------------------------------------------------------------------
# Stage failures
# ---------------------------------------------------------------------------

class TestStageFailures:
    @pytest.mark.parametrize("url", ["not a url", "ftp://example.com/", "https://"])
    def test_invalid_url(self, url: str) -> None:
        with pytest.raises(IngestionFailure, match="Invalid URL"):
            run_pipeline(url, fetcher=_fetcher, logger=null_logger())

    def test_fetch_error_wrapped(self) -> None:
        def failing(url):
            request = httpx.Request("GET", url)
            raise httpx.HTTPStatusError(
                "404", request=request, response=httpx.Response(404, request=request)
            )

        with pytest.raises(IngestionFailure) as exc_info:
            _run(fetcher=failing)
        assert exc_info.value.stage == "ingestion"
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    def test_cleaning_failure_propagates(self) -> None:
        def bad_page(url):
            return RawPage(url=url, html=None, final_url=url, status_code=200)  # type: ignore[arg-type]

        with pytest.raises(CleaningFailure):
            _run(fetcher=bad_page)

    def test_mapping_failure_propagates(self) -> None:
        def failing(bundle, merged_text, page_url):
            raise CollaboratorFailure("bad reply")

        with pytest.raises(CollaboratorFailure) as exc_info:
            _run(entity_mapper=failing)
        assert exc_info.value.stage == "extraction"

    def test_model_setup_failure_in_mapping_is_a_stage_failure(self, monkeypatch) -> None:
        def no_key():
            raise RuntimeError("OPENAI_API_KEY is not set")

        monkeypatch.setattr("schemalift.llm.mapping.get_chat_model", no_key)
        with pytest.raises(CollaboratorFailure, match="OPENAI_API_KEY") as exc_info:
            _run(entity_mapper=None)
        assert exc_info.value.stage == "extraction"

    def test_validation_failure_propagates(self) -> None:
        with pytest.raises(ValidationFailure) as exc_info:
            _run(entity_mapper=lambda b, t, u: [{"@type": "Product"}])
        assert exc_info.value.report.rejected[0].type == "Product"


# ---------------------------------------------------------------------------
# Debug artifacts
# ---------------------------------------------------------------------------

class TestArtifacts:
    def test_each_stage_written(self, tmp_path) -> None:
        _run(artifacts_dir=tmp_path)
        names = sorted(p.name.rsplit("_", 1)[0] for p in tmp_path.iterdir())
        assert names == [
            "step1_raw_html",
            "step2_cleaned_html",
            "step2_facts",
            "step2_flattened",
            "step2_structured_data",
            "step2_visible_text",
            "step3_extraction",
            "step3_prompt",
            "step4_jsonld",
        ]

    def test_jsonld_artifact_content(self, tmp_path) -> None:
        _run(artifacts_dir=tmp_path)
        (path,) = tmp_path.glob("step4_jsonld_*.json")
        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["entityTypes"] == ["Product"]

    def test_failure_artifact_written(self, tmp_path) -> None:
        with pytest.raises(ValidationFailure):
            _run(artifacts_dir=tmp_path, entity_mapper=lambda b, t, u: [])
        (path,) = tmp_path.glob("step4_jsonld_*.json")
        assert json.loads(path.read_text(encoding="utf-8"))["stage"] == "validator"

    def test_no_directory_no_files(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr("schemalift.pipeline.runner.settings.artifacts_dir", None)
        monkeypatch.chdir(tmp_path)
        _run()
        assert list(tmp_path.iterdir()) == []

    def test_unwritable_directory_does_not_fail(self, tmp_path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        result = _run(artifacts_dir=blocker / "sub")
        assert result.report.success
