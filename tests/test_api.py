"""Tests for the FastAPI HTTP layer.

Uses FastAPI's ``TestClient``; the pipeline runner is patched so
``/generate`` never touches the network or a model.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from schemalift.api.app import create_app
from schemalift.errors import IngestionFailure
from schemalift.pipeline.runner import PipelineResult, PipelineStats
from schemalift.pipeline.validator import validate


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


# ---------------------------------------------------------------------------
# /health
# ---------------------------------------------------------------------------

class TestHealth:
    def test_ok(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


# ---------------------------------------------------------------------------
# /clean
# ---------------------------------------------------------------------------

class TestClean:
    def test_returns_bundle(self, client: TestClient) -> None:
        html = "<html><body><nav>Menu</nav><h1>Widget</h1><p>$19.99</p></body></html>"
        resp = client.post("/clean", json={"html": html, "policy": "exhaustive"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["visibleText"] == "Widget\n$19.99"
        assert data["headings"] == [{"level": 1, "text": "Widget"}]
        assert data["stats"]["boilerplateRemoved"] == 1
        assert "flattened" not in data

    def test_include_flattened(self, client: TestClient) -> None:
        resp = client.post("/clean", json={"html": "<p>A</p><p>A</p>", "include_flattened": True})
        assert resp.json()["flattened"] == ["A"]

    def test_unknown_policy_is_422(self, client: TestClient) -> None:
        resp = client.post("/clean", json={"html": "<p>A</p>", "policy": "magic"})
        assert resp.status_code == 422
        assert "Unknown visible text policy" in resp.json()["detail"]

    def test_missing_html_is_422(self, client: TestClient) -> None:
        assert client.post("/clean", json={}).status_code == 422


# ---------------------------------------------------------------------------
# /validate
# ---------------------------------------------------------------------------

class TestValidate:
    def test_report(self, client: TestClient) -> None:
        body = {
            "candidates": [
                {"@type": "Product", "name": "Widget", "offers": {"price": "$5"}},
                "junk",
            ],
            "page_url": "https://shop.example.com/",
        }
        resp = client.post("/validate", json=body)
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["acceptedEntities"][0]["offers"] == [{"@type": "Offer", "price": 5.0}]
        assert data["rejectedEntities"] == [{"@type": "Unknown", "reason": "Candidate is not an object"}]

    def test_nothing_accepted_is_422(self, client: TestClient) -> None:
        resp = client.post("/validate", json={"candidates": [{"@type": "Event", "name": "E"}]})
        assert resp.status_code == 422
        assert resp.json() == {
            "success": False,
            "stage": "validator",
            "reason": "No valid entities after validation",
            "rejectedEntities": [
                {"@type": "Event", "reason": "Missing required field: Event.startDate"}
            ],
        }


# ---------------------------------------------------------------------------
# /generate
# ---------------------------------------------------------------------------

class TestGenerate:
    def test_success(self, client: TestClient) -> None:
        result = PipelineResult(
            url="https://shop.example.com/w",
            final_url="https://shop.example.com/w",
            report=validate([{"@type": "Product", "name": "Widget"}]),
            stats=PipelineStats(total_ms=12),
        )
        with patch("schemalift.api.routers.generate.run_pipeline", return_value=result) as mock_run:
            resp = client.post("/generate", json={"url": "https://shop.example.com/w"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["entityTypes"] == ["Product"]
        assert data["stats"]["totalTimeMs"] == 12
        assert mock_run.call_args.args[0] == "https://shop.example.com/w"

    def test_stage_failure_is_422(self, client: TestClient) -> None:
        with patch(
            "schemalift.api.routers.generate.run_pipeline",
            side_effect=IngestionFailure("Could not fetch https://down.example/: timeout"),
        ):
            resp = client.post("/generate", json={"url": "https://down.example/"})

        assert resp.status_code == 422
        assert resp.json() == {
            "success": False,
            "stage": "ingestion",
            "reason": "Could not fetch https://down.example/: timeout",
        }

    def test_invalid_url_rejected_by_schema(self, client: TestClient) -> None:
        assert client.post("/generate", json={"url": "not a url"}).status_code == 422

    def test_unknown_policy_is_422(self, client: TestClient) -> None:
        with patch("schemalift.api.routers.generate.run_pipeline") as mock_run:
            resp = client.post("/generate", json={"url": "https://x.example/", "policy": "magic"})
        assert resp.status_code == 422
        mock_run.assert_not_called()
