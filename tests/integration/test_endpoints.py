"""
Integration tests for the HTTP surface.

The FastAPI app runs in-process through TestClient; the browser is
replaced by FakeChartSource, everything else is real (validation,
pipeline, artifact handling, reportlab).

Run: pytest tests/integration/test_endpoints.py -v
"""

import functools

import pytest
from fastapi.testclient import TestClient

from bmichart import document
from bmichart.main import USAGE, create_app
from tests.fixtures import FakeChartSource

SCENARIO = "/bmichart?system=english&gender=m&age=184&height=67&weight=160"


@pytest.fixture
def sources():
    return []


def _client(chart_config, sources, **options):
    app = create_app(chart_config, FakeChartSource.factory(sources, **options))
    return TestClient(app)


@pytest.fixture
def client(chart_config, sources):
    with _client(chart_config, sources) as c:
        yield c


class TestUsage:

    def test_root_returns_usage(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.text == USAGE
        assert response.headers["content-type"].startswith("text/plain")


class TestBmiChart:

    def test_scenario_returns_pdf_with_header(self, chart_config, sources, artifact_dir, monkeypatch):
        uncompressed = functools.partial(document.compose_document, compress=False)
        monkeypatch.setattr(document, "compose_document", uncompressed)

        with _client(chart_config, sources) as client:
            response = client.get(SCENARIO)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert "bmichart.pdf" in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")
        assert b"Age: 15 yrs 4 mos | Weight: 160 lbs | Height: 67 in" in response.content
        assert b"/Subtype /Image" in response.content

        assert sources[0].closed
        assert list(artifact_dir.iterdir()) == []

    def test_metric_request(self, client, sources):
        response = client.get("/bmichart?system=metric&gender=f&age=30&height=92.5&weight=13.4")

        assert response.status_code == 200
        assert "method=metric" in sources[0].visited_url
        assert "hcm=92.5" in sources[0].visited_url
        assert "wkg=13.4" in sources[0].visited_url

    def test_missing_weight_never_launches_browser(self, client, sources):
        response = client.get("/bmichart?system=english&gender=m&age=184&height=67")

        assert response.status_code == 500
        assert response.text == "Invalid arguments"
        assert sources == []

    @pytest.mark.parametrize("query", [
        "/bmichart?system=english&gender=m&age=184&height=67&weight=",
        "/bmichart?system=english&gender=m&age=undefined&height=67&weight=160",
        "/bmichart?system=imperial&gender=m&age=184&height=67&weight=160",
        "/bmichart",
    ])
    def test_invalid_arguments(self, client, sources, query):
        response = client.get(query)

        assert response.status_code == 500
        assert response.text == "Invalid arguments"
        assert sources == []

    @pytest.mark.parametrize("options, message", [
        ({"fail_start": True}, "Internal server error"),
        ({"navigation_timeouts": 1}, "Error fetching chart"),
        ({"missing_selectors": {"#chart"}}, "Error fetching chart"),
        ({"target_gone": True}, "Error fetching chart"),
        ({"fail_capture": True}, "Error fetching chart"),
        ({"png": b"not an image"}, "Error generating PDF"),
    ])
    def test_pipeline_errors_return_plain_text(
        self, chart_config, sources, artifact_dir, options, message
    ):
        with _client(chart_config, sources, **options) as client:
            response = client.get(SCENARIO)

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == message
        assert list(artifact_dir.iterdir()) == []

    def test_selector_timeout_closes_browser(self, chart_config, sources, artifact_dir):
        with _client(chart_config, sources, missing_selectors={"#chart .banner"}) as client:
            response = client.get(SCENARIO)

        assert response.status_code == 500
        assert sources[0].closed
        assert list(artifact_dir.iterdir()) == []

    def test_unexpected_error_is_generic(self, chart_config, sources, monkeypatch):
        def explode(*args, **kwargs):
            raise KeyError("internal detail")

        monkeypatch.setattr(document, "compose_document", explode)

        with _client(chart_config, sources) as client:
            response = client.get(SCENARIO)

        assert response.status_code == 500
        assert response.text == "Internal server error"
        assert "internal detail" not in response.text
