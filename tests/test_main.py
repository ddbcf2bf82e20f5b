"""Tests for the FastAPI application."""

# Standard library imports
from typing import Generator

# Third-party imports
import pytest
from fastapi.testclient import TestClient

# Local imports
from boiler import config as config_lib
from boiler.main import NO_CACHE_HEADERS, create_app
from boiler.core import fingerprint


@pytest.fixture
def client(
    pipeline_config: config_lib.PipelineConfig,
) -> Generator[TestClient, None, None]:
    """Test client with the startup asset build already run."""
    with TestClient(create_app(pipeline_config)) as test_client:
        yield test_client


def test_index_uses_fingerprinted_urls(client: TestClient) -> None:
    """The landing page links to the published files."""
    response = client.get("/")
    assert response.status_code == 200

    expected_hash = fingerprint(b".btn{color:red}")
    assert f"/static/gen/style.min.{expected_hash}.css" in response.text
    assert "/static/gen/img/logo." in response.text
    assert "/static/gen/script/main.min." in response.text


def test_index_missing_asset_does_not_break_page(client: TestClient) -> None:
    """Unknown assets render as the bare static URL."""
    response = client.get("/")
    assert response.status_code == 200
    # mango-final.css is not built by the test configuration
    assert 'href="/static/"' in response.text


def test_published_asset_is_served(client: TestClient) -> None:
    """Derived files are served from the static mount."""
    published = client.app.state.build_result.fingerprints["style.css"]  # type: ignore[attr-defined]

    response = client.get(f"/static/{published}")

    assert response.status_code == 200
    assert response.text == ".btn{color:red}"


def test_asset_status(client: TestClient) -> None:
    """The build result is exposed as JSON without caching."""
    response = client.get("/api/assets")
    assert response.status_code == 200

    data = response.json()
    assert set(data["fingerprints"]) == {
        "style.css",
        "styles/base.css",
        "styles/theme.css",
        "script/main.js",
        "site.css",
    }
    assert "img/photo.jpg:16" in data["optimizations"]
    assert data["failures"] == []
    for name, value in NO_CACHE_HEADERS.items():
        assert response.headers[name] == value


def test_asset_records(client: TestClient) -> None:
    """Each mapping can be listed as records sorted by source key."""
    response = client.get("/api/assets/minified")
    assert response.status_code == 200

    records = response.json()
    keys = [record["source_key"] for record in records]
    assert keys == sorted(keys)
    assert "style.css" in keys
    fingerprints = client.app.state.build_result.fingerprints  # type: ignore[attr-defined]
    for record in records:
        assert fingerprints[record["source_key"]] == record["published_path"]

    optimized = client.get("/api/assets/optimized").json()
    assert "img/logo.png" in [record["source_key"] for record in optimized]
    assert response.headers["Cache-Control"] == NO_CACHE_HEADERS["Cache-Control"]


def test_asset_records_unknown_kind(client: TestClient) -> None:
    """Only the two mapping kinds are accepted."""
    assert client.get("/api/assets/bundled").status_code == 422


def test_page_is_cacheable(client: TestClient) -> None:
    """Only API responses get the no-cache headers."""
    response = client.get("/")
    assert "Pragma" not in response.headers


@pytest.mark.parametrize(
    "path, target",
    [
        ("/favicon.ico", "/static/gen/img/favicon.png"),
        ("/apple-touch-icon.png", "/static/gen/img/apple-touch-icon.png"),
        ("/site.webmanifest", "/static/gen/img/site.webmanifest"),
        ("/browserconfig.xml", "/static/gen/img/browserconfig.xml"),
    ],
)
def test_favicon_redirects(client: TestClient, path: str, target: str) -> None:
    """Well-known favicon URLs redirect to the generated files."""
    response = client.get(path, follow_redirects=False)
    assert response.status_code == 301
    assert response.headers["location"] == target

    assert client.get(target).status_code == 200


def test_no_favicon_routes_without_favicon(
    pipeline_config: config_lib.PipelineConfig,
) -> None:
    """Favicon redirects are only registered when favicons are generated."""
    cfg = pipeline_config.model_copy(update={"favicon": None})
    with TestClient(create_app(cfg)) as test_client:
        assert test_client.get("/favicon.ico").status_code == 404
