# tests/conftest.py
from collections.abc import Generator
from unittest.mock import patch

import pytest
from fakes import FakeCatalogSource
from fastapi.testclient import TestClient

import storefront.api.dependencies as _deps
from storefront.api.dependencies import get_catalog_source
from storefront.core.config import Settings, get_settings
from storefront.core.rate_limit import limiter
from storefront.main import app


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        loyverse_api_url="https://loyverse.test/v1.0",
        loyverse_token="test-token",
        retry_base_delay_seconds=0,
        retry_jitter=0,
        smtp_user="shop@example.com",
        email_rate_limit="3/minute",
    )


@pytest.fixture
def fake_source() -> FakeCatalogSource:
    return FakeCatalogSource()


@pytest.fixture
def client(
    test_settings: Settings, fake_source: FakeCatalogSource
) -> Generator[TestClient, None, None]:
    # Each test starts with an empty page cache and fresh rate-limit counters
    _deps._page_cache = None
    limiter.reset()
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_catalog_source] = lambda: fake_source
    try:
        with patch(
            "storefront.core.rate_limit.get_settings", return_value=test_settings
        ), TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
        _deps._page_cache = None
