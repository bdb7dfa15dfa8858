"""Tests for the FoodData Central search proxy."""

import httpx
from fastapi.testclient import TestClient

from photo_nutrition.api.app import USDA_SEARCH_PATH, create_app
from photo_nutrition.config import Settings
from tests.conftest import FakeFdcClient, fdc_food


def test_search_returns_upstream_payload(container, fdc_client: FakeFdcClient) -> None:
    fdc_client.foods_by_query["banana"] = [fdc_food("Bananas, raw", calories=89)]
    client = TestClient(create_app(container))

    response = client.post(
        USDA_SEARCH_PATH, json={"query": "banana", "dataTypes": ["Foundation"]}
    )

    assert response.status_code == 200
    assert response.json()["foods"][0]["description"] == "Bananas, raw"
    assert fdc_client.calls[0] == {
        "query": "banana",
        "page_size": 10,
        "data_types": ["Foundation"],
    }


def test_search_caps_page_size(container, fdc_client: FakeFdcClient) -> None:
    client = TestClient(create_app(container))

    client.post(USDA_SEARCH_PATH, json={"query": "rice", "pageSize": 500})
    client.post(USDA_SEARCH_PATH, json={"query": "rice", "pageSize": 0})

    assert [call["page_size"] for call in fdc_client.calls] == [25, 10]


def test_search_requires_query(container) -> None:
    client = TestClient(create_app(container))

    assert client.post(USDA_SEARCH_PATH, json={}).status_code == 400
    response = client.post(USDA_SEARCH_PATH, json={"query": "  "})
    assert response.status_code == 400
    assert response.json() == {"error": "query is required", "code": "MISSING_INPUT"}


def test_search_requires_database_key(container) -> None:
    container.settings = Settings(
        _env_file=None, openrouter_api_key="openrouter-key", usda_api_key=None
    )
    client = TestClient(create_app(container))

    response = client.post(USDA_SEARCH_PATH, json={"query": "rice"})

    assert response.status_code == 500
    assert response.json()["code"] == "SERVER_CONFIG_ERROR"


def test_search_relays_upstream_status(container, fdc_client: FakeFdcClient) -> None:
    request = httpx.Request("POST", "https://api.test/foods/search")
    fdc_client.errors_by_query["rice"] = httpx.HTTPStatusError(
        "forbidden", request=request, response=httpx.Response(403, request=request)
    )
    client = TestClient(create_app(container))

    response = client.post(USDA_SEARCH_PATH, json={"query": "rice"})

    assert response.status_code == 403
    assert response.json() == {"error": "USDA API error", "status": 403}


def test_search_reports_unreachable_upstream(
    container, fdc_client: FakeFdcClient
) -> None:
    request = httpx.Request("POST", "https://api.test/foods/search")
    fdc_client.errors_by_query["rice"] = httpx.ConnectError("down", request=request)
    client = TestClient(create_app(container))

    response = client.post(USDA_SEARCH_PATH, json={"query": "rice"})

    assert response.status_code == 502
    assert response.json()["code"] == "UPSTREAM_UNAVAILABLE"
