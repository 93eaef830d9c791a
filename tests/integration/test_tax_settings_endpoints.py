"""Integration tests for the tax settings administration endpoints."""

from __future__ import annotations

from http import HTTPStatus

import pytest
from flask.testing import FlaskClient

BASE = "/api/v1/tax-settings"


def _save(client: FlaskClient, payload: dict, **kwargs):
    return client.post(BASE, json=payload, **kwargs)


def test_save_creates_then_updates_setting(client: FlaskClient) -> None:
    created = _save(client, {"year": 2024, "taxAmount": 500, "description": "Landowners"})
    updated = _save(client, {"year": 2024, "taxAmount": 550, "includePreviousYears": True})

    assert created.status_code == HTTPStatus.CREATED
    created_body = created.get_json()
    assert created_body["success"] is True
    assert created_body["action"] == "created"
    assert created_body["message"] == "Tax setting created"
    assert created_body["data"]["taxAmount"] == 500.0

    assert updated.status_code == HTTPStatus.OK
    updated_body = updated.get_json()
    assert updated_body["action"] == "updated"
    assert updated_body["id"] == created_body["id"]
    assert updated_body["data"]["includePreviousYears"] is True
    assert updated_body["data"]["description"] == ""


def test_save_message_is_localised(client: FlaskClient) -> None:
    response = _save(client, {"year": 2024, "taxAmount": 500}, headers={"Accept-Language": "ta"})

    assert response.get_json()["message"] == "வரி அமைப்பு உருவாக்கப்பட்டது"


@pytest.mark.parametrize(
    "payload",
    [
        {"taxAmount": 500},
        {"year": 2024},
        {"year": 2024, "taxAmount": 0},
        {"year": 2024, "taxAmount": -10},
        {"year": 124, "taxAmount": 10},
        {"year": 2024, "taxAmount": "lots"},
    ],
)
def test_save_rejects_invalid_payloads(client: FlaskClient, payload: dict) -> None:
    response = _save(client, payload)

    assert response.status_code == HTTPStatus.BAD_REQUEST
    body = response.get_json()
    assert body["success"] is False
    assert body["error"] == "invalid_argument"
    assert body["message"].startswith("Invalid tax setting:")


@pytest.mark.parametrize("amount", [1e30, "123456789012345678901234567890"])
def test_save_rejects_amount_beyond_decimal_precision(client: FlaskClient, amount) -> None:
    response = _save(client, {"year": 2024, "taxAmount": amount})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    body = response.get_json()
    assert body["error"] == "invalid_argument"
    assert "out of range" in body["message"]
    assert client.get(BASE).get_json()["data"] == []


def test_save_rejects_non_json_body(client: FlaskClient) -> None:
    response = client.post(BASE, data="year=2024", content_type="text/plain")

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["error"] == "bad_request"


def test_list_returns_newest_year_first(client: FlaskClient) -> None:
    for year in (2022, 2024, 2023):
        _save(client, {"year": year, "taxAmount": 100})
    _save(client, {"year": 2021, "taxAmount": 100}, headers={"X-Tenant-ID": "2"})

    response = client.get(BASE)

    assert response.status_code == HTTPStatus.OK
    body = response.get_json()
    assert body["success"] is True
    assert [item["year"] for item in body["data"]] == [2024, 2023, 2022]


def test_year_lookup_returns_active_setting_or_null(client: FlaskClient) -> None:
    _save(client, {"year": 2024, "taxAmount": 500})
    _save(client, {"year": 2023, "taxAmount": 400, "isActive": False})

    active = client.get(f"{BASE}/year/2024").get_json()
    inactive = client.get(f"{BASE}/year/2023").get_json()
    missing = client.get(f"{BASE}/year/2030").get_json()

    assert active["data"]["year"] == 2024
    assert active["data"]["taxAmount"] == 500.0
    assert inactive == {"success": True, "data": None}
    assert missing == {"success": True, "data": None}


def test_year_lookup_rejects_invalid_year(client: FlaskClient) -> None:
    response = client.get(f"{BASE}/year/twenty")

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["error"] == "invalid_argument"


def test_delete_removes_setting(client: FlaskClient) -> None:
    setting_id = _save(client, {"year": 2024, "taxAmount": 500}).get_json()["id"]

    response = client.delete(f"{BASE}/{setting_id}")

    assert response.status_code == HTTPStatus.OK
    assert response.get_json() == {"success": True}
    assert client.get(BASE).get_json()["data"] == []


def test_delete_unknown_or_foreign_setting_returns_not_found(client: FlaskClient) -> None:
    setting_id = _save(client, {"year": 2024, "taxAmount": 500}).get_json()["id"]

    foreign = client.delete(f"{BASE}/{setting_id}", headers={"X-Tenant-ID": "2"})
    unknown = client.delete(f"{BASE}/999")

    for response in (foreign, unknown):
        assert response.status_code == HTTPStatus.NOT_FOUND
        body = response.get_json()
        assert body["error"] == "not_found"
        assert body["message"] == "Record not found or access denied"


def test_bulk_toggle_updates_every_year(client: FlaskClient) -> None:
    for year in (2022, 2023, 2024):
        _save(client, {"year": year, "taxAmount": 100})

    response = client.post(f"{BASE}/bulk-toggle", json={"includePreviousYears": True})

    assert response.status_code == HTTPStatus.OK
    assert response.get_json() == {"success": True, "updated": 3}
    assert all(item["includePreviousYears"] for item in client.get(BASE).get_json()["data"])


def test_bulk_toggle_without_body_clears_flag(client: FlaskClient) -> None:
    _save(client, {"year": 2023, "taxAmount": 100, "includePreviousYears": True})

    response = client.post(f"{BASE}/bulk-toggle")

    assert response.get_json()["updated"] == 1
    assert client.get(BASE).get_json()["data"][0]["includePreviousYears"] is False


def test_bulk_toggle_rejects_non_boolean(client: FlaskClient) -> None:
    response = client.post(f"{BASE}/bulk-toggle", json={"includePreviousYears": "sometimes"})

    assert response.status_code == HTTPStatus.BAD_REQUEST
