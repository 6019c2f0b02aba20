"""Tests for the service catalog endpoints."""

from decimal import Decimal

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_and_get_service(client: AsyncClient, auth_headers: dict, consultation: dict) -> None:
    """A created service can be read back."""
    assert consultation["active"] is True
    assert consultation["duration"] == 30
    assert Decimal(consultation["price"]) == Decimal("200.00")

    response = await client.get(f"/api/v1/services/{consultation['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Consulta"


@pytest.mark.asyncio
async def test_create_service_rejects_zero_duration(client: AsyncClient, auth_headers: dict) -> None:
    """A service must last at least one minute."""
    response = await client.post(
        "/api/v1/services/",
        json={"name": "Retorno", "duration": 0, "price": "0"},
        headers=auth_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_service(client: AsyncClient, auth_headers: dict, consultation: dict) -> None:
    """Only the given fields change."""
    response = await client.put(
        f"/api/v1/services/{consultation['id']}",
        json={"price": "250.00"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["price"]) == Decimal("250.00")
    assert data["duration"] == 30


@pytest.mark.asyncio
async def test_deactivate_service(client: AsyncClient, auth_headers: dict, consultation: dict) -> None:
    """Deleting a service only deactivates it."""
    response = await client.delete(f"/api/v1/services/{consultation['id']}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.get("/api/v1/services/", params={"active_only": True}, headers=auth_headers)
    assert response.json() == []

    response = await client.get(f"/api/v1/services/{consultation['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["active"] is False


@pytest.mark.asyncio
async def test_services_are_per_clinic(
    client: AsyncClient,
    consultation: dict,
    other_clinic_headers: dict,
) -> None:
    """Another clinic cannot read this clinic's services."""
    response = await client.get(f"/api/v1/services/{consultation['id']}", headers=other_clinic_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_service_clears_description(client: AsyncClient, auth_headers: dict) -> None:
    """The description can be cleared; the name cannot."""
    created = await client.post(
        "/api/v1/services/",
        json={"name": "Retorno", "duration": 20, "price": "80.00", "description": "Revisão"},
        headers=auth_headers,
    )
    service_id = created.json()["id"]

    response = await client.put(
        f"/api/v1/services/{service_id}",
        json={"description": None},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["description"] is None

    response = await client.put(
        f"/api/v1/services/{service_id}",
        json={"name": None},
        headers=auth_headers,
    )
    assert response.status_code == 422
