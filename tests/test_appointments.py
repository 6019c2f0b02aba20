"""Tests for appointment endpoints."""

from decimal import Decimal

import pytest
from httpx import AsyncClient

from clinic_api.services.transaction_service import TransactionService


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test health check endpoint."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_requires_authentication(client: AsyncClient) -> None:
    """Requests without a bearer token are rejected."""
    response = await client.get("/api/v1/appointments/")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_rejects_invalid_token(client: AsyncClient) -> None:
    """A malformed token is rejected."""
    response = await client.get(
        "/api/v1/appointments/",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_appointment(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """Test creating an appointment."""
    response = await client.post(
        "/api/v1/appointments/",
        json=appointment_payload,
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["patient_cpf"] == "12345678909"
    assert data["start_time"].startswith("2026-10-19T13:00:00")
    assert data["service"]["name"] == "Consulta"
    assert "id" in data


@pytest.mark.asyncio
async def test_create_appointment_unknown_service(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
    other_clinic_headers: dict,
) -> None:
    """A service of another clinic cannot be booked."""
    response = await client.post(
        "/api/v1/appointments/",
        json=appointment_payload,
        headers=other_clinic_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_appointment_invalid_range(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """An end time before the start time is rejected."""
    payload = {**appointment_payload, "end_time": "2026-10-19T09:00:00-03:00"}
    response = await client.post("/api/v1/appointments/", json=payload, headers=auth_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_strict_create_rejects_overlap(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """An overlapping booking is refused with the conflicting IDs."""
    first = await client.post("/api/v1/appointments/", json=appointment_payload, headers=auth_headers)
    assert first.status_code == 201

    overlapping = {
        **appointment_payload,
        "start_time": "2026-10-19T10:15:00-03:00",
        "end_time": "2026-10-19T10:45:00-03:00",
    }
    response = await client.post("/api/v1/appointments/", json=overlapping, headers=auth_headers)
    assert response.status_code == 409
    data = response.json()
    assert data["error"] == "ConflictException"
    assert data["conflicting_ids"] == [first.json()["id"]]


@pytest.mark.asyncio
async def test_back_to_back_bookings_are_allowed(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """A booking starting when another ends does not conflict."""
    await client.post("/api/v1/appointments/", json=appointment_payload, headers=auth_headers)

    adjacent = {
        **appointment_payload,
        "start_time": "2026-10-19T10:30:00-03:00",
        "end_time": "2026-10-19T11:00:00-03:00",
    }
    response = await client.post("/api/v1/appointments/", json=adjacent, headers=auth_headers)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_permissive_create_reports_overlap(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """The permissive endpoint books anyway and flags the overlap."""
    await client.post("/api/v1/appointments/", json=appointment_payload, headers=auth_headers)

    response = await client.post(
        "/api/v1/appointments/without-conflict-check",
        json=appointment_payload,
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["has_conflicts"] is True
    assert data["appointment"]["status"] == "pending"

    listing = await client.get("/api/v1/appointments/", headers=auth_headers)
    assert len(listing.json()) == 2


@pytest.mark.asyncio
async def test_canceled_booking_frees_range(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """Canceling an appointment lets the range be booked again."""
    first = await client.post("/api/v1/appointments/", json=appointment_payload, headers=auth_headers)
    await client.patch(
        f"/api/v1/appointments/{first.json()['id']}/status",
        json={"status": "canceled"},
        headers=auth_headers,
    )

    response = await client.post("/api/v1/appointments/", json=appointment_payload, headers=auth_headers)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_conflict_check_endpoint(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """The conflict probe answers without booking anything."""
    created = await client.post(
        "/api/v1/appointments/", json=appointment_payload, headers=auth_headers
    )
    params = {
        "start_time": "2026-10-19T13:15:00Z",
        "end_time": "2026-10-19T13:45:00Z",
    }

    response = await client.get("/api/v1/appointments/conflicts", params=params, headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"has_conflicts": True}

    response = await client.get(
        "/api/v1/appointments/conflicts",
        params={**params, "exclude_id": created.json()["id"]},
        headers=auth_headers,
    )
    assert response.json() == {"has_conflicts": False}


@pytest.mark.asyncio
async def test_list_appointments(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
    other_clinic_headers: dict,
) -> None:
    """Listing is scoped to the authenticated clinic."""
    await client.post("/api/v1/appointments/", json=appointment_payload, headers=auth_headers)

    response = await client.get("/api/v1/appointments/", headers=auth_headers)
    assert response.status_code == 200
    assert len(response.json()) == 1

    response = await client.get("/api/v1/appointments/", headers=other_clinic_headers)
    assert response.json() == []


@pytest.mark.asyncio
async def test_get_appointment(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """Test getting a specific appointment."""
    create_response = await client.post(
        "/api/v1/appointments/",
        json=appointment_payload,
        headers=auth_headers,
    )
    appointment_id = create_response.json()["id"]

    response = await client.get(f"/api/v1/appointments/{appointment_id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["id"] == appointment_id


@pytest.mark.asyncio
async def test_reschedule_into_conflict(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """Moving an appointment over another one is refused."""
    await client.post("/api/v1/appointments/", json=appointment_payload, headers=auth_headers)
    later = await client.post(
        "/api/v1/appointments/",
        json={
            **appointment_payload,
            "start_time": "2026-10-19T14:00:00-03:00",
            "end_time": "2026-10-19T14:30:00-03:00",
        },
        headers=auth_headers,
    )

    response = await client.put(
        f"/api/v1/appointments/{later.json()['id']}",
        json={
            "start_time": "2026-10-19T13:15:00Z",
            "end_time": "2026-10-19T13:45:00Z",
        },
        headers=auth_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_completing_records_revenue(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """Completing an appointment books the service price once."""
    created = await client.post(
        "/api/v1/appointments/", json=appointment_payload, headers=auth_headers
    )
    appointment_id = created.json()["id"]

    response = await client.patch(
        f"/api/v1/appointments/{appointment_id}/status",
        json={"status": "completed"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["appointment"]["status"] == "completed"
    assert data["transaction_info"]["action"] == "created"

    again = await client.patch(
        f"/api/v1/appointments/{appointment_id}/status",
        json={"status": "completed"},
        headers=auth_headers,
    )
    assert again.json()["transaction_info"]["action"] == "none"

    ledger = await client.get("/api/v1/transactions/", headers=auth_headers)
    entries = ledger.json()
    assert len(entries) == 1
    assert entries[0]["type"] == "entrada"
    assert entries[0]["origin"] == "agendamento"
    assert entries[0]["origin_id"] == appointment_id
    assert Decimal(entries[0]["amount"]) == Decimal("200.00")
    assert entries[0]["description"] == "Agendamento - Consulta - Maria Souza"


@pytest.mark.asyncio
async def test_reopening_removes_revenue(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """Moving a completed appointment back removes its ledger entry."""
    created = await client.post(
        "/api/v1/appointments/", json=appointment_payload, headers=auth_headers
    )
    appointment_id = created.json()["id"]
    await client.patch(
        f"/api/v1/appointments/{appointment_id}/status",
        json={"status": "completed"},
        headers=auth_headers,
    )

    response = await client.patch(
        f"/api/v1/appointments/{appointment_id}/status",
        json={"status": "confirmed"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["transaction_info"]["action"] == "deleted"

    ledger = await client.get("/api/v1/transactions/", headers=auth_headers)
    assert ledger.json() == []


@pytest.mark.asyncio
async def test_delete_appointment(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """Deleted appointments are gone; a second delete is a 404."""
    created = await client.post(
        "/api/v1/appointments/", json=appointment_payload, headers=auth_headers
    )
    appointment_id = created.json()["id"]

    response = await client.delete(f"/api/v1/appointments/{appointment_id}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.delete(f"/api/v1/appointments/{appointment_id}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_available_slots(
    client: AsyncClient,
    auth_headers: dict,
    weekday_schedule: list,
    appointment_payload: dict,
) -> None:
    """Booked time disappears from the available slots."""
    params = {"date": "2026-10-19", "service_id": appointment_payload["service_id"]}

    response = await client.get(
        "/api/v1/appointments/available-slots", params=params, headers=auth_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["date"] == "2026-10-19"
    assert len(data["slots"]) == 8
    assert data["slots"][0]["start_time"].startswith("2026-10-19T11:00:00")

    await client.post("/api/v1/appointments/", json=appointment_payload, headers=auth_headers)

    response = await client.get(
        "/api/v1/appointments/available-slots", params=params, headers=auth_headers
    )
    starts = [slot["start_time"][:16] for slot in response.json()["slots"]]
    assert len(starts) == 7
    assert "2026-10-19T13:00" not in starts


@pytest.mark.asyncio
async def test_available_slots_unconfigured_day(
    client: AsyncClient,
    auth_headers: dict,
    weekday_schedule: list,
) -> None:
    """A weekday without a schedule offers nothing."""
    response = await client.get(
        "/api/v1/appointments/available-slots",
        params={"date": "2026-10-20"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["slots"] == []


@pytest.mark.asyncio
async def test_available_slots_invalid_date(client: AsyncClient, auth_headers: dict) -> None:
    """A malformed date is a validation error."""
    response = await client.get(
        "/api/v1/appointments/available-slots",
        params={"date": "2026-02-30"},
        headers=auth_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_detailed_health_reports_scheduling(client: AsyncClient) -> None:
    """The readiness probe exposes the clinic calendar settings."""
    response = await client.get("/api/v1/health/detailed")
    assert response.status_code == 200
    scheduling = response.json()["scheduling"]
    assert scheduling["timezone"] == "America/Sao_Paulo"
    assert scheduling["timezone_valid"] is True
    assert scheduling["default_slot_interval_minutes"] == 30


@pytest.mark.asyncio
async def test_update_status_reports_ledger_failure(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Completing through a full update fails loudly when income cannot be booked."""

    async def failing_insert(self, data):
        raise RuntimeError("ledger unavailable")

    monkeypatch.setattr(TransactionService, "insert", failing_insert)
    created = await client.post(
        "/api/v1/appointments/", json=appointment_payload, headers=auth_headers
    )
    appointment_id = created.json()["id"]

    response = await client.put(
        f"/api/v1/appointments/{appointment_id}",
        json={"status": "completed"},
        headers=auth_headers,
    )
    assert response.status_code == 502
    data = response.json()
    assert data["rolled_back"] is True
    assert data["origin"] == "agendamento"
    assert data["origin_id"] == appointment_id

    stored = await client.get(f"/api/v1/appointments/{appointment_id}", headers=auth_headers)
    assert stored.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_reactivating_canceled_into_conflict(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """A canceled booking cannot come back over a range taken in the meantime."""
    first = await client.post(
        "/api/v1/appointments/", json=appointment_payload, headers=auth_headers
    )
    first_id = first.json()["id"]
    await client.patch(
        f"/api/v1/appointments/{first_id}/status",
        json={"status": "canceled"},
        headers=auth_headers,
    )
    second = await client.post(
        "/api/v1/appointments/", json=appointment_payload, headers=auth_headers
    )
    assert second.status_code == 201

    response = await client.patch(
        f"/api/v1/appointments/{first_id}/status",
        json={"status": "confirmed"},
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert response.json()["conflicting_ids"] == [second.json()["id"]]

    response = await client.put(
        f"/api/v1/appointments/{first_id}",
        json={"status": "pending"},
        headers=auth_headers,
    )
    assert response.status_code == 409

    stored = await client.get(f"/api/v1/appointments/{first_id}", headers=auth_headers)
    assert stored.json()["status"] == "canceled"


@pytest.mark.asyncio
async def test_update_clears_patient_phone(
    client: AsyncClient,
    auth_headers: dict,
    appointment_payload: dict,
) -> None:
    """An explicit null clears the phone; required fields cannot be nulled."""
    created = await client.post(
        "/api/v1/appointments/",
        json={**appointment_payload, "patient_phone": "11999990000"},
        headers=auth_headers,
    )
    appointment_id = created.json()["id"]
    assert created.json()["patient_phone"] == "11999990000"

    response = await client.put(
        f"/api/v1/appointments/{appointment_id}",
        json={"patient_phone": None},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["patient_phone"] is None

    response = await client.put(
        f"/api/v1/appointments/{appointment_id}",
        json={"patient_name": None},
        headers=auth_headers,
    )
    assert response.status_code == 422
