"""Tests for the slot availability engine."""

from datetime import UTC, date, datetime, time
from types import SimpleNamespace
from uuid import uuid4

import pytest

from clinic_api.core.exceptions import AvailabilityError
from clinic_api.schemas.appointments import AppointmentStatus
from clinic_api.services.availability_service import AvailabilityService

MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)
CLINIC = uuid4()


def _schedule(**overrides) -> SimpleNamespace:
    values = {
        "day_of_week": "segunda",
        "is_active": True,
        "start_time": time(8, 0),
        "end_time": time(12, 0),
        "slot_interval": 30,
        "has_lunch_break": False,
        "lunch_start_time": None,
        "lunch_end_time": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _utc(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=UTC)


def _booking(start: datetime, end: datetime, status=AppointmentStatus.PENDING) -> SimpleNamespace:
    return SimpleNamespace(id=uuid4(), start_time=start, end_time=end, status=status)


class FakeSchedules:
    def __init__(self, days: dict | None = None, error: Exception | None = None):
        self.days = days or {}
        self.error = error

    async def get_day(self, user_id, day_of_week):
        if self.error:
            raise self.error
        return self.days.get(day_of_week)


class FakeAppointments:
    def __init__(self, bookings: list | None = None, error: Exception | None = None):
        self.bookings = bookings or []
        self.error = error
        self.calls = []

    async def list_for_day(self, user_id, day_start, day_end, statuses):
        self.calls.append((day_start, day_end, statuses))
        if self.error:
            raise self.error
        return list(self.bookings)


class FakeCatalog:
    def __init__(self, services: dict | None = None):
        self.services = services or {}

    async def find_service(self, user_id, service_id):
        return self.services.get(service_id)


def _engine(schedule=None, bookings=None, services=None, **kwargs) -> AvailabilityService:
    days = {"segunda": schedule} if schedule is not None else {}
    return AvailabilityService(
        FakeSchedules(days),
        kwargs.pop("appointments", FakeAppointments(bookings)),
        FakeCatalog(services),
        timezone="America/Sao_Paulo",
        default_duration=60,
        default_interval=30,
    )


def _local_starts(slots) -> list[str]:
    # São Paulo is UTC-3 all year
    return [f"{slot.start_time.hour - 3:02d}:{slot.start_time.minute:02d}" for slot in slots]


@pytest.mark.asyncio
async def test_full_morning_without_bookings() -> None:
    """Every interval start whose slot fits before the work end is offered."""
    slots = await _engine(_schedule()).compute_available_slots(CLINIC, MONDAY)

    assert _local_starts(slots) == ["08:00", "08:30", "09:00", "09:30", "10:00", "10:30", "11:00"]
    assert slots[0].start_time == _utc(11)
    assert slots[0].end_time == _utc(12)
    assert slots[-1].end_time == _utc(15)


@pytest.mark.asyncio
async def test_service_duration_sizes_slots() -> None:
    """Slots take the duration of the requested service."""
    service_id = uuid4()
    services = {service_id: SimpleNamespace(id=service_id, duration=90, active=True)}
    slots = await _engine(_schedule(), services=services).compute_available_slots(
        CLINIC, MONDAY, service_id
    )

    assert _local_starts(slots) == ["08:00", "08:30", "09:00", "09:30", "10:00", "10:30"]
    assert all((s.end_time - s.start_time).total_seconds() == 90 * 60 for s in slots)


@pytest.mark.asyncio
async def test_unknown_service_uses_default_duration() -> None:
    """A service that cannot be found falls back to the default duration."""
    slots = await _engine(_schedule()).compute_available_slots(CLINIC, MONDAY, uuid4())

    assert len(slots) == 7
    assert all((s.end_time - s.start_time).total_seconds() == 3600 for s in slots)


@pytest.mark.asyncio
async def test_lunch_break_removes_overlapping_slots() -> None:
    """Candidates overlapping the lunch window are dropped."""
    schedule = _schedule(
        has_lunch_break=True,
        lunch_start_time=time(10, 0),
        lunch_end_time=time(11, 0),
    )
    slots = await _engine(schedule).compute_available_slots(CLINIC, MONDAY)

    assert _local_starts(slots) == ["08:00", "08:30", "09:00", "11:00"]


@pytest.mark.asyncio
async def test_invalid_lunch_break_is_ignored() -> None:
    """An inverted lunch window does not block anything."""
    schedule = _schedule(
        has_lunch_break=True,
        lunch_start_time=time(11, 0),
        lunch_end_time=time(10, 0),
    )
    slots = await _engine(schedule).compute_available_slots(CLINIC, MONDAY)

    assert len(slots) == 7


@pytest.mark.asyncio
async def test_bookings_block_overlapping_slots() -> None:
    """A pending booking at 09:00-10:00 local blocks every slot touching it."""
    bookings = [_booking(_utc(12), _utc(13))]
    slots = await _engine(_schedule(), bookings=bookings).compute_available_slots(CLINIC, MONDAY)

    assert _local_starts(slots) == ["08:00", "10:00", "10:30", "11:00"]


@pytest.mark.asyncio
async def test_adjacent_booking_does_not_block() -> None:
    """A booking ending exactly at a slot start leaves the slot free."""
    bookings = [_booking(_utc(10), _utc(11), AppointmentStatus.CONFIRMED)]
    slots = await _engine(_schedule(), bookings=bookings).compute_available_slots(CLINIC, MONDAY)

    assert _local_starts(slots)[0] == "08:00"
    assert len(slots) == 7


@pytest.mark.asyncio
async def test_canceled_bookings_do_not_block() -> None:
    """Canceled bookings free their time."""
    bookings = [_booking(_utc(11), _utc(15), AppointmentStatus.CANCELED)]
    slots = await _engine(_schedule(), bookings=bookings).compute_available_slots(CLINIC, MONDAY)

    assert len(slots) == 7


@pytest.mark.asyncio
async def test_completed_bookings_block() -> None:
    """Completed bookings still occupy their time."""
    bookings = [_booking(_utc(11), _utc(15), AppointmentStatus.COMPLETED)]
    slots = await _engine(_schedule(), bookings=bookings).compute_available_slots(CLINIC, MONDAY)

    assert slots == []


@pytest.mark.asyncio
async def test_unconfigured_day_has_no_slots() -> None:
    """A weekday with no schedule row yields an empty list."""
    slots = await _engine(_schedule()).compute_available_slots(CLINIC, TUESDAY)
    assert slots == []


@pytest.mark.asyncio
async def test_inactive_day_has_no_slots() -> None:
    """A disabled weekday yields an empty list."""
    slots = await _engine(_schedule(is_active=False)).compute_available_slots(CLINIC, MONDAY)
    assert slots == []


@pytest.mark.asyncio
async def test_inverted_work_window_has_no_slots() -> None:
    """A work window that ends before it starts yields an empty list."""
    schedule = _schedule(start_time=time(12, 0), end_time=time(8, 0))
    slots = await _engine(schedule).compute_available_slots(CLINIC, MONDAY)
    assert slots == []


@pytest.mark.asyncio
async def test_service_longer_than_window() -> None:
    """No slot is offered when the service does not fit the work window."""
    schedule = _schedule(end_time=time(8, 45))
    slots = await _engine(schedule).compute_available_slots(CLINIC, MONDAY)
    assert slots == []


@pytest.mark.asyncio
async def test_slots_are_ordered_and_free() -> None:
    """Output is chronological and never overlaps lunch or occupied bookings."""
    schedule = _schedule(
        end_time=time(18, 0),
        slot_interval=20,
        has_lunch_break=True,
        lunch_start_time=time(12, 0),
        lunch_end_time=time(13, 30),
    )
    bookings = [
        _booking(_utc(13, 10), _utc(13, 50)),
        _booking(_utc(18), _utc(19), AppointmentStatus.CONFIRMED),
    ]
    slots = await _engine(schedule, bookings=bookings).compute_available_slots(CLINIC, MONDAY)

    starts = [s.start_time for s in slots]
    assert starts == sorted(starts)
    lunch = (_utc(15), _utc(16, 30))
    for slot in slots:
        assert not (slot.start_time < lunch[1] and slot.end_time > lunch[0])
        for booking in bookings:
            assert not (slot.start_time < booking.end_time and slot.end_time > booking.start_time)
        assert slot.end_time <= _utc(21)


@pytest.mark.asyncio
async def test_repeated_calls_are_identical() -> None:
    """Same inputs give the same slots."""
    engine = _engine(_schedule(), bookings=[_booking(_utc(12), _utc(13))])

    first = await engine.compute_available_slots(CLINIC, MONDAY)
    second = await engine.compute_available_slots(CLINIC, MONDAY)
    assert first == second


@pytest.mark.asyncio
async def test_bookings_read_for_local_day() -> None:
    """Bookings are fetched for the clinic-local day in UTC."""
    appointments = FakeAppointments()
    engine = _engine(_schedule(), appointments=appointments)

    await engine.compute_available_slots(CLINIC, MONDAY)

    day_start, day_end, statuses = appointments.calls[0]
    assert day_start == _utc(3)
    assert day_end == _utc(3, day=TUESDAY)
    assert AppointmentStatus.CANCELED not in statuses


@pytest.mark.asyncio
async def test_store_failure_raises_availability_error() -> None:
    """A failing booking lookup is reported, not turned into an empty day."""
    engine = _engine(_schedule(), appointments=FakeAppointments(error=RuntimeError("db down")))

    with pytest.raises(AvailabilityError):
        await engine.compute_available_slots(CLINIC, MONDAY)


@pytest.mark.asyncio
async def test_schedule_failure_raises_availability_error() -> None:
    """A failing schedule lookup is reported."""
    engine = AvailabilityService(
        FakeSchedules(error=RuntimeError("db down")),
        FakeAppointments(),
        FakeCatalog(),
        timezone="America/Sao_Paulo",
    )

    with pytest.raises(AvailabilityError):
        await engine.compute_available_slots(CLINIC, MONDAY)


@pytest.mark.asyncio
async def test_short_morning_with_half_hour_service() -> None:
    """09:00-12:00 with a 30 minute service gives six slots; a booking removes one."""
    service_id = uuid4()
    services = {service_id: SimpleNamespace(id=service_id, duration=30, active=True)}
    schedule = _schedule(start_time=time(9, 0))

    slots = await _engine(schedule, services=services).compute_available_slots(
        CLINIC, MONDAY, service_id
    )
    assert _local_starts(slots) == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]

    bookings = [_booking(_utc(13), _utc(13, 30), AppointmentStatus.CONFIRMED)]
    slots = await _engine(schedule, bookings=bookings, services=services).compute_available_slots(
        CLINIC, MONDAY, service_id
    )
    assert _local_starts(slots) == ["09:00", "09:30", "10:30", "11:00", "11:30"]


@pytest.mark.asyncio
async def test_lunch_boundaries_are_adjacent() -> None:
    """Slots may end when lunch starts and begin when it ends."""
    schedule = _schedule(
        day_of_week="terca",
        end_time=time(17, 0),
        has_lunch_break=True,
        lunch_start_time=time(12, 0),
        lunch_end_time=time(13, 0),
    )
    engine = AvailabilityService(
        FakeSchedules({"terca": schedule}),
        FakeAppointments(),
        FakeCatalog(),
        timezone="America/Sao_Paulo",
        default_duration=60,
        default_interval=30,
    )

    starts = _local_starts(await engine.compute_available_slots(CLINIC, TUESDAY))

    assert "11:00" in starts
    assert "11:30" not in starts
    assert "12:00" not in starts
    assert "12:30" not in starts
    assert starts[starts.index("11:00") + 1] == "13:00"
    assert starts[-1] == "16:00"
