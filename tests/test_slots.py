from datetime import datetime

from barbershop.models import Appointment
from barbershop.schemas import AppointmentStatus
from barbershop.services.slots import SlotService, daily_grid

FULL_DAY = [
    "09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
    "12:00", "12:30", "13:00", "13:30", "14:00", "14:30",
    "15:00", "15:30", "16:00", "16:30", "17:00", "17:30",
]


def book(repo, shop, when, status=AppointmentStatus.pending, barber=None):
    return repo.add(
        Appointment(
            client_id=shop.client.id,
            barber_id=(barber or shop.barber).id,
            service_id=shop.haircut.id,
            date=when,
            status=status,
        )
    )


def test_daily_grid_defaults():
    assert daily_grid() == FULL_DAY


def test_daily_grid_is_configurable():
    assert daily_grid("10:00", 15, 3) == ["10:00", "10:15", "10:30"]


def test_empty_day_returns_full_grid(api, shop):
    resp = api.get(f"/api/barbers/{shop.barber.id}/available-slots", params={"date": "2024-03-01"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["barber_id"] == shop.barber.id
    assert body["date"] == "2024-03-01"
    assert body["available_slots"] == FULL_DAY


def test_booked_slot_is_removed(api, repo, shop):
    book(repo, shop, datetime(2024, 3, 1, 9, 0))
    slots = api.get(
        f"/api/barbers/{shop.barber.id}/available-slots", params={"date": "2024-03-01"}
    ).json()["available_slots"]
    assert "09:00" not in slots
    assert "09:30" in slots
    assert len(slots) == 17


def test_canceled_appointment_frees_its_slot(repo, shop):
    book(repo, shop, datetime(2024, 3, 1, 11, 0), status=AppointmentStatus.canceled)
    assert SlotService(repo).available_slots(shop.barber.id, "2024-03-01") == FULL_DAY


def test_other_days_and_barbers_do_not_interfere(repo, shop):
    book(repo, shop, datetime(2024, 3, 2, 9, 0))
    book(repo, shop, datetime(2024, 3, 1, 9, 0), barber=shop.other_barber)
    assert SlotService(repo).available_slots(shop.barber.id, "2024-03-01") == FULL_DAY


def test_full_timestamp_uses_calendar_day(repo, shop):
    book(repo, shop, datetime(2024, 3, 1, 17, 30))
    slots = SlotService(repo).available_slots(shop.barber.id, "2024-03-01T15:45:00Z")
    assert slots == FULL_DAY[:-1]


def test_invalid_date_is_rejected(api, shop):
    resp = api.get(f"/api/barbers/{shop.barber.id}/available-slots", params={"date": "first of march"})
    assert resp.status_code == 400
    assert "Invalid date" in resp.json()["message"]


def test_missing_date_is_rejected(api, shop):
    resp = api.get(f"/api/barbers/{shop.barber.id}/available-slots")
    assert resp.status_code == 400


def test_unknown_barber(api, shop):
    resp = api.get("/api/barbers/999/available-slots", params={"date": "2024-03-01"})
    assert resp.status_code == 404
    assert resp.json() == {"message": "Barber not found"}
