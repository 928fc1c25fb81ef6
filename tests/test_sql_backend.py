from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from barbershop.auth import hash_password
from barbershop.db import get_repository
from barbershop.errors import Conflict
from barbershop.main import app
from barbershop.models import Appointment, Barber, Service, User
from barbershop.repository import SqlRepository
from barbershop.schemas import AppointmentStatus, UserRole


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_repo(engine):
    with Session(engine) as session:
        yield SqlRepository(session)


@pytest.fixture
def sql_api(engine):
    """The app served from a real (in-memory SQLite) database."""

    def sql_repository():
        with Session(engine) as session:
            yield SqlRepository(session)

    app.state.memory_store = None
    app.dependency_overrides[get_repository] = sql_repository
    yield TestClient(app)
    app.dependency_overrides.pop(get_repository, None)


@pytest.fixture
def seeded(sql_repo):
    admin = sql_repo.add(
        User(username="rita", email="rita@example.com", full_name="Rita", role=UserRole.admin,
             password_hash=hash_password("segredo-forte"))
    )
    barber_user = sql_repo.add(
        User(username="tiago", email="tiago@example.com", full_name="Tiago", role=UserRole.barber)
    )
    barber = sql_repo.add(Barber(user_id=barber_user.id, nif="1", iban="PT50"))
    haircut = sql_repo.add(Service(name="Haircut", price=Decimal("20.00"), duration=30))
    return admin, barber, haircut


def test_naive_datetimes_round_trip(sql_repo, seeded):
    _, barber, haircut = seeded
    client = sql_repo.add(User(username="c", email="c@example.com", full_name="C"))
    appt = sql_repo.add(
        Appointment(client_id=client.id, barber_id=barber.id, service_id=haircut.id, date=datetime(2024, 3, 1, 9))
    )
    sql_repo.session.expire_all()
    stored = sql_repo.get(Appointment, appt.id)
    assert stored.date == datetime(2024, 3, 1, 9)
    assert stored.date.tzinfo is None
    assert sql_repo.get(User, client.id).created_at.tzinfo is None


def test_booking_flow_over_http(sql_api, seeded):
    _, barber, haircut = seeded
    assert sql_api.post(
        "/api/auth/register",
        json={"username": "marta", "email": "marta@example.com", "password": "tesoura123", "full_name": "Marta"},
    ).status_code == 201
    token = sql_api.post(
        "/api/auth/login", data={"username": "marta", "password": "tesoura123"}
    ).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    body = {"barber_id": barber.id, "service_id": haircut.id, "date": "2024-03-01T09:00:00"}
    resp = sql_api.post("/api/appointments", json=body, headers=headers)
    assert resp.status_code == 201
    assert resp.json()["date"] == "2024-03-01T09:00:00"

    slots = sql_api.get(
        f"/api/barbers/{barber.id}/available-slots", params={"date": "2024-03-01"}
    ).json()["available_slots"]
    assert "09:00" not in slots

    again = sql_api.post("/api/appointments", json=body, headers=headers)
    assert again.status_code == 400


def test_live_slot_is_unique_per_barber(sql_repo, seeded):
    _, barber, haircut = seeded
    client = sql_repo.add(User(username="c", email="c@example.com", full_name="C"))
    slot = dict(client_id=client.id, barber_id=barber.id, service_id=haircut.id, date=datetime(2024, 3, 1, 9))
    sql_repo.add(Appointment(**slot))
    with pytest.raises(Conflict):
        sql_repo.add(Appointment(**slot))
    assert len(sql_repo.appointments(barber_id=barber.id)) == 1


def test_canceled_rows_do_not_hold_the_slot(sql_repo, seeded):
    _, barber, haircut = seeded
    client = sql_repo.add(User(username="c", email="c@example.com", full_name="C"))
    slot = dict(client_id=client.id, barber_id=barber.id, service_id=haircut.id, date=datetime(2024, 3, 1, 9))
    sql_repo.add(Appointment(status=AppointmentStatus.canceled, **slot))
    sql_repo.add(Appointment(status=AppointmentStatus.canceled, **slot))
    sql_repo.add(Appointment(**slot))
    assert len(sql_repo.appointments(barber_id=barber.id, exclude_canceled=True)) == 1


def test_second_session_cannot_double_book(engine, seeded):
    _, barber, haircut = seeded
    with Session(engine) as first, Session(engine) as second:
        a, b = SqlRepository(first), SqlRepository(second)
        client = a.add(User(username="c", email="c@example.com", full_name="C"))
        slot = dict(client_id=client.id, barber_id=barber.id, service_id=haircut.id, date=datetime(2024, 3, 1, 9))
        a.add(Appointment(**slot))
        with pytest.raises(Conflict):
            b.add(Appointment(**slot))
