from datetime import datetime
from decimal import Decimal

from barbershop.models import Appointment, CompletedService
from barbershop.schemas import AppointmentStatus


def record_body(shop, **overrides):
    body = {
        "barber_id": shop.barber.id,
        "service_id": shop.haircut.id,
        "client_name": "Walk-in",
        "price": "20.00",
        "date": "2024-02-01T10:00:00",
    }
    body.update(overrides)
    return body


def test_barber_records_own_service(as_barber, repo, shop):
    resp = as_barber.post("/api/completed-services", json=record_body(shop))
    assert resp.status_code == 201
    body = resp.json()
    assert body["validated_by_admin"] is False
    assert Decimal(body["price"]) == Decimal("20.00")
    assert len(repo.find(CompletedService)) == 1


def test_barber_cannot_record_for_another_barber(as_barber, repo, shop):
    resp = as_barber.post("/api/completed-services", json=record_body(shop, barber_id=shop.other_barber.id))
    assert resp.status_code == 403
    assert repo.find(CompletedService) == []


def test_admin_records_for_any_barber(as_admin, shop):
    resp = as_admin.post("/api/completed-services", json=record_body(shop, barber_id=shop.other_barber.id))
    assert resp.status_code == 201


def test_clients_cannot_record(as_client, shop):
    assert as_client.post("/api/completed-services", json=record_body(shop)).status_code == 403


def test_client_name_or_id_required(as_admin, shop):
    resp = as_admin.post("/api/completed-services", json=record_body(shop, client_name=None))
    assert resp.status_code == 400


def test_client_name_taken_from_client(as_admin, shop):
    resp = as_admin.post(
        "/api/completed-services", json=record_body(shop, client_name=None, client_id=shop.client.id)
    )
    assert resp.json()["client_name"] == "Carlos Client"


def test_unknown_service_is_not_found(as_admin, shop):
    resp = as_admin.post("/api/completed-services", json=record_body(shop, service_id=999))
    assert resp.status_code == 404


def test_deactivated_service_cannot_be_recorded(as_admin, repo, shop):
    as_admin.delete(f"/api/services/{shop.beard.id}")
    resp = as_admin.post("/api/completed-services", json=record_body(shop, service_id=shop.beard.id))
    assert resp.status_code == 400
    assert resp.json() == {"message": "Service is not available"}
    assert repo.find(CompletedService) == []


def test_negative_price_is_rejected(as_admin, shop):
    resp = as_admin.post("/api/completed-services", json=record_body(shop, price="-1"))
    assert resp.status_code == 400


def test_recording_from_appointment_completes_it(as_barber, repo, shop):
    appt = repo.add(
        Appointment(client_id=shop.client.id, barber_id=shop.barber.id, service_id=shop.haircut.id,
                    date=datetime(2024, 2, 1, 10, 0), status=AppointmentStatus.confirmed)
    )
    resp = as_barber.post("/api/completed-services", json=record_body(shop, appointment_id=appt.id))
    assert resp.status_code == 201
    assert repo.get(Appointment, appt.id).status == AppointmentStatus.completed

    again = as_barber.post("/api/completed-services", json=record_body(shop, appointment_id=appt.id))
    assert again.status_code == 400


def test_canceled_appointment_cannot_be_recorded(as_barber, repo, shop):
    appt = repo.add(
        Appointment(client_id=shop.client.id, barber_id=shop.barber.id, service_id=shop.haircut.id,
                    date=datetime(2024, 2, 1, 10, 0), status=AppointmentStatus.canceled)
    )
    resp = as_barber.post("/api/completed-services", json=record_body(shop, appointment_id=appt.id))
    assert resp.status_code == 409
    assert repo.find(CompletedService) == []


def test_approve_is_idempotent(as_admin, repo, completed_service_factory):
    record = completed_service_factory()
    first = as_admin.patch(f"/api/completed-services/{record.id}/validate")
    second = as_admin.patch(f"/api/completed-services/{record.id}/validate")
    assert first.status_code == second.status_code == 200
    assert second.json()["validated_by_admin"] is True
    assert repo.get(CompletedService, record.id).validated_by_admin is True
    assert len(repo.action_logs(entity="completed_service", entity_id=record.id)) == 1


def test_approve_changes_nothing_else(as_admin, repo, completed_service_factory):
    record = completed_service_factory(price=Decimal("35.50"), client_name="Rui")
    as_admin.patch(f"/api/completed-services/{record.id}/validate")
    stored = repo.get(CompletedService, record.id)
    assert stored.price == Decimal("35.50")
    assert stored.client_name == "Rui"


def test_only_admin_approves(as_barber, completed_service_factory):
    record = completed_service_factory()
    assert as_barber.patch(f"/api/completed-services/{record.id}/validate").status_code == 403


def test_null_flag_reads_as_not_validated(as_admin, completed_service_factory):
    record = completed_service_factory(validated_by_admin=None)
    body = as_admin.get(f"/api/completed-services/{record.id}").json()
    assert body["validated_by_admin"] is False


def test_reject_deletes(as_admin, repo, completed_service_factory):
    record = completed_service_factory()
    assert as_admin.delete(f"/api/completed-services/{record.id}").status_code == 204
    assert repo.get(CompletedService, record.id) is None
    assert as_admin.get(f"/api/completed-services/{record.id}").status_code == 404


def test_barber_cannot_reject(as_barber, completed_service_factory):
    record = completed_service_factory()
    assert as_barber.delete(f"/api/completed-services/{record.id}").status_code == 403


def test_barber_reads_only_own_records(as_barber, as_other_barber, completed_service_factory):
    record = completed_service_factory()
    assert as_barber.get(f"/api/completed-services/{record.id}").status_code == 200
    assert as_other_barber.get(f"/api/completed-services/{record.id}").status_code == 403


def test_detail_includes_barber_and_service(as_admin, shop, completed_service_factory):
    record = completed_service_factory()
    body = as_admin.get(f"/api/completed-services/{record.id}").json()
    assert body["service"]["name"] == "Haircut"
    assert body["barber"]["user"]["id"] == shop.barber_user.id


def test_list_all_is_paginated(as_admin, completed_service_factory):
    for day in (1, 2, 3):
        completed_service_factory(date=datetime(2024, 2, day, 10, 0))
    page = as_admin.get("/api/completed-services", params={"limit": 2}).json()
    assert [r["date"][:10] for r in page] == ["2024-02-03", "2024-02-02"]
    rest = as_admin.get("/api/completed-services", params={"limit": 2, "offset": 2}).json()
    assert [r["date"][:10] for r in rest] == ["2024-02-01"]


def test_list_all_rejects_bad_page(as_admin, completed_service_factory):
    assert as_admin.get("/api/completed-services", params={"limit": -1}).status_code == 400
    assert as_admin.get("/api/completed-services", params={"limit": 0}).status_code == 400


def test_barber_service_list(as_barber, shop, completed_service_factory):
    mine = completed_service_factory()
    completed_service_factory(barber_id=shop.other_barber.id)
    assert [r["id"] for r in as_barber.get("/api/barber/services").json()] == [mine.id]
