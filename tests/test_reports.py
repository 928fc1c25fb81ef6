from datetime import datetime
from decimal import Decimal

import pytest

from barbershop.models import Appointment, Payment
from barbershop.schemas import AppointmentStatus, PaymentStatus, ReportPeriod
from barbershop.services.reports import ReportService, percent_change, period_window, previous_window

# a Friday; its week starts on Monday 2024-03-11
NOW = datetime(2024, 3, 15, 12, 0)


@pytest.fixture
def reports(repo):
    return ReportService(repo)


@pytest.mark.parametrize(
    "period, start, end",
    [
        (ReportPeriod.day, datetime(2024, 3, 15), datetime(2024, 3, 16)),
        (ReportPeriod.week, datetime(2024, 3, 11), datetime(2024, 3, 18)),
        (ReportPeriod.month, datetime(2024, 3, 1), datetime(2024, 4, 1)),
        (ReportPeriod.year, datetime(2024, 1, 1), datetime(2025, 1, 1)),
    ],
)
def test_period_windows(period, start, end):
    assert period_window(period, NOW) == (start, end)


def test_previous_month_crosses_the_year():
    window = period_window(ReportPeriod.month, datetime(2024, 1, 20))
    assert previous_window(ReportPeriod.month, window) == (datetime(2023, 12, 1), datetime(2024, 1, 1))


def test_percent_change():
    assert percent_change(Decimal("12"), Decimal("8")) == 50
    assert percent_change(5, 0) == 0
    assert percent_change(Decimal("1"), Decimal("3")) == -67


# ---- barber earnings -----------------------------------------------------------

@pytest.fixture
def march_work(shop, completed_service_factory, product_sale_factory):
    completed_service_factory(date=datetime(2024, 3, 5, 10), validated_by_admin=True)
    completed_service_factory(date=datetime(2024, 3, 7, 10))  # awaiting approval
    completed_service_factory(date=datetime(2024, 2, 20, 10), validated_by_admin=True)
    product_sale_factory(date=datetime(2024, 3, 6, 11), quantity=2, validated_by_admin=True)


def test_earnings_count_validated_commission_only(reports, shop, march_work):
    report = reports.earnings(shop.barber.id, ReportPeriod.month, now=NOW)
    # 40% of 20.00 plus 20% of 2 x 10.00
    assert report.total == Decimal("12.00")
    assert report.previous == Decimal("8.00")
    assert report.change == 50
    assert len(report.chart_data) == 31
    points = {p.label: p.amount for p in report.chart_data}
    assert points["2024-03-05"] == Decimal("8.00")
    assert points["2024-03-06"] == Decimal("4.00")
    assert points["2024-03-07"] == Decimal("0.00")


def test_barber_dashboard(reports, repo, shop, march_work):
    repo.add(Payment(barber_id=shop.barber.id, amount=Decimal("8.00"), period_start=datetime(2024, 2, 1),
                     period_end=datetime(2024, 2, 29), status=PaymentStatus.paid))
    repo.add(Payment(barber_id=shop.barber.id, amount=Decimal("12.00"), period_start=datetime(2024, 3, 1),
                     period_end=datetime(2024, 3, 31)))
    board = reports.barber_dashboard(shop.barber.id, now=NOW)
    assert board.monthly_earnings == Decimal("12.00")
    assert board.services_count == 2
    assert board.next_payment_date == datetime(2024, 3, 31)
    assert board.previous_month_growth == 50


def test_earnings_endpoints(as_barber, as_admin, shop):
    resp = as_barber.get("/api/barber/earnings", params={"period": "week"})
    assert resp.status_code == 200
    assert resp.json()["period"] == "week"
    assert len(resp.json()["chart_data"]) == 7

    assert as_barber.get("/api/barber/earnings", params={"period": "fortnight"}).status_code == 400
    assert as_admin.get(f"/api/barbers/{shop.barber.id}/earnings").status_code == 200
    assert as_barber.get(f"/api/barbers/{shop.barber.id}/earnings").status_code == 403
    assert as_barber.get("/api/barber/dashboard").json()["barber_id"] == shop.barber.id


def test_history_and_recent_services(as_barber, repo, shop, completed_service_factory):
    now = datetime.now()
    this_month = completed_service_factory(date=now)
    old = completed_service_factory(date=datetime(2020, 1, 1, 10))
    completed_service_factory(barber_id=shop.other_barber.id, date=now)

    history = as_barber.get("/api/barber/services/history", params={"period": "month"}).json()
    assert [r["id"] for r in history] == [this_month.id]
    recent = as_barber.get("/api/barber/services/recent", params={"limit": 5}).json()
    assert [r["id"] for r in recent] == [this_month.id, old.id]

    paid = repo.add(Payment(barber_id=shop.barber.id, amount=Decimal("1.00"), period_start=now, period_end=now))
    repo.add(Payment(barber_id=shop.barber.id, amount=Decimal("1.00"), period_start=datetime(2020, 1, 1),
                     period_end=datetime(2020, 1, 31)))
    payments = as_barber.get("/api/barber/payments/history").json()
    assert [p["id"] for p in payments] == [paid.id]


# ---- shop dashboard ------------------------------------------------------------

@pytest.fixture
def busy_week(repo, shop, user_factory, completed_service_factory, product_sale_factory):
    completed_service_factory(date=datetime(2024, 3, 15, 10))
    completed_service_factory(date=datetime(2024, 3, 12, 10), service_id=shop.beard.id, price=Decimal("10.00"))
    completed_service_factory(date=datetime(2024, 3, 5, 10))
    product_sale_factory(date=datetime(2024, 3, 15, 11))

    def book(day, status=AppointmentStatus.pending):
        repo.add(Appointment(client_id=shop.client.id, barber_id=shop.barber.id, service_id=shop.haircut.id,
                             date=day, status=status))

    book(datetime(2024, 3, 12, 9))
    book(datetime(2024, 3, 14, 9))
    book(datetime(2024, 3, 14, 10), AppointmentStatus.canceled)
    book(datetime(2024, 3, 6, 9))

    user_factory(created_at=datetime(2024, 3, 12))
    user_factory(created_at=datetime(2024, 3, 13))
    user_factory(created_at=datetime(2024, 3, 6))

    def payment(amount, created, status=PaymentStatus.pending):
        repo.add(Payment(barber_id=shop.barber.id, amount=Decimal(amount), period_start=datetime(2024, 1, 1),
                         period_end=datetime(2024, 1, 31), status=status, created_at=created))

    payment("50.00", datetime(2024, 3, 12))
    payment("25.00", datetime(2024, 3, 5))
    payment("100.00", datetime(2024, 3, 13), PaymentStatus.paid)


def test_shop_dashboard(reports, busy_week):
    board = reports.dashboard(ReportPeriod.week, now=NOW)
    stats = board.stats
    assert stats.sales == Decimal("30.00")
    assert stats.appointments == 2
    assert stats.pending_payments == Decimal("75.00")
    assert stats.new_clients == 2
    assert stats.sales_trend == 100
    assert stats.appointments_trend == 100
    assert stats.pending_payments_trend == 100
    assert stats.new_clients_trend == 100
    points = {p.label: p.amount for p in board.sales_chart}
    assert len(points) == 7
    assert points["2024-03-15"] == Decimal("30.00")
    assert points["2024-03-12"] == Decimal("10.00")


def test_dashboard_is_admin_only(as_admin, as_barber, api, shop):
    resp = as_admin.get("/api/dashboard", params={"period": "month"})
    assert resp.status_code == 200
    assert resp.json()["period"] == "month"
    assert as_barber.get("/api/dashboard").status_code == 403
    assert api.get("/api/dashboard").status_code == 401


def test_top_barbers(reports, repo, shop, barber_factory, completed_service_factory):
    completed_service_factory(date=datetime(2024, 3, 2, 10))
    completed_service_factory(date=datetime(2024, 3, 3, 10))
    completed_service_factory(barber_id=shop.other_barber.id, date=datetime(2024, 3, 4, 10), price=Decimal("30.00"))
    retired = barber_factory(active=False)
    completed_service_factory(barber_id=retired.id, date=datetime(2024, 3, 4, 11), price=Decimal("99.00"))

    ranking = reports.top_barbers(ReportPeriod.month, now=NOW)
    assert [(r.barber.id, r.services_count, r.revenue) for r in ranking] == [
        (shop.barber.id, 2, Decimal("40.00")),
        (shop.other_barber.id, 1, Decimal("30.00")),
    ]
    assert len(reports.top_barbers(ReportPeriod.month, limit=1, now=NOW)) == 1


def test_popular_services(reports, shop, completed_service_factory):
    completed_service_factory(date=datetime(2024, 3, 2, 10))
    completed_service_factory(date=datetime(2024, 3, 3, 10))
    completed_service_factory(date=datetime(2024, 3, 4, 10), service_id=shop.beard.id, price=Decimal("10.00"))
    completed_service_factory(date=datetime(2024, 1, 4, 10), service_id=shop.beard.id, price=Decimal("10.00"))

    popular = reports.popular_services(ReportPeriod.month, now=NOW)
    assert [(p.service.name, p.times_performed, p.revenue) for p in popular] == [
        ("Haircut", 2, Decimal("40.00")),
        ("Beard Trim", 1, Decimal("10.00")),
    ]


def test_ranking_endpoints_need_staff(as_barber, as_client, shop):
    assert as_barber.get("/api/barbers/top").status_code == 200
    assert as_barber.get("/api/services/popular", params={"period": "year"}).status_code == 200
    assert as_client.get("/api/barbers/top").status_code == 403
    assert as_client.get("/api/services/popular").status_code == 403
