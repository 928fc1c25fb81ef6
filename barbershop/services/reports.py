# barbershop/services/reports.py
"""Earnings, dashboard and ranking aggregates.

Windows are calendar periods in shop wall-clock time: the current day, the
week starting on Monday, the calendar month or the calendar year. Trends
compare a window with the one of the same kind right before it.
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from ..models import Barber, CompletedService, Payment, Service, User
from ..repository import Repository
from ..schemas import (
    BarberDashboard,
    ChartPoint,
    Dashboard,
    DashboardStats,
    EarningsReport,
    PaymentStatus,
    PopularService,
    ReportPeriod,
    ServicePublic,
    TopBarber,
    UserRole,
)
from .common import barber_card, commission_of, get_or_404, money
from .product_sales import sale_commission

logger = logging.getLogger(__name__)

Window = Tuple[datetime, datetime]


def _shift_months(moment: datetime, months: int) -> datetime:
    index = moment.year * 12 + moment.month - 1 + months
    return moment.replace(year=index // 12, month=index % 12 + 1, day=1)


def period_window(period: ReportPeriod, now: datetime) -> Window:
    """[start, end) of the period containing ``now``."""
    today = datetime.combine(now.date(), datetime.min.time())
    if period == ReportPeriod.day:
        return today, today + timedelta(days=1)
    if period == ReportPeriod.week:
        start = today - timedelta(days=today.weekday())
        return start, start + timedelta(days=7)
    if period == ReportPeriod.month:
        start = today.replace(day=1)
        return start, _shift_months(start, 1)
    start = today.replace(month=1, day=1)
    return start, start.replace(year=start.year + 1)


def previous_window(period: ReportPeriod, window: Window) -> Window:
    start, _ = window
    if period == ReportPeriod.day:
        return start - timedelta(days=1), start
    if period == ReportPeriod.week:
        return start - timedelta(days=7), start
    if period == ReportPeriod.month:
        return _shift_months(start, -1), start
    return start.replace(year=start.year - 1), start


def percent_change(current, previous) -> int:
    if not previous or previous <= 0:
        return 0
    return int(round((Decimal(current) - Decimal(previous)) / Decimal(previous) * 100))


def _bucket_label(period: ReportPeriod, moment: datetime) -> str:
    if period == ReportPeriod.day:
        return moment.strftime("%H:00")
    if period == ReportPeriod.year:
        return moment.strftime("%Y-%m")
    return moment.date().isoformat()


def chart(period: ReportPeriod, window: Window, items: Iterable[Tuple[datetime, Decimal]]) -> List[ChartPoint]:
    """One point per hour (day), per day (week, month) or per month (year), empty ones included."""
    start, end = window
    labels = []
    cursor = start
    while cursor < end:
        labels.append(_bucket_label(period, cursor))
        if period == ReportPeriod.day:
            cursor += timedelta(hours=1)
        elif period == ReportPeriod.year:
            cursor = _shift_months(cursor, 1)
        else:
            cursor += timedelta(days=1)

    totals = defaultdict(Decimal)
    for moment, amount in items:
        totals[_bucket_label(period, moment)] += Decimal(amount)
    return [ChartPoint(label=label, amount=money(totals[label])) for label in labels]


class ReportService:
    def __init__(self, repo: Repository):
        self.repo = repo

    # ---- building blocks ----------------------------------------------

    def commission_items(self, barber_id: int, window: Window) -> List[Tuple[datetime, Decimal]]:
        """Commission earned on validated services and sales dated inside ``window``."""
        start, end = window
        items = []
        for record in self.repo.completed_services(barber_id=barber_id, validated=True, start=start, end=end):
            rate = self.repo.commission_for(record.barber_id, record.service_id)
            items.append((record.date, commission_of(record.price, rate.percentage if rate else None)))
        for sale in self.repo.product_sales(barber_id=barber_id, validated=True, start=start, end=end):
            items.append((sale.date, sale_commission(self.repo, sale)[1]))
        return items

    def revenue_items(self, window: Window) -> List[Tuple[datetime, Decimal]]:
        """Everything billed to clients in ``window``, approved or not."""
        start, end = window
        items = [(r.date, Decimal(r.price)) for r in self.repo.completed_services(start=start, end=end)]
        items.extend(
            (s.date, Decimal(s.unit_price) * s.quantity) for s in self.repo.product_sales(start=start, end=end)
        )
        return items

    def appointment_count(self, window: Window) -> int:
        start, end = window
        return len(self.repo.appointments(start=start, end=end, exclude_canceled=True))

    def new_client_count(self, window: Window) -> int:
        start, end = window
        criteria = [("role", "==", UserRole.client), ("created_at", ">=", start), ("created_at", "<", end)]
        return len(self.repo.find(User, criteria))

    def pending_payment_total(self, window: Optional[Window] = None) -> Decimal:
        criteria = [("status", "==", PaymentStatus.pending)]
        if window is not None:
            criteria += [("created_at", ">=", window[0]), ("created_at", "<", window[1])]
        return money(sum((p.amount for p in self.repo.find(Payment, criteria)), Decimal(0)))

    @staticmethod
    def total(items) -> Decimal:
        return money(sum((amount for _, amount in items), Decimal(0)))

    # ---- barber views -------------------------------------------------

    def earnings(self, barber_id: int, period: ReportPeriod, now: Optional[datetime] = None) -> EarningsReport:
        get_or_404(self.repo, Barber, barber_id, "Barber")
        window = period_window(period, now or datetime.now())
        items = self.commission_items(barber_id, window)
        total = self.total(items)
        previous = self.total(self.commission_items(barber_id, previous_window(period, window)))
        return EarningsReport(
            barber_id=barber_id,
            period=period,
            start=window[0],
            end=window[1],
            total=total,
            previous=previous,
            change=percent_change(total, previous),
            chart_data=chart(period, window, items),
        )

    def barber_dashboard(self, barber_id: int, now: Optional[datetime] = None) -> BarberDashboard:
        now = now or datetime.now()
        report = self.earnings(barber_id, ReportPeriod.month, now)
        services = self.repo.completed_services(barber_id=barber_id, start=report.start, end=report.end)
        pending = [p for p in self.repo.payments(barber_id=barber_id) if p.status == PaymentStatus.pending]
        return BarberDashboard(
            barber_id=barber_id,
            monthly_earnings=report.total,
            services_count=len(services),
            next_payment_date=min((p.period_end for p in pending), default=None),
            previous_month_growth=report.change,
            sales_chart=report.chart_data,
        )

    # ---- shop views ---------------------------------------------------

    def dashboard(self, period: ReportPeriod, now: Optional[datetime] = None) -> Dashboard:
        """Shop-wide stats. ``sales`` is always today's takings; the trends follow ``period``.

        The pending-payments trend compares payments still pending that were
        created in this window against those created in the previous one.
        """
        now = now or datetime.now()
        window = period_window(period, now)
        before = previous_window(period, window)
        current_revenue = self.revenue_items(window)

        appointments = self.appointment_count(window)
        new_clients = self.new_client_count(window)
        stats = DashboardStats(
            sales=self.total(self.revenue_items(period_window(ReportPeriod.day, now))),
            appointments=appointments,
            pending_payments=self.pending_payment_total(),
            new_clients=new_clients,
            sales_trend=percent_change(self.total(current_revenue), self.total(self.revenue_items(before))),
            appointments_trend=percent_change(appointments, self.appointment_count(before)),
            pending_payments_trend=percent_change(
                self.pending_payment_total(window), self.pending_payment_total(before)
            ),
            new_clients_trend=percent_change(new_clients, self.new_client_count(before)),
        )
        logger.debug("Dashboard for %s window starting %s", period.value, window[0])
        return Dashboard(period=period, stats=stats, sales_chart=chart(period, window, current_revenue))

    def top_barbers(self, period: ReportPeriod, limit: int = 5, now: Optional[datetime] = None) -> List[TopBarber]:
        """Active barbers ranked by service revenue in the period."""
        start, end = period_window(period, now or datetime.now())
        ranking = []
        for barber in self.repo.barbers(active_only=True):
            records = self.repo.completed_services(barber_id=barber.id, start=start, end=end)
            revenue = money(sum((r.price for r in records), Decimal(0)))
            ranking.append((revenue, len(records), barber))
        ranking.sort(key=lambda row: (-row[0], -row[1], row[2].id))
        return [
            TopBarber(barber=barber_card(self.repo, barber), services_count=count, revenue=revenue)
            for revenue, count, barber in ranking[:limit]
        ]

    def popular_services(
        self, period: ReportPeriod, limit: int = 5, now: Optional[datetime] = None
    ) -> List[PopularService]:
        """Services performed in the period, most frequent first."""
        start, end = period_window(period, now or datetime.now())
        counts = defaultdict(int)
        revenue = defaultdict(Decimal)
        for record in self.repo.completed_services(start=start, end=end):
            counts[record.service_id] += 1
            revenue[record.service_id] += Decimal(record.price)

        ranked = sorted(counts, key=lambda sid: (-counts[sid], -revenue[sid], sid))
        result = []
        for service_id in ranked[:limit]:
            service = self.repo.get(Service, service_id)
            if service is None:
                continue
            result.append(
                PopularService(
                    service=ServicePublic.model_validate(service),
                    times_performed=counts[service_id],
                    revenue=money(revenue[service_id]),
                )
            )
        return result

    def services_history(
        self, barber_id: int, period: ReportPeriod, now: Optional[datetime] = None
    ) -> List[CompletedService]:
        start, end = period_window(period, now or datetime.now())
        return self.repo.completed_services(barber_id=barber_id, start=start, end=end, descending=True)

    def recent_services(self, barber_id: int, limit: int = 10) -> List[CompletedService]:
        return self.repo.completed_services(barber_id=barber_id, descending=True, limit=limit)

    def payments_history(self, barber_id: int, period: ReportPeriod, now: Optional[datetime] = None) -> List[Payment]:
        """Payments whose period ends inside the window."""
        start, end = period_window(period, now or datetime.now())
        return [p for p in self.repo.payments(barber_id=barber_id) if start <= p.period_end < end]
