# barbershop/routers/barber_routes.py
# Views scoped to the logged-in barber.

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query

from barbershop.deps import (
    current_barber_id,
    get_appointment_service,
    get_barber_service,
    get_completed_service_recorder,
    get_report_service,
    get_settlement_service,
    require_barber,
)
from barbershop.schemas import (
    AppointmentDetail,
    BarberDashboard,
    BarberProfileUpdate,
    BarberPublic,
    CompletedServiceDetail,
    CompletedServicePublic,
    CurrentUser,
    EarningsReport,
    PaymentPublic,
    ReportPeriod,
    SettlementSummary,
)
from barbershop.services.appointments import AppointmentService
from barbershop.services.completed_services import CompletedServiceRecorder
from barbershop.services.people import BarberService
from barbershop.services.reports import ReportService
from barbershop.services.settlement import SettlementService

router = APIRouter(
    prefix="/barber",
    tags=["barber"],
)


@router.put("/profile", response_model=BarberPublic)
def update_profile(
    profile: BarberProfileUpdate,
    current_user: CurrentUser = Depends(require_barber),
    barbers: BarberService = Depends(get_barber_service),
):
    return barbers.update_profile(current_user, profile)


@router.get("/appointments", response_model=List[AppointmentDetail])
def my_appointments(
    barber_id: int = Depends(current_barber_id),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    return appointments.for_barber(barber_id)


@router.get("/appointments/today", response_model=List[AppointmentDetail])
def my_appointments_today(
    barber_id: int = Depends(current_barber_id),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    return appointments.for_barber(barber_id, day=date.today())


@router.get("/services", response_model=List[CompletedServiceDetail])
def my_services(
    barber_id: int = Depends(current_barber_id),
    recorder: CompletedServiceRecorder = Depends(get_completed_service_recorder),
):
    return recorder.for_barber(barber_id)


@router.get("/services/pending", response_model=List[CompletedServicePublic])
def my_pending_services(
    barber_id: int = Depends(current_barber_id),
    settlement: SettlementService = Depends(get_settlement_service),
):
    return settlement.pending_services_for_barber(barber_id)


@router.get("/services/validated", response_model=List[CompletedServicePublic])
def my_validated_services(
    barber_id: int = Depends(current_barber_id),
    settlement: SettlementService = Depends(get_settlement_service),
):
    return settlement.validated_services_for_barber(barber_id)


@router.get("/settlement", response_model=SettlementSummary)
def my_settlement(
    barber_id: int = Depends(current_barber_id),
    settlement: SettlementService = Depends(get_settlement_service),
):
    return settlement.summary(barber_id)


@router.get("/payments", response_model=List[PaymentPublic])
def my_payments(
    barber_id: int = Depends(current_barber_id),
    settlement: SettlementService = Depends(get_settlement_service),
):
    return settlement.payments(barber_id)


@router.get("/payments/history", response_model=List[PaymentPublic])
def my_payments_history(
    period: ReportPeriod = ReportPeriod.month,
    barber_id: int = Depends(current_barber_id),
    reports: ReportService = Depends(get_report_service),
):
    return reports.payments_history(barber_id, period)


@router.get("/services/recent", response_model=List[CompletedServicePublic])
def my_recent_services(
    limit: int = Query(default=10, ge=1, le=100),
    barber_id: int = Depends(current_barber_id),
    reports: ReportService = Depends(get_report_service),
):
    return reports.recent_services(barber_id, limit)


@router.get("/services/history", response_model=List[CompletedServicePublic])
def my_services_history(
    period: ReportPeriod = ReportPeriod.month,
    barber_id: int = Depends(current_barber_id),
    reports: ReportService = Depends(get_report_service),
):
    return reports.services_history(barber_id, period)


@router.get("/earnings", response_model=EarningsReport)
def my_earnings(
    period: ReportPeriod = ReportPeriod.month,
    barber_id: int = Depends(current_barber_id),
    reports: ReportService = Depends(get_report_service),
):
    return reports.earnings(barber_id, period)


@router.get("/dashboard", response_model=BarberDashboard)
def my_dashboard(
    barber_id: int = Depends(current_barber_id),
    reports: ReportService = Depends(get_report_service),
):
    return reports.barber_dashboard(barber_id)
