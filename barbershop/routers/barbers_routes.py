# barbershop/routers/barbers_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from barbershop.deps import (
    get_barber_service,
    get_report_service,
    get_settlement_service,
    get_slot_service,
    require_admin,
    require_staff,
)
from barbershop.schemas import (
    AvailabilityResponse,
    BarberCard,
    BarberCreate,
    BarberPublic,
    BarberUpdate,
    CurrentUser,
    EarningsReport,
    ReportPeriod,
    SettlementSummary,
    TopBarber,
)
from barbershop.services.people import BarberService
from barbershop.services.reports import ReportService
from barbershop.services.settlement import SettlementService
from barbershop.services.slots import SlotService

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


@router.get("", response_model=List[BarberPublic])
def list_barbers(
    current_user: CurrentUser = Depends(require_staff),
    barbers: BarberService = Depends(get_barber_service),
):
    return barbers.list()


# Public: guests only see the booking card
@router.get("/active", response_model=List[BarberCard])
def list_active_barbers(barbers: BarberService = Depends(get_barber_service)):
    return barbers.cards(active_only=True)


@router.get("/top", response_model=List[TopBarber])
def top_barbers(
    period: ReportPeriod = ReportPeriod.month,
    limit: int = Query(default=5, ge=1, le=50),
    current_user: CurrentUser = Depends(require_staff),
    reports: ReportService = Depends(get_report_service),
):
    return reports.top_barbers(period, limit)


@router.get("/{barber_id}", response_model=BarberCard)
def get_barber(barber_id: int, barbers: BarberService = Depends(get_barber_service)):
    return barbers.card(barber_id)


@router.get("/{barber_id}/profile", response_model=BarberPublic)
def get_barber_profile(
    barber_id: int,
    current_user: CurrentUser = Depends(require_staff),
    barbers: BarberService = Depends(get_barber_service),
):
    return barbers.get(barber_id)


@router.post("", status_code=201, response_model=BarberPublic)
def create_barber(
    barber: BarberCreate,
    current_user: CurrentUser = Depends(require_admin),
    barbers: BarberService = Depends(get_barber_service),
):
    return barbers.create(current_user, barber)


@router.patch("/{barber_id}", response_model=BarberPublic)
def update_barber(
    barber_id: int,
    barber: BarberUpdate,
    current_user: CurrentUser = Depends(require_admin),
    barbers: BarberService = Depends(get_barber_service),
):
    return barbers.update(current_user, barber_id, barber)


@router.delete("/{barber_id}", response_model=BarberPublic)
def deactivate_barber(
    barber_id: int,
    current_user: CurrentUser = Depends(require_admin),
    barbers: BarberService = Depends(get_barber_service),
):
    return barbers.deactivate(current_user, barber_id)


# Public: guests pick a slot before booking
@router.get("/{barber_id}/available-slots", response_model=AvailabilityResponse)
def barber_availability(
    barber_id: int,
    date: Optional[str] = None,
    slots: SlotService = Depends(get_slot_service),
):
    return slots.availability(barber_id, date)


@router.get("/{barber_id}/settlement", response_model=SettlementSummary)
def barber_settlement(
    barber_id: int,
    current_user: CurrentUser = Depends(require_admin),
    settlement: SettlementService = Depends(get_settlement_service),
):
    return settlement.summary(barber_id)


@router.get("/{barber_id}/earnings", response_model=EarningsReport)
def barber_earnings(
    barber_id: int,
    period: ReportPeriod = ReportPeriod.month,
    current_user: CurrentUser = Depends(require_admin),
    reports: ReportService = Depends(get_report_service),
):
    return reports.earnings(barber_id, period)
