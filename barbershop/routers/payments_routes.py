# barbershop/routers/payments_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends

from barbershop.deps import get_settlement_service, require_admin, require_staff
from barbershop.schemas import CurrentUser, PaymentCreate, PaymentDetail, PaymentPublic
from barbershop.services.settlement import SettlementService

router = APIRouter(
    prefix="/payments",
    tags=["payments"],
)


@router.get("", response_model=List[PaymentPublic])
def list_payments(
    barber_id: Optional[int] = None,
    current_user: CurrentUser = Depends(require_admin),
    settlement: SettlementService = Depends(get_settlement_service),
):
    return settlement.payments(barber_id)


# amount may be omitted to settle what the barber is owed for the period
@router.post("", status_code=201, response_model=PaymentPublic)
def create_payment(
    payment: PaymentCreate,
    current_user: CurrentUser = Depends(require_admin),
    settlement: SettlementService = Depends(get_settlement_service),
):
    return settlement.create_payment(current_user, payment)


@router.get("/{payment_id}", response_model=PaymentDetail)
def get_payment(
    payment_id: int,
    current_user: CurrentUser = Depends(require_staff),
    settlement: SettlementService = Depends(get_settlement_service),
):
    return settlement.get_payment(current_user, payment_id)


@router.patch("/{payment_id}/pay", response_model=PaymentPublic)
def mark_payment_paid(
    payment_id: int,
    current_user: CurrentUser = Depends(require_admin),
    settlement: SettlementService = Depends(get_settlement_service),
):
    return settlement.mark_paid(current_user, payment_id)
