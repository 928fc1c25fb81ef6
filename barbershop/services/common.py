# barbershop/services/common.py

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..errors import Forbidden, NotFound, ValidationError
from ..models import Barber, User
from ..repository import Repository
from ..schemas import BarberCard, BarberPublic, CurrentUser, UserPublic, UserRole

CENT = Decimal("0.01")


def money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def commission_of(amount: Decimal, percentage: Optional[Decimal]) -> Decimal:
    if percentage is None:
        return money(0)
    return money(Decimal(amount) * Decimal(percentage) / Decimal(100))


def parse_day(value) -> date:
    """Calendar day from ``YYYY-MM-DD`` or a full ISO-8601 timestamp."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        raise ValidationError("A valid date is required")
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value}")


def get_or_404(repo: Repository, model, pk: int, label: str):
    obj = repo.get(model, pk)
    if obj is None:
        raise NotFound(f"{label} not found")
    return obj


def ensure_acts_for_barber(current_user: CurrentUser, barber_id: int) -> None:
    """Admins act for anyone; a barber only for their own barber record."""
    if current_user.role == UserRole.admin:
        return
    if current_user.role == UserRole.barber and current_user.barber_id == barber_id:
        return
    raise Forbidden("You can only act on your own records")


def barber_public(repo: Repository, barber: Barber) -> BarberPublic:
    user = repo.get(User, barber.user_id)
    return BarberPublic(
        id=barber.id,
        user_id=barber.user_id,
        nif=barber.nif,
        iban=barber.iban,
        payment_period=barber.payment_period,
        active=barber.active,
        calendar_visibility=barber.calendar_visibility,
        profile_image=barber.profile_image,
        created_at=barber.created_at,
        user=UserPublic.model_validate(user),
    )


def barber_card(repo: Repository, barber: Barber) -> BarberCard:
    user = repo.get(User, barber.user_id)
    return BarberCard(
        id=barber.id,
        full_name=user.full_name if user else "",
        profile_image=barber.profile_image,
        active=barber.active,
    )
