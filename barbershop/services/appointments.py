# barbershop/services/appointments.py

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from ..errors import Conflict, Forbidden, InvalidTransition, ValidationError
from ..models import Appointment, Barber, CompletedService, Service, User
from ..repository import Repository
from ..schemas import (
    AppointmentCreate,
    AppointmentDetail,
    AppointmentPublic,
    AppointmentStatus,
    CurrentUser,
    ServicePublic,
    UserPublic,
    UserRole,
)
from .audit import AuditTrail
from .common import barber_card, get_or_404
from .people import UserService
from .slots import SlotService, slot_label

logger = logging.getLogger(__name__)

# completed and canceled are terminal
TRANSITIONS = {
    AppointmentStatus.pending: {
        AppointmentStatus.confirmed,
        AppointmentStatus.completed,
        AppointmentStatus.canceled,
    },
    AppointmentStatus.confirmed: {AppointmentStatus.completed, AppointmentStatus.canceled},
    AppointmentStatus.completed: set(),
    AppointmentStatus.canceled: set(),
}


def parse_status(value: Optional[str]) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise ValidationError("Invalid status")


def check_transition(current: AppointmentStatus, new: AppointmentStatus) -> None:
    if new not in TRANSITIONS[AppointmentStatus(current)]:
        raise InvalidTransition(f"Cannot change appointment status from {current.value} to {new.value}")


class AppointmentService:
    def __init__(self, repo: Repository):
        self.repo = repo
        self.slots = SlotService(repo)
        self.users = UserService(repo)
        self.audit = AuditTrail(repo)

    # ---- create ---------------------------------------------------------

    def _resolve_client(self, data: AppointmentCreate, current_user: Optional[CurrentUser]) -> Optional[User]:
        if current_user is not None and current_user.role == UserRole.client:
            if data.client_id is not None and data.client_id != current_user.id:
                raise Forbidden("Clients can only book for themselves")
            return self.repo.get(User, current_user.id)
        if data.client_id is not None:
            client = self.repo.get(User, data.client_id)
            if client is None:
                raise ValidationError("Client not found")
            return client
        if data.client_email:
            # created inside the booking transaction
            return None
        raise ValidationError("client_id or client_email is required")

    def create(self, data: AppointmentCreate, current_user: Optional[CurrentUser] = None) -> Appointment:
        barber = self.repo.get(Barber, data.barber_id)
        if barber is None:
            raise ValidationError("Barber not found")
        if not barber.active:
            raise ValidationError("Barber is not accepting appointments")
        service = self.repo.get(Service, data.service_id)
        if service is None:
            raise ValidationError("Service not found")
        if not service.active:
            raise ValidationError("Service is not available")
        client = self._resolve_client(data, current_user)
        # slots are minute-grained; the live-slot unique index compares exact times
        starts_at = data.date.replace(second=0, microsecond=0)

        with self.repo.transaction():
            if client is None:
                client = self.users.find_or_create_client(data.client_email, data.client_name, data.client_phone)
            if not self.slots.is_free(barber.id, starts_at):
                logger.warning("Rejected double booking for barber %s at %s", barber.id, starts_at.isoformat())
                raise Conflict(f"The {slot_label(starts_at)} slot is already booked")
            appt = self.repo.add(
                Appointment(
                    client_id=client.id,
                    barber_id=barber.id,
                    service_id=data.service_id,
                    date=starts_at,
                    status=AppointmentStatus.pending,
                    notes=data.notes,
                )
            )

        logger.info("Appointment %s booked with barber %s at %s", appt.id, appt.barber_id, appt.date)
        self.audit.record(
            current_user.id if current_user else None,
            "create",
            "appointment",
            appt.id,
            {"barber_id": appt.barber_id, "service_id": appt.service_id, "date": appt.date},
        )
        return appt

    # ---- status ---------------------------------------------------------

    def _ensure_can_change(self, current_user: CurrentUser, appt: Appointment, new: AppointmentStatus) -> None:
        if current_user.role == UserRole.admin:
            return
        if current_user.role == UserRole.barber and current_user.barber_id == appt.barber_id:
            return
        if (
            current_user.role == UserRole.client
            and current_user.id == appt.client_id
            and new == AppointmentStatus.canceled
        ):
            return
        raise Forbidden("You cannot change this appointment")

    def update_status(self, current_user: CurrentUser, appointment_id: int, status: Optional[str]) -> Appointment:
        new = parse_status(status)
        appt = get_or_404(self.repo, Appointment, appointment_id, "Appointment")
        self._ensure_can_change(current_user, appt, new)

        previous = AppointmentStatus(appt.status)
        if previous == new:
            return appt
        check_transition(previous, new)

        with self.repo.transaction():
            appt.status = new
            self.repo.add(appt)
            if new == AppointmentStatus.completed:
                self._record_completion(appt)

        logger.info("Appointment %s: %s -> %s", appt.id, previous.value, new.value)
        self.audit.record(
            current_user.id, "update", "appointment", appt.id, {"from": previous.value, "to": new.value}
        )
        return appt

    def _record_completion(self, appt: Appointment) -> None:
        if self.repo.completed_services(appointment_id=appt.id):
            return
        service = self.repo.get(Service, appt.service_id)
        client = self.repo.get(User, appt.client_id)
        self.repo.add(
            CompletedService(
                barber_id=appt.barber_id,
                service_id=appt.service_id,
                client_id=appt.client_id,
                client_name=client.full_name if client else "",
                price=service.price,
                date=appt.date,
                appointment_id=appt.id,
                validated_by_admin=False,
            )
        )

    # ---- reads ----------------------------------------------------------

    def detail(self, appt: Appointment) -> AppointmentDetail:
        client = self.repo.get(User, appt.client_id)
        barber = self.repo.get(Barber, appt.barber_id)
        service = self.repo.get(Service, appt.service_id)
        return AppointmentDetail(
            **AppointmentPublic.model_validate(appt).model_dump(),
            client=UserPublic.model_validate(client),
            barber=barber_card(self.repo, barber),
            service=ServicePublic.model_validate(service),
        )

    def get(self, current_user: CurrentUser, appointment_id: int) -> AppointmentDetail:
        appt = get_or_404(self.repo, Appointment, appointment_id, "Appointment")
        if current_user.role == UserRole.client and appt.client_id != current_user.id:
            raise Forbidden("You cannot view this appointment")
        if current_user.role == UserRole.barber and appt.barber_id != current_user.barber_id:
            raise Forbidden("You cannot view this appointment")
        return self.detail(appt)

    def list_all(self) -> List[AppointmentDetail]:
        return [self.detail(a) for a in self.repo.appointments()]

    def upcoming(self, current_user: CurrentUser, now: Optional[datetime] = None) -> List[AppointmentDetail]:
        """Future, non-canceled appointments visible to the caller, soonest first."""
        rows = self.repo.upcoming_appointments(now or datetime.now())
        if current_user.role == UserRole.barber:
            rows = [a for a in rows if a.barber_id == current_user.barber_id]
        elif current_user.role == UserRole.client:
            rows = [a for a in rows if a.client_id == current_user.id]
        return [self.detail(a) for a in rows]

    def for_barber(self, barber_id: int, day: Optional[date] = None) -> List[AppointmentDetail]:
        start = end = None
        if day is not None:
            start = datetime.combine(day, datetime.min.time())
            end = start + timedelta(days=1)
        return [self.detail(a) for a in self.repo.appointments(barber_id=barber_id, start=start, end=end)]
