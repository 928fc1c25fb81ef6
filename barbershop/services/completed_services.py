# barbershop/services/completed_services.py

import logging
from decimal import Decimal
from typing import List, Optional

from .. import config
from ..errors import Conflict, Forbidden, ValidationError
from ..models import Appointment, Barber, CompletedService, Service, User
from ..repository import Repository
from ..schemas import (
    AppointmentStatus,
    CompletedServiceCreate,
    CompletedServiceDetail,
    CompletedServicePublic,
    CurrentUser,
    ServicePublic,
    UserRole,
)
from .appointments import check_transition
from .audit import AuditTrail
from .common import barber_public, commission_of, ensure_acts_for_barber, get_or_404, money

logger = logging.getLogger(__name__)

# legacy flat rate; reported in logs only, never used for settlement
REFERENCE_COMMISSION_RATE = Decimal("0.5")


class CompletedServiceRecorder:
    """Realized services awaiting or past admin approval."""

    def __init__(self, repo: Repository):
        self.repo = repo
        self.audit = AuditTrail(repo)

    def record(self, current_user: CurrentUser, data: CompletedServiceCreate) -> CompletedService:
        if data.client_id is None and not data.client_name:
            raise ValidationError("Either client_id or client_name is required")
        ensure_acts_for_barber(current_user, data.barber_id)

        get_or_404(self.repo, Barber, data.barber_id, "Barber")
        service = get_or_404(self.repo, Service, data.service_id, "Service")
        if not service.active:
            raise ValidationError("Service is not available")

        client_name = data.client_name
        if data.client_id is not None:
            client = get_or_404(self.repo, User, data.client_id, "Client")
            client_name = client_name or client.full_name

        appt = None
        if data.appointment_id is not None:
            appt = get_or_404(self.repo, Appointment, data.appointment_id, "Appointment")
            if appt.barber_id != data.barber_id:
                raise ValidationError("Appointment belongs to another barber")
            if self.repo.completed_services(appointment_id=appt.id):
                raise Conflict("A completed service is already recorded for this appointment")
            if appt.status != AppointmentStatus.completed:
                check_transition(appt.status, AppointmentStatus.completed)

        commission = self.repo.commission_for(data.barber_id, data.service_id)
        logger.debug(
            "Flat reference commission %s (deprecated) for barber %s",
            money(data.price * REFERENCE_COMMISSION_RATE),
            data.barber_id,
        )

        with self.repo.transaction():
            record = self.repo.add(
                CompletedService(
                    barber_id=data.barber_id,
                    service_id=data.service_id,
                    client_id=data.client_id,
                    client_name=client_name,
                    price=data.price,
                    date=data.date,
                    appointment_id=data.appointment_id,
                    validated_by_admin=False,
                )
            )
            if appt is not None and appt.status != AppointmentStatus.completed:
                appt.status = AppointmentStatus.completed
                self.repo.add(appt)

        logger.info(
            "Completed service %s recorded for barber %s (commission %s)",
            record.id,
            record.barber_id,
            commission_of(record.price, commission.percentage if commission else None),
        )
        self.audit.record(
            current_user.id,
            "create",
            "completed_service",
            record.id,
            {"barber_id": record.barber_id, "service_id": record.service_id, "price": record.price},
        )
        return record

    def approve(self, actor: CurrentUser, record_id: int) -> CompletedService:
        record = get_or_404(self.repo, CompletedService, record_id, "Completed service")
        if record.validated_by_admin is True:
            return record
        record.validated_by_admin = True
        self.repo.add(record)
        logger.info("Completed service %s approved by user %s", record.id, actor.id)
        self.audit.record(actor.id, "validate", "completed_service", record.id, {"validated_by_admin": True})
        return record

    def reject(self, actor: CurrentUser, record_id: int) -> None:
        """Hard delete. There is no undo."""
        record = get_or_404(self.repo, CompletedService, record_id, "Completed service")
        details = {"barber_id": record.barber_id, "service_id": record.service_id, "price": record.price}
        self.repo.delete(record)
        logger.warning("Completed service %s rejected and deleted by user %s", record_id, actor.id)
        self.audit.record(actor.id, "delete", "completed_service", record_id, details)

    def detail(self, record: CompletedService) -> CompletedServiceDetail:
        barber = self.repo.get(Barber, record.barber_id)
        service = self.repo.get(Service, record.service_id)
        return CompletedServiceDetail(
            **CompletedServicePublic.model_validate(record).model_dump(),
            barber=barber_public(self.repo, barber),
            service=ServicePublic.model_validate(service),
        )

    def get(self, current_user: CurrentUser, record_id: int) -> CompletedServiceDetail:
        record = get_or_404(self.repo, CompletedService, record_id, "Completed service")
        if current_user.role != UserRole.admin and record.barber_id != current_user.barber_id:
            raise Forbidden("You can only view your own services")
        return self.detail(record)

    def for_barber(self, barber_id: int) -> List[CompletedServiceDetail]:
        rows = self.repo.completed_services(barber_id=barber_id, descending=True)
        return [self.detail(r) for r in rows]

    def list_all(
        self, limit: Optional[int] = None, offset: int = 0, validated: Optional[bool] = None
    ) -> List[CompletedServiceDetail]:
        if limit is None:
            limit = config.COMPLETED_SERVICES_PAGE_LIMIT
        if limit < 1 or offset < 0:
            raise ValidationError("limit must be positive and offset non-negative")
        limit = min(limit, config.COMPLETED_SERVICES_MAX_LIMIT)
        rows = self.repo.completed_services(validated=validated, descending=True, limit=limit, offset=offset)
        return [self.detail(r) for r in rows]

