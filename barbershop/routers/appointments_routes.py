# barbershop/routers/appointments_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends

from barbershop.auth import get_current_user, get_optional_user
from barbershop.deps import get_appointment_service, require_admin
from barbershop.schemas import (
    AppointmentCreate,
    AppointmentDetail,
    AppointmentPublic,
    CurrentUser,
    StatusUpdate,
)
from barbershop.services.appointments import AppointmentService

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


# Guests may book; the client is then found or created by email
@router.post("", status_code=201, response_model=AppointmentPublic)
def create_appointment(
    appt: AppointmentCreate,
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    return appointments.create(appt, current_user)


@router.get("", response_model=List[AppointmentDetail])
def list_appointments(
    current_user: CurrentUser = Depends(require_admin),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    return appointments.list_all()


@router.get("/upcoming", response_model=List[AppointmentDetail])
def upcoming_appointments(
    current_user: CurrentUser = Depends(get_current_user),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    return appointments.upcoming(current_user)


@router.get("/{appt_id}", response_model=AppointmentDetail)
def get_appointment(
    appt_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    return appointments.get(current_user, appt_id)


@router.patch("/{appt_id}/status", response_model=AppointmentPublic)
def update_appointment_status(
    appt_id: int,
    update: StatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    appointments: AppointmentService = Depends(get_appointment_service),
):
    return appointments.update_status(current_user, appt_id, update.status)
