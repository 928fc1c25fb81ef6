# barbershop/routers/completed_services_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends

from barbershop.deps import get_completed_service_recorder, require_admin, require_staff
from barbershop.schemas import (
    CompletedServiceCreate,
    CompletedServiceDetail,
    CompletedServicePublic,
    CurrentUser,
)
from barbershop.services.completed_services import CompletedServiceRecorder

router = APIRouter(
    prefix="/completed-services",
    tags=["completed-services"],
)


@router.post("", status_code=201, response_model=CompletedServicePublic)
def record_completed_service(
    record: CompletedServiceCreate,
    current_user: CurrentUser = Depends(require_staff),
    recorder: CompletedServiceRecorder = Depends(get_completed_service_recorder),
):
    return recorder.record(current_user, record)


@router.get("", response_model=List[CompletedServiceDetail])
def list_completed_services(
    limit: Optional[int] = None,
    offset: int = 0,
    validated: Optional[bool] = None,
    current_user: CurrentUser = Depends(require_admin),
    recorder: CompletedServiceRecorder = Depends(get_completed_service_recorder),
):
    return recorder.list_all(limit=limit, offset=offset, validated=validated)


@router.get("/{record_id}", response_model=CompletedServiceDetail)
def get_completed_service(
    record_id: int,
    current_user: CurrentUser = Depends(require_staff),
    recorder: CompletedServiceRecorder = Depends(get_completed_service_recorder),
):
    return recorder.get(current_user, record_id)


@router.patch("/{record_id}/validate", response_model=CompletedServicePublic)
def approve_completed_service(
    record_id: int,
    current_user: CurrentUser = Depends(require_admin),
    recorder: CompletedServiceRecorder = Depends(get_completed_service_recorder),
):
    return recorder.approve(current_user, record_id)


@router.delete("/{record_id}", status_code=204)
def reject_completed_service(
    record_id: int,
    current_user: CurrentUser = Depends(require_admin),
    recorder: CompletedServiceRecorder = Depends(get_completed_service_recorder),
):
    recorder.reject(current_user, record_id)
