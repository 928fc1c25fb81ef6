# barbershop/routers/action_logs_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from barbershop.deps import get_audit_trail, require_admin
from barbershop.schemas import ActionLogPublic, CurrentUser
from barbershop.services.audit import AuditTrail

router = APIRouter(
    prefix="/action-logs",
    tags=["action-logs"],
)


@router.get("", response_model=List[ActionLogPublic])
def list_action_logs(
    entity: Optional[str] = None,
    entity_id: Optional[int] = None,
    limit: int = Query(default=200, ge=1, le=1000),
    current_user: CurrentUser = Depends(require_admin),
    audit: AuditTrail = Depends(get_audit_trail),
):
    return audit.list(entity=entity, entity_id=entity_id, limit=limit)
