# barbershop/routers/invites_routes.py

from fastapi import APIRouter, Depends

from barbershop.deps import get_invite_service, require_admin
from barbershop.schemas import (
    CurrentUser,
    InviteCreate,
    InviteCreated,
    InviteUse,
    InviteValidation,
    UserPublic,
)
from barbershop.services.invites import InviteService

router = APIRouter(
    prefix="/invites",
    tags=["invites"],
)


@router.post("", status_code=201, response_model=InviteCreated)
def create_invite(
    invite: InviteCreate,
    current_user: CurrentUser = Depends(require_admin),
    invites: InviteService = Depends(get_invite_service),
):
    return invites.create(current_user, invite.barber_id)


@router.get("/validate", response_model=InviteValidation)
def validate_invite(token: str, invites: InviteService = Depends(get_invite_service)):
    return invites.validate(token)


@router.post("/use", response_model=UserPublic)
def use_invite(data: InviteUse, invites: InviteService = Depends(get_invite_service)):
    return invites.use(data)
