# barbershop/services/invites.py

import logging
import secrets
from datetime import datetime, timedelta

from .. import config
from ..auth import hash_password
from ..errors import NotFound, ValidationError
from ..models import Barber, BarberInvite, User
from ..repository import Repository
from ..schemas import CurrentUser, InviteCreated, InviteUse, InviteValidation
from .audit import AuditTrail
from .common import get_or_404
from .people import UserService

logger = logging.getLogger(__name__)


class InviteService:
    """Single-use onboarding links that let a barber pick their own login."""

    def __init__(self, repo: Repository):
        self.repo = repo
        self.users = UserService(repo)
        self.audit = AuditTrail(repo)

    def create(self, actor: CurrentUser, barber_id: int) -> InviteCreated:
        get_or_404(self.repo, Barber, barber_id, "Barber")
        invite = self.repo.add(
            BarberInvite(
                token=secrets.token_hex(32),
                barber_id=barber_id,
                created_by_id=actor.id,
                expires_at=datetime.now() + timedelta(hours=config.INVITE_TTL_HOURS),
            )
        )
        logger.info("Invite %s issued for barber %s", invite.id, barber_id)
        self.audit.record(actor.id, "create", "barber_invite", invite.id, {"barber_id": barber_id})
        return InviteCreated(token=invite.token, expires_at=invite.expires_at)

    def _usable(self, token: str) -> BarberInvite:
        invite = self.repo.invite_by_token(token) if token else None
        if invite is None:
            raise NotFound("Invite not found")
        if invite.is_used:
            raise ValidationError("Invite has already been used")
        if invite.expires_at <= datetime.now():
            raise ValidationError("Invite has expired")
        return invite

    def validate(self, token: str) -> InviteValidation:
        invite = self._usable(token)
        return InviteValidation(valid=True, barber_id=invite.barber_id, expires_at=invite.expires_at)

    def use(self, data: InviteUse) -> User:
        invite = self._usable(data.token)
        barber = get_or_404(self.repo, Barber, invite.barber_id, "Barber")
        user = get_or_404(self.repo, User, barber.user_id, "User")
        self.users.ensure_unique(data.username, data.email, exclude_id=user.id)

        with self.repo.transaction():
            user.username = data.username
            user.email = data.email
            user.full_name = data.full_name
            user.password_hash = hash_password(data.password)
            self.repo.add(user)
            invite.is_used = True
            invite.used_at = datetime.now()
            self.repo.add(invite)

        logger.info("Invite %s used by barber %s", invite.id, barber.id)
        self.audit.record(user.id, "update", "barber_invite", invite.id, {"barber_id": barber.id})
        return user
