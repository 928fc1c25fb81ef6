# barbershop/services/people.py

import json
import logging
from typing import List, Optional

from ..auth import hash_password
from ..errors import Conflict, NotFound, ValidationError
from ..models import Barber, User
from ..repository import Repository
from ..schemas import (
    BarberCard,
    BarberCreate,
    BarberProfileUpdate,
    BarberPublic,
    BarberUpdate,
    ClientCreate,
    CurrentUser,
    UserCreate,
    UserRole,
    UserWithPreferences,
)
from .audit import AuditTrail
from .common import barber_card, barber_public, get_or_404

logger = logging.getLogger(__name__)

USER_FIELDS = ("username", "email", "full_name", "phone")
BARBER_FIELDS = ("nif", "iban", "payment_period", "active", "calendar_visibility", "profile_image")


class UserService:
    def __init__(self, repo: Repository):
        self.repo = repo
        self.audit = AuditTrail(repo)

    def ensure_unique(
        self,
        username: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        exclude_id: Optional[int] = None,
    ) -> None:
        if username:
            existing = self.repo.user_by_username(username)
            if existing is not None and existing.id != exclude_id:
                raise Conflict("Username already in use")
        if email:
            existing = self.repo.user_by_email(email)
            if existing is not None and existing.id != exclude_id:
                raise Conflict("Email already registered")
        if phone:
            existing = self.repo.user_by_phone(phone)
            if existing is not None and existing.id != exclude_id:
                raise Conflict("Phone number already registered", code="PHONE_ALREADY_EXISTS")

    def _free_username(self, base: str) -> str:
        candidate, n = base, 1
        while self.repo.user_by_username(candidate) is not None:
            n += 1
            candidate = f"{base}{n}"
        return candidate

    def register(self, data: UserCreate) -> User:
        """Public sign-up; always creates a client."""
        self.ensure_unique(data.username, data.email, data.phone)
        user = self.repo.add(
            User(
                username=data.username,
                email=data.email,
                password_hash=hash_password(data.password),
                role=UserRole.client,
                full_name=data.full_name,
                phone=data.phone,
            )
        )
        logger.info("Registered client user %s", user.id)
        self.audit.record(user.id, "create", "user", user.id, {"role": "client"})
        return user

    def me(self, current_user: CurrentUser) -> UserWithPreferences:
        user = get_or_404(self.repo, User, current_user.id, "User")
        data = UserWithPreferences.model_validate(user)
        data.preferences = self.preferences_of(user)
        return data

    @staticmethod
    def preferences_of(user: User) -> dict:
        if not user.metadata_json:
            return {}
        try:
            value = json.loads(user.metadata_json)
        except ValueError:
            logger.warning("Discarding unreadable metadata for user %s", user.id)
            return {}
        return value if isinstance(value, dict) else {}

    def update_preferences(self, current_user: CurrentUser, preferences: dict) -> dict:
        return self.merge_preferences(current_user, current_user.id, preferences)

    def merge_preferences(self, actor: CurrentUser, user_id: int, preferences: dict) -> dict:
        user = get_or_404(self.repo, User, user_id, "User")
        merged = self.preferences_of(user)
        for key, value in preferences.items():
            # nested groups (e.g. notifications) merge one level deep
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
        user.metadata_json = json.dumps(merged)
        self.repo.add(user)
        self.audit.record(actor.id, "update", "user_preferences", user.id, preferences)
        return merged

    def list_clients(self) -> List[User]:
        return self.repo.users(role=UserRole.client)

    def create_client(self, actor: CurrentUser, data: ClientCreate) -> User:
        username = data.username or self._free_username(data.email.split("@")[0])
        self.ensure_unique(username, data.email, data.phone)
        user = self.repo.add(
            User(
                username=username,
                email=data.email,
                role=UserRole.client,
                full_name=data.full_name,
                phone=data.phone,
            )
        )
        self.audit.record(actor.id, "create", "client", user.id, {"email": data.email})
        return user

    def find_or_create_client(self, email: str, full_name: Optional[str], phone: Optional[str]) -> User:
        """Guest booking: reuse the account for ``email`` or create a passwordless client."""
        existing = self.repo.user_by_email(email)
        if existing is not None:
            return existing
        if not full_name:
            raise ValidationError("client_name is required for new clients")
        username = self._free_username(email.split("@")[0])
        self.ensure_unique(phone=phone)
        user = self.repo.add(
            User(username=username, email=email, role=UserRole.client, full_name=full_name, phone=phone)
        )
        logger.info("Created client %s from guest booking", user.id)
        return user


class BarberService:
    def __init__(self, repo: Repository):
        self.repo = repo
        self.users = UserService(repo)
        self.audit = AuditTrail(repo)

    def list(self, active_only: bool = False) -> List[BarberPublic]:
        return [barber_public(self.repo, b) for b in self.repo.barbers(active_only=active_only)]

    def get(self, barber_id: int) -> BarberPublic:
        return barber_public(self.repo, get_or_404(self.repo, Barber, barber_id, "Barber"))

    def cards(self, active_only: bool = False) -> List[BarberCard]:
        return [barber_card(self.repo, b) for b in self.repo.barbers(active_only=active_only)]

    def card(self, barber_id: int) -> BarberCard:
        return barber_card(self.repo, get_or_404(self.repo, Barber, barber_id, "Barber"))

    def create(self, actor: CurrentUser, data: BarberCreate) -> BarberPublic:
        self.users.ensure_unique(data.username, data.email, data.phone)
        with self.repo.transaction():
            user = self.repo.add(
                User(
                    username=data.username,
                    email=data.email,
                    password_hash=hash_password(data.password) if data.password else "",
                    role=UserRole.barber,
                    full_name=data.full_name,
                    phone=data.phone,
                )
            )
            barber = self.repo.add(
                Barber(
                    user_id=user.id,
                    nif=data.nif,
                    iban=data.iban,
                    payment_period=data.payment_period,
                    active=data.active,
                    calendar_visibility=data.calendar_visibility,
                )
            )
        logger.info("Barber %s created by user %s", barber.id, actor.id)
        self.audit.record(
            actor.id, "create", "barber", barber.id,
            {"user_id": user.id, "nif": data.nif, "payment_period": data.payment_period},
        )
        return barber_public(self.repo, barber)

    def _apply(self, barber: Barber, changes: dict) -> None:
        user = get_or_404(self.repo, User, barber.user_id, "User")
        user_changes = {k: v for k, v in changes.items() if k in USER_FIELDS and v is not None}
        barber_changes = {k: v for k, v in changes.items() if k in BARBER_FIELDS and v is not None}
        self.users.ensure_unique(
            user_changes.get("username"), user_changes.get("email"), user_changes.get("phone"),
            exclude_id=user.id,
        )
        with self.repo.transaction():
            for key, value in user_changes.items():
                setattr(user, key, value)
            for key, value in barber_changes.items():
                setattr(barber, key, value)
            self.repo.add(user)
            self.repo.add(barber)

    def update(self, actor: CurrentUser, barber_id: int, data: BarberUpdate) -> BarberPublic:
        barber = get_or_404(self.repo, Barber, barber_id, "Barber")
        changes = data.model_dump(exclude_unset=True)
        self._apply(barber, changes)
        self.audit.record(actor.id, "update", "barber", barber.id, changes)
        return barber_public(self.repo, barber)

    def deactivate(self, actor: CurrentUser, barber_id: int) -> BarberPublic:
        """Barbers are never deleted; history keeps pointing at them."""
        barber = get_or_404(self.repo, Barber, barber_id, "Barber")
        barber.active = False
        self.repo.add(barber)
        logger.info("Barber %s deactivated by user %s", barber.id, actor.id)
        self.audit.record(actor.id, "delete", "barber", barber.id, {"active": False})
        return barber_public(self.repo, barber)

    def update_profile(self, current_user: CurrentUser, data: BarberProfileUpdate) -> BarberPublic:
        if current_user.barber_id is None:
            raise NotFound("Barber profile not found")
        barber = get_or_404(self.repo, Barber, current_user.barber_id, "Barber profile")
        changes = data.model_dump(exclude_unset=True)
        self._apply(barber, changes)
        self.audit.record(current_user.id, "update", "barber", barber.id, "Profile update")
        return barber_public(self.repo, barber)
