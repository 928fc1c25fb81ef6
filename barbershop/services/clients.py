# barbershop/services/clients.py

import logging
from datetime import datetime
from typing import List, Optional

from ..errors import Conflict, Forbidden, NotFound, ValidationError
from ..models import Appointment, Barber, ClientFavoriteService, ClientNote, ClientProfile, Service, User
from ..repository import Repository
from ..schemas import (
    AppointmentPublic,
    ClientDetail,
    ClientNoteCreate,
    ClientNotePublic,
    ClientProfilePublic,
    ClientProfileUpdate,
    ClientSummary,
    CurrentUser,
    FavoriteServiceDetail,
    FavoriteServicePublic,
    ServicePublic,
    UserPublic,
    UserRole,
)
from .audit import AuditTrail
from .common import get_or_404
from .people import UserService

logger = logging.getLogger(__name__)


class ClientService:
    """Client records kept by the shop: profile, notes, favorites and visit history."""

    def __init__(self, repo: Repository):
        self.repo = repo
        self.users = UserService(repo)
        self.audit = AuditTrail(repo)

    def _client(self, client_id: int) -> User:
        user = self.repo.get(User, client_id)
        if user is None or user.role != UserRole.client:
            raise NotFound("Client not found")
        return user

    @staticmethod
    def _ensure_can_access(current_user: CurrentUser, client_id: int) -> None:
        if current_user.role == UserRole.client and current_user.id != client_id:
            raise Forbidden("You can only access your own client record")

    def last_visit(self, client: User) -> Optional[datetime]:
        visits = self.repo.completed_services(client_id=client.id, descending=True, limit=1)
        if visits:
            return visits[0].date
        profile = self.repo.client_profile_for(client.id)
        return profile.last_visit if profile is not None else None

    def summary(self, client: User) -> ClientSummary:
        return ClientSummary(**UserPublic.model_validate(client).model_dump(), last_visit=self.last_visit(client))

    # ---- reads ----------------------------------------------------------

    def recent(self, limit: int = 10) -> List[ClientSummary]:
        """Clients by latest visit, newest first; never-seen clients rank by sign-up date."""
        summaries = [self.summary(c) for c in self.repo.users(role=UserRole.client)]
        summaries.sort(key=lambda s: (s.last_visit or s.created_at, s.id), reverse=True)
        return summaries[:limit]

    def detail(self, current_user: CurrentUser, client_id: int) -> ClientDetail:
        self._ensure_can_access(current_user, client_id)
        client = self._client(client_id)
        profile = self.repo.client_profile_for(client.id)
        # notes are the staff's own remarks
        notes = self.repo.client_notes(client.id) if current_user.role != UserRole.client else []
        return ClientDetail(
            **self.summary(client).model_dump(),
            profile=ClientProfilePublic.model_validate(profile) if profile is not None else None,
            preferences=self.users.preferences_of(client),
            notes=[ClientNotePublic.model_validate(n) for n in notes],
            favorite_services=[self.favorite_detail(f) for f in self.repo.client_favorites(client.id)],
            appointments=[
                AppointmentPublic.model_validate(a) for a in self.repo.appointments(client_id=client.id)
            ],
        )

    def favorite_detail(self, favorite: ClientFavoriteService) -> FavoriteServiceDetail:
        service = self.repo.get(Service, favorite.service_id)
        return FavoriteServiceDetail(
            **FavoriteServicePublic.model_validate(favorite).model_dump(),
            service=ServicePublic.model_validate(service),
        )

    # ---- writes ---------------------------------------------------------

    def save_profile(self, current_user: CurrentUser, client_id: int, data: ClientProfileUpdate) -> ClientProfile:
        """Creates the profile on first save; later saves only touch the fields sent."""
        self._ensure_can_access(current_user, client_id)
        client = self._client(client_id)
        changes = data.model_dump(exclude_unset=True)
        profile = self.repo.client_profile_for(client.id)
        action = "update"
        if profile is None:
            profile = ClientProfile(user_id=client.id)
            action = "create"
        for key, value in changes.items():
            setattr(profile, key, value)
        self.repo.add(profile)
        self.audit.record(current_user.id, action, "client_profile", profile.id, changes)
        return profile

    def save_preferences(self, current_user: CurrentUser, client_id: int, preferences: dict) -> dict:
        self._ensure_can_access(current_user, client_id)
        client = self._client(client_id)
        return self.users.merge_preferences(current_user, client.id, preferences)

    def add_note(self, current_user: CurrentUser, client_id: int, data: ClientNoteCreate) -> ClientNote:
        if current_user.role == UserRole.client:
            raise Forbidden("Only staff can add client notes")
        client = self._client(client_id)

        if current_user.role == UserRole.barber:
            if current_user.barber_id is None:
                raise NotFound("Barber profile not found")
            barber_id = current_user.barber_id
        else:
            if data.barber_id is None:
                raise ValidationError("barber_id is required")
            barber_id = get_or_404(self.repo, Barber, data.barber_id, "Barber").id

        if data.appointment_id is not None:
            appt = get_or_404(self.repo, Appointment, data.appointment_id, "Appointment")
            if appt.client_id != client.id:
                raise ValidationError("Appointment belongs to another client")

        note = self.repo.add(
            ClientNote(client_id=client.id, barber_id=barber_id, note=data.note, appointment_id=data.appointment_id)
        )
        logger.info("Note %s added to client %s by user %s", note.id, client.id, current_user.id)
        self.audit.record(current_user.id, "create", "client_note", note.id, {"client_id": client.id})
        return note

    def add_favorite(self, current_user: CurrentUser, client_id: int, service_id: int) -> FavoriteServiceDetail:
        self._ensure_can_access(current_user, client_id)
        client = self._client(client_id)
        get_or_404(self.repo, Service, service_id, "Service")
        if self.repo.favorite_for(client.id, service_id) is not None:
            raise Conflict("Service is already a favorite")
        favorite = self.repo.add(ClientFavoriteService(client_id=client.id, service_id=service_id))
        self.audit.record(current_user.id, "create", "client_favorite_service", favorite.id, {"service_id": service_id})
        return self.favorite_detail(favorite)

    def remove_favorite(self, current_user: CurrentUser, client_id: int, favorite_id: int) -> None:
        self._ensure_can_access(current_user, client_id)
        favorite = self.repo.get(ClientFavoriteService, favorite_id)
        if favorite is None or favorite.client_id != client_id:
            raise NotFound("Favorite service not found")
        self.repo.delete(favorite)
        self.audit.record(current_user.id, "delete", "client_favorite_service", favorite_id)
