# barbershop/routers/users_routes.py

from typing import List

from fastapi import APIRouter, Depends, Query

from barbershop.auth import get_current_user
from barbershop.deps import get_client_service, get_user_service, require_staff
from barbershop.schemas import (
    ClientCreate,
    ClientDetail,
    ClientNoteCreate,
    ClientNotePublic,
    ClientProfilePublic,
    ClientProfileUpdate,
    ClientSummary,
    CurrentUser,
    FavoriteServiceCreate,
    FavoriteServiceDetail,
    UserPublic,
    UserWithPreferences,
)
from barbershop.services.clients import ClientService
from barbershop.services.people import UserService

router = APIRouter(
    tags=["users"],
)


@router.get("/users/me", response_model=UserWithPreferences)
def me(
    current_user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    return users.me(current_user)


@router.put("/users/me/preferences", response_model=dict)
def update_preferences(
    preferences: dict,
    current_user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    return users.update_preferences(current_user, preferences)


@router.get("/clients", response_model=List[UserPublic])
def list_clients(
    current_user: CurrentUser = Depends(require_staff),
    users: UserService = Depends(get_user_service),
):
    return users.list_clients()


@router.post("/clients", status_code=201, response_model=UserPublic)
def create_client(
    client: ClientCreate,
    current_user: CurrentUser = Depends(require_staff),
    users: UserService = Depends(get_user_service),
):
    return users.create_client(current_user, client)


@router.get("/clients/recent", response_model=List[ClientSummary])
def recent_clients(
    limit: int = Query(default=10, ge=1, le=100),
    current_user: CurrentUser = Depends(require_staff),
    clients: ClientService = Depends(get_client_service),
):
    return clients.recent(limit)


@router.get("/clients/{client_id}", response_model=ClientDetail)
def get_client(
    client_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    clients: ClientService = Depends(get_client_service),
):
    return clients.detail(current_user, client_id)


@router.post("/clients/{client_id}/profile", response_model=ClientProfilePublic)
def save_client_profile(
    client_id: int,
    profile: ClientProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    clients: ClientService = Depends(get_client_service),
):
    return clients.save_profile(current_user, client_id, profile)


@router.post("/clients/{client_id}/preferences", response_model=dict)
def save_client_preferences(
    client_id: int,
    preferences: dict,
    current_user: CurrentUser = Depends(get_current_user),
    clients: ClientService = Depends(get_client_service),
):
    return clients.save_preferences(current_user, client_id, preferences)


@router.post("/clients/{client_id}/notes", status_code=201, response_model=ClientNotePublic)
def add_client_note(
    client_id: int,
    note: ClientNoteCreate,
    current_user: CurrentUser = Depends(require_staff),
    clients: ClientService = Depends(get_client_service),
):
    return clients.add_note(current_user, client_id, note)


@router.post("/clients/{client_id}/favorite-services", status_code=201, response_model=FavoriteServiceDetail)
def add_favorite_service(
    client_id: int,
    favorite: FavoriteServiceCreate,
    current_user: CurrentUser = Depends(get_current_user),
    clients: ClientService = Depends(get_client_service),
):
    return clients.add_favorite(current_user, client_id, favorite.service_id)


@router.delete("/clients/{client_id}/favorite-services/{favorite_id}", status_code=204)
def remove_favorite_service(
    client_id: int,
    favorite_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    clients: ClientService = Depends(get_client_service),
):
    clients.remove_favorite(current_user, client_id, favorite_id)
