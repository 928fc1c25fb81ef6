# barbershop/routers/auth_routes.py

import logging

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm

from barbershop.auth import authenticate, create_access_token
from barbershop.db import get_repository
from barbershop.deps import get_user_service
from barbershop.errors import Unauthenticated
from barbershop.repository import Repository
from barbershop.schemas import Token, UserCreate, UserPublic
from barbershop.services.people import UserService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


@router.post("/register", status_code=201, response_model=UserPublic)
def register(
    user: UserCreate,
    users: UserService = Depends(get_user_service),
):
    return users.register(user)


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    repo: Repository = Depends(get_repository),
):
    user = authenticate(repo, form_data.username, form_data.password)
    if user is None:
        logger.warning("Failed login for %s", form_data.username)
        raise Unauthenticated("Invalid credentials")

    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"access_token": token, "token_type": "bearer"}
