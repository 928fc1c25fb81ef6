# barbershop/auth.py

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext

from . import config
from .db import get_repository
from .errors import Unauthenticated
from .models import User
from .repository import Repository
from .schemas import CurrentUser, UserRole

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def create_access_token(data: dict, expires_minutes: int = config.ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode["exp"] = expire
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    # guest-booking clients have no password and cannot log in
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def authenticate(repo: Repository, login: str, password: str) -> Optional[User]:
    """Accepts either the username or the email as login."""
    user = repo.user_by_username(login) or repo.user_by_email(login)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def _principal(repo: Repository, user: User) -> CurrentUser:
    barber_id = None
    if user.role == UserRole.barber:
        barber = repo.barber_by_user_id(user.id)
        barber_id = barber.id if barber else None
    return CurrentUser(id=user.id, email=user.email, role=user.role, barber_id=barber_id)


def _resolve(token: Optional[str], repo: Repository) -> Optional[CurrentUser]:
    if not token:
        return None
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            raise Unauthenticated("Invalid token")
        user_id = int(subject)
    except (JWTError, ValueError):
        raise Unauthenticated("Invalid token")

    user = repo.get(User, user_id)
    if user is None:
        raise Unauthenticated("User not found")
    return _principal(repo, user)


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    repo: Repository = Depends(get_repository),
) -> CurrentUser:
    current = _resolve(token, repo)
    if current is None:
        raise Unauthenticated("Unauthorized")
    return current


def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    repo: Repository = Depends(get_repository),
) -> Optional[CurrentUser]:
    """Same as get_current_user but lets guests through as None."""
    return _resolve(token, repo)
