"""Request dependencies: database session, services and the auth chain.

Authentication and role checks are plain FastAPI dependencies so routes
compose them explicitly:

    Depends(get_current_user)          -> 401 without a valid bearer token
    Depends(get_optional_user)         -> identity or None, never fails
    Depends(require_roles("admin"))    -> 401, then 403 for other roles
"""
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

import jwt
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .auth import decode_access_token, extract_bearer_token
from .config import Settings
from .errors import AuthenticationError, AuthorizationError
from .models import ROLE_ADMIN
from .repositories import FileRepository, OrderRepository, UserRepository
from .services import FileService, OrderService, UserService
from .storage import ObjectStorage


@dataclass(frozen=True)
class CurrentUser:
    id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def _identity(request: Request, settings: Settings) -> Optional[CurrentUser]:
    token = extract_bearer_token(request.headers.get("authorization"))
    if token is None:
        return None
    try:
        claims = decode_access_token(token, settings.jwt_secret, settings.jwt_algorithm)
        user = CurrentUser(id=int(claims["sub"]), email=claims.get("email", ""), role=claims.get("role", "user"))
    except (jwt.PyJWTError, KeyError, ValueError) as e:
        raise AuthenticationError("invalid or expired token") from e
    request.state.user = user
    return user


def get_current_user(request: Request, settings: Settings = Depends(get_app_settings)) -> CurrentUser:
    user = _identity(request, settings)
    if user is None:
        raise AuthenticationError("access token required")
    return user


def get_optional_user(request: Request, settings: Settings = Depends(get_app_settings)) -> Optional[CurrentUser]:
    try:
        return _identity(request, settings)
    except AuthenticationError:
        return None


def require_roles(*roles: str) -> Callable[..., CurrentUser]:
    allowed = set(roles)

    def check_role(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            raise AuthorizationError("access denied, insufficient permissions")
        return user

    return check_role


require_admin = require_roles(ROLE_ADMIN)


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(OrderRepository(db))


def get_user_service(db: Session = Depends(get_db), settings: Settings = Depends(get_app_settings)) -> UserService:
    return UserService(UserRepository(db), settings)


def get_file_service(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    storage: ObjectStorage = Depends(get_storage),
) -> FileService:
    base_url = settings.public_base_url or str(request.base_url)
    return FileService(FileRepository(db), storage, base_url)
