"""User service: registration, authentication and account management."""
import logging
from enum import Enum
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError

from .. import models
from ..auth import create_access_token, hash_password, verify_password
from ..config import Settings
from ..errors import AuthenticationError, ConflictError, DomainError, NotFoundError
from ..repositories import UserRepository
from ..utils import paginate

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "invalid credentials"


class UserService:
    def __init__(self, users: UserRepository, settings: Settings):
        self.users = users
        self.settings = settings

    def _hash(self, password: str) -> str:
        return hash_password(password, rounds=self.settings.password_hash_rounds)

    def issue_token(self, user: models.User) -> str:
        return create_access_token(
            user.id,
            user.email,
            user.role,
            secret=self.settings.jwt_secret,
            expires_delta=self.settings.access_token_expire_minutes * 60,
            algorithm=self.settings.jwt_algorithm,
        )

    def register(self, data: dict) -> Tuple[models.User, str]:
        # inactive accounts keep their email reserved
        if self.users.find_by_email(data["email"]):
            raise ConflictError("email already in use")
        try:
            user = self.users.create(
                name=data["name"],
                email=data["email"],
                password_hash=self._hash(data["password"]),
            )
        except IntegrityError as e:
            self.users.rollback()
            raise ConflictError("email already in use") from e
        logger.info("user %s registered", user.id)
        return user, self.issue_token(user)

    def login(self, data: dict) -> Tuple[models.User, str]:
        user = self.users.find_by_email(data["email"])
        # same answer for unknown email, inactive account and wrong password
        if not user or not user.is_active or not verify_password(data["password"], user.password_hash):
            logger.warning("rejected login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS)
        return user, self.issue_token(user)

    def get_by_id(self, user_id: int) -> models.User:
        user = self.users.find_by_id(user_id)
        if not user or not user.is_active:
            raise NotFoundError("user not found")
        return user

    def list(self, page: int = 1, limit: int = 10) -> Tuple[List[models.User], dict]:
        users, total = self.users.find_many(page, limit)
        return users, paginate(page, limit, total)

    def update(self, user_id: int, patch: dict) -> models.User:
        user = self.get_by_id(user_id)
        patch = {k: (v.value if isinstance(v, Enum) else v) for k, v in patch.items()}
        if patch.get("email") and self.users.email_exists(patch["email"], exclude_id=user_id):
            raise ConflictError("email already in use")
        password = patch.pop("password", None)
        if password:
            patch["password_hash"] = self._hash(password)
        try:
            return self.users.update(user, patch)
        except IntegrityError as e:
            self.users.rollback()
            raise ConflictError("email already in use") from e

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        user = self.users.find_by_id(user_id)
        if not user or not user.is_active:
            raise NotFoundError("user not found")
        if not verify_password(current_password, user.password_hash):
            raise DomainError("current password is incorrect")
        self.users.update(user, {"password_hash": self._hash(new_password)})
        logger.info("password changed for user %s", user_id)

    def deactivate(self, user_id: int) -> None:
        user = self.get_by_id(user_id)
        self.users.update(user, {"is_active": False})
        logger.info("user %s deactivated", user_id)

    def activate(self, user_id: int) -> models.User:
        # bypasses get_by_id, which hides inactive accounts
        user = self.users.find_by_id(user_id)
        if not user:
            raise NotFoundError("user not found")
        user = self.users.update(user, {"is_active": True})
        logger.info("user %s activated", user_id)
        return user
