# user accounts: signup, profile maintenance, listing and login
from __future__ import annotations

import re
import sqlite3
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Sequence, Tuple

from db import models
from db.query import Pagination, SortField
from db.repo import Repo
from db.users import UserFilter
from services.errors import (
    EmailExisted,
    EmailNotExist,
    InvalidInput,
    PasswordIncorrect,
    UserInUse,
    UserNotFound,
)
from utils.config import settings
from utils.logger import get_logger
from utils.security import create_access_token, hash_password, verify_password

_logger = get_logger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
ROLES = tuple(r.value for r in models.Role)


@dataclass(frozen=True)
class UserInput:
    name: str
    email: str
    password: str
    phone: str = ""
    role: str = models.Role.GUEST.value
    is_active: bool = True


@dataclass(frozen=True)
class ListUsersInput:
    filter: UserFilter = field(default_factory=UserFilter)
    sort: Sequence[SortField] = ()
    pagination: Pagination = field(default_factory=Pagination)


@dataclass(frozen=True)
class LoginResponse:
    access_token: str
    scope: str
    expires_in: timedelta
    token_type: str = "Bearer"


def validate_user_input(user_input: UserInput, require_password: bool = True) -> None:
    if not user_input.name.strip():
        raise InvalidInput("name cannot be blank")
    if not user_input.email.strip():
        raise InvalidInput("email cannot be blank")
    if not _EMAIL_RE.match(user_input.email.strip()):
        raise InvalidInput("email is invalid")
    if require_password and not user_input.password:
        raise InvalidInput("password cannot be blank")
    if user_input.role not in ROLES:
        raise InvalidInput(f"role is invalid: {user_input.role}")


class UserService:
    def __init__(self, repo: Repo) -> None:
        self.repo = repo

    async def create_user(self, user_input: UserInput) -> models.User:
        """Sign up a user; the password is stored as a bcrypt hash."""
        validate_user_input(user_input)
        email = user_input.email.strip()
        if await self.repo.users.exists_user_by_email(email):
            raise EmailExisted()

        user = await self.repo.users.create_user(
            name=user_input.name.strip(),
            email=email,
            password=hash_password(user_input.password),
            phone=user_input.phone.strip(),
            role=user_input.role,
            is_active=user_input.is_active,
        )
        _logger.info(f"User {user.id} <{user.email}> created.")
        return user

    async def get_users(
        self, list_input: ListUsersInput
    ) -> Tuple[List[models.User], int]:
        if list_input.filter.id < 0:
            raise InvalidInput("user id is invalid")
        if list_input.filter.role and list_input.filter.role not in ROLES:
            raise InvalidInput(f"role is invalid: {list_input.filter.role}")
        return await self.repo.users.get_users(
            list_input.filter, list_input.sort, list_input.pagination
        )

    async def get_user(self, uid: int) -> models.User:
        user = await self.repo.users.get_user(uid)
        if user is None:
            raise UserNotFound()
        return user

    async def update_user(self, uid: int, user_input: UserInput) -> None:
        """
        Replace a user's profile. A blank password keeps the current one.
        """
        validate_user_input(user_input, require_password=False)
        current = await self.repo.users.get_user(uid)
        if current is None:
            raise UserNotFound()

        email = user_input.email.strip()
        owner = await self.repo.users.get_user_by_email(email)
        if owner is not None and owner.id != uid:
            raise EmailExisted()

        password = (
            hash_password(user_input.password)
            if user_input.password
            else current.password
        )
        affected = await self.repo.users.update_user(
            models.User(
                id=uid,
                name=user_input.name.strip(),
                email=email,
                password=password,
                phone=user_input.phone.strip(),
                role=user_input.role,
                is_active=user_input.is_active,
            )
        )
        if affected < 1:
            raise UserNotFound()

    async def delete_user(self, uid: int) -> None:
        try:
            affected = await self.repo.users.delete_user(uid)
        except sqlite3.IntegrityError as err:
            raise UserInUse() from err
        if affected < 1:
            raise UserNotFound()
        _logger.info(f"User {uid} deleted.")

    async def login(self, email: str, password: str) -> LoginResponse:
        user = await self.repo.users.get_user_by_email(email.strip())
        if user is None:
            raise EmailNotExist()
        if not verify_password(password, user.password):
            raise PasswordIncorrect()

        expires_in = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        token = create_access_token(user.id, user.email, user.role, expires_in)
        return LoginResponse(access_token=token, scope=user.role, expires_in=expires_in)
