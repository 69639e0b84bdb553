from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from services.users import UserService
from utils.security import decode_access_token


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - uid: id of the logged-in user
      - role: "ADMIN" | "GUEST" | None before login
      - email: email of the logged-in user
      - token: access token issued at login
    """

    uid: Optional[int] = None
    role: Optional[str] = None
    email: Optional[str] = None
    token: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    async def login(self, users: UserService, email: str, password: str) -> None:
        """
        Authenticate and fill the state from the issued token's claims.
        Service errors (EmailNotExist, PasswordIncorrect) propagate.
        """
        response = await users.login(email, password)
        claims = decode_access_token(response.access_token)
        self.token = response.access_token
        self.uid = int(claims["id"])
        self.role = claims["role"]
        self.email = claims["email"]

    def logout(self) -> None:
        self.uid = None
        self.role = None
        self.email = None
        self.token = None
