"""User request/response schemas.

Request fields default to empty strings: a missing field and an empty field
are the same thing to the service, which reports both as ``MissingField``.
"""

from datetime import datetime

from pydantic import BaseModel, PrivateAttr


class RegisterRequest(BaseModel):
    email: str = ""
    password: str = ""
    confirm_password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class ForgotPasswordRequest(BaseModel):
    email: str = ""


class ResetPasswordRequest(BaseModel):
    email: str = ""
    reset_key: str = ""
    password: str = ""
    confirm_password: str = ""


class ChangePasswordRequest(BaseModel):
    email: str = ""
    password: str = ""
    new_password: str = ""
    confirm_password: str = ""


class UserRead(BaseModel):
    id: int
    email: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class RegisterResponse(UserRead):
    def status(self) -> int:
        return 201


class MessageResponse(BaseModel):
    message: str


class UserListResponse(BaseModel):
    users: list[UserRead]

    _total: int = PrivateAttr(default=0)
    _previous: str = PrivateAttr(default="")
    _next: str = PrivateAttr(default="")

    @classmethod
    def build(
        cls,
        users: list,
        total: int,
        previous: str = "",
        next_: str = "",
    ) -> "UserListResponse":
        resp = cls(users=[UserRead.model_validate(u) for u in users])
        resp._total = total
        resp._previous = previous
        resp._next = next_
        return resp

    def page(self) -> tuple[int, str, str]:
        return self._total, self._previous, self._next
