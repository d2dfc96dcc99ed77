"""User account endpoints. Every response is wrapped in the JSON envelope."""

import re
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from usersvc.config import settings
from usersvc.core.deps import get_user_service
from usersvc.core.envelope import EnvelopeResponse, encode_response
from usersvc.core.pagination import page_links
from usersvc.schemas.user import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    UserListResponse,
    UserRead,
)
from usersvc.services.user import UserService

router = APIRouter(prefix="/users/v1", tags=["users"], default_response_class=EnvelopeResponse)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1


def _atoi(value: str) -> int:
    """Parse a query integer; anything unparsable or outside int64 counts as zero."""
    if not _INT_RE.fullmatch(value):
        return 0
    n = int(value)
    if not _INT64_MIN <= n <= _INT64_MAX:
        return 0
    return n


@router.post("/register")
async def register(
    data: RegisterRequest,
    svc: Annotated[UserService, Depends(get_user_service)],
):
    """Register a new user account."""
    user = await svc.register(data)
    return encode_response(RegisterResponse.model_validate(user))


@router.post("/login")
async def login(
    data: LoginRequest,
    svc: Annotated[UserService, Depends(get_user_service)],
):
    """Check email and password, return the user."""
    user = await svc.login(data)
    return encode_response(UserRead.model_validate(user))


@router.post("/forgot-password")
async def forgot_password(
    data: ForgotPasswordRequest,
    svc: Annotated[UserService, Depends(get_user_service)],
):
    """Mail a password reset key to the account's address."""
    await svc.forgot_password(data)
    return encode_response(MessageResponse(message="A password reset key has been sent."))


@router.post("/reset-password")
async def reset_password(
    data: ResetPasswordRequest,
    svc: Annotated[UserService, Depends(get_user_service)],
):
    await svc.reset_password(data)
    return encode_response(MessageResponse(message="Password has been reset."))


@router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    svc: Annotated[UserService, Depends(get_user_service)],
):
    await svc.change_password(data)
    return encode_response(MessageResponse(message="Password changed."))


@router.get("/list")
async def list_users(
    request: Request,
    svc: Annotated[UserService, Depends(get_user_service)],
    order: str = "",
    limit: str = "",
    offset: str = "",
):
    """List users one page at a time.

    ``limit`` falls back to the default page size and ``offset`` to 0 when
    missing or unparsable; bad values are never rejected.
    """
    page_limit = _atoi(limit)
    if page_limit <= 0:
        page_limit = settings.DEFAULT_PAGE_LIMIT
    page_offset = max(_atoi(offset), 0)

    users, total = await svc.list_users(order, page_limit, page_offset)
    previous, next_ = page_links(request.url, total, page_limit, page_offset)
    return encode_response(UserListResponse.build(users, total, previous, next_))
