"""User account service: registration, login, password reset/change, listing."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from usersvc.config import settings
from usersvc.core.email import render_reset_email, send_email
from usersvc.core.errors import (
    EmailTaken,
    InvalidPassword,
    InvalidResetKey,
    MissingField,
    OperationError,
    PasswordMismatch,
    Unauthorized,
    UserNotFound,
)
from usersvc.core.security import (
    generate_reset_key,
    hash_password,
    hash_token,
    token_matches,
)
from usersvc.models.user import User
from usersvc.repositories.user import UserRepo
from usersvc.schemas.user import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)

logger = logging.getLogger(__name__)


def _require(**fields: str) -> None:
    """Raise MissingField for the first empty field, in argument order."""
    for name, value in fields.items():
        if not value:
            raise MissingField(f"{name} is required")


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UserService:
    def __init__(self, repo: UserRepo):
        self.repo = repo

    async def register(self, data: RegisterRequest) -> User:
        """Create a new account."""
        _require(
            email=data.email,
            password=data.password,
            confirm_password=data.confirm_password,
        )
        if data.password != data.confirm_password:
            raise PasswordMismatch()

        try:
            await self.repo.get_by_email(data.email)
        except UserNotFound:
            pass
        else:
            raise EmailTaken()

        user = await self.repo.create(data.email, hash_password(data.password))
        logger.info("Registered user id=%s", user.id)
        return user

    async def login(self, data: LoginRequest) -> User:
        _require(email=data.email, password=data.password)
        return await self.repo.authenticate(data.email, data.password)

    async def forgot_password(self, data: ForgotPasswordRequest) -> str:
        """Issue a single-use reset key, mail it, and return it.

        The key is stored only as a hash; a new request replaces any
        outstanding key.
        """
        _require(email=data.email)
        try:
            user = await self.repo.get_by_email(data.email)
        except UserNotFound as exc:
            raise OperationError("forgot password", exc) from exc

        reset_key = generate_reset_key()
        expiry = settings.RESET_KEY_EXPIRY_MINUTES
        user.reset_key_hash = hash_token(reset_key)
        user.reset_key_expires_at = datetime.now(timezone.utc) + timedelta(minutes=expiry)
        await self.repo.save(user)

        body_html, body_text = render_reset_email(reset_key, expiry)
        await asyncio.to_thread(
            send_email,
            [user.email],
            f"{settings.APP_NAME} - Password Reset Request",
            body_html,
            body_text,
        )
        logger.info("Issued password reset key for user id=%s", user.id)
        return reset_key

    async def reset_password(self, data: ResetPasswordRequest) -> None:
        """Set a new password using a previously issued reset key."""
        _require(
            email=data.email,
            reset_key=data.reset_key,
            password=data.password,
            confirm_password=data.confirm_password,
        )
        if data.password != data.confirm_password:
            raise PasswordMismatch()

        try:
            user = await self.repo.get_by_email(data.email)
        except UserNotFound as exc:
            raise OperationError("reset password", exc) from exc

        if not token_matches(data.reset_key, user.reset_key_hash):
            raise InvalidResetKey()
        expires_at = user.reset_key_expires_at
        if expires_at is None or datetime.now(timezone.utc) > _as_utc(expires_at):
            raise InvalidResetKey("user: reset key expired")

        user.password_hash = hash_password(data.password)
        user.reset_key_hash = None
        user.reset_key_expires_at = None
        await self.repo.save(user)
        logger.info("Password reset completed for user id=%s", user.id)

    async def change_password(self, data: ChangePasswordRequest) -> None:
        """Replace the password of a user who proves the current one."""
        _require(
            email=data.email,
            password=data.password,
            new_password=data.new_password,
            confirm_password=data.confirm_password,
        )
        if data.new_password != data.confirm_password:
            raise PasswordMismatch()

        try:
            user = await self.repo.authenticate(data.email, data.password)
        except UserNotFound as exc:
            raise OperationError("change password", exc) from exc
        except InvalidPassword:
            raise Unauthorized("user: current password is incorrect") from None

        user.password_hash = hash_password(data.new_password)
        await self.repo.save(user)
        logger.info("Password changed for user id=%s", user.id)

    async def list_users(
        self, order: str, limit: int, offset: int
    ) -> tuple[list[User], int]:
        """Return one page of users and the total count."""
        return await self.repo.list_users(order, limit, offset)
