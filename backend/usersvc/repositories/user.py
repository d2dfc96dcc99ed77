"""User storage access.

``UserRepo`` is the set of storage operations the service relies on;
``SqlUserRepo`` implements it on an async SQLAlchemy session. "Not found" is
reported as ``UserNotFound``; every other storage failure is wrapped in a
``StorageError`` naming the operation, chained to the driver error.
"""

import logging
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from usersvc.core.errors import InvalidPassword, StorageError, UserNotFound
from usersvc.core.security import verify_password
from usersvc.models.user import User

logger = logging.getLogger(__name__)

ORDERINGS = {
    "id": (User.id.asc(),),
    "-id": (User.id.desc(),),
    "email": (User.email.asc(),),
    "-email": (User.email.desc(),),
    # Timestamps can collide; id keeps pages stable.
    "created_at": (User.created_at.asc(), User.id.asc()),
    "-created_at": (User.created_at.desc(), User.id.desc()),
}
DEFAULT_ORDER = "id"


class UserRepo(Protocol):
    async def get(self, user_id: int) -> User:
        """Return the user with ``user_id``. Raises UserNotFound."""
        ...

    async def get_by_email(self, email: str) -> User:
        """Return the user registered with ``email``. Raises UserNotFound."""
        ...

    async def authenticate(self, email: str, password: str) -> User:
        """Return the user if ``password`` matches. Raises UserNotFound or InvalidPassword."""
        ...

    async def create(self, email: str, password_hash: str) -> User: ...

    async def save(self, user: User) -> None: ...

    async def list_users(
        self, order: str, limit: int, offset: int
    ) -> tuple[list[User], int]:
        """Return one page of users and the total number of users."""
        ...


class SqlUserRepo:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _first(self, op: str, *criteria) -> User:
        try:
            result = await self.db.execute(select(User).where(*criteria).limit(1))
        except SQLAlchemyError as exc:
            raise StorageError(op, exc) from exc
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFound()
        return user

    async def get(self, user_id: int) -> User:
        return await self._first("user.repo.get", User.id == user_id)

    async def get_by_email(self, email: str) -> User:
        return await self._first("user.repo.get_by_email", User.email == email)

    async def authenticate(self, email: str, password: str) -> User:
        user = await self.get_by_email(email)
        if not verify_password(password, user.password_hash):
            logger.debug("password mismatch for user id=%s", user.id)
            raise InvalidPassword()
        logger.debug("authenticated user id=%s", user.id)
        return user

    async def create(self, email: str, password_hash: str) -> User:
        user = User(email=email, password_hash=password_hash)
        self.db.add(user)
        try:
            await self.db.flush()
            await self.db.refresh(user)
        except SQLAlchemyError as exc:
            raise StorageError("user.repo.create", exc) from exc
        return user

    async def save(self, user: User) -> None:
        self.db.add(user)
        try:
            await self.db.flush()
        except SQLAlchemyError as exc:
            raise StorageError("user.repo.save", exc) from exc

    async def list_users(
        self, order: str, limit: int, offset: int
    ) -> tuple[list[User], int]:
        ordering = ORDERINGS.get(order, ORDERINGS[DEFAULT_ORDER])
        try:
            count_result = await self.db.execute(select(func.count()).select_from(User))
            total = count_result.scalar_one()

            result = await self.db.execute(
                select(User).order_by(*ordering).offset(offset).limit(limit)
            )
        except SQLAlchemyError as exc:
            raise StorageError("user.repo.list_users", exc) from exc
        return list(result.scalars().all()), total
