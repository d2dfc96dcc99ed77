"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from usersvc.database import get_db
from usersvc.repositories.user import SqlUserRepo
from usersvc.services.user import UserService


async def get_user_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserService:
    """Build a UserService on top of the request's session."""
    return UserService(SqlUserRepo(db))
