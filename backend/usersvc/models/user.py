"""User account model."""

from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from usersvc.models.base import BaseModel


class User(BaseModel):
    __tablename__ = "user"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Single-use password reset key, stored as a SHA-256 hex digest.
    reset_key_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reset_key_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_user_email", "email"),
    )

    def __repr__(self) -> str:
        # Hash material stays out of logs and tracebacks.
        return f"<User id={self.id} email={self.email!r}>"
