"""All database models.

Import all models here so Alembic and SQLAlchemy can discover them.
"""

from usersvc.models.base import Base, BaseModel  # noqa: F401
from usersvc.models.user import User  # noqa: F401
