import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SMTP_HOST"] = ""

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from usersvc.core.deps import get_user_service  # noqa: E402
from usersvc.core.errors import InvalidPassword, UserNotFound  # noqa: E402
from usersvc.core.security import hash_password, verify_password  # noqa: E402
from usersvc.database import get_db  # noqa: E402
from usersvc.main import app  # noqa: E402
from usersvc.models import Base, User  # noqa: E402
from usersvc.services.user import UserService  # noqa: E402


class FakeUserRepo:
    """In-memory UserRepo that records list_users calls."""

    def __init__(self) -> None:
        self.users: list[User] = []
        self.list_calls: list[tuple[str, int, int]] = []
        self.total_override: int | None = None

    async def get(self, user_id: int) -> User:
        for user in self.users:
            if user.id == user_id:
                return user
        raise UserNotFound()

    async def get_by_email(self, email: str) -> User:
        for user in self.users:
            if user.email == email:
                return user
        raise UserNotFound()

    async def authenticate(self, email: str, password: str) -> User:
        user = await self.get_by_email(email)
        if not verify_password(password, user.password_hash):
            raise InvalidPassword()
        return user

    async def create(self, email: str, password_hash: str) -> User:
        user = User(
            id=len(self.users) + 1,
            email=email,
            password_hash=password_hash,
            created_at=datetime.now(timezone.utc),
        )
        self.users.append(user)
        return user

    async def save(self, user: User) -> None:
        pass

    async def list_users(self, order: str, limit: int, offset: int):
        self.list_calls.append((order, limit, offset))
        total = len(self.users) if self.total_override is None else self.total_override
        return self.users[offset:offset + limit], total


@pytest.fixture
def fake_repo() -> FakeUserRepo:
    return FakeUserRepo()


@pytest.fixture
def service(fake_repo) -> UserService:
    return UserService(fake_repo)


@pytest.fixture
async def seeded_repo(fake_repo) -> FakeUserRepo:
    await fake_repo.create("alice@example.com", hash_password("Secret123"))
    return fake_repo


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """HTTP client backed by a fresh in-memory database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def fake_client(fake_repo):
    """HTTP client whose service runs on the in-memory FakeUserRepo."""
    app.dependency_overrides[get_user_service] = lambda: UserService(fake_repo)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
