from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from crud.user import create_user
from database import Base, get_db, make_engine, make_sessionmaker
from main import app
from models import Book, Role
from services.auth import create_token, hash_password


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh file-backed SQLite database per test"""
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookstore-test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_sessionmaker(engine)


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client bound to the app, with get_db pointed at the test database"""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    async def _make_user(username, role=Role.CUSTOMER, password="secret123"):
        async with session_factory() as db:
            return await create_user(db, username, f"{username}@example.com",
                                     hash_password(password), role=role)
    return _make_user


@pytest.fixture
def make_book(session_factory):
    counter = {"n": 0}

    async def _make_book(title="Book", price="10.00", stock=10, genre="Fiction", author="Author"):
        counter["n"] += 1
        async with session_factory() as db:
            book = Book(title=title, author=author, genre=genre,
                        isbn=f"978000000{counter['n']:04d}", price=Decimal(price), stock=stock)
            db.add(book)
            await db.commit()
            await db.refresh(book)
            return book
    return _make_book


@pytest.fixture
def stock_of(session_factory):
    async def _stock_of(book_id):
        async with session_factory() as db:
            return (await db.get(Book, book_id)).stock
    return _stock_of


def bearer(user):
    return {"Authorization": f"Bearer {create_token(user.id, user.username, user.role)}"}


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("admin", role=Role.ADMIN)


@pytest_asyncio.fixture
async def customer(make_user):
    return await make_user("alice")


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def customer_headers(customer):
    return bearer(customer)


@pytest.fixture
def headers_for():
    return bearer
