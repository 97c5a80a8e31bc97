import asyncio
import os

import pytest
from sqlalchemy.pool import NullPool

os.environ.setdefault('DATABASE_URL', 'sqlite+aiosqlite:///./test.db')

from backend.database import create_tables, make_engine, make_session_factory  # noqa: E402
from backend.models import appointment, notification  # noqa: E402,F401
from backend.models.user import User  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    # One connection per session on a file database so concurrent sessions really contend.
    engine = make_engine(f'sqlite+aiosqlite:///{tmp_path / "booking.db"}', poolclass=NullPool)
    asyncio.run(create_tables(engine))
    try:
        yield engine
    finally:
        asyncio.run(engine.dispose())


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def seed(session_factory):
    def _seed(*rows):
        async def _add():
            async with session_factory() as session:
                session.add_all(rows)
                await session.commit()

        asyncio.run(_add())

    return _seed


@pytest.fixture
def people(seed):
    """Providers 9 and 10, clients 5 and 6."""
    seed(
        User(id=9, name='Paula Provider', email='paula@example.com', provider=True),
        User(id=10, name='Pedro Provider', email='pedro@example.com', provider=True),
        User(id=5, name='Carla Client', email='carla@example.com', provider=False),
        User(id=6, name='Diego Client', email='diego@example.com', provider=False),
    )
