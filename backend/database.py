import asyncio
from collections.abc import AsyncIterator

from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from backend.core import config


def make_engine(database_url: str, **kwargs) -> AsyncEngine:
    return create_async_engine(database_url, echo=config.DATABASE_ECHO, **kwargs)


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, autoflush=False, expire_on_commit=False)


engine = make_engine(config.DATABASE_URL)

SessionLocal = make_session_factory(engine)

Base = declarative_base()

_schema_lock = asyncio.Lock()
_appointment_schema_checked = False

# Indexes a database created before they existed may be missing. The slot
# index keeps a single live appointment per provider and hour.
APPOINTMENT_INDEXES = [
    (
        'uq_appointments_provider_slot_active',
        'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_provider_slot_active '
        'ON appointments(provider_id, scheduled_for) WHERE canceled_at IS NULL',
    ),
    (
        'idx_appointments_client_schedule',
        'CREATE INDEX IF NOT EXISTS idx_appointments_client_schedule '
        'ON appointments(client_id, scheduled_for)',
    ),
    (
        'idx_notifications_recipient_created',
        'CREATE INDEX IF NOT EXISTS idx_notifications_recipient_created '
        'ON notifications(recipient_id, created_at)',
    ),
]


async def get_session() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session


async def create_tables(bind: AsyncEngine | None = None) -> None:
    async with (bind or engine).begin() as connection:
        await connection.run_sync(Base.metadata.create_all)


def _missing_indexes(sync_connection) -> list[str]:
    inspector = inspect(sync_connection)
    table_names = inspector.get_table_names()
    if 'appointments' not in table_names or 'notifications' not in table_names:
        return []

    existing = {
        index['name']
        for table in ('appointments', 'notifications')
        for index in inspector.get_indexes(table)
    }
    return [statement for name, statement in APPOINTMENT_INDEXES if name not in existing]


async def ensure_appointment_schema(bind: AsyncEngine | None = None) -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    async with _schema_lock:
        if _appointment_schema_checked:
            return

        async with (bind or engine).begin() as connection:
            statements = await connection.run_sync(_missing_indexes)
            for statement in statements:
                await connection.execute(text(statement))

        _appointment_schema_checked = True
