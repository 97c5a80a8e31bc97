import asyncio

from sqlalchemy import inspect, text

from backend import database


def _index_names(sync_connection) -> set[str]:
    inspector = inspect(sync_connection)
    return {
        index['name']
        for table in ('appointments', 'notifications')
        for index in inspector.get_indexes(table)
    }


def test_ensure_appointment_schema_restores_slot_index(engine, monkeypatch) -> None:
    monkeypatch.setattr(database, '_appointment_schema_checked', False)

    async def run():
        async with engine.begin() as connection:
            await connection.execute(text('DROP INDEX uq_appointments_provider_slot_active'))
            before = await connection.run_sync(_index_names)

        await database.ensure_appointment_schema(engine)

        async with engine.connect() as connection:
            after = await connection.run_sync(_index_names)
        return before, after

    before, after = asyncio.run(run())

    assert 'uq_appointments_provider_slot_active' not in before
    assert 'uq_appointments_provider_slot_active' in after
    assert database._appointment_schema_checked is True


def test_ensure_appointment_schema_runs_once(engine, monkeypatch) -> None:
    monkeypatch.setattr(database, '_appointment_schema_checked', True)

    def fail(_):
        raise AssertionError('schema should not be inspected again')

    monkeypatch.setattr(database, '_missing_indexes', fail)

    asyncio.run(database.ensure_appointment_schema(engine))
