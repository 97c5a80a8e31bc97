import asyncio
from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config
from backend.core.exceptions import DispatchFailed

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class RecordingJobPort:
    def __init__(self, fail: bool = False, error: Exception | None = None) -> None:
        self.fail = fail
        self.error = error
        self.jobs: list[tuple[str, dict]] = []

    async def enqueue(self, job_kind: str, payload: dict) -> None:
        if self.error is not None:
            raise self.error
        if self.fail:
            raise DispatchFailed(details={'job': job_kind, 'reason': 'broker down'})
        self.jobs.append((job_kind, payload))


def fetch_all(session_factory, model) -> list[dict]:
    async def _fetch():
        async with session_factory() as session:
            table = model.__table__
            result = await session.execute(table.select().order_by(table.c.id))
            return [dict(row) for row in result.mappings().all()]

    return asyncio.run(_fetch())


def create_access_token(subject, expires_minutes: int = 60) -> str:
    now = datetime.now(timezone.utc)
    payload = {'sub': str(subject), 'exp': now + timedelta(minutes=expires_minutes), 'iat': now}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)
