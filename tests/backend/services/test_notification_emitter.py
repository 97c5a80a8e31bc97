import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from backend.core.exceptions import NotAuthorized
from backend.models.notification import Notification
from backend.repositories.notification_repository import RECENT_LIMIT, NotificationRepository
from backend.repositories.user_repository import UserRepository
from backend.services.notification_emitter import NotificationEmitter, format_slot, new_booking_message
from support import NOW, fetch_all


def run_with_emitter(session_factory, action):
    async def _run():
        async with session_factory() as session:
            emitter = NotificationEmitter(NotificationRepository(session), UserRepository(session), clock=lambda: NOW)
            return await action(emitter)

    return asyncio.run(_run())


def test_format_slot_uses_day_month_and_hour() -> None:
    assert format_slot(datetime(2024, 3, 1, 14, 0, tzinfo=timezone.utc)) == 'day 01 of March, at 14h'
    assert format_slot(datetime(2024, 12, 25, 9, 0, tzinfo=timezone.utc)) == 'day 25 of December, at 9h'


def test_new_booking_message_names_the_requester() -> None:
    message = new_booking_message('Carla Client', datetime(2024, 3, 1, 14, 0, tzinfo=timezone.utc))

    assert message == 'New booking from Carla Client for day 01 of March, at 14h'


def test_list_recent_is_newest_first_and_bounded(session_factory, people, seed) -> None:
    seed(
        *[
            Notification(content=f'message {index}', recipient_id=9, created_at=NOW + timedelta(minutes=index))
            for index in range(RECENT_LIMIT + 5)
        ],
        Notification(content='for someone else', recipient_id=10, created_at=NOW + timedelta(days=1)),
    )

    notifications = run_with_emitter(session_factory, lambda emitter: emitter.list_recent(9))

    assert len(notifications) == RECENT_LIMIT
    assert notifications[0].content == f'message {RECENT_LIMIT + 4}'
    assert [item.created_at for item in notifications] == sorted(
        (item.created_at for item in notifications), reverse=True
    )
    assert all(item.recipient_id == 9 for item in notifications)


@pytest.mark.parametrize('recipient_id', [5, 404])
def test_list_recent_requires_a_provider(session_factory, people, recipient_id) -> None:
    with pytest.raises(NotAuthorized):
        run_with_emitter(session_factory, lambda emitter: emitter.list_recent(recipient_id))


def test_mark_read_flips_flag_and_is_idempotent(session_factory, people, seed) -> None:
    seed(Notification(id=7, content='hello', recipient_id=9, created_at=NOW))

    first = run_with_emitter(session_factory, lambda emitter: emitter.mark_read(7))
    second = run_with_emitter(session_factory, lambda emitter: emitter.mark_read(7))

    assert first.read is True
    assert second.read is True
    assert fetch_all(session_factory, Notification)[0]['read'] is True


def test_mark_read_on_missing_notification_is_a_no_op(session_factory, people, seed) -> None:
    seed(Notification(id=7, content='hello', recipient_id=9, created_at=NOW))

    result = run_with_emitter(session_factory, lambda emitter: emitter.mark_read(999))

    assert result is None
    assert fetch_all(session_factory, Notification) == [
        {'id': 7, 'content': 'hello', 'recipient_id': 9, 'read': False, 'created_at': NOW}
    ]
