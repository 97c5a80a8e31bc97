import logging
from datetime import datetime

from backend.core.clock import Clock, utc_now
from backend.core.exceptions import NotAuthorized
from backend.models.notification import Notification
from backend.repositories.notification_repository import NotificationRepository
from backend.repositories.user_repository import UserRepository

MONTH_NAMES = (
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December',
)

logger = logging.getLogger(__name__)


def format_slot(hour_start: datetime) -> str:
    """Render a slot as ``day 01 of March, at 14h``."""
    return f'day {hour_start.day:02d} of {MONTH_NAMES[hour_start.month - 1]}, at {hour_start.hour}h'


def new_booking_message(requester_name: str, hour_start: datetime) -> str:
    return f'New booking from {requester_name} for {format_slot(hour_start)}'


class NotificationEmitter:
    def __init__(
        self,
        notifications: NotificationRepository,
        users: UserRepository,
        clock: Clock = utc_now,
    ) -> None:
        self.notifications = notifications
        self.users = users
        self.clock = clock

    async def new_booking(self, recipient_id: int, requester_name: str, hour_start: datetime) -> Notification:
        notification = Notification(
            content=new_booking_message(requester_name, hour_start),
            recipient_id=recipient_id,
            read=False,
            created_at=self.clock(),
        )
        await self.notifications.add(notification)
        logger.info('Notification staged for recipient=%s', recipient_id)
        return notification

    async def list_recent(self, recipient_id: int) -> list[Notification]:
        if await self.users.find_provider(recipient_id) is None:
            raise NotAuthorized('Only provider users have notifications.')

        return await self.notifications.list_recent(recipient_id)

    async def mark_read(self, notification_id: int) -> Notification | None:
        notification = await self.notifications.mark_read(notification_id)
        await self.notifications.session.commit()
        return notification
