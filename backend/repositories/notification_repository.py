from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.models.notification import Notification
from backend.models.types import is_storable_id

RECENT_LIMIT = 20


class NotificationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, notification: Notification) -> Notification:
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def list_recent(self, recipient_id: int, limit: int = RECENT_LIMIT) -> list[Notification]:
        result = await self.session.execute(
            select(Notification)
            .where(Notification.recipient_id == recipient_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def mark_read(self, notification_id: int) -> Notification | None:
        if not is_storable_id(notification_id):
            return None
        await self.session.execute(
            update(Notification)
            .where(Notification.id == notification_id)
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        return await self.session.get(Notification, notification_id, populate_existing=True)
