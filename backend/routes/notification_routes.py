from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.auth.dependencies import get_current_user
from backend.database import get_session
from backend.models.user import User
from backend.repositories.notification_repository import NotificationRepository
from backend.repositories.user_repository import UserRepository
from backend.routes.appointment_routes import database_unavailable, ensure_database_ready
from backend.services.notification_emitter import NotificationEmitter

router = APIRouter(tags=['notifications'])


class NotificationResponse(BaseModel):
    id: int
    content: str
    recipient_id: int
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


def get_notification_emitter(session: AsyncSession = Depends(get_session)) -> NotificationEmitter:
    return NotificationEmitter(NotificationRepository(session), UserRepository(session))


@router.get('', response_model=list[NotificationResponse])
async def list_notifications(
    current_user: User = Depends(get_current_user),
    emitter: NotificationEmitter = Depends(get_notification_emitter),
):
    await ensure_database_ready()

    try:
        return await emitter.list_recent(current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.put('/{notification_id}', response_model=NotificationResponse | None)
async def mark_notification_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    emitter: NotificationEmitter = Depends(get_notification_emitter),
):
    del current_user
    await ensure_database_ready()

    try:
        return await emitter.mark_read(notification_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
