import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.auth.dependencies import get_current_user
from backend.database import ensure_appointment_schema, get_session
from backend.models.user import User
from backend.repositories.appointment_repository import AppointmentRepository
from backend.repositories.notification_repository import NotificationRepository
from backend.repositories.user_repository import UserRepository
from backend.services.booking_service import BookingService
from backend.services.booking_validator import BookingValidator
from backend.services.cancellation import CancellationService
from backend.services.job_port import JobPort, create_job_port
from backend.services.notification_emitter import NotificationEmitter
from backend.services.slot_conflicts import SlotConflictChecker

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)

_job_port: JobPort | None = None


class ProviderSummaryResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class AppointmentListItemResponse(BaseModel):
    id: int
    scheduled_for: datetime
    past: bool
    cancelable: bool
    provider: ProviderSummaryResponse


class AppointmentResponse(BaseModel):
    id: int
    client_id: int
    provider_id: int
    scheduled_for: datetime
    canceled_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class DispatchWarningResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] = {}


class CanceledAppointmentResponse(AppointmentResponse):
    warnings: list[DispatchWarningResponse] = []


def database_unavailable(exc: SQLAlchemyError) -> HTTPException:
    logger.exception('Database operation failed')
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail='Database unavailable. Verify DATABASE_URL and database credentials.',
    )


async def ensure_database_ready() -> None:
    try:
        await ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


def get_job_port() -> JobPort:
    global _job_port

    if _job_port is None:
        _job_port = create_job_port()
    return _job_port


def get_booking_service(session: AsyncSession = Depends(get_session)) -> BookingService:
    appointments = AppointmentRepository(session)
    users = UserRepository(session)
    return BookingService(
        session=session,
        appointments=appointments,
        users=users,
        validator=BookingValidator(users),
        conflicts=SlotConflictChecker(appointments),
        notifier=NotificationEmitter(NotificationRepository(session), users),
    )


def get_cancellation_service(
    session: AsyncSession = Depends(get_session),
    jobs: JobPort = Depends(get_job_port),
) -> CancellationService:
    return CancellationService(session=session, appointments=AppointmentRepository(session), jobs=jobs)


@router.get('', response_model=list[AppointmentListItemResponse])
async def list_my_appointments(
    page: int = Query(default=1),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    await ensure_database_ready()

    try:
        views = await service.list_for_client(current_user.id, page)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    return [
        AppointmentListItemResponse(
            id=view.appointment.id,
            scheduled_for=view.appointment.scheduled_for,
            past=view.past,
            cancelable=view.cancelable,
            provider=ProviderSummaryResponse.model_validate(view.appointment.provider),
        )
        for view in views
    ]


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: Any = Body(default=None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    await ensure_database_ready()

    try:
        return await service.create(current_user.id, payload)
    except SQLAlchemyError as exc:
        await service.session.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{appointment_id}', response_model=CanceledAppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: CancellationService = Depends(get_cancellation_service),
):
    await ensure_database_ready()

    try:
        result = await service.cancel(appointment_id, current_user.id)
    except SQLAlchemyError as exc:
        await service.session.rollback()
        raise database_unavailable(exc) from exc

    response = CanceledAppointmentResponse.model_validate(result.appointment)
    response.warnings = [DispatchWarningResponse(**warning.to_dict()) for warning in result.warnings]
    return response
