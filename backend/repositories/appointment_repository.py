"""Storage access for appointments."""

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.core.exceptions import SlotUnavailable
from backend.models.appointment import CANCELLATION_WINDOW, Appointment
from backend.models.types import MAX_ID, is_storable_id

PAGE_SIZE = 20

logger = logging.getLogger(__name__)


class AppointmentRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, appointment_id: int, with_parties: bool = False) -> Appointment | None:
        if not is_storable_id(appointment_id):
            return None
        query = select(Appointment).where(Appointment.id == appointment_id)
        if with_parties:
            query = query.options(selectinload(Appointment.client), selectinload(Appointment.provider))
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find_active_in_slot(self, provider_id: int, hour_start: datetime) -> Appointment | None:
        result = await self.session.execute(
            select(Appointment).where(
                Appointment.provider_id == provider_id,
                Appointment.scheduled_for == hour_start,
                Appointment.canceled_at.is_(None),
            )
        )
        return result.scalars().first()

    async def list_active_for_client(self, client_id: int, page: int = 1) -> list[Appointment]:
        page = min(max(page, 1), MAX_ID // PAGE_SIZE)
        result = await self.session.execute(
            select(Appointment)
            .where(Appointment.client_id == client_id, Appointment.canceled_at.is_(None))
            .options(selectinload(Appointment.provider))
            .order_by(Appointment.scheduled_for.asc(), Appointment.id.asc())
            .limit(PAGE_SIZE)
            .offset((page - 1) * PAGE_SIZE)
        )
        return list(result.scalars().all())

    async def add(self, appointment: Appointment) -> Appointment:
        """
        Stage a new appointment and flush it.

        The partial unique index on (provider_id, scheduled_for) rejects a
        second live appointment for the same slot even when two requests
        passed the availability check at the same time.
        """
        self.session.add(appointment)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.info(
                'Slot taken concurrently provider=%s scheduled_for=%s',
                appointment.provider_id,
                appointment.scheduled_for,
            )
            raise SlotUnavailable(
                details={'provider_id': appointment.provider_id, 'date': appointment.scheduled_for.isoformat()}
            ) from exc
        return appointment

    async def cancel_if_allowed(self, appointment_id: int, actor_id: int, now: datetime) -> bool:
        """
        Set ``canceled_at`` in one conditional UPDATE.

        The row only changes while it is still live, owned by ``actor_id`` and
        outside the cancellation window. Returns whether a row was updated.
        """
        result = await self.session.execute(
            update(Appointment)
            .where(
                Appointment.id == appointment_id,
                Appointment.client_id == actor_id,
                Appointment.canceled_at.is_(None),
                Appointment.scheduled_for > now + CANCELLATION_WINDOW,
            )
            .values(canceled_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
