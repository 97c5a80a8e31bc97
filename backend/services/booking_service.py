"""Booking creation and listing."""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from backend.core.clock import Clock, utc_now
from backend.models.appointment import Appointment
from backend.repositories.appointment_repository import AppointmentRepository
from backend.repositories.user_repository import UserRepository
from backend.services.booking_validator import BookingValidator
from backend.services.notification_emitter import NotificationEmitter
from backend.services.slot_conflicts import SlotConflictChecker

logger = logging.getLogger(__name__)


@dataclass
class AppointmentView:
    appointment: Appointment
    past: bool
    cancelable: bool


class BookingService:
    def __init__(
        self,
        session: AsyncSession,
        appointments: AppointmentRepository,
        users: UserRepository,
        validator: BookingValidator,
        conflicts: SlotConflictChecker,
        notifier: NotificationEmitter,
        clock: Clock = utc_now,
    ) -> None:
        self.session = session
        self.appointments = appointments
        self.users = users
        self.validator = validator
        self.conflicts = conflicts
        self.notifier = notifier
        self.clock = clock

    async def list_for_client(self, client_id: int, page: int = 1) -> list[AppointmentView]:
        now = self.clock()
        appointments = await self.appointments.list_active_for_client(client_id, page)
        return [
            AppointmentView(appointment=appointment, past=appointment.is_past(now), cancelable=appointment.is_cancelable(now))
            for appointment in appointments
        ]

    async def create(self, requester_id: int, payload: dict[str, Any]) -> Appointment:
        """
        Book a provider hour for ``requester_id``.

        The appointment and the provider's notification are written in one
        transaction, after validation and the availability check passed.
        """
        outcome = await self.validator.validate(requester_id, payload)
        if not outcome.ok:
            logger.info('Booking rejected requester=%s reason=%s', requester_id, outcome.error.code)
            raise outcome.error

        draft = outcome.draft
        await self.conflicts.ensure_available(draft.provider_id, draft.hour_start)

        requester = await self.users.get(requester_id)
        requester_name = requester.name if requester is not None else f'user {requester_id}'

        appointment = await self.appointments.add(
            Appointment(
                client_id=requester_id,
                provider_id=draft.provider_id,
                scheduled_for=draft.hour_start,
                canceled_at=None,
                created_at=self.clock(),
            )
        )
        await self.notifier.new_booking(draft.provider_id, requester_name, draft.hour_start)
        await self.session.commit()

        logger.info(
            'Appointment created id=%s client=%s provider=%s scheduled_for=%s',
            appointment.id,
            requester_id,
            draft.provider_id,
            appointment.scheduled_for.isoformat(),
        )
        return appointment
