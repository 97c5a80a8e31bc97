"""Cancellation policy and the cancel-booking flow."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from backend.core.clock import Clock, is_before, utc_now
from backend.core.exceptions import (
    AlreadyCanceled,
    BookingNotFound,
    DispatchFailed,
    NotAuthorized,
    TooLateToCancel,
)
from backend.models.appointment import CANCELLATION_WINDOW, Appointment
from backend.repositories.appointment_repository import AppointmentRepository
from backend.services.job_port import CANCELLATION_MAIL_JOB, JobPort

logger = logging.getLogger(__name__)


class CancellationPolicy:
    """Decides whether ``actor_id`` may cancel ``appointment`` at ``now``."""

    def check(self, appointment: Appointment | None, actor_id: int, now: datetime) -> Appointment:
        if appointment is None:
            raise BookingNotFound()

        if appointment.canceled_at is not None:
            raise AlreadyCanceled()

        if appointment.client_id != actor_id:
            raise NotAuthorized("You don't have permission to cancel this appointment.")

        # Exactly two hours ahead is already inside the window.
        if not is_before(now, appointment.scheduled_for - CANCELLATION_WINDOW):
            raise TooLateToCancel()

        return appointment


@dataclass
class CancellationResult:
    appointment: Appointment
    warnings: list[DispatchFailed] = field(default_factory=list)


def cancellation_snapshot(appointment: Appointment, canceled_at: datetime) -> dict[str, Any]:
    return {
        'appointment_id': appointment.id,
        'scheduled_for': appointment.scheduled_for.isoformat(),
        'canceled_at': canceled_at.isoformat(),
        'provider': {'name': appointment.provider.name, 'email': appointment.provider.email},
        'client': {'name': appointment.client.name},
    }


class CancellationService:
    def __init__(
        self,
        session: AsyncSession,
        appointments: AppointmentRepository,
        jobs: JobPort,
        policy: CancellationPolicy | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.session = session
        self.appointments = appointments
        self.jobs = jobs
        self.policy = policy or CancellationPolicy()
        self.clock = clock

    async def cancel(self, appointment_id: int, actor_id: int) -> CancellationResult:
        now = self.clock()
        appointment = self.policy.check(
            await self.appointments.get(appointment_id, with_parties=True), actor_id, now
        )

        snapshot = cancellation_snapshot(appointment, now)

        if not await self.appointments.cancel_if_allowed(appointment_id, actor_id, now):
            # Lost a race with another request; report what changed underneath.
            await self.session.rollback()
            self.policy.check(await self.appointments.get(appointment_id), actor_id, now)
            raise AlreadyCanceled()

        await self.session.commit()
        set_committed_value(appointment, 'canceled_at', now)
        logger.info('Appointment canceled id=%s client=%s', appointment_id, actor_id)

        result = CancellationResult(appointment=appointment)
        try:
            await self.jobs.enqueue(CANCELLATION_MAIL_JOB, snapshot)
        except DispatchFailed as exc:
            logger.warning('Cancellation mail not dispatched for appointment=%s', appointment_id, exc_info=True)
            result.warnings.append(exc)
        except Exception as exc:
            logger.warning('Cancellation mail not dispatched for appointment=%s', appointment_id, exc_info=True)
            result.warnings.append(DispatchFailed(details={'job': CANCELLATION_MAIL_JOB, 'reason': str(exc)}))

        return result
