from datetime import datetime

from backend.core.exceptions import SlotUnavailable
from backend.repositories.appointment_repository import AppointmentRepository


class SlotConflictChecker:
    """Slots are whole hours; only an exact provider and hour match conflicts."""

    def __init__(self, appointments: AppointmentRepository) -> None:
        self.appointments = appointments

    async def is_taken(self, provider_id: int, hour_start: datetime) -> bool:
        return await self.appointments.find_active_in_slot(provider_id, hour_start) is not None

    async def ensure_available(self, provider_id: int, hour_start: datetime) -> None:
        if await self.is_taken(provider_id, hour_start):
            raise SlotUnavailable(details={'provider_id': provider_id, 'date': hour_start.isoformat()})
