from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from backend.core.clock import Clock, is_before, start_of_hour, utc_now
from backend.core.exceptions import (
    DomainException,
    MalformedRequest,
    NotAProvider,
    PastDateForbidden,
    SelfBookingForbidden,
)
from backend.models.types import MAX_ID
from backend.models.user import User
from backend.repositories.user_repository import UserRepository


class BookingRequest(BaseModel):
    provider_id: Annotated[int, Field(ge=1, le=MAX_ID)]
    date: datetime

    @field_validator('provider_id', mode='before')
    @classmethod
    def reject_booleans(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError('Provider id must be an integer.')
        return value


@dataclass
class BookingDraft:
    requester_id: int
    provider: User
    requested_for: datetime
    hour_start: datetime

    @property
    def provider_id(self) -> int:
        return self.provider.id


@dataclass
class ValidationOutcome:
    draft: BookingDraft | None = None
    error: DomainException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, draft: BookingDraft) -> 'ValidationOutcome':
        return cls(draft=draft)

    @classmethod
    def failure(cls, error: DomainException) -> 'ValidationOutcome':
        return cls(error=error)


def _violations(exc: ValidationError) -> list[dict[str, str]]:
    return [
        {'field': '.'.join(str(part) for part in error['loc']) or 'body', 'message': error['msg']}
        for error in exc.errors()
    ]


class BookingValidator:
    """
    Checks a booking request against provider identity and time rules.

    The checks run in a fixed order and the first failing one decides the
    outcome. Nothing is written. The past-date rule compares the requested
    instant itself with the clock, while the slot is the start of its hour.
    """

    def __init__(self, users: UserRepository, clock: Clock = utc_now) -> None:
        self.users = users
        self.clock = clock

    async def validate(self, requester_id: int, payload: dict[str, Any]) -> ValidationOutcome:
        try:
            request = BookingRequest.model_validate(payload)
        except ValidationError as exc:
            return ValidationOutcome.failure(MalformedRequest(details={'fields': _violations(exc)}))

        provider = await self.users.find_provider(request.provider_id)
        if provider is None:
            return ValidationOutcome.failure(NotAProvider(details={'provider_id': request.provider_id}))

        if requester_id == request.provider_id:
            return ValidationOutcome.failure(SelfBookingForbidden())

        hour_start = start_of_hour(request.date)
        if is_before(request.date, self.clock()):
            return ValidationOutcome.failure(PastDateForbidden(details={'date': request.date.isoformat()}))

        return ValidationOutcome.success(
            BookingDraft(
                requester_id=requester_id,
                provider=provider,
                requested_for=request.date,
                hour_start=hour_start,
            )
        )
