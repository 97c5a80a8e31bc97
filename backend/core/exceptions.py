"""
Booking domain errors.

Every failure the booking engine can report is one of these classes. Each
carries a stable ``code``, a human readable ``message`` and optional
``details``; the API layer turns them into structured JSON responses.
"""

from typing import Any

from fastapi import status


class DomainException(Exception):
    """Base exception for all booking domain errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Request could not be processed.'

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        self.message = message or self.default_message
        self.code = self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {'code': self.code, 'message': self.message, 'details': self.details}


# Booking creation


class MalformedRequest(DomainException):
    default_message = "Data didn't validate."


class NotAProvider(DomainException):
    default_message = 'The user specified as provider is not a provider.'


class SelfBookingForbidden(DomainException):
    default_message = "You can't make an appointment with yourself."


class PastDateForbidden(DomainException):
    default_message = 'Past dates are not allowed.'


class SlotUnavailable(DomainException):
    default_message = 'Appointment date is not available.'


# Cancellation


class BookingNotFound(DomainException):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Appointment not found.'


class AlreadyCanceled(DomainException):
    default_message = 'This appointment is already canceled.'


class NotAuthorized(DomainException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "You don't have permission to perform this action."


class TooLateToCancel(DomainException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = 'You can only cancel appointments 2 hours in advance.'


# Side effects


class DispatchFailed(DomainException):
    """Raised by job ports; never propagated out of the operation that triggered the job."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = 'Deferred job could not be dispatched.'
