"""
Custom application exceptions

Every failure the engine produces deliberately is one of these. Store
(SQLAlchemy) errors are not wrapped and propagate unchanged.
"""

from typing import Optional, Dict, Any


class WaitlistLotteryException(Exception):
    """Base exception for the waitlist lottery engine"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# Categories

class ValidationError(WaitlistLotteryException):
    """Validation errors"""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR", field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code=code,
            status_code=400,
            details=details
        )


class StateConflictError(WaitlistLotteryException):
    """Entry is not in a state that permits the requested operation"""

    def __init__(self, message: str, code: str = "CONFLICT", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            details=details
        )


class CapacityError(WaitlistLotteryException):
    """Waitlist or attendee capacity exhausted"""

    def __init__(self, message: str, code: str = "CAPACITY_ERROR", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            details=details
        )


class AuthorizationError(WaitlistLotteryException):
    """Authorization related errors"""

    def __init__(self, message: str = "Not authorized", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="NOT_AUTHORIZED",
            status_code=403,
            details=details
        )


class NotFoundError(WaitlistLotteryException):
    """Resource not found errors"""

    def __init__(self, resource: str, identifier: Any = None, code: str = "NOT_FOUND"):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id {identifier} not found"
        super().__init__(
            message=message,
            code=code,
            status_code=404,
            details={"id": str(identifier)} if identifier else {}
        )


# Validation

class InvalidSampleSize(ValidationError):

    def __init__(self, sample_size: int, available_slots: int):
        if sample_size < 1:
            message = "Sample size must be at least 1"
        else:
            message = "Sample size must be less than or equal to available slots"
        super().__init__(message, code="INVALID_SAMPLE_SIZE", field="sample_size")
        self.details.update({"sample_size": sample_size, "available_slots": available_slots})


class CapacityNotSet(ValidationError):

    def __init__(self, event_id: Any):
        super().__init__("Event capacity is not set", code="CAPACITY_NOT_SET", field="max_capacity")
        self.details["event_id"] = str(event_id)


class InvalidLocation(ValidationError):

    def __init__(self, message: str = "Location coordinates are out of range"):
        super().__init__(message, code="INVALID_LOCATION", field="location")


class LocationRequired(ValidationError):

    def __init__(self):
        super().__init__(
            "This event requires a location to join its waitlist",
            code="LOCATION_REQUIRED",
            field="location"
        )


class InvalidDate(ValidationError):

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, code="INVALID_DATE", field=field)


class DeadlinePending(ValidationError):

    def __init__(self):
        super().__init__("Deadline has not passed yet", code="DEADLINE_PENDING", field="deadline")


# State conflicts

class AlreadyOnWaitlist(StateConflictError):

    def __init__(self, event_id: Any = None, user_id: Any = None):
        super().__init__(
            "Already on waitlist",
            code="ALREADY_ON_WAITLIST",
            details={"event_id": str(event_id), "user_id": str(user_id)}
        )


class NotOnWaitlist(StateConflictError):

    def __init__(self, event_id: Any = None, user_id: Any = None):
        super().__init__(
            "Not on waitlist",
            code="NOT_ON_WAITLIST",
            details={"event_id": str(event_id), "user_id": str(user_id)}
        )


class CannotLeaveAfterAccepting(StateConflictError):

    def __init__(self):
        super().__init__("Cannot leave after accepting", code="CANNOT_LEAVE_AFTER_ACCEPTING")


class EntryNotFound(StateConflictError):

    def __init__(self, event_id: Any = None, user_id: Any = None):
        super().__init__(
            f"Waitlist entry not found for event={event_id} user={user_id}",
            code="ENTRY_NOT_FOUND",
            details={"event_id": str(event_id), "user_id": str(user_id)}
        )


class InviteNotPending(StateConflictError):

    def __init__(self, current_status: Any = None, expected_status: Any = None):
        details = {}
        if current_status is not None:
            details["current_status"] = getattr(current_status, "value", str(current_status))
        if expected_status is not None:
            details["expected_status"] = getattr(expected_status, "value", str(expected_status))
        super().__init__("Invite not pending", code="INVITE_NOT_PENDING", details=details)


class EventNotOpen(StateConflictError):
    """The event is not accepting entrants"""

    def __init__(self, event_id: Any = None, current_status: Any = None):
        super().__init__(
            "Event is not open for registration",
            code="EVENT_NOT_OPEN",
            details={
                "event_id": str(event_id),
                "status": getattr(current_status, "value", current_status),
            }
        )


class ConcurrentUpdate(StateConflictError):
    """The entry changed between read and write"""

    def __init__(self, entry_id: Any = None):
        super().__init__(
            "Waitlist entry was modified by another request",
            code="CONCURRENT_UPDATE",
            details={"entry_id": str(entry_id)}
        )


# Capacity

class WaitlistFull(CapacityError):

    def __init__(self, waitlist_capacity: int):
        super().__init__(
            "Waitlist is full",
            code="WAITLIST_FULL",
            details={"waitlist_capacity": waitlist_capacity}
        )


class EventFull(CapacityError):

    def __init__(self, max_capacity: Optional[int] = None):
        super().__init__("Event is full", code="EVENT_FULL", details={"max_capacity": max_capacity})


class NoAvailableSlots(CapacityError):

    def __init__(self):
        super().__init__("No available slots for event", code="NO_AVAILABLE_SLOTS")


class EmptyWaitlist(CapacityError):

    def __init__(self):
        super().__init__("No users on waitlist", code="EMPTY_WAITLIST")


# Authorization

class NotAuthorized(AuthorizationError):

    def __init__(self, message: str = "User is not organizer of event"):
        super().__init__(message)


# Not found

class EventNotFound(NotFoundError):

    def __init__(self, event_id: Any = None):
        super().__init__("Event", event_id, code="EVENT_NOT_FOUND")


class UserNotFound(NotFoundError):

    def __init__(self, user_id: Any = None):
        super().__init__("User", user_id, code="USER_NOT_FOUND")


class NotificationNotFound(NotFoundError):

    def __init__(self, notification_id: Any = None):
        super().__init__("Notification", notification_id, code="NOTIFICATION_NOT_FOUND")


# Cascade

class CascadeFailed(WaitlistLotteryException):
    """The root document of a cascade deletion could not be removed"""

    def __init__(self, result: Any):
        self.result = result
        super().__init__(
            message=f"Cascade deletion '{result.name}' failed",
            code="CASCADE_FAILED",
            status_code=500,
            details=result.to_dict()
        )
