"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    retryable = False

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


# ============================================================================
# Validation: malformed input, never retried
# ============================================================================


class ValidationError(AppException):
    """Malformed input."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class InvalidRangeError(ValidationError):
    """Slot lattice bounds or cadence are unusable."""

    def __init__(self, message: str = "Start must be before end and interval must be positive"):
        super().__init__(message)


class MalformedRangeError(ValidationError):
    """Partial block without a usable start/end pair."""

    def __init__(self, message: str = "Start time must be before end time"):
        super().__init__(message)


class SlotAlignmentError(ValidationError):
    """Requested time is not on the provider's slot lattice."""

    def __init__(self, message: str = "Requested time is not a bookable slot"):
        super().__init__(message)


# ============================================================================
# Conflicts: definitive rejection, caller must pick something else
# ============================================================================


class ConflictError(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class SlotTakenError(ConflictError):
    def __init__(
        self,
        message: str = "This time slot is already booked. Please choose another time.",
    ):
        super().__init__(message)


class ClientConflictError(ConflictError):
    def __init__(self, message: str = "You already have an appointment at this time."):
        super().__init__(message)


class DuplicateBlockError(ConflictError):
    def __init__(self, message: str = "This time is already blocked"):
        super().__init__(message)


class ConflictingAppointmentsError(ConflictError):
    def __init__(
        self,
        message: str = (
            "There are existing appointments in this time slot. Please reschedule them first."
        ),
        count: int = 0,
    ):
        self.count = count
        super().__init__(message)


# ============================================================================
# Policy: business-rule rejection
# ============================================================================


class PolicyError(AppException):
    """Business rule rejection."""

    def __init__(self, message: str = "Request violates a scheduling rule", status_code: int = 400):
        """Initialize with 400 status code unless overridden."""
        super().__init__(message, status_code=status_code)


class PastDateError(PolicyError):
    def __init__(self, message: str = "Date is in the past"):
        super().__init__(message)


class ProviderUnavailableError(PolicyError):
    def __init__(
        self,
        message: str = "Provider is not available at this time. Please choose another slot.",
    ):
        super().__init__(message)


class LeadTimeError(PolicyError):
    def __init__(self, hours: int = 2):
        super().__init__(
            f"You can only modify appointments at least {hours} hours before the scheduled time",
            status_code=403,
        )


class TerminalStateError(PolicyError):
    def __init__(self, message: str = "Appointment can no longer be changed"):
        super().__init__(message)


class AlreadyCancelledError(TerminalStateError):
    def __init__(self, message: str = "Appointment is already cancelled"):
        super().__init__(message)


class AlreadyCompletedError(TerminalStateError):
    def __init__(self, message: str = "Cannot cancel a completed appointment"):
        super().__init__(message)


# ============================================================================
# Lookup and infrastructure
# ============================================================================


class NotFoundError(AppException):
    """Entity absent or not owned by the acting principal."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class StoreUnavailableError(AppException):
    """Transient storage failure; safe to retry with backoff."""

    retryable = True

    def __init__(self, message: str = "Storage is temporarily unavailable"):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503)


class CodeGenerationExhaustedError(AppException):
    """No unused appointment code found within the attempt budget."""

    retryable = True

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Could not generate a unique appointment code after {attempts} attempts",
            status_code=503,
        )
