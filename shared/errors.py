"""
Error taxonomy for the fuel request workflow.

Every error raised by the lifecycle core derives from FuelRequestError so the
HTTP layer can turn it into a failed ActionResult. Push delivery problems are
not errors: the dispatcher logs them and reports them in DispatchOutcome.
"""


class FuelRequestError(Exception):
    """Base class for lifecycle errors."""

    status_code = 500


class ValidationError(FuelRequestError):
    """Missing or malformed input. No state was changed."""

    status_code = 400


class NotFoundError(FuelRequestError):
    """Unknown request or user id. No state was changed."""

    status_code = 404


class InvalidTransitionError(FuelRequestError):
    """Decision on a request that is no longer Pending."""

    status_code = 409

    def __init__(self, request_id: int, current_status: str, requested_status: str):
        self.request_id = request_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Request {request_id} is already {current_status}; "
            f"cannot move it to {requested_status}"
        )


class StorageError(FuelRequestError):
    """Record store unavailable or a write failed."""

    status_code = 503
