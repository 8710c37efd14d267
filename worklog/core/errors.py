class WorklogError(ValueError):
    """Base for per-request failures raised by the services."""

    status_code = 400


class Conflict(WorklogError):
    status_code = 409


class NotFound(WorklogError):
    status_code = 404


class Unauthorized(WorklogError):
    status_code = 403


class InvalidState(WorklogError):
    status_code = 409


class FutureTime(WorklogError):
    status_code = 422
