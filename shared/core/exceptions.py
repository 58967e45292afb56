from shared.utils.app_status_code import AppStatusCode


class RentalError(Exception):
    """Base class for domain errors raised by the rental core."""

    http_status = 400
    status_code = AppStatusCode.OPERATION_FAILED

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(RentalError):
    """Malformed or out-of-range input, rejected before any state change."""

    http_status = 400
    status_code = AppStatusCode.INVALID_INPUT


class NotFoundError(RentalError):
    http_status = 404
    status_code = AppStatusCode.NOT_FOUND


class ForbiddenError(RentalError):
    http_status = 403
    status_code = AppStatusCode.FORBIDDEN


class InvalidStateError(RentalError):
    """A transition was attempted from a state that does not permit it."""

    http_status = 409
    status_code = AppStatusCode.INVALID_STATE

    def __init__(self, entity: str, expected, actual: str):
        if isinstance(expected, (list, tuple, set, frozenset)):
            expected_text = " or ".join(sorted(str(e) for e in expected))
        else:
            expected_text = str(expected)
        super().__init__(f"{entity} must be {expected_text}, was {actual}")
        self.entity = entity
        self.expected = expected
        self.actual = actual


class ConflictError(RentalError):
    """Well-formed input that collides with existing state."""

    http_status = 409
    status_code = AppStatusCode.CONFLICT
