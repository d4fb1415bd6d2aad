"""
Booking error taxonomy

Each error carries the HTTP status it maps to and a stable ``code`` that
clients can branch on. ``DeliveryError`` and ``ProvisionError`` are recovered
inside the booking flow and normally never reach a response.
"""


class BookingError(Exception):
    status_code = 500
    code = "server_error"

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationError(BookingError):
    status_code = 400
    code = "validation_error"


class NotFoundError(BookingError):
    status_code = 404
    code = "not_found"


class InvalidSignature(BookingError):
    status_code = 400
    code = "invalid_signature"

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message)


class GatewayError(BookingError):
    status_code = 502
    code = "payment_creation_failed"


class ProvisionError(BookingError):
    status_code = 502
    code = "provision_failed"


class DeliveryError(BookingError):
    status_code = 502
    code = "delivery_failed"


class ForbiddenError(BookingError):
    status_code = 403
    code = "forbidden"


class ConflictError(BookingError):
    status_code = 409
    code = "conflict"
