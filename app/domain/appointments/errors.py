"""Appointment domain errors - the only failures the lifecycle service reports"""


class AppointmentError(Exception):
    """Base class for lifecycle errors"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppointmentError):
    """Bad or missing input the caller can correct"""

    status_code = 400


class NotFound(AppointmentError):
    """Unknown tracking token or no matching unacknowledged appointment"""

    status_code = 404


class PersistenceError(AppointmentError):
    """Store unreachable, constraint violated or concurrent write detected"""

    status_code = 503


class DuplicateKeyError(PersistenceError):
    """Tracking token collided with an existing appointment"""


class GatewayError(AppointmentError):
    """Notification dispatch failed"""

    status_code = 502
