"""
Error kinds raised by the services.

Each carries the HTTP status the JSON layer answers with; the services
themselves never build responses.
"""


class ClinicAuditError(Exception):
    status_code = 500
    default_message = 'An error occurred'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(ClinicAuditError):
    """Malformed input, or a token/month/id failing a business rule"""
    status_code = 400
    default_message = 'Invalid request'


class AuthenticationError(ClinicAuditError):
    """Missing, invalid or expired credentials"""
    status_code = 401
    default_message = 'Authentication required'


class AuthorizationError(ClinicAuditError):
    """Valid identity, insufficient privilege or wrong clinic"""
    status_code = 403
    default_message = 'Access denied'


class NotFoundError(ClinicAuditError):
    status_code = 404
    default_message = 'Not found'


class ConflictError(ClinicAuditError):
    status_code = 409
    default_message = 'Already exists'


class TransientStorageError(ClinicAuditError):
    """Database failure; the operation is safe to retry"""
    status_code = 503
    default_message = 'Storage temporarily unavailable'
