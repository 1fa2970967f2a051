class BrainHintsError(Exception):
    """Base class for errors raised by the service layer"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidIdError(BrainHintsError):
    status_code = 400


class ContentValidationError(BrainHintsError):
    """Form-level validation failure (missing title, past schedule, ...)"""
    status_code = 400


class PermissionDeniedError(BrainHintsError):
    status_code = 403


class NotFoundError(BrainHintsError):
    status_code = 404


class UploadError(BrainHintsError):
    """Media host rejected or failed an upload"""
    status_code = 502


class AuthenticationError(BrainHintsError):
    """Missing, malformed or unverifiable bearer token"""
    status_code = 401
