# errors.py
# Error taxonomy shared by the core modules and mapped to HTTP codes in main.py


class LoveMatchError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LoveMatchError):
    """Missing or invalid input fields."""
    status_code = 400


class UploadTooLargeError(ValidationError):
    status_code = 413


class NotFoundError(LoveMatchError):
    status_code = 404


class AuthorizationError(LoveMatchError):
    status_code = 403


class PersistenceError(LoveMatchError):
    """Store read/write failure. Only raised when the store runs fail-closed."""
    status_code = 500
