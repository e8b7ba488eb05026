"""
Error taxonomy for the studio API.

Handlers in main.py map each class to an HTTP status code.
"""


class StudioError(Exception):
    status_code = 500
    public_message = "Internal server error"


class StoreIOError(StudioError):
    """Data file is missing, unreadable or could not be written."""
    public_message = "Failed to access data"


class StoreParseError(StudioError):
    """Data file does not contain a valid JSON document."""
    public_message = "Failed to read data"


class NotFoundError(StudioError):
    status_code = 404
    public_message = "Not found"


class AuthError(StudioError):
    status_code = 401
    public_message = "Invalid credentials"


class HashError(StudioError):
    public_message = "Failed to process password"


class AdminMissingError(StudioError):
    public_message = "Admin account is not configured"
