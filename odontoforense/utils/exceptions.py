"""
Custom exception classes
"""
from typing import Optional


class OdontoForenseError(Exception):
    """Base exception class"""
    pass


class ValidationError(OdontoForenseError):
    """Raised when input or a referenced record fails validation"""
    def __init__(self, message: str, field: str = None):
        self.field = field
        self.message = message
        super().__init__(message)


class DuplicateError(ValidationError):
    """Raised when a unique value is already taken"""
    pass


class NotFoundError(OdontoForenseError):
    """Raised when an aggregate cannot be found"""
    def __init__(self, entity: str, identifier: Optional[str] = None):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found")


class BlobNotFoundError(NotFoundError):
    """Raised when a blob id is unknown to the blob store"""
    def __init__(self, blob_id: str):
        super().__init__("File", blob_id)


class AuthenticationError(OdontoForenseError):
    """Raised when credentials or tokens are invalid"""
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class PermissionDeniedError(OdontoForenseError):
    """Raised when the authenticated user lacks the required role"""
    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class GenerationError(OdontoForenseError):
    """Raised when the text generation call fails or exhausts its retries"""
    def __init__(self, message: str, status_code: int = None, attempts: int = 0):
        self.status_code = status_code
        self.attempts = attempts
        super().__init__(f"Content generation failed: {message}")


class StorageError(OdontoForenseError):
    """Raised on blob or database I/O failure"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Storage error: {message}")


class StreamError(StorageError):
    """Raised when a download stream fails"""
    def __init__(self, message: str):
        super().__init__(message)
