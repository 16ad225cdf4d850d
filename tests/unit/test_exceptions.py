"""
Exception class unit tests
"""
from odontoforense.utils.exceptions import (
    OdontoForenseError,
    ValidationError,
    DuplicateError,
    NotFoundError,
    BlobNotFoundError,
    AuthenticationError,
    PermissionDeniedError,
    GenerationError,
    StorageError,
    StreamError,
)


def test_validation_error():
    error = ValidationError("examiner not found", "examiner_id")
    assert error.field == "examiner_id"
    assert error.message == "examiner not found"
    assert str(error) == "examiner not found"
    assert isinstance(error, OdontoForenseError)


def test_duplicate_error_is_validation_error():
    error = DuplicateError("case name already exists", field="name")
    assert isinstance(error, ValidationError)
    assert error.field == "name"


def test_not_found_error():
    error = NotFoundError("Case", "abc")
    assert error.entity == "Case"
    assert error.identifier == "abc"
    assert str(error) == "Case not found"


def test_blob_not_found_error():
    error = BlobNotFoundError("blob123")
    assert isinstance(error, NotFoundError)
    assert error.identifier == "blob123"
    assert str(error) == "File not found"


def test_auth_errors_defaults():
    assert str(AuthenticationError()) == "Invalid credentials"
    assert str(PermissionDeniedError()) == "Access denied"


def test_generation_error():
    error = GenerationError("HTTP 429", status_code=429, attempts=3)
    assert error.status_code == 429
    assert error.attempts == 3
    assert "Content generation failed" in str(error)


def test_storage_and_stream_errors():
    error = StorageError("disk full")
    assert error.message == "disk full"
    assert "Storage error" in str(error)

    stream_error = StreamError("chunk 2 missing")
    assert isinstance(stream_error, StorageError)
    assert stream_error.message == "chunk 2 missing"
