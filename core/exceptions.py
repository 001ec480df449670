from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    NotAuthenticated,
    NotFound,
    ValidationError,
)
from rest_framework.views import exception_handler

from . import errors


class BoardError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Request failed."
    default_code = errors.PERSISTENCE_FAILURE


class InvalidInput(BoardError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."
    default_code = errors.VALIDATION


class NoteNotFound(BoardError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Note not found."
    default_code = errors.NOT_FOUND


class LockConflict(BoardError):
    """Lock wait timed out or the transaction was aborted. Safe to retry."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "The note is busy, please retry."
    default_code = errors.CONFLICT


class SchemaOutdated(BoardError):
    default_detail = "Storage is missing the layout_locked column; run the notes migrations."
    default_code = errors.SCHEMA_OUTDATED


class PersistenceFailure(BoardError):
    default_detail = "Could not save the note."
    default_code = errors.PERSISTENCE_FAILURE


def _code_for(exc):
    if isinstance(exc, BoardError):
        return exc.default_code
    if isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
        return errors.UNAUTHENTICATED
    if isinstance(exc, ValidationError):
        return errors.VALIDATION
    if isinstance(exc, NotFound):
        return errors.NOT_FOUND
    return None


def api_exception_handler(exc, context):
    """
    DRF exception handler that tags every error body with a taxonomy code.

    Validation errors keep the serializer's field messages under "details".
    """
    response = exception_handler(exc, context)
    if response is None:
        return None

    code = _code_for(exc)
    if response.status_code == status.HTTP_401_UNAUTHORIZED:
        code = errors.UNAUTHENTICATED

    if isinstance(exc, ValidationError):
        response.data = {
            "detail": "Invalid input.",
            "code": errors.VALIDATION,
            "details": response.data,
        }
        return response

    data = response.data if isinstance(response.data, dict) else {"detail": response.data}
    if code:
        data["code"] = code
    response.data = data
    return response
