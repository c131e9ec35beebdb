# src/common/errors.py
"""
Error taxonomy shared by every module.

Each error is an HTTPException so services can raise it directly and FastAPI
renders it without extra handlers.
"""

from typing import Optional

from fastapi import HTTPException, status

from src.common.utils.global_messages import GlobalMessages


class AccessDenied(HTTPException):
    """The policy check failed. Nothing of the target record is returned."""

    def __init__(self, detail: str = GlobalMessages.ACCESS_DENIED):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str = GlobalMessages.RECORD_NOT_FOUND):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ValidationError(HTTPException):
    """A field-scoped rejection that the form should show next to the field."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        self.message = message
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"field": field, "message": message},
        )


class SlotConflict(HTTPException):
    def __init__(self, detail: str = GlobalMessages.SLOT_CONFLICT):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class AuthFailure(HTTPException):
    def __init__(self, detail: str = GlobalMessages.INVALID_CREDENTIALS):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class StoreError(HTTPException):
    """The backing store or another external service failed. Safe to retry by hand."""

    def __init__(self, detail: str = GlobalMessages.STORE_UNAVAILABLE):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
