"""
Typed errors raised by the ledger services.

Every error is an HTTPException, so FastAPI turns it into the right response
without any per-route translation, while callers that use the services
directly can still catch the specific class.
"""
from typing import Optional

from fastapi import HTTPException


class AppError(HTTPException):
    """Base class for all service errors"""
    status_code_default = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(status_code=status_code or self.status_code_default, detail=message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class NotFoundError(AppError):
    """A referenced group or expense does not exist"""
    status_code_default = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ValidationError(AppError):
    """Caller input was rejected: bad split details or an unmatched settlement"""
    status_code_default = 400


class ConflictError(AppError):
    """The group ledger changed between validation and write"""
    status_code_default = 409


class LedgerInvariantError(AppError):
    """The balance computation produced an impossible ledger. Always a bug."""
    status_code_default = 500
