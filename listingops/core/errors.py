"""
Error taxonomy shared by services and the HTTP layer.

Services raise these; the handlers registered in main.py turn them into a
status code plus a JSON body. Nothing here is retried automatically.
"""
from typing import Any, Dict, Optional

from fastapi import status


class ListingOpsError(Exception):
    """Base class for errors that map to a client-visible response."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "type": type(self).__name__}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ListingOpsError):
    """Missing or invalid input, including domain mismatches."""
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(ListingOpsError):
    """No valid authenticated principal."""
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(ListingOpsError):
    """Authenticated, but not allowed to act on this resource."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ListingOpsError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ListingOpsError):
    """Request conflicts with current state (under-distributed submit, stale write)."""
    status_code = status.HTTP_409_CONFLICT


class InternalError(ListingOpsError):
    """Unexpected storage or aggregation failure. Message is kept generic."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
