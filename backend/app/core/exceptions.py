"""Error taxonomy for the weekly performance services."""

from typing import Any, Dict, Optional


class DashboardError(Exception):
    """Base exception for expected, user-facing failures."""

    default_message = "An error occurred while processing weekly data"
    default_code = "dashboard_error"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        error_dict = {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            error_dict["details"] = self.details
        return error_dict


class ValidationError(DashboardError):
    """Malformed or out-of-range input. ``details`` maps field to problem."""

    default_message = "Validation error"
    default_code = "validation_error"


class DuplicateEntry(DashboardError):
    """An entry already exists for the store and fiscal week."""

    default_message = "Entry for this store and week already exists"
    default_code = "duplicate_entry"


class NotFound(DashboardError):
    default_message = "Not found"
    default_code = "not_found"


class Forbidden(DashboardError):
    default_message = "Access denied to this store"
    default_code = "forbidden"
