"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Custom exceptions for the Stalo system. These provide
             specific error codes and HTTP statuses for validation,
             permission and Business Central failures, plus the DRF
             exception handler that renders them.
-------------------------------------------------------------------------
"""
import logging
from typing import Any, Dict, Optional

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response


logger = logging.getLogger(__name__)


class StaloException(Exception):
    """Base exception for all Stalo specific errors."""

    error_code: str = "ERR_STALO_GENERIC"
    default_message: str = "An error occurred in the Stalo system."
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize Stalo exception.

        Args:
            message: Custom error message. If None, uses default_message.
            details: Additional context (dict, list or string) returned to
                the client under ``details``.
            extra: Named values returned beside ``error`` and ``code``
                (e.g. ``resources_count``).
        """
        self.message = message or self.default_message
        self.details = details
        self.extra = dict(extra or {})
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API responses."""
        payload = dict(self.extra)
        payload["error"] = self.message
        payload["code"] = self.error_code
        if self.details is not None:
            payload["details"] = self.details
        return payload


# Request-level Exceptions
class ValidationException(StaloException):
    """Raised when a request is missing required data or carries bad values."""

    error_code = "ERR_VALIDATION"
    default_message = "The request could not be validated."
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(StaloException):
    """Raised when a referenced record does not exist."""

    error_code = "ERR_NOT_FOUND"
    default_message = "The requested record was not found."
    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(StaloException):
    """Raised when a write would violate a uniqueness or lock rule."""

    error_code = "ERR_CONFLICT"
    default_message = "The request conflicts with the current state of the record."
    status_code = status.HTTP_409_CONFLICT


class DeleteBlockedException(ValidationException):
    """Raised when a record cannot be deleted because other records depend on it."""

    error_code = "ERR_DELETE_BLOCKED"
    default_message = "This record is referenced by other records and cannot be deleted."


# Access-control Exceptions
class PermissionException(StaloException):
    """Raised when the caller is authenticated but not allowed to act."""

    error_code = "ERR_FORBIDDEN"
    default_message = "You do not have permission to perform this action."
    status_code = status.HTTP_403_FORBIDDEN


class NoRoleAssignedException(PermissionException):
    """Raised when the caller has no active system user record."""

    error_code = "ERR_NO_ROLE"
    default_message = "No role assigned"


class InsufficientPermissionsException(PermissionException):
    """Raised when the caller's role is below the role required by the endpoint."""

    error_code = "ERR_INSUFFICIENT_PERMISSIONS"
    default_message = "Insufficient permissions"


class SuperAdminProtectedException(PermissionException):
    """Raised on attempts to demote, re-address or delete the super admin."""

    error_code = "ERR_SUPER_ADMIN_PROTECTED"
    default_message = "The super admin account cannot be modified this way."


# Payroll Exceptions
class PayrollLockedException(ConflictException):
    """Raised when attempting to modify a locked payroll record."""

    error_code = "ERR_PAYROLL_LOCKED"
    default_message = "This payroll record is locked and cannot be modified."


# Business Central Exceptions
class BusinessCentralException(StaloException):
    """Raised when a Business Central call fails."""

    error_code = "ERR_BUSINESS_CENTRAL"
    default_message = "Business Central request failed."
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Any] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, details)
        if status_code:
            self.status_code = status_code


class BusinessCentralAuthException(BusinessCentralException):
    """Raised when the client-credentials token cannot be obtained."""

    error_code = "ERR_BC_AUTH"
    default_message = "Failed to authenticate with Business Central"


def stalo_exception_handler(exc: Exception, context: dict) -> Optional[Response]:
    """
    DRF exception handler.

    Renders StaloException subclasses with their own status code and
    reshapes DRF's own errors into the same ``{error, code}`` envelope.
    """
    if isinstance(exc, StaloException):
        view = context.get('view')
        logger.warning(
            f"{exc.error_code}: {exc.message} | "
            f"View: {view.__class__.__name__ if view else '-'}"
        )
        return Response(exc.to_dict(), status=exc.status_code)

    # rest_framework.views loads the API settings, which import the permission classes
    from rest_framework.views import exception_handler

    response = exception_handler(exc, context)
    if response is None or not isinstance(exc, APIException):
        return response

    if isinstance(exc.detail, str):
        response.data = {
            'error': str(exc.detail),
            'code': getattr(exc.detail, 'code', exc.default_code),
        }
    else:
        response.data = {
            'error': 'Invalid request',
            'code': exc.default_code,
            'details': response.data,
        }
    return response
