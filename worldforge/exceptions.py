"""Custom exception hierarchy for Worldforge."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Input errors
    BAD_REQUEST = "BAD_REQUEST"
    MISSING_OR_INVALID_FIELDS = "MISSING_OR_INVALID_FIELDS"

    # Lookup errors
    NOT_FOUND = "NOT_FOUND"
    PARENT_NOT_FOUND = "PARENT_NOT_FOUND"

    # Playground structure errors
    INVALID_PARENT_CHILD_RELATIONSHIP = "INVALID_PARENT_CHILD_RELATIONSHIP"
    NOT_A_SETTING_NODE = "NOT_A_SETTING_NODE"
    INVALID_SORT_ORDER = "INVALID_SORT_ORDER"

    # Accounts
    USERNAME_TAKEN = "USERNAME_TAKEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_ROLE = "INVALID_ROLE"
    CANNOT_DEMOTE_SELF = "CANNOT_DEMOTE_SELF"

    # Auth & rate limiting
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class WorldforgeException(Exception):
    """
    Base exception for all Worldforge errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class ValidationError(WorldforgeException):
    """Validation failed for user input."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.BAD_REQUEST,
    ):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            error_code,
            status_code=400,
            details=details
        )


class NodeNotFoundError(WorldforgeException):
    """Playground node absent, or not visible to the requester.

    The two cases are deliberately indistinguishable.
    """

    def __init__(self, node_id: str):
        super().__init__(
            f"Node not found: {node_id}",
            ErrorCode.NOT_FOUND,
            status_code=404,
            details={"node_id": node_id}
        )


class ParentNotFoundError(WorldforgeException):
    """Requested parent node absent, or not visible to the requester."""

    def __init__(self, parent_id: str):
        super().__init__(
            f"Parent node not found: {parent_id}",
            ErrorCode.PARENT_NOT_FOUND,
            status_code=404,
            details={"parent_id": parent_id}
        )


class UserNotFoundError(WorldforgeException):
    """User account not found."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User not found: {user_id}",
            ErrorCode.NOT_FOUND,
            status_code=404,
            details={"user_id": user_id}
        )


class InvalidParentChildError(WorldforgeException):
    """Node type is not an allowed child of the parent's type."""

    def __init__(self, parent_type: Optional[str], child_type: str):
        parent_label = parent_type or "root"
        super().__init__(
            f"A '{child_type}' node cannot be placed under '{parent_label}'",
            ErrorCode.INVALID_PARENT_CHILD_RELATIONSHIP,
            status_code=400,
            details={"parent_type": parent_type, "child_type": child_type}
        )


class NotASettingNodeError(WorldforgeException):
    """Toolbox links are only held by ``setting`` nodes."""

    def __init__(self, node_id: str, node_type: str):
        super().__init__(
            f"Node {node_id} is a '{node_type}', not a setting",
            ErrorCode.NOT_A_SETTING_NODE,
            status_code=400,
            details={"node_id": node_id}
        )


class AuthenticationError(WorldforgeException):
    """Request lacks a valid session."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class InvalidCredentialsError(WorldforgeException):
    """Login failed. Never says whether the user or the password was wrong."""

    def __init__(self):
        super().__init__(
            "Invalid username or password",
            ErrorCode.INVALID_CREDENTIALS,
            status_code=401,
        )


class ForbiddenError(WorldforgeException):
    """Authenticated user lacks the capability for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )
