"""Common module — shared utilities for the ops portal."""

from portal.common.audit import AuditTrail, create_audit_entry, utcnow
from portal.common.constants import (
    BOOKING_TRANSITIONS,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    PERMISSIONS,
    BookingStatus,
    LeaveKind,
    LeaveStatus,
    TaskPriority,
    TaskScope,
    TaskStatus,
    UserRole,
)
from portal.common.exceptions import (
    AppException,
    BookingRejected,
    ConflictError,
    ForbiddenException,
    NotFoundException,
    StoreUnavailableException,
    ValidationException,
    register_exception_handlers,
)
from portal.common.filters import apply_filters, apply_search, apply_sorting
from portal.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    "utcnow",
    # Constants / Enums
    "BookingStatus",
    "LeaveKind",
    "LeaveStatus",
    "TaskPriority",
    "TaskScope",
    "TaskStatus",
    "UserRole",
    "BOOKING_TRANSITIONS",
    "PERMISSIONS",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "BookingRejected",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "StoreUnavailableException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_search",
    "apply_sorting",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
