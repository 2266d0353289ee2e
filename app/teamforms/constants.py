"""
Central constants for the teamforms application.
"""
from __future__ import annotations

STATUS_ACTIVE = "Active"
STATUS_INACTIVE = "Inactive"
STATUS_INVALID = "Invalid"  # soft-deleted

# Statuses a client may set directly; "Invalid" is reserved for soft delete.
WRITABLE_STATUSES = (STATUS_ACTIVE, STATUS_INACTIVE)

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)

DEFAULT_PAGE_LIMIT = 10
