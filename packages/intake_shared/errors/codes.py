"""Shared error code constants.

Codes are stable machine-readable identifiers. The error kind says which
family a failure belongs to; the code says which rule fired.
"""

# Validation
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ID = "INVALID_ID"
INVALID_USER_DATA = "INVALID_USER_DATA"
INVALID_UPDATES = "INVALID_UPDATES"
INVALID_UPDATED_DATA = "INVALID_UPDATED_DATA"
INVALID_PAGINATION = "INVALID_PAGINATION"
INVALID_SORT = "INVALID_SORT"
INVALID_FILTER = "INVALID_FILTER"
INVALID_EVENT_TYPE = "INVALID_EVENT_TYPE"
INVALID_LOGIN_ATTEMPT = "INVALID_LOGIN_ATTEMPT"

# Business
NOT_FOUND = "NOT_FOUND"
DATA_CORRUPTION = "DATA_CORRUPTION"
STORE_UNAVAILABLE = "STORE_UNAVAILABLE"

# Internal
INTERNAL_ERROR = "INTERNAL_ERROR"
