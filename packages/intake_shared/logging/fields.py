"""Canonical structured logging field names.

Keeping names in one place stops operation logs and context bindings from
drifting apart.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Store operation fields.
COMPONENT = "component"
OPERATION = "operation"
OPERATION_INVOCATION_EVENT = "operation_invocation"
OPERATION_COMPLETION_EVENT = "operation_completion"
SUCCESS = "success"
DURATION_MS = "duration_ms"
ERRORS = "errors"
ERROR_KINDS = "error_kinds"
ERROR_KIND = "error_kind"
OUTCOME = "outcome"

# Entity references.
USER_ID = "user_id"
EVENT_TYPE = "event_type"

# Common process-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
