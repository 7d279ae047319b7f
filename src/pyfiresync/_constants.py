"""Internal constants shared across the library."""

USER_AGENT = "pyfiresync/0.3"

#: Single key marking a subtree that must be written whole, without diffing.
OVERWRITE_KEY = "$set"

# ------------------------------------------------------------------
# Store listener events
# ------------------------------------------------------------------

EVENT_VALUE = "value"
EVENT_CHILD_ADDED = "child_added"
EVENT_CHILD_CHANGED = "child_changed"
EVENT_CHILD_REMOVED = "child_removed"

STORE_EVENTS: frozenset[str] = frozenset(
    {EVENT_VALUE, EVENT_CHILD_ADDED, EVENT_CHILD_CHANGED, EVENT_CHILD_REMOVED}
)

# ------------------------------------------------------------------
# REST backend
# ------------------------------------------------------------------

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
MEMORY_SCHEME = "memory"

#: Server-Sent-Events emitted by the realtime database streaming endpoint.
SSE_PUT = "put"
SSE_PATCH = "patch"
SSE_KEEP_ALIVE = "keep-alive"
SSE_CANCEL = "cancel"
SSE_AUTH_REVOKED = "auth_revoked"

PERMISSION_DENIED_STATUSES: frozenset[int] = frozenset({401, 403})

# ------------------------------------------------------------------
# Push ids
# ------------------------------------------------------------------

#: Modified base64 alphabet, ordered so ids sort lexicographically by time.
PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"
PUSH_ID_TIME_CHARS = 8
PUSH_ID_RANDOM_CHARS = 12
