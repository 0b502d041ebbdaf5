"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_RESOLVE_ATTEMPTS = 3
DEFAULT_NOTIFY_WORKERS = 4
DEFAULT_NOTIFY_MAX_ATTEMPTS = 5
DEFAULT_NOTIFY_STALE_PENDING_MINUTES = 10
DEFAULT_EVENTS_LIMIT = 100
MAX_EVENTS_LIMIT = 500

FEE_DENIED_MESSAGE = "Access denied: bus fee pending."
ENTRY_GATE_MESSAGE = "Gate opened - student boarded successfully."
EXIT_GATE_MESSAGE = "Gate opened - student exit recorded."

EMAIL_SUBJECT_PREFIX = "EduRide Notification: "
