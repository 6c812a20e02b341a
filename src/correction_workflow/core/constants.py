"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_MAX_BULK_SIZE = 50
DEFAULT_REASON_MIN_LENGTH = 10
DEFAULT_REASON_MAX_LENGTH = 500
DEFAULT_NOTE_MAX_LENGTH = 500
DEFAULT_PAGE_SIZE = 20
DEFAULT_MAX_PAGE_SIZE = 100

# UI aliases accepted by the list endpoints.
STATUS_ALL = "ALL"
STATUS_ALIASES = {"NEW": "PENDING"}
