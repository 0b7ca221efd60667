# Debounce defaults
DEFAULT_WAIT_MS = 0.0  # Fires on the next tick
DEFAULT_LEADING = False
DEFAULT_TRAILING = True

# Channels
DEFAULT_CHANNEL_WAIT_MS = 300.0  # Typical search-as-you-type delay
MAX_CHANNEL_NAME_LENGTH = 64
CHANNEL_NAME_PATTERN = r"^[A-Za-z0-9_.-]+$"

# Execution event log
EVENT_LOG_MAXLEN = 500
EVENTS_LIMIT_DEFAULT = 50
EVENTS_LIMIT_MAX = 100

# Environment
LOG_LEVEL_ENV = "PACER_LOG_LEVEL"
DEFAULT_WAIT_ENV = "PACER_DEFAULT_WAIT_MS"
EVENT_LOG_MAXLEN_ENV = "PACER_EVENT_LOG_MAXLEN"
