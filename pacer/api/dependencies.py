import os

from pacer.application.channel_service import ChannelService
from pacer.domain.constants import (
    DEFAULT_CHANNEL_WAIT_MS,
    DEFAULT_WAIT_ENV,
    EVENT_LOG_MAXLEN,
    EVENT_LOG_MAXLEN_ENV,
)
from pacer.infrastructure.event_log import EventLog
from pacer.logging_config import get_logger

logger = get_logger(__name__)

_channel_service: ChannelService | None = None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def get_default_wait_ms() -> float:
    """Return the wait applied to channels registered without one."""
    return max(_env_float(DEFAULT_WAIT_ENV, DEFAULT_CHANNEL_WAIT_MS), 0.0)


def initialize_services() -> None:
    """Initialize all services at startup. Called from FastAPI lifespan."""
    get_channel_service()


def get_channel_service() -> ChannelService:
    """Return the singleton ChannelService, creating it on first call."""
    global _channel_service  # noqa: PLW0603
    if _channel_service is None:
        maxlen = int(_env_float(EVENT_LOG_MAXLEN_ENV, EVENT_LOG_MAXLEN))
        _channel_service = ChannelService(event_log=EventLog(maxlen=max(maxlen, 1)))
        logger.info("Initialized ChannelService (event log size: %d)", maxlen)

    return _channel_service


def set_channel_service(service: ChannelService | None) -> None:
    """Override the ChannelService singleton (for testing)."""
    global _channel_service  # noqa: PLW0603
    _channel_service = service
