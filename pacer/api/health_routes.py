from datetime import datetime, timezone

from fastapi import APIRouter

from pacer.api.dependencies import get_channel_service
from pacer.domain.models import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Health check endpoint")
def health_check() -> HealthResponse:
    """Return service status and how many channels have work pending."""
    channels = get_channel_service().list_channels()
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(tz=timezone.utc).isoformat(),
        channels=len(channels),
        pending_channels=sum(1 for c in channels if c.pending),
    )
