from fastapi import APIRouter, Query

from pacer.api.dependencies import get_channel_service
from pacer.api.schemas import to_event_item
from pacer.domain.constants import EVENTS_LIMIT_DEFAULT, EVENTS_LIMIT_MAX
from pacer.domain.models import ExecutionEventsResponse

router = APIRouter(prefix="/events", tags=["events"])


@router.get(
    "",
    response_model=ExecutionEventsResponse,
    summary="Get recent channel executions",
)
def get_execution_events(
    limit: int = Query(default=EVENTS_LIMIT_DEFAULT, ge=1, le=EVENTS_LIMIT_MAX),
    channel: str | None = Query(default=None),
) -> ExecutionEventsResponse:
    """Return the most recent executions, newest first."""
    service = get_channel_service()
    events = service.get_recent_events(limit, channel=channel)
    return ExecutionEventsResponse(
        events=[to_event_item(e) for e in events],
        total=len(events),
    )
