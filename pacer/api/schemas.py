"""Conversions from service results to API response models."""

from pacer.application.channel_service import InvokeResult
from pacer.domain.models import ExecutionEventItem, InvokeResponse
from pacer.infrastructure.event_log import ExecutionEvent


def to_event_item(event: ExecutionEvent) -> ExecutionEventItem:
    return ExecutionEventItem(
        channel=event.channel,
        sequence=event.sequence,
        payload=event.payload,
        timestamp=event.timestamp,
    )


def to_invoke_response(result: InvokeResult) -> InvokeResponse:
    return InvokeResponse(
        channel=result.channel,
        executed=result.executed,
        execution=to_event_item(result.execution) if result.execution else None,
        pending=result.pending,
    )
