from fastapi import APIRouter, HTTPException, Path, Response

from pacer.api.dependencies import get_channel_service, get_default_wait_ms
from pacer.api.schemas import to_invoke_response
from pacer.application.channel_service import ChannelNotFoundError
from pacer.domain.constants import CHANNEL_NAME_PATTERN, MAX_CHANNEL_NAME_LENGTH
from pacer.domain.models import (
    ChannelConfig,
    ChannelConfigRequest,
    ChannelListResponse,
    ChannelStatus,
    InvokeRequest,
    InvokeResponse,
)
from pacer.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/channels", tags=["channels"])

_NOT_FOUND = {404: {"description": "Channel not registered"}}


def _not_found(name: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={
            "error_code": "CHANNEL_NOT_FOUND",
            "detail": f"Channel not registered: {name}",
        },
    )


@router.get("", response_model=ChannelListResponse, summary="List all channels")
def list_channels() -> ChannelListResponse:
    """Return every registered channel with its pending state."""
    channels = get_channel_service().list_channels()
    return ChannelListResponse(channels=channels, total=len(channels))


@router.put(
    "/{name}",
    response_model=ChannelStatus,
    summary="Register or replace a debounced channel",
)
def put_channel(
    request: ChannelConfigRequest,
    name: str = Path(
        min_length=1, max_length=MAX_CHANNEL_NAME_LENGTH, pattern=CHANNEL_NAME_PATTERN
    ),
) -> ChannelStatus:
    """Create the channel, or replace it and discard its pending execution."""
    wait_ms = request.wait_ms if request.wait_ms is not None else get_default_wait_ms()
    config = ChannelConfig(
        name=name,
        wait_ms=wait_ms,
        leading=request.leading,
        trailing=request.trailing,
        max_wait_ms=request.max_wait_ms,
    )
    return get_channel_service().register(config)


@router.get(
    "/{name}",
    response_model=ChannelStatus,
    summary="Get channel status",
    responses=_NOT_FOUND,
)
def get_channel(name: str) -> ChannelStatus:
    """Return the channel's configuration, pending state and execution count."""
    try:
        return get_channel_service().get_status(name)
    except ChannelNotFoundError:
        raise _not_found(name)


@router.delete(
    "/{name}",
    status_code=204,
    summary="Remove a channel",
    responses=_NOT_FOUND,
)
def delete_channel(name: str) -> Response:
    """Cancel the channel and remove it."""
    try:
        get_channel_service().remove(name)
    except ChannelNotFoundError:
        raise _not_found(name)
    return Response(status_code=204)


@router.post(
    "/{name}/invoke",
    response_model=InvokeResponse,
    summary="Send a request through the channel's debouncer",
    responses=_NOT_FOUND,
)
def invoke_channel(name: str, request: InvokeRequest) -> InvokeResponse:
    """Invoke the channel. `executed` is true only for leading or forced runs."""
    try:
        result = get_channel_service().invoke(name, request.payload)
    except ChannelNotFoundError:
        raise _not_found(name)
    return to_invoke_response(result)


@router.post(
    "/{name}/flush",
    response_model=InvokeResponse,
    summary="Run the pending trailing execution now",
    responses=_NOT_FOUND,
)
def flush_channel(name: str) -> InvokeResponse:
    """Flush the channel. A channel with nothing pending reports `executed=false`."""
    try:
        result = get_channel_service().flush(name)
    except ChannelNotFoundError:
        raise _not_found(name)
    return to_invoke_response(result)


@router.post(
    "/{name}/cancel",
    response_model=InvokeResponse,
    summary="Drop the pending execution",
    responses=_NOT_FOUND,
)
def cancel_channel(name: str) -> InvokeResponse:
    """Cancel the channel's pending execution, if any."""
    try:
        result = get_channel_service().cancel(name)
    except ChannelNotFoundError:
        raise _not_found(name)
    logger.info("Channel cancelled via API: %s", name)
    return to_invoke_response(result)
