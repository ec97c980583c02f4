"""Change notification stream.

Observers receive an SSE ``change`` event carrying only the new version and
re-read whatever state they display.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse

from agent_kernel.dependencies import get_kernel
from agent_kernel.kernel import AgentKernel
from agent_kernel.models.kernel import ChangeEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["events"])


@router.get("/events", summary="Stream change notifications")
async def stream_events(
    request: Request,
    kernel: Annotated[AgentKernel, Depends(get_kernel)],
) -> EventSourceResponse:
    notifier = kernel.notifier

    async def event_generator():
        queue = notifier.subscribe()
        logger.debug(f"Change subscriber connected ({notifier.subscriber_count})")
        try:
            yield {
                "event": "change",
                "data": ChangeEvent(version=notifier.version).model_dump_json(),
            }
            while True:
                version = await queue.get()
                if await request.is_disconnected():
                    break
                yield {
                    "event": "change",
                    "data": ChangeEvent(version=version).model_dump_json(),
                }
        finally:
            notifier.unsubscribe(queue)
            logger.debug("Change subscriber disconnected")

    return EventSourceResponse(event_generator())
