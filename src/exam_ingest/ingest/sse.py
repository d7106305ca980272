"""
Server-Sent Events framing for stream events.

Each event is written as a single `data:` line holding the event's
{"type": ..., "data": ...} JSON, followed by a blank line. The HTTP
layer that carries the frames lives outside this package.
"""

from __future__ import annotations

import json
import logging
from typing import AsyncIterable, AsyncIterator

from exam_ingest.core.models import StreamEvent

logger = logging.getLogger(__name__)


def format_sse_event(event: StreamEvent) -> str:
    """Frame one event; non-ASCII text is kept as-is."""
    payload = json.dumps(event.to_dict(), ensure_ascii=False)
    return f"data: {payload}\n\n"


async def sse_stream(events: AsyncIterable[StreamEvent]) -> AsyncIterator[str]:
    """Frame every event of an event stream, closing the source when closed."""
    iterator = events.__aiter__()
    sent = 0
    try:
        async for event in iterator:
            yield format_sse_event(event)
            sent += 1
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
        logger.debug(f"SSE stream closed after {sent} frames")
