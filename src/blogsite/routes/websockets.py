"""
# WebSocket Routes

Pushes **invalidation events** to connected clients so that they can refetch the query
groups a write made stale.

## API Endpoints

- `WS /ws/invalidations` - Stream of `{"mutation", "groups", "blog_id"}` messages

Each connection subscribes to the process-wide `InvalidationDispatcher` for as long as
it stays open. Events carry no content, so the stream is public.

## Usage Examples

### Client Connection (Python)

```python
async with websockets.connect("ws://localhost:8000/ws/invalidations") as ws:
    event = json.loads(await ws.recv())
    if "blogs" in event["groups"]:
        await refresh_feed()
```

## Module Attributes

Attributes:
    router (APIRouter): FastAPI router for WebSocket endpoints
"""

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from blogsite.managers.logging_manager import get_logger
from blogsite.services.invalidation import InvalidationEvent, invalidation_dispatcher

logger = get_logger(prefix="[WebSocket]")

router = APIRouter()

# Events buffered per connection before a stalled client starts losing them.
EVENT_BUFFER_SIZE = 100


@router.websocket("/ws/invalidations")
async def invalidation_stream(websocket: WebSocket):
    """
    Stream invalidation events to one client.

    The connection subscribes once the handshake is accepted. Events go into a
    per-connection queue drained by a sender task, so a client that reads slowly never
    holds up the dispatcher; when the queue is full new events are dropped for that
    client only. Messages the client sends are read and ignored so that disconnects
    are noticed.
    """
    await websocket.accept()
    queue: "asyncio.Queue[InvalidationEvent]" = asyncio.Queue(maxsize=EVENT_BUFFER_SIZE)

    def enqueue(event: InvalidationEvent) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Dropping %s invalidation for a stalled subscriber", event.mutation)

    async def send_events() -> None:
        while True:
            event = await queue.get()
            await websocket.send_json(event.model_dump(mode="json"))

    unsubscribe = invalidation_dispatcher.subscribe(enqueue)
    sender = asyncio.create_task(send_events())
    logger.info("Invalidation subscriber connected (%d active)", invalidation_dispatcher.subscriber_count)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Invalidation subscriber disconnected")
    finally:
        unsubscribe()
        sender.cancel()
