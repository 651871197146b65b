import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from adventure.core.config import settings
from adventure.crud import session_store
from adventure.crud.session_store import SessionStore, get_store
from adventure.services.sse_service import redis_client, sse_generator
from adventure.api.v1.endpoints import game
from adventure.scheduler import scheduler, setup_scheduler

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handles application startup and shutdown events.
    """
    # Startup
    logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    if settings.EVENTS_ENABLED:
        await redis_client.connect()
    setup_scheduler()
    scheduler.start()

    yield

    # Shutdown
    await redis_client.close()
    scheduler.shutdown()

app = FastAPI(title="Infinite Adventure", lifespan=lifespan)

@app.get("/events/{session_id}")
async def sse_events(session_id: str, store: SessionStore = Depends(get_store)):
    """
    Endpoint for Server-Sent Events (SSE) to stream turn updates.
    """
    if not session_store.get_session(store, session_id):
        raise HTTPException(status_code=404, detail="Game not found")
    if not redis_client.connected:
        raise HTTPException(status_code=503, detail="Event stream is disabled.")
    return StreamingResponse(sse_generator(session_id), media_type="text/event-stream")

# Include API routers
app.include_router(game.router, prefix="/api/v1", tags=["game"])
