from typing import AsyncGenerator
from datetime import datetime
import asyncio
import json
import structlog
from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from counselor.application.api.schema.chat import ChatRequest
from counselor.domain.orchestration.core.main_agent import AgentOrchestrator
from counselor.domain.streaming.events import BaseEvent
from counselor.domain.streaming.streaming_handler import StreamingHandler

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(event: BaseEvent) -> str:
    """Serialize one event as an SSE frame"""
    return f"event: {event.type.value}\ndata: {json.dumps(event.data(), ensure_ascii=False)}\n\n"


async def event_stream(
    orchestrator: AgentOrchestrator,
    session_id: str,
    message: str,
) -> AsyncGenerator[str, None]:
    """Run a turn in the background and relay its events in order.

    If the client goes away the generator is closed, which cancels the turn
    so no further inference calls or tool runs happen.
    """
    handler = StreamingHandler(session_id=session_id)
    task = asyncio.create_task(orchestrator.process_message(session_id, message, handler))

    try:
        async for event in handler:
            yield format_sse(event)
    finally:
        if not task.done():
            logger.info("Client disconnected, cancelling turn", session_id=session_id)
            task.cancel()

    logger.info("Stream closed", session_id=session_id)


@router.post("/chat")
async def chat_endpoint(body: ChatRequest, request: Request) -> StreamingResponse:
    """Stream the agent's reply to one user message"""

    orchestrator: AgentOrchestrator = request.app.state.orchestrator
    logger.info("Message received", session_id=body.session_id)

    return StreamingResponse(
        event_stream(orchestrator, body.session_id, body.message),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint"""
    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "active_sessions": request.app.state.session_store.session_count(),
    }
