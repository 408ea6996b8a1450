from typing import Optional
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from counselor.application.api.route.chat import router as chat_router
from counselor.domain.context.memory.memory_filesystem import MemoryFileSystem
from counselor.domain.context.memory.session_store import SessionStore
from counselor.domain.inference.base import InferenceClient
from counselor.domain.orchestration.core.main_agent import AgentOrchestrator
from counselor.domain.skill.skill_loader import SkillLoader
from counselor.infrastructure.config.settings import Settings
from counselor.infrastructure.inference.anthropic_client import AnthropicInferenceClient
from counselor.infrastructure.observability.logging import setup_logging

logger = structlog.get_logger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = first["loc"][-1] if first.get("loc") else "body"
    if first["type"] in ("missing", "string_too_short"):
        return f"{field} is required"
    if first["type"] == "value_error" and "error" in first.get("ctx", {}):
        return str(first["ctx"]["error"])
    return f"{field}: {first['msg']}"


def create_app(
    settings: Optional[Settings] = None,
    inference: Optional[InferenceClient] = None,
) -> FastAPI:
    """Build the gateway application"""

    settings = settings or Settings.from_env()
    setup_logging(log_level=settings.log_level, log_format=settings.log_format)

    app = FastAPI(title="Counselor Agent Gateway")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    session_store = SessionStore(max_turns=settings.max_session_turns)
    memory = MemoryFileSystem(settings.memory_root)
    inference = inference or AnthropicInferenceClient(
        model=settings.model,
        max_tokens=settings.max_tokens,
        api_key=settings.anthropic_api_key,
        timeout=settings.request_timeout,
    )

    app.state.settings = settings
    app.state.session_store = session_store
    app.state.memory = memory
    app.state.inference = inference
    app.state.orchestrator = AgentOrchestrator(
        inference=inference,
        session_store=session_store,
        memory=memory,
        skills=SkillLoader(settings.skills_dir),
        max_iterations=settings.max_iterations,
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Reject bad chat requests before any stream is opened"""
        message = _validation_message(exc)
        logger.warning("Rejected request", path=request.url.path, error=message)
        return JSONResponse(status_code=400, content={"error": message})

    @app.on_event("startup")
    async def startup_event():
        """Prepare memory storage and session state before serving turns"""
        await memory.ensure_root()
        session_store.init()
        logger.info("Counselor gateway started", model=settings.model, port=settings.port)

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown"""
        session_store.close()
        await inference.aclose()
        logger.info("Counselor gateway shutdown")

    app.include_router(chat_router)
    return app


def main():
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
