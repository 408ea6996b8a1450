import structlog
import logging
import sys
from typing import Dict, Any, Optional
import os


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    service_name: str = "counselor-gateway"
) -> None:
    """Setup structured logging configuration"""

    # Configure Python logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO)
    )

    # Processors for structlog
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_service_context,
    ]

    # Add appropriate renderer based on format
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    # Configure structlog
    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Set service name in context
    structlog.contextvars.bind_contextvars(
        service=service_name,
        environment=os.getenv("ENVIRONMENT", "development"),
    )


def add_service_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Shorten session ids so logs never carry the full client key"""

    session_id = event_dict.get("session_id")
    if isinstance(session_id, str) and len(session_id) > 8:
        event_dict["session_id"] = f"{session_id[:8]}..."

    return event_dict


class AgentLogger:
    """Specialized logger for agent operations"""

    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)

    def log_tool_execution(
        self,
        tool_name: str,
        session_id: Optional[str],
        duration_ms: Optional[float] = None,
        success: bool = True,
        error: Optional[str] = None
    ):
        """Log tool execution events"""

        self.logger.info(
            "tool_execution",
            tool_name=tool_name,
            session_id=session_id,
            duration_ms=duration_ms,
            success=success,
            error=error
        )

    def log_workflow_transition(
        self,
        session_id: Optional[str],
        from_node: str,
        to_node: str,
        condition: Optional[str] = None,
        state_summary: Optional[Dict[str, Any]] = None
    ):
        """Log loop state transitions"""

        self.logger.debug(
            "workflow_transition",
            session_id=session_id,
            from_node=from_node,
            to_node=to_node,
            condition=condition,
            state_summary=state_summary or {}
        )

    def log_context_update(
        self,
        session_id: str,
        context_type: str,
        action: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Log context updates"""

        self.logger.info(
            "context_update",
            session_id=session_id,
            context_type=context_type,
            action=action,
            details=details or {}
        )


# Global logger instance
agent_logger = AgentLogger("counselor")
