from typing import List, Optional
import time

from counselor.domain.inference.base import ToolCallRequest
from counselor.domain.models.agent_state import ToolResult
from counselor.domain.tool.tool_registry import ToolRegistry
from counselor.domain.tool.tool_validator import ToolParameterValidator
from counselor.infrastructure.observability.logging import agent_logger


class ToolExecutor:
    """Runs tool calls against one turn's catalog"""

    def __init__(self, registry: ToolRegistry, session_id: Optional[str] = None):
        self.registry = registry
        self.session_id = session_id
        self.validator = ToolParameterValidator()

    def check_calls(self, calls: List[ToolCallRequest]):
        """Fail fast if any requested tool is missing from the catalog"""

        for call in calls:
            self.registry.get_tool(call.name)

    async def execute_tool(self, call: ToolCallRequest) -> ToolResult:
        """Validate the arguments, then run the tool"""

        tool = self.registry.get_tool(call.name)
        started = time.perf_counter()

        validation = self.validator.validate_tool_call(tool, call.arguments)
        if not validation.is_valid:
            result = ToolResult.fail(f"Invalid input for tool {tool.name}: {'; '.join(validation.errors)}")
        else:
            result = await tool.handler(call.arguments)

        agent_logger.log_tool_execution(
            tool_name=tool.name,
            session_id=self.session_id,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            success=result.success,
            error=None if result.success else result.output
        )
        return result
