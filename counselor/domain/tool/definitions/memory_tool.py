"""Tool exposing the memory filesystem to the model."""

from typing import Any, Dict
import structlog

from counselor.domain.context.memory.memory_filesystem import MemoryFileSystem
from counselor.domain.errors import PathSafetyError
from counselor.domain.models.agent_state import ToolResult
from counselor.domain.tool.tool_registry import ToolDescriptor

logger = structlog.get_logger(__name__)

MEMORY_TOOL_NAME = "memory"

MEMORY_COMMANDS = ["view", "create", "str_replace", "insert", "delete", "rename"]

# Arguments each command needs beyond ``command``
REQUIRED_ARGUMENTS = {
    "view": ["path"],
    "create": ["path", "file_text"],
    "str_replace": ["path", "old_str", "new_str"],
    "insert": ["path", "insert_line", "insert_text"],
    "delete": ["path"],
    "rename": ["old_path", "new_path"],
}

MEMORY_TOOL_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "command": {"type": "string", "enum": MEMORY_COMMANDS},
        "path": {"type": "string", "description": "Path under /memories"},
        "view_range": {
            "type": "array",
            "items": {"type": "integer"},
            "minItems": 2,
            "maxItems": 2,
            "description": "view only: [start_line, end_line], 1-indexed, end -1 reads to the end",
        },
        "file_text": {"type": "string", "description": "create only: full file content"},
        "old_str": {"type": "string", "description": "str_replace only: text that must occur exactly once"},
        "new_str": {"type": "string", "description": "str_replace only: replacement text"},
        "insert_line": {"type": "integer", "description": "insert only: line to insert after, 0 for the top"},
        "insert_text": {"type": "string", "description": "insert only: text to insert"},
        "old_path": {"type": "string", "description": "rename only: current path"},
        "new_path": {"type": "string", "description": "rename only: new path"},
    },
    "required": ["command"],
}

MEMORY_TOOL_DESCRIPTION = """Long-term memory stored as files under /memories.
Commands: view (list a directory or read a file), create (new file only), str_replace
(replace text that occurs exactly once), insert (insert text after a line), delete, rename.
Check /memories at the start of a conversation and keep it up to date."""


def create_memory_tool(filesystem: MemoryFileSystem) -> ToolDescriptor:
    """Wrap a MemoryFileSystem as a tool"""

    async def run(arguments: Dict[str, Any]) -> ToolResult:
        command = arguments.get("command")
        if command not in REQUIRED_ARGUMENTS:
            return ToolResult.fail(f"Error: Unknown memory command {command!r}")
        missing = [name for name in REQUIRED_ARGUMENTS[command] if name not in arguments]
        if missing:
            return ToolResult.fail(f"Error: {command} requires {', '.join(missing)}")

        try:
            if command == "view":
                return await filesystem.view(arguments["path"], arguments.get("view_range"))
            if command == "create":
                return await filesystem.create(arguments["path"], arguments["file_text"])
            if command == "str_replace":
                return await filesystem.str_replace(
                    arguments["path"], arguments["old_str"], arguments["new_str"]
                )
            if command == "insert":
                return await filesystem.insert(
                    arguments["path"], arguments["insert_line"], arguments["insert_text"]
                )
            if command == "delete":
                return await filesystem.delete(arguments["path"])
            return await filesystem.rename(arguments["old_path"], arguments["new_path"])
        except PathSafetyError as exc:
            logger.warning("Memory path refused", command=command, path=exc.path, reason=str(exc))
            return ToolResult.fail(f"Access denied: {exc}")
        except UnicodeDecodeError:
            logger.warning("Memory file is not UTF-8 text", command=command)
            return ToolResult.fail(f"Error: {command} failed: the file is not valid UTF-8 text")
        except OSError as exc:
            logger.error("Memory operation failed", command=command, error=str(exc))
            return ToolResult.fail(f"Error: {command} failed: {exc.strerror or exc}")

    return ToolDescriptor(
        name=MEMORY_TOOL_NAME,
        description=MEMORY_TOOL_DESCRIPTION,
        input_schema=MEMORY_TOOL_SCHEMA,
        handler=run,
        category="memory",
    )
