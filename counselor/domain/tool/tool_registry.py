from typing import Any, Awaitable, Callable, Dict, List
from dataclasses import dataclass, field

from counselor.domain.errors import UnknownToolError
from counselor.domain.models.agent_state import ToolResult

ToolHandler = Callable[[Dict[str, Any]], Awaitable[ToolResult]]


@dataclass
class ToolDescriptor:
    """A callable tool offered to the model"""
    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: ToolHandler
    category: str = "general"

    def definition(self) -> Dict[str, Any]:
        """Tool definition in the shape the inference API expects"""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


@dataclass
class ToolRegistry:
    """The tool catalog for one turn"""
    tools: Dict[str, ToolDescriptor] = field(default_factory=dict)
    tool_categories: Dict[str, List[str]] = field(default_factory=dict)

    def register_tool(self, tool: ToolDescriptor):
        """Register a new tool; names must be unique"""

        if tool.name in self.tools:
            raise ValueError(f"Tool already registered: {tool.name}")

        self.tools[tool.name] = tool
        self.tool_categories.setdefault(tool.category, []).append(tool.name)

    def get_tool(self, name: str) -> ToolDescriptor:
        """Look up a tool by name"""

        tool = self.tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def get_tools_by_category(self, category: str) -> List[ToolDescriptor]:
        """Get tools by category"""

        return [self.tools[name] for name in self.tool_categories.get(category, [])]

    def definitions(self) -> List[Dict[str, Any]]:
        """All tool definitions, in registration order"""

        return [tool.definition() for tool in self.tools.values()]

    def __len__(self) -> int:
        return len(self.tools)
