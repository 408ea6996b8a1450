from typing import Any, Dict

from counselor.domain.models.agent_state import ToolResult
from counselor.domain.skill.skill_loader import SkillLoader, SkillName
from counselor.domain.tool.tool_registry import ToolDescriptor

READ_SKILL_TOOL_NAME = "read_skill"

READ_SKILL_DESCRIPTION = """Load the full interaction protocol (SKILL.md) for a skill.
Use it when the conversation calls for one of the skills in your registry: load the
protocol first, then follow it. Never run any step of a skill before reading its protocol."""


def create_read_skill_tool(loader: SkillLoader) -> ToolDescriptor:
    """Wrap a SkillLoader as a tool"""

    async def run(arguments: Dict[str, Any]) -> ToolResult:
        return await loader.load(arguments["skill_name"])

    return ToolDescriptor(
        name=READ_SKILL_TOOL_NAME,
        description=READ_SKILL_DESCRIPTION,
        input_schema={
            "type": "object",
            "properties": {
                "skill_name": {
                    "type": "string",
                    "description": "Skill to load",
                    "enum": [skill.value for skill in SkillName],
                },
            },
            "required": ["skill_name"],
        },
        handler=run,
        category="skill",
    )
