from typing import List
from pathlib import Path
from enum import Enum
import asyncio
import structlog
from pydantic import BaseModel

from counselor.domain.models.agent_state import ToolResult

logger = structlog.get_logger(__name__)

SKILL_FILENAME = "SKILL.md"


class SkillName(str, Enum):
    """Skills the agent can load"""
    MOOD_AWARENESS_CARDS = "mood-awareness-cards"
    MEDITATION_GUIDE = "meditation-guide"


class SkillInfo(BaseModel):
    """Registry entry shown in the system instructions"""
    name: SkillName
    summary: str
    activation_cues: str


SKILL_REGISTRY: List[SkillInfo] = [
    SkillInfo(
        name=SkillName.MOOD_AWARENESS_CARDS,
        summary="Mood awareness cards: intuitive visual choice that helps reach deeper feelings",
        activation_cues=(
            "user struggles to put feelings into words (unclear, complicated, don't know); "
            "warm-up at the start of a conversation; conversation is stuck; user over-intellectualizes"
        ),
    ),
    SkillInfo(
        name=SkillName.MEDITATION_GUIDE,
        summary="Guided meditation: structured breathing to relax, de-stress and settle",
        activation_cues=(
            "user says they are too tense, anxious, need to relax or want to meditate; "
            "strong emotions that need settling first; explicit request for a breathing exercise"
        ),
    ),
]


class SkillLoader:
    """Reads skill protocol documents from ``<skills_dir>/<name>/SKILL.md``"""

    def __init__(self, skills_dir: Path):
        self.skills_dir = Path(skills_dir)

    def skill_path(self, skill: SkillName) -> Path:
        return self.skills_dir / skill.value / SKILL_FILENAME

    async def load(self, skill_name: str) -> ToolResult:
        """Return the full protocol text for a skill"""

        try:
            skill = SkillName(skill_name)
        except ValueError:
            valid = ", ".join(s.value for s in SkillName)
            return ToolResult.fail(f"Error: Unknown skill \"{skill_name}\". Available skills: {valid}")

        path = self.skill_path(skill)
        try:
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            logger.warning("Skill protocol missing", skill=skill.value, path=str(path))
            return ToolResult.fail(
                f"Error: Protocol file for skill \"{skill.value}\" not found (path: {path})"
            )
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Skill protocol unreadable", skill=skill.value, path=str(path), error=str(exc))
            return ToolResult.fail(f"Error: Protocol file for skill \"{skill.value}\" could not be read")

        logger.info("Skill protocol loaded", skill=skill.value)
        return ToolResult.ok(content)
