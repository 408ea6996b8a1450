"""
Tools that make the client show an interactive widget.

Each adapter is built with the turn's event sink. When the model calls it,
the payload is validated, forwarded to the sink as a stream event, and the
model is told to stop writing and wait for the user.
"""

from typing import Any, Dict
import structlog
from pydantic import ValidationError

from counselor.domain.models.agent_state import ToolResult
from counselor.domain.streaming.events import (
    CardsEvent, ColorTheme, MeditationData, MeditationEvent, MoodCardsData
)
from counselor.domain.streaming.streaming_handler import EventSink
from counselor.domain.tool.tool_registry import ToolDescriptor

logger = structlog.get_logger(__name__)

MOOD_CARDS_TOOL_NAME = "show_mood_cards"
MEDITATION_TOOL_NAME = "show_meditation"

MOOD_CARDS_ACK = "The mood cards are now shown to the user. Wait for their choice and do not output any text."
MEDITATION_ACK = "The meditation guide is now shown to the user. Wait for them to finish and do not output any text."

MOOD_CARDS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "prompt": {"type": "string", "description": "Warm invitation to pick a card"},
        "cards": {
            "type": "array",
            "description": "4-6 cards most relevant to the current topic",
            "minItems": 4,
            "maxItems": 6,
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "name": {"type": "string", "description": "Card name in the user's language"},
                    "english_name": {"type": "string"},
                    "symbol": {"type": "string", "description": "A single emoji"},
                    "color_theme": {"type": "string", "enum": [theme.value for theme in ColorTheme]},
                    "description": {"type": "string", "description": "1-2 sentence intuitive description"},
                },
                "required": ["id", "name", "english_name", "symbol", "color_theme", "description"],
            },
        },
    },
    "required": ["prompt", "cards"],
}

MEDITATION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "Theme of the meditation"},
        "guidance": {"type": "string", "description": "2-3 sentence opening guidance tailored to the user"},
        "duration_minutes": {"type": "number", "minimum": 1, "maximum": 30},
        "breathing": {
            "type": "object",
            "properties": {
                "inhale_seconds": {"type": "number", "minimum": 2, "maximum": 10},
                "hold_seconds": {"type": "number", "minimum": 0, "maximum": 10, "description": "0 skips"},
                "exhale_seconds": {"type": "number", "minimum": 2, "maximum": 10},
                "rest_seconds": {"type": "number", "minimum": 0, "maximum": 10, "description": "0 skips"},
            },
            "required": ["inhale_seconds", "hold_seconds", "exhale_seconds", "rest_seconds"],
        },
    },
    "required": ["title", "guidance", "duration_minutes", "breathing"],
}


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "input"
    return f"{location}: {first['msg']}"


class MoodCardsTool:
    """show_mood_cards: renders the mood card picker"""

    def __init__(self, sink: EventSink):
        self.sink = sink

    async def run(self, arguments: Dict[str, Any]) -> ToolResult:
        try:
            payload = MoodCardsData.model_validate(arguments)
        except ValidationError as exc:
            logger.warning("Rejected mood cards payload", error=_describe(exc))
            return ToolResult.fail(f"Invalid mood cards payload ({_describe(exc)}). Nothing was shown.")

        await self.sink.emit(CardsEvent(payload=payload))
        return ToolResult.ok(MOOD_CARDS_ACK)

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=MOOD_CARDS_TOOL_NAME,
            description=(
                "UI tool for the mood awareness cards: shows the card picker to the user.\n"
                "Requires read_skill(\"mood-awareness-cards\") first.\n"
                "After calling it, do not output any text; wait for the user's choice."
            ),
            input_schema=MOOD_CARDS_SCHEMA,
            handler=self.run,
            category="ui",
        )


class MeditationTool:
    """show_meditation: renders the breathing guide"""

    def __init__(self, sink: EventSink):
        self.sink = sink

    async def run(self, arguments: Dict[str, Any]) -> ToolResult:
        try:
            payload = MeditationData.model_validate(arguments)
        except ValidationError as exc:
            logger.warning("Rejected meditation payload", error=_describe(exc))
            return ToolResult.fail(f"Invalid meditation payload ({_describe(exc)}). Nothing was shown.")

        await self.sink.emit(MeditationEvent(payload=payload))
        return ToolResult.ok(MEDITATION_ACK)

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=MEDITATION_TOOL_NAME,
            description=(
                "UI tool for guided meditation: shows the breathing animation, timer and guidance.\n"
                "Requires read_skill(\"meditation-guide\") first.\n"
                "After calling it, do not output any text; let the user meditate."
            ),
            input_schema=MEDITATION_SCHEMA,
            handler=self.run,
            category="ui",
        )
