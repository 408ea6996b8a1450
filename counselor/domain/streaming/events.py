from typing import Dict, Any, List, Literal
from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum


class EventType(str, Enum):
    """Stream event types"""
    DELTA = "delta"
    CARDS = "cards"
    MEDITATION = "meditation"
    DONE = "done"
    ERROR = "error"


class DoneStatus(str, Enum):
    """Why a turn finished"""
    COMPLETE = "complete"
    MAX_ITERATIONS = "max_iterations"


class ColorTheme(str, Enum):
    """Card color themes known to the client"""
    OCEAN = "ocean"
    SUNRISE = "sunrise"
    FOREST = "forest"
    SUNSHINE = "sunshine"
    BLOSSOM = "blossom"
    MOUNTAIN = "mountain"
    LAVENDER = "lavender"
    MOONLIGHT = "moonlight"


class MoodCard(BaseModel):
    """A single mood awareness card"""
    id: str
    name: str
    english_name: str
    symbol: str
    color_theme: ColorTheme
    description: str


class MoodCardsData(BaseModel):
    """Cards component data"""
    prompt: str
    cards: List[MoodCard] = Field(min_length=4, max_length=6)


class Breathing(BaseModel):
    """Breathing rhythm in seconds"""
    inhale_seconds: float = Field(ge=2, le=10)
    hold_seconds: float = Field(ge=0, le=10)
    exhale_seconds: float = Field(ge=2, le=10)
    rest_seconds: float = Field(ge=0, le=10)


class MeditationData(BaseModel):
    """Meditation component data"""
    title: str
    guidance: str
    duration_minutes: float = Field(ge=1, le=30)
    breathing: Breathing


class BaseEvent(BaseModel):
    """Base event model for everything sent down the stream"""
    type: EventType
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.type in (EventType.DONE, EventType.ERROR)

    def data(self) -> Dict[str, Any]:
        """Wire payload for the event"""
        raise NotImplementedError


class DeltaEvent(BaseEvent):
    """Incremental assistant text"""
    type: Literal[EventType.DELTA] = EventType.DELTA
    text: str

    def data(self) -> Dict[str, Any]:
        return {"text": self.text}


class CardsEvent(BaseEvent):
    """Ask the client to show mood cards"""
    type: Literal[EventType.CARDS] = EventType.CARDS
    payload: MoodCardsData

    def data(self) -> Dict[str, Any]:
        return self.payload.model_dump(mode="json")


class MeditationEvent(BaseEvent):
    """Ask the client to show the meditation guide"""
    type: Literal[EventType.MEDITATION] = EventType.MEDITATION
    payload: MeditationData

    def data(self) -> Dict[str, Any]:
        return self.payload.model_dump(mode="json")


class DoneEvent(BaseEvent):
    """Turn finished"""
    type: Literal[EventType.DONE] = EventType.DONE
    status: DoneStatus = DoneStatus.COMPLETE

    def data(self) -> Dict[str, Any]:
        return {"status": self.status.value}


class ErrorEvent(BaseEvent):
    """Turn failed"""
    type: Literal[EventType.ERROR] = EventType.ERROR
    message: str

    def data(self) -> Dict[str, Any]:
        return {"message": self.message}
