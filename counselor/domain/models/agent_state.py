from typing import List
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Who authored a turn"""
    USER = "user"
    ASSISTANT = "assistant"


class LoopStatus(str, Enum):
    """Agent loop states for one turn"""
    AWAITING_MODEL = "awaiting_model"
    MODEL_STREAMING = "model_streaming"
    DISPATCHING_TOOL = "dispatching_tool"
    COMPLETE = "complete"
    FAILED = "failed"


class Turn(BaseModel):
    """One role-tagged message in a session transcript"""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ToolResult(BaseModel):
    """Outcome of a tool call.

    ``success=False`` is a soft failure: the output describes what went wrong
    and is handed back to the model like any other result.
    """
    success: bool = True
    output: str

    @classmethod
    def ok(cls, output: str) -> "ToolResult":
        return cls(success=True, output=output)

    @classmethod
    def fail(cls, output: str) -> "ToolResult":
        return cls(success=False, output=output)


class TurnOutcome(BaseModel):
    """What a finished turn produced"""
    text: str = ""
    iterations: int = 0
    truncated: bool = Field(default=False, description="Iteration cap hit with tool calls still pending")
    ui_events: List[str] = Field(default_factory=list, description="UI tools fired during the turn")
