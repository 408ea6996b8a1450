"""
Boundary to the language model.

An inference client takes the system instructions, the tool catalog and the
conversation so far, and streams back text fragments and tool-call requests
in the order the model produced them.
"""

from typing import Any, AsyncIterator, Dict, List, Union
from abc import ABC, abstractmethod
from pydantic import BaseModel, Field
from langchain_core.messages import BaseMessage


class TextDelta(BaseModel):
    """A piece of assistant text"""
    text: str


class ToolCallRequest(BaseModel):
    """The model wants a tool run"""
    id: str
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


Fragment = Union[TextDelta, ToolCallRequest]


class InferenceClient(ABC):
    """Streams one model response"""

    @abstractmethod
    def stream(
        self,
        system: str,
        tools: List[Dict[str, Any]],
        messages: List[BaseMessage],
    ) -> AsyncIterator[Fragment]:
        """Yield fragments for a single model call"""

    async def aclose(self) -> None:
        """Release network resources"""
