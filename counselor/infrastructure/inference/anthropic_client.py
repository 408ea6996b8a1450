from typing import Any, AsyncIterator, Dict, List, Optional
import structlog
from anthropic import APIError, AsyncAnthropic
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage

from counselor.domain.errors import InferenceError
from counselor.domain.inference.base import Fragment, InferenceClient, TextDelta, ToolCallRequest

logger = structlog.get_logger(__name__)


def to_anthropic_messages(messages: List[BaseMessage]) -> List[Dict[str, Any]]:
    """Convert LangChain messages to Messages API turns.

    Consecutive tool results are folded into a single user turn, matching the
    order of the tool_use blocks they answer.
    """

    payload: List[Dict[str, Any]] = []
    for message in messages:
        if isinstance(message, HumanMessage):
            payload.append({"role": "user", "content": message.content})

        elif isinstance(message, AIMessage):
            blocks: List[Dict[str, Any]] = []
            if isinstance(message.content, str) and message.content:
                blocks.append({"type": "text", "text": message.content})
            for call in message.tool_calls:
                blocks.append({
                    "type": "tool_use",
                    "id": call["id"],
                    "name": call["name"],
                    "input": call["args"],
                })
            if blocks:
                payload.append({"role": "assistant", "content": blocks})

        elif isinstance(message, ToolMessage):
            block = {
                "type": "tool_result",
                "tool_use_id": message.tool_call_id,
                "content": message.content,
                "is_error": message.status == "error",
            }
            previous = payload[-1] if payload else None
            if (
                previous is not None
                and previous["role"] == "user"
                and isinstance(previous["content"], list)
            ):
                previous["content"].append(block)
            else:
                payload.append({"role": "user", "content": [block]})

        else:
            raise InferenceError(f"Unsupported message type: {type(message).__name__}")

    return payload


class AnthropicInferenceClient(InferenceClient):
    """Streams responses from the Anthropic Messages API"""

    def __init__(
        self,
        model: str,
        max_tokens: int = 4096,
        api_key: Optional[str] = None,
        timeout: float = 120.0,
        client: Optional[AsyncAnthropic] = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.client = client or AsyncAnthropic(api_key=api_key, timeout=timeout)

    async def stream(
        self,
        system: str,
        tools: List[Dict[str, Any]],
        messages: List[BaseMessage],
    ) -> AsyncIterator[Fragment]:
        payload = to_anthropic_messages(messages)
        logger.debug("Inference request", model=self.model, messages=len(payload), tools=len(tools))

        try:
            async with self.client.messages.stream(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                tools=tools,
                messages=payload,
            ) as stream:
                async for event in stream:
                    if event.type == "text":
                        yield TextDelta(text=event.text)
                    elif event.type == "content_block_stop" and event.content_block.type == "tool_use":
                        block = event.content_block
                        yield ToolCallRequest(
                            id=block.id,
                            name=block.name,
                            arguments=block.input if isinstance(block.input, dict) else {},
                        )
        except APIError as exc:
            raise InferenceError(f"Inference request failed: {exc}") from exc

    async def aclose(self) -> None:
        await self.client.close()
