from typing import TypedDict, Annotated, List, Dict, Any, Literal
from langgraph.graph import StateGraph, END
from langgraph.graph.message import add_messages
from langchain_core.messages import BaseMessage, HumanMessage, AIMessage, ToolMessage
from langchain_core.runnables import RunnableConfig
import asyncio
import structlog

from counselor.domain.context.memory.memory_filesystem import MemoryFileSystem
from counselor.domain.context.memory.session_store import SessionStore
from counselor.domain.inference.base import InferenceClient, TextDelta, ToolCallRequest
from counselor.domain.models.agent_state import LoopStatus, Role, Turn, TurnOutcome
from counselor.domain.orchestration.prompts import build_system_prompt
from counselor.domain.skill.skill_loader import SkillLoader
from counselor.domain.streaming.events import DeltaEvent, DoneEvent, DoneStatus, ErrorEvent
from counselor.domain.streaming.streaming_handler import EventSink
from counselor.domain.tool.definitions.memory_tool import create_memory_tool
from counselor.domain.tool.definitions.skill_tool import create_read_skill_tool
from counselor.domain.tool.definitions.ui_tools import MeditationTool, MoodCardsTool
from counselor.domain.tool.tool_executor import ToolExecutor
from counselor.domain.tool.tool_registry import ToolRegistry
from counselor.infrastructure.observability.logging import agent_logger

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ITERATIONS = 10


class WorkflowState(TypedDict):
    """State for one turn of the agent loop"""
    session_id: str
    messages: Annotated[List[BaseMessage], add_messages]
    pending_tool_calls: List[ToolCallRequest]
    text: str
    iterations: int
    ui_events: List[str]


def transcript_to_messages(turns: List[Turn]) -> List[BaseMessage]:
    return [
        HumanMessage(content=turn.content) if turn.role == Role.USER else AIMessage(content=turn.content)
        for turn in turns
    ]


class AgentOrchestrator:
    """Drives the model -> tool -> model loop for a user message.

    The loop is a two-node graph: ``call_model`` streams one inference call
    and collects tool requests, ``dispatch_tools`` runs them in order and
    feeds the results back. It stops when the model makes no tool calls or
    after ``max_iterations`` inference calls.
    """

    def __init__(
        self,
        inference: InferenceClient,
        session_store: SessionStore,
        memory: MemoryFileSystem,
        skills: SkillLoader,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        system_prompt: str = "",
    ):
        self.inference = inference
        self.session_store = session_store
        self.memory = memory
        self.skills = skills
        self.max_iterations = max_iterations
        self.system_prompt = system_prompt or build_system_prompt()
        self.workflow = self._create_workflow()

    def _create_workflow(self):
        """Create the loop graph"""

        workflow = StateGraph(WorkflowState)

        workflow.add_node("call_model", self.call_model_node)
        workflow.add_node("dispatch_tools", self.dispatch_tools_node)

        workflow.set_entry_point("call_model")

        workflow.add_conditional_edges(
            "call_model",
            self.route_after_model,
            {
                "dispatch": "dispatch_tools",
                "complete": END,
                "truncated": END
            }
        )
        workflow.add_edge("dispatch_tools", "call_model")

        return workflow.compile()

    def build_tool_registry(self, sink: EventSink) -> ToolRegistry:
        """Tool catalog for one turn"""

        registry = ToolRegistry()
        registry.register_tool(create_memory_tool(self.memory))
        registry.register_tool(create_read_skill_tool(self.skills))
        registry.register_tool(MoodCardsTool(sink).descriptor())
        registry.register_tool(MeditationTool(sink).descriptor())
        return registry

    async def call_model_node(self, state: WorkflowState, config: RunnableConfig) -> Dict[str, Any]:
        """Stream one model response"""

        sink: EventSink = config["configurable"]["sink"]
        registry: ToolRegistry = config["configurable"]["registry"]
        iteration = state["iterations"] + 1

        agent_logger.log_workflow_transition(
            state["session_id"],
            from_node=LoopStatus.AWAITING_MODEL.value,
            to_node=LoopStatus.MODEL_STREAMING.value,
            state_summary={"iteration": iteration}
        )

        chunks: List[str] = []
        tool_calls: List[ToolCallRequest] = []
        async for fragment in self.inference.stream(
            system=self.system_prompt,
            tools=registry.definitions(),
            messages=state["messages"],
        ):
            if isinstance(fragment, TextDelta):
                if fragment.text:
                    chunks.append(fragment.text)
                    await sink.emit(DeltaEvent(text=fragment.text))
            else:
                tool_calls.append(fragment)

        text = "".join(chunks)
        reply = AIMessage(
            content=text,
            tool_calls=[
                {"id": call.id, "name": call.name, "args": call.arguments}
                for call in tool_calls
            ]
        )

        return {
            "messages": [reply],
            "pending_tool_calls": tool_calls,
            "text": state["text"] + text,
            "iterations": iteration,
        }

    async def dispatch_tools_node(self, state: WorkflowState, config: RunnableConfig) -> Dict[str, Any]:
        """Run every requested tool, one at a time"""

        registry: ToolRegistry = config["configurable"]["registry"]
        executor = ToolExecutor(registry, session_id=state["session_id"])
        calls = state["pending_tool_calls"]

        # Unknown tools abort the turn before anything runs
        executor.check_calls(calls)

        ui_tools = {tool.name for tool in registry.get_tools_by_category("ui")}
        results: List[ToolMessage] = []
        ui_events = list(state["ui_events"])
        for call in calls:
            result = await executor.execute_tool(call)
            if result.success and call.name in ui_tools:
                ui_events.append(call.name)
            results.append(ToolMessage(
                content=result.output,
                tool_call_id=call.id,
                name=call.name,
                status="success" if result.success else "error"
            ))

        return {"messages": results, "pending_tool_calls": [], "ui_events": ui_events}

    def route_after_model(self, state: WorkflowState) -> Literal["dispatch", "complete", "truncated"]:
        """Decide what follows a model response"""

        if not state["pending_tool_calls"]:
            route, next_status = "complete", LoopStatus.COMPLETE
        elif state["iterations"] >= self.max_iterations:
            route, next_status = "truncated", LoopStatus.COMPLETE
        else:
            route, next_status = "dispatch", LoopStatus.DISPATCHING_TOOL

        agent_logger.log_workflow_transition(
            state["session_id"],
            from_node=LoopStatus.MODEL_STREAMING.value,
            to_node=next_status.value,
            condition=route,
            state_summary={
                "iteration": state["iterations"],
                "pending_tool_calls": len(state["pending_tool_calls"])
            }
        )
        return route

    async def run_turn(self, session_id: str, message: str, sink: EventSink) -> TurnOutcome:
        """Run the agent loop for one user message.

        Errors propagate; on any failure the session keeps the user turn but
        gains no assistant turn.
        """

        async with self.session_store.session_lock(session_id):
            await self.session_store.append(session_id, Role.USER, message)
            transcript = await self.session_store.get(session_id)

            registry = self.build_tool_registry(sink)
            initial_state: WorkflowState = {
                "session_id": session_id,
                "messages": transcript_to_messages(transcript),
                "pending_tool_calls": [],
                "text": "",
                "iterations": 0,
                "ui_events": [],
            }

            final_state = await self.workflow.ainvoke(
                initial_state,
                config={
                    "configurable": {"sink": sink, "registry": registry},
                    "recursion_limit": 2 * self.max_iterations + 2,
                }
            )

            outcome = TurnOutcome(
                text=final_state["text"],
                iterations=final_state["iterations"],
                truncated=bool(final_state["pending_tool_calls"]),
                ui_events=final_state["ui_events"],
            )

            if outcome.text.strip():
                await self.session_store.append(session_id, Role.ASSISTANT, outcome.text)

            return outcome

    async def process_message(self, session_id: str, message: str, sink: EventSink) -> None:
        """Run a turn and finish the stream with exactly one done or error event"""

        try:
            with structlog.contextvars.bound_contextvars(session_id=session_id):
                outcome = await self.run_turn(session_id, message, sink)
        except asyncio.CancelledError:
            logger.info("Turn cancelled", session_id=session_id)
            raise
        except Exception as e:
            logger.error("Turn failed", session_id=session_id, status=LoopStatus.FAILED.value,
                         error=str(e), exc_info=True)
            await sink.emit(ErrorEvent(message=str(e)))
            return

        if outcome.truncated:
            logger.warning("Iteration cap reached", session_id=session_id, iterations=outcome.iterations)

        logger.info("Turn complete", session_id=session_id, iterations=outcome.iterations,
                    ui_events=outcome.ui_events)
        await sink.emit(DoneEvent(
            status=DoneStatus.MAX_ITERATIONS if outcome.truncated else DoneStatus.COMPLETE
        ))
