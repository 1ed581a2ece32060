"""LangGraph-based tool-calling agent for match data questions.

Architecture:
  The agent is a two-node LangGraph StateGraph:

    1. **model** - Claude, bound to the tool catalog, is shown the system
                   prompt plus the conversation so far and either answers
                   or asks for one or more tools.
    2. **tools** - runs every requested tool through the
                   :class:`~matchdesk.tools.executor.QueryExecutor` and
                   appends one ``ToolMessage`` per request.

  Routing:
    model → (stop reason "tool_use"?) → tools → model (loop)
          → (anything else)           → END

  A fresh conversation is built for every request; nothing is checkpointed.

Streaming:
  When run through :meth:`MatchAgent.stream`, the model node streams the
  model call and hands every text fragment to the LangGraph stream writer
  as it arrives, so callers see partial output before the turn completes.

Failure handling:
  Errors inside a tool (unknown tool, bad arguments, backend failure) are
  turned into ``{"error": ...}`` tool results so the model can react.
  Model failures, the tool-round cap and the request deadline propagate to
  the caller.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Annotated, Any

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import (
    AIMessage,
    AnyMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
    message_chunk_to_message,
)
from langchain_core.runnables import Runnable, RunnableConfig
from langgraph.errors import GraphRecursionError
from langgraph.graph import END, StateGraph
from langgraph.graph.message import add_messages
from langgraph.types import StreamWriter
from typing_extensions import TypedDict

from matchdesk.config import Settings
from matchdesk.prompts import get_system_prompt
from matchdesk.services.graphql_client import GraphQLClient
from matchdesk.services.metrics import metrics
from matchdesk.tools.catalog import anthropic_tool_specs
from matchdesk.tools.executor import QueryExecutor, QueryFailure, QueryOutcome

logger = logging.getLogger(__name__)

TOOL_USE_STOP_REASON = "tool_use"


# ── Errors ───────────────────────────────────────────────────────────


class AgentError(Exception):
    """Base class for failures of the agent loop itself."""


class AgentIterationLimitError(AgentError):
    """The model kept asking for tools past the configured round limit."""


class AgentTimeoutError(AgentError):
    """The request deadline passed before the loop reached an answer."""


# ── State & result ───────────────────────────────────────────────────


class AgentState(TypedDict):
    """The state that flows through the graph.

    ``messages`` uses the ``add_messages`` reducer, so nodes only ever
    append to the conversation.  ``tool_rounds`` counts completed
    dispatches and is checked against the round limit.
    """

    messages: Annotated[list[AnyMessage], add_messages]
    tool_rounds: int


@dataclass
class AgentResult:
    """The outcome of one request: the final answer and how we got there."""

    answer: str
    tool_rounds: int
    messages: list[BaseMessage]


# ── Message helpers ──────────────────────────────────────────────────


def content_text(content: str | list[Any]) -> str:
    """Concatenate the text parts of a message (or chunk) content."""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def requests_tools(message: BaseMessage) -> bool:
    """True when the model stopped to ask for tools.

    The Anthropic stop reason decides; a message without one (e.g. from a
    provider that does not report it) falls back to its tool calls.
    """
    stop_reason = (message.response_metadata or {}).get("stop_reason")
    if stop_reason:
        return stop_reason == TOOL_USE_STOP_REASON
    return bool(getattr(message, "tool_calls", None))


# ── Deadline ─────────────────────────────────────────────────────────


def _deadline(config: RunnableConfig | None) -> float | None:
    return (config or {}).get("configurable", {}).get("deadline")


def _check_deadline(deadline: float | None) -> None:
    """Raise once the ``time.monotonic()`` *deadline* has passed."""
    if deadline is not None and time.monotonic() >= deadline:
        raise AgentTimeoutError("The request deadline passed before an answer was ready.")


# ── LLM builder ──────────────────────────────────────────────────────


def _build_llm(settings: Settings) -> Runnable:
    """Build the Claude chat model with the tool catalog bound."""
    llm = ChatAnthropic(
        model=settings.model_name,
        api_key=settings.anthropic_api_key,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        timeout=settings.request_timeout_seconds,
        max_retries=0,
    )
    return llm.bind_tools(anthropic_tool_specs())


# ── Node: model ──────────────────────────────────────────────────────


def _stream_model(
    llm: Runnable,
    messages: list[BaseMessage],
    writer: StreamWriter,
    deadline: float | None = None,
) -> AIMessage:
    """Stream one model turn, forwarding text fragments as they arrive.

    The deadline is checked after every chunk, so a long answer stops
    mid-turn instead of running to completion.
    """
    merged = None
    for chunk in llm.stream(messages):
        text = content_text(chunk.content)
        if text:
            writer(text)
        merged = chunk if merged is None else merged + chunk
        _check_deadline(deadline)
    if merged is None:
        raise AgentError("The model returned an empty stream.")
    return message_chunk_to_message(merged)


def _make_model_node(llm: Runnable, system_prompt_factory: Callable[[], str]):
    """Create the node that asks the model for its next action.

    The tool-bound model is captured in the closure so every loop iteration
    reuses one client.
    """

    def model_node(state: AgentState, config: RunnableConfig, writer: StreamWriter) -> dict:
        deadline = _deadline(config)
        _check_deadline(deadline)

        stream_tokens = (config or {}).get("configurable", {}).get("stream_tokens", False)
        messages = [SystemMessage(content=system_prompt_factory())] + list(state["messages"])
        operation = "llm_stream" if stream_tokens else "llm_invoke"

        with metrics.track("anthropic", operation):
            if stream_tokens:
                response = _stream_model(llm, messages, writer, deadline)
            else:
                response = llm.invoke(messages)

        logger.debug(
            "model turn: stop_reason=%s tool_calls=%d",
            (response.response_metadata or {}).get("stop_reason"),
            len(getattr(response, "tool_calls", None) or []),
        )
        return {"messages": [response]}

    return model_node


# ── Node: tools ──────────────────────────────────────────────────────


def _run_tool(executor: QueryExecutor, call: dict[str, Any]) -> QueryOutcome:
    try:
        return executor.execute(call["name"], call.get("args"))
    except Exception as exc:
        logger.warning("Tool %s (%s) failed: %s", call["name"], call.get("id"), exc)
        return QueryFailure(str(exc) or type(exc).__name__)


def _make_tools_node(executor: QueryExecutor, max_tool_rounds: int):
    """Create the node that answers every tool call of the last model turn.

    Calls run sequentially in the order the model listed them, and each one
    yields exactly one ``ToolMessage`` keyed by its call id.
    """

    def tools_node(state: AgentState, config: RunnableConfig | None = None) -> dict:
        rounds = state.get("tool_rounds", 0)
        if rounds >= max_tool_rounds:
            raise AgentIterationLimitError(
                f"Gave up after {max_tool_rounds} rounds of tool calls without a final answer."
            )

        deadline = _deadline(config)
        tool_calls = getattr(state["messages"][-1], "tool_calls", None) or []
        results: list[ToolMessage] = []
        for call in tool_calls:
            _check_deadline(deadline)
            outcome = _run_tool(executor, call)
            results.append(
                ToolMessage(
                    content=outcome.serialize(),
                    tool_call_id=call["id"],
                    name=call["name"],
                    status="error" if isinstance(outcome, QueryFailure) else "success",
                )
            )

        logger.info(
            "Tool round %d: %s",
            rounds + 1,
            [call["name"] for call in tool_calls] or "no calls",
        )
        return {"messages": results, "tool_rounds": rounds + 1}

    return tools_node


# ── Conditional edge ─────────────────────────────────────────────────


def should_use_tools(state: AgentState) -> str:
    """Route to the tools node when the model stopped to ask for tools."""
    if requests_tools(state["messages"][-1]):
        return "tools"
    return END


# ── Agent ────────────────────────────────────────────────────────────


class MatchAgent:
    """Runs the model/tools loop for one user message at a time.

    The compiled graph holds no per-request state, so one instance can
    serve concurrent requests.
    """

    def __init__(
        self,
        llm: Runnable,
        executor: QueryExecutor,
        *,
        max_tool_rounds: int = 8,
        system_prompt_factory: Callable[[], str] = get_system_prompt,
    ):
        self.max_tool_rounds = max_tool_rounds
        self._executor = executor

        graph = StateGraph(AgentState)
        graph.add_node("model", _make_model_node(llm, system_prompt_factory))
        graph.add_node("tools", _make_tools_node(executor, max_tool_rounds))
        graph.set_entry_point("model")
        graph.add_conditional_edges("model", should_use_tools, {"tools": "tools", END: END})
        graph.add_edge("tools", "model")
        self._graph = graph.compile()

    def _config(self, *, stream_tokens: bool, deadline: float | None = None) -> RunnableConfig:
        # Two supersteps per round plus the final answer; the round check in
        # the tools node fires before LangGraph's own limit.
        return {
            "recursion_limit": 2 * self.max_tool_rounds + 3,
            "configurable": {"stream_tokens": stream_tokens, "deadline": deadline},
        }

    @staticmethod
    def _initial_state(user_input: str) -> AgentState:
        return {"messages": [HumanMessage(content=user_input)], "tool_rounds": 0}

    @staticmethod
    def _result(state: dict[str, Any]) -> AgentResult:
        messages = list(state.get("messages", []))
        answer = content_text(messages[-1].content) if messages else ""
        return AgentResult(
            answer=answer,
            tool_rounds=state.get("tool_rounds", 0),
            messages=messages,
        )

    def run(self, user_input: str, *, deadline: float | None = None) -> AgentResult:
        """Run the loop to completion and return the final answer.

        ``deadline`` is a ``time.monotonic()`` value; once it passes, the
        loop stops at the next model turn or tool call with
        :class:`AgentTimeoutError`.
        """
        try:
            state = self._graph.invoke(
                self._initial_state(user_input),
                config=self._config(stream_tokens=False, deadline=deadline),
            )
        except GraphRecursionError as exc:
            raise AgentIterationLimitError(str(exc)) from exc
        result = self._result(state)
        logger.info("Agent done after %d tool round(s)", result.tool_rounds)
        return result

    def stream(self, user_input: str, *, deadline: float | None = None) -> Iterator[str | AgentResult]:
        """Run the loop, yielding text fragments as the model produces them.

        The last item is always the :class:`AgentResult`; nothing is yielded
        after it.  ``deadline`` behaves as in :meth:`run` and is also checked
        between streamed chunks.
        """
        final_state: dict[str, Any] = {}
        try:
            for mode, payload in self._graph.stream(
                self._initial_state(user_input),
                config=self._config(stream_tokens=True, deadline=deadline),
                stream_mode=["custom", "values"],
            ):
                if mode == "custom":
                    yield payload
                else:
                    final_state = payload
        except GraphRecursionError as exc:
            raise AgentIterationLimitError(str(exc)) from exc
        result = self._result(final_state)
        logger.info("Agent stream done after %d tool round(s)", result.tool_rounds)
        yield result

    def close(self) -> None:
        """Release the backend connection held by the executor."""
        self._executor.close()


# ── Factory ──────────────────────────────────────────────────────────


def create_match_agent(
    settings: Settings,
    *,
    executor: QueryExecutor | None = None,
    llm: Runnable | None = None,
) -> MatchAgent:
    """Build the agent from explicit settings.

    ``executor`` and ``llm`` can be injected (tests, alternative backends);
    otherwise they are built from *settings*.
    """
    if executor is None:
        client = GraphQLClient(
            settings.graphql_endpoint,
            token=settings.graphql_token,
            timeout=settings.graphql_timeout_seconds,
        )
        executor = QueryExecutor(client)
    if llm is None:
        llm = _build_llm(settings)

    agent = MatchAgent(llm, executor, max_tool_rounds=settings.max_tool_rounds)
    logger.debug(
        "MatchDesk agent compiled - model: %s, tools: %d, max tool rounds: %d",
        settings.model_name, len(executor.tool_names), settings.max_tool_rounds,
    )
    return agent
