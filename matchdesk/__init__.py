"""MatchDesk - a question-answering agent over football match data.

Architecture Overview
=====================

The agent is a **LangGraph** state machine with two nodes:

1. **model** - Invokes Claude with the conversation so far, a system prompt
   and the tool catalog. The model either answers or asks for tools.

2. **tools** - Runs each requested tool as a GraphQL query against the match
   data service and appends the results to the conversation.

Routing: model → (stop reason "tool_use"?) → tools → model (loop until the
model answers → END)

Key Design Decisions
--------------------
- **LLM**: Claude via ``langchain-anthropic``; the model call can be buffered
  or streamed, and streamed text reaches the client as soon as it exists.
- **Data**: a fixed catalog of six read-only tools (matches, players,
  events); each maps to one GraphQL document sent over ``httpx``.
- **Errors as data**: unknown tools, bad arguments and backend failures are
  returned to the model as ``{"error": ...}`` so it can recover.
- **Bounded loop**: ``MAX_TOOL_ROUNDS`` caps model/tool round trips and
  ``REQUEST_TIMEOUT_SECONDS`` bounds a whole HTTP request.
- **Stateless requests**: every request starts a fresh conversation.

Package Structure
-----------------
- ``matchdesk/agent.py`` - LangGraph StateGraph and the agent loop
- ``matchdesk/config.py`` - Settings from environment variables / SSM
- ``matchdesk/prompts.py`` - System prompt
- ``matchdesk/server.py`` - FastAPI application
- ``matchdesk/main.py`` - CLI chat interface
- ``matchdesk/services/`` - GraphQL client and CloudWatch metrics
- ``matchdesk/tools/`` - Tool catalog, GraphQL documents and executor
- ``matchdesk/api/`` - FastAPI routes and Pydantic schemas
"""
