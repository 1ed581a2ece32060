"""Pydantic schemas for the FastAPI endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """Incoming chat message.

    Accepts the ``userInputText`` field sent by the web client as well as
    ``user_input_text``.  A missing or blank value is answered by the route
    with a prompt, not a validation error.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_input_text: str | None = Field(
        default=None,
        alias="userInputText",
        max_length=4000,
        description="The user's question about matches, players or events",
    )

    def message(self) -> str:
        return (self.user_input_text or "").strip()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    service: str = "matchdesk-agent"
