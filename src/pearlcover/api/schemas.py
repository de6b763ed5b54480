"""Pydantic models for the Pearl Cover AI API."""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class ChatRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Natural-language question about the user's data")


class SourcesModel(BaseModel):
    notes: int = Field(0, ge=0)
    claims: int = Field(0, ge=0)
    expenses: int = Field(0, ge=0)
    payments: int = Field(0, ge=0)
    attachments: int = Field(0, ge=0)


class ChatResponse(BaseModel):
    content: str = Field(..., description="Raw answer text returned by the model")
    linked_content: str = Field(..., description="Answer with entity tags rewritten into app links")
    sources: SourcesModel


class AIConfigResponse(BaseModel):
    api_key_configured: bool
    endpoint_url: str
    model_name: str


class AIConfigUpdateRequest(BaseModel):
    """Accepts snake_case keys and the web client's camelCase keys."""

    api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("api_key", "apiKey"), description="Chat completion API key"
    )
    endpoint_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("endpoint_url", "endpointUrl"),
        description="OpenAI-compatible base URL",
    )
    model_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("model_name", "modelName"))


class SuccessResponse(BaseModel):
    success: bool = True


class ConnectionTestResponse(BaseModel):
    ok: bool


class QuickStatsResponse(BaseModel):
    notes: int = 0
    claims: int = 0
    expenses: int = 0


class ErrorLogRequest(BaseModel):
    """Client-side error report captured by the error boundary."""

    message: Optional[str] = None
    stack: Optional[str] = None
    component_stack: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("component_stack", "componentStack")
    )
    url: Optional[str] = None
    user_agent: Optional[str] = Field(default=None, validation_alias=AliasChoices("user_agent", "userAgent"))
