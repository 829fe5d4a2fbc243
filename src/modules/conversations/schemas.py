# src/modules/conversations/schemas.py
"""Pydantic schemas for the conversations module."""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel

from .state import ConversationState, Severity


class ConversationSummary(BaseModel):
    id: str
    user_phone: str
    current_state: ConversationState
    severity: Severity
    badge: str  # Dashboard badge class e.g. "warning"
    message_count: int
    last_message_preview: Optional[str] = None  # None when the conversation has no messages
    updated_at: datetime


class MessageView(BaseModel):
    id: str
    role: str  # "user" or "assistant"
    content: str
    media_type: Optional[str] = None
    image_url: Optional[str] = None  # Access-scoped link, never a storage path
    created_at: datetime


class ConversationDetail(BaseModel):
    id: str
    user_phone: str
    current_state: ConversationState
    severity: Severity
    badge: str
    detected_language: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    messages: List[MessageView]


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ConversationListResponse(BaseModel):
    conversations: List[ConversationSummary]
    pagination: Pagination


class SetStateRequest(BaseModel):
    state: str


class SetStateResponse(BaseModel):
    success: bool
    message: str
    conversation: Optional[ConversationSummary] = None


class StateInfo(BaseModel):
    state: ConversationState
    severity: Severity
    badge: str
    is_terminal: bool


class StateListResponse(BaseModel):
    states: List[StateInfo]
