"""
Pydantic schemas for chat messages, shared by the REST routes and the
socket handlers.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

MessageType = Literal["text", "code", "file", "system", "announcement"]


class MessageCreateRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    type: MessageType = "text"
    parent_message_id: Optional[str] = None
    attachments: List[Dict[str, Any]] = Field(default_factory=list)


class MessageEditRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class ReactionRequest(BaseModel):
    emoji: str = Field(..., min_length=1, max_length=32)
