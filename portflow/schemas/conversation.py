from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from uuid import UUID


# ============== Chat Message Schemas ==============

class ChatMessageResponse(BaseModel):
    """A transcript message as shown to the user (sentinel stripped)."""
    role: str = Field(..., pattern="^(user|assistant)$")
    content: str


# ============== Conversation Schemas ==============

class ConversationStartResponse(BaseModel):
    conversation_id: UUID
    greeting: str


class ConversationResponse(BaseModel):
    """Conversation info returned to client."""
    id: UUID
    status: str
    is_busy: bool
    status_message: str | None = None
    last_reference: str | None = None
    started_at: datetime
    last_message_at: datetime | None = None


# ============== Chat Request/Response ==============

class ChatRequest(BaseModel):
    """User sending a message in existing conversation."""
    message: str = Field(..., min_length=1, max_length=2000)

    @field_validator("message")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value.strip()


class ChatResponse(BaseModel):
    """Assistant reply to one user turn."""
    conversation_id: UUID
    message: str
    submitted: bool = False
    reference_number: str | None = None
