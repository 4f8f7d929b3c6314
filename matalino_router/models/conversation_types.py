from pydantic import BaseModel, ConfigDict
from enum import Enum


class TurnRole(str, Enum):
    """Conversation turn roles."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ConversationMessage(BaseModel):
    """Prior chat message sent along with a text request."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    role: TurnRole
    content: str
