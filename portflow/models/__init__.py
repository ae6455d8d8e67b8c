# portflow/models/__init__.py

from portflow.core.database import Base

from portflow.models.storage_slot import StorageSlot
from portflow.models.conversation import Conversation
from portflow.models.conversation_message import ConversationMessage

__all__ = [
    "Base",
    "StorageSlot",
    "Conversation",
    "ConversationMessage",
]
