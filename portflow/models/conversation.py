import uuid
from datetime import datetime
from sqlalchemy import String, Boolean, DateTime, Enum, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portflow.core.database import Base


class Conversation(Base):
    __tablename__ = "conversations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    status: Mapped[str] = mapped_column(
        Enum('GATHERING', 'SUBMITTING', 'SUBMITTED', name='conversation_status_enum'),
        default="GATHERING"
    )
    is_busy: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_reference: Mapped[str | None] = mapped_column(String(40), nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    last_message_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    messages = relationship("ConversationMessage", back_populates="conversation", order_by="ConversationMessage.id")
