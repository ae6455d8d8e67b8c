import uuid
import logging
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, or_

from portflow.models import Conversation, ConversationMessage
from portflow.services.chat_state import IntakeState
from portflow.services.chat_graph import intake_graph
from portflow.services.chat_nodes import (
    GREETING,
    SUBMITTING_MESSAGE,
    EMPTY_REPLY_MESSAGE,
    display_text,
    is_trigger,
)

logger = logging.getLogger(__name__)


class ConversationNotFoundError(ValueError):
    pass


class ConversationBusyError(RuntimeError):
    """A previous turn of the same conversation is still waiting on the assistant."""


class IntakeService:
    """
    Service that connects the intake LangGraph to the database.
    Keeps the append-only transcript and allows one outstanding turn per conversation.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def start_conversation(self) -> dict:
        """Start a new conversation and post the assistant greeting."""

        conversation = Conversation(
            status="GATHERING",
            is_busy=False,
            started_at=datetime.utcnow(),
        )
        self.db.add(conversation)
        await self.db.flush()

        self.db.add(ConversationMessage(
            conversation_id=conversation.id,
            role="assistant",
            content=GREETING,
            created_at=datetime.utcnow(),
        ))
        conversation.last_message_at = datetime.utcnow()
        await self.db.commit()

        logger.info("Started conversation %s", conversation.id)
        return {
            "conversation_id": str(conversation.id),
            "greeting": GREETING,
        }

    async def _get_conversation(self, conversation_id: str) -> Conversation:
        try:
            conv_uuid = uuid.UUID(conversation_id)
        except ValueError:
            raise ConversationNotFoundError(f"Conversation not found: {conversation_id}")

        result = await self.db.execute(
            select(Conversation)
            .where(Conversation.id == conv_uuid)
            .execution_options(populate_existing=True)
        )
        conversation = result.scalar_one_or_none()

        if not conversation:
            raise ConversationNotFoundError(f"Conversation not found: {conversation_id}")

        return conversation

    async def _load_messages(self, conv_uuid: uuid.UUID) -> list[ConversationMessage]:
        result = await self.db.execute(
            select(ConversationMessage)
            .where(ConversationMessage.conversation_id == conv_uuid)
            .order_by(ConversationMessage.id)
        )
        return list(result.scalars().all())

    async def _acquire(self, conv_uuid: uuid.UUID) -> None:
        # Atomic test-and-set so two overlapping requests can't both proceed
        result = await self.db.execute(
            update(Conversation)
            .where(Conversation.id == conv_uuid, Conversation.is_busy.is_(False))
            .values(is_busy=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        if result.rowcount == 0:
            raise ConversationBusyError("A previous message is still being processed")

    async def _release(self, conv_uuid: uuid.UUID) -> None:
        await self.db.execute(
            update(Conversation)
            .where(Conversation.id == conv_uuid)
            .values(is_busy=False)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

    async def _clear_pending(self, conv_uuid: uuid.UUID) -> None:
        """Drop the transient submitting message and fall back to gathering."""
        await self.db.execute(
            delete(ConversationMessage)
            .where(
                ConversationMessage.conversation_id == conv_uuid,
                ConversationMessage.role == "assistant",
                ConversationMessage.content == SUBMITTING_MESSAGE,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            update(Conversation)
            .where(Conversation.id == conv_uuid, Conversation.status == "SUBMITTING")
            .values(status="GATHERING")
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

    async def recover_interrupted_turns(self) -> int:
        """
        Release conversations left mid-turn by a previous process.
        Run at startup, before any request can hold a busy flag legitimately.
        """
        result = await self.db.execute(
            select(Conversation.id).where(
                or_(Conversation.is_busy.is_(True), Conversation.status == "SUBMITTING")
            )
        )
        stale = list(result.scalars().all())

        for conv_uuid in stale:
            await self._clear_pending(conv_uuid)
            await self._release(conv_uuid)

        if stale:
            logger.warning("Recovered %d interrupted conversation(s)", len(stale))
        return len(stale)

    async def send_message(
        self,
        conversation_id: str,
        user_message: str
    ) -> dict:
        """
        Process one user turn.

        Ordinary turns get one conversational round-trip. The trigger word instead
        runs extraction over the whole transcript and then the webhook submission.
        """

        conversation = await self._get_conversation(conversation_id)
        conv_uuid = conversation.id

        confirming = is_trigger(user_message)
        status_record = None

        await self._acquire(conv_uuid)
        try:
            history = await self._load_messages(conv_uuid)
            messages = [
                {"role": msg.role, "content": msg.content}
                for msg in history
            ]
            messages.append({"role": "user", "content": user_message})

            self.db.add(ConversationMessage(
                conversation_id=conv_uuid,
                role="user",
                content=user_message,
                created_at=datetime.utcnow(),
            ))

            if confirming:
                conversation.status = "SUBMITTING"
                status_record = ConversationMessage(
                    conversation_id=conv_uuid,
                    role="assistant",
                    content=SUBMITTING_MESSAGE,
                    created_at=datetime.utcnow(),
                )
                self.db.add(status_record)

            # Visible to readers of the transcript while the assistant works
            await self.db.commit()

            state: IntakeState = {
                "conversation_id": str(conv_uuid),
                "messages": messages,
                "current_message": user_message,
                "submitted": False,
                "reference_number": None,
                "intake_payload": None,
                "error": None,
            }

            result_state = await intake_graph.ainvoke(state)

            if status_record is not None:
                await self.db.delete(status_record)

            ai_response = result_state.get("response") or EMPTY_REPLY_MESSAGE
            self.db.add(ConversationMessage(
                conversation_id=conv_uuid,
                role="assistant",
                content=ai_response,
                created_at=datetime.utcnow(),
            ))

            submitted = bool(result_state.get("submitted"))
            reference = result_state.get("reference_number") if submitted else None
            if submitted:
                conversation.status = "SUBMITTED"
                conversation.last_reference = reference
            elif confirming:
                conversation.status = "GATHERING"

            conversation.last_message_at = datetime.utcnow()
            await self.db.commit()
        except BaseException:
            # Also on cancellation: the submitting state was already committed
            await self.db.rollback()
            if status_record is not None:
                await self._clear_pending(conv_uuid)
            raise
        finally:
            await self._release(conv_uuid)

        return {
            "conversation_id": str(conv_uuid),
            "response": display_text(ai_response),
            "submitted": submitted,
            "reference_number": reference,
        }

    async def get_conversation(self, conversation_id: str) -> dict:
        """Get conversation details."""

        conversation = await self._get_conversation(conversation_id)

        return {
            "id": str(conversation.id),
            "status": conversation.status,
            "is_busy": conversation.is_busy,
            "status_message": SUBMITTING_MESSAGE if conversation.status == "SUBMITTING" else None,
            "last_reference": conversation.last_reference,
            "started_at": conversation.started_at,
            "last_message_at": conversation.last_message_at,
        }

    async def get_history(self, conversation_id: str) -> list[dict]:
        """All messages in a conversation, as displayed."""

        conversation = await self._get_conversation(conversation_id)
        messages = await self._load_messages(conversation.id)

        return [
            {
                "role": msg.role,
                "content": display_text(msg.content),
            }
            for msg in messages
        ]
