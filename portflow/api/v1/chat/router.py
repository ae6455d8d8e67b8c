from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from portflow.core.database import get_db
from portflow.services.intake_service import (
    IntakeService,
    ConversationNotFoundError,
    ConversationBusyError,
)
from portflow.schemas.conversation import (
    ConversationStartResponse,
    ConversationResponse,
    ChatMessageResponse,
    ChatRequest,
    ChatResponse,
)

router = APIRouter(prefix="/chat", tags=["Chat"])


# ==================== START CONVERSATION ====================

@router.post("/conversations", response_model=ConversationStartResponse, status_code=status.HTTP_201_CREATED)
async def start_conversation(db: AsyncSession = Depends(get_db)):
    """
    Start a new booking-assistant conversation.

    Returns the conversation_id to use for subsequent messages and the
    assistant greeting, which is already the first transcript entry.
    """
    intake_service = IntakeService(db)
    return await intake_service.start_conversation()


# ==================== SEND MESSAGE ====================

@router.post("/conversations/{conversation_id}/messages", response_model=ChatResponse)
async def send_message(
    conversation_id: str,
    request: ChatRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Send one user turn and get the assistant reply.

    Typing the trigger word (CONFIRM, any casing) submits the enquiry
    gathered so far instead of continuing the conversation; the reply then
    carries the submission reference.

    Example:
        POST /api/v1/chat/conversations/uuid-here/messages
        {"message": "Shanghai to Rotterdam, 2 pallets electronics"}

    Returns 409 while a previous message of the same conversation is still being processed.
    """
    try:
        intake_service = IntakeService(db)
        result = await intake_service.send_message(
            conversation_id=conversation_id,
            user_message=request.message
        )
    except ConversationNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except ConversationBusyError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )

    return ChatResponse(
        conversation_id=result["conversation_id"],
        message=result["response"],
        submitted=result["submitted"],
        reference_number=result["reference_number"],
    )


# ==================== GET CONVERSATION ====================

@router.get("/conversations/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Conversation phase, busy flag and the transient status line, if any."""
    try:
        return await IntakeService(db).get_conversation(conversation_id)
    except ConversationNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found"
        )


# ==================== GET CONVERSATION HISTORY ====================

@router.get("/conversations/{conversation_id}/messages", response_model=list[ChatMessageResponse])
async def get_conversation_history(
    conversation_id: str,
    db: AsyncSession = Depends(get_db)
):
    """All messages in a conversation, as the chat widget shows them."""
    try:
        return await IntakeService(db).get_history(conversation_id)
    except ConversationNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found"
        )
