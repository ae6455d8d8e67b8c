from portflow.schemas.booking import (
    ChargeItem,
    TimelineEntry,
    InsuranceAmount,
    Booking,
    BookingListItem,
    ScanStatusResponse,
)
from portflow.schemas.intake import IntakePayload
from portflow.schemas.conversation import (
    ChatMessageResponse,
    ConversationStartResponse,
    ConversationResponse,
    ChatRequest,
    ChatResponse,
)
from portflow.schemas.session import (
    User,
    LoginRequest,
    NavigationResponse,
    MessageResponse,
)
