from typing import TypedDict


class IntakeState(TypedDict, total=False):
    """
    State for one user turn of the intake conversation.
    LangGraph passes this state between nodes, and each node can read/update it.
    """

    # === Conversation identifiers ===
    conversation_id: str

    # === Conversation context ===
    messages: list[dict]            # full transcript, current user turn last
    current_message: str

    # === Control flow ===
    is_confirmation: bool           # current_message is the trigger word
    response: str                   # raw assistant text to append to the transcript

    # === Submission ===
    intake_payload: dict | None
    reference_number: str | None
    submitted: bool

    # === Error handling ===
    error: str | None
