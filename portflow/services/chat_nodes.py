import logging

from portflow.core.config import settings
from portflow.schemas.intake import IntakePayload
from portflow.services.chat_state import IntakeState
from portflow.services.intake_client import submit_intake, pick_reference
from portflow.services.llm import call_llm_with_history, extract_json_from_llm

logger = logging.getLogger(__name__)


GREETING = (
    "Hi! I'm your PortFlow assistant. I can help you build a shipping quote or track a booking. "
    "Where are you shipping from today?"
)
SUBMITTING_MESSAGE = "🔄 Submitting your enquiry..."
SUBMISSION_FAILED_MESSAGE = "❌ Submission failed. Please try again."
CONNECTION_ERROR_MESSAGE = "Connection error. Please try again."
EMPTY_REPLY_MESSAGE = "I'm sorry, I'm having trouble processing your request."


def submitted_message(reference: str) -> str:
    return f"✅ Enquiry submitted! Reference: {reference}"


def is_trigger(message: str) -> bool:
    return message.strip().upper() == settings.CONFIRM_TRIGGER.upper()


def display_text(content: str) -> str:
    """Text shown to the user: the ready-for-ops marker removed."""
    return content.replace(settings.READY_MARKER, "", 1).strip()


def transcript_text(messages: list[dict]) -> str:
    return "\n".join(f"{m['role'].upper()}: {m['content']}" for m in messages)


def conversation_prompt() -> str:
    return f"""You are PortFlow Assistant, a freight forwarding expert.

Your task is to gather all the following details from the customer to create a quote enquiry:
1. Customer Contact (Name, Email, Phone, Company)
2. Lane Info (Origin Port, Destination Port)
3. Cargo Details (Mode, Container Type, Commodity, Weight, Unit, Pieces)
4. Party Info (Shipper/Consignee Names & Addresses)
5. Logistics (Incoterm, Preferred Date)

Behavior:
- Ask for missing details one at a time.
- Be conversational and professional.
- Once most details are provided, provide a summary and ask for confirmation.
- MUST append the exact phrase "{settings.READY_MARKER}" at the very end of your response when the user is presented with a summary and needs to type "{settings.CONFIRM_TRIGGER}".
"""


EXTRACTION_PROMPT = """Extract all shipping information from the conversation history the user sends into a clean JSON object.

REQUIRED FIELDS (DO NOT LEAVE EMPTY IF MENTIONED):
1. customer_name: The person's name.
2. company_name: The customer's company.
3. email: Contact email address.
4. phone: Contact phone number.
5. origin_port: Departure location.
6. destination_port: Arrival location.
7. shipment_mode: Transport type (Sea/Air/Road).
8. container_type: e.g., 20ft, 40ft, LCL, etc.
9. commodity: Description of goods.
10. gross_weight: The weight value.
11. weight_unit: kg, lb, etc.
12. pieces_quantity: Number of packages or containers.
13. shipper_name: Party providing the goods.
14. shipper_address: Shipper's location.
15. consignee_name: Party receiving the goods.
16. consignee_address: Consignee's location.
17. preferred_date: Requested shipping date.
18. incoterm: e.g., FOB, CIF, EXW.

Respond with JSON only, every value a string. Use "" for anything not mentioned."""


# ============== NODE 1: Classify user message ==============

async def classify_message_node(state: IntakeState) -> IntakeState:
    """
    Decide whether this turn ends the gathering phase.
    Only an exact (case-insensitive) trigger word does; nothing the assistant said is consulted.
    """
    state["is_confirmation"] = is_trigger(state.get("current_message", ""))
    state["error"] = None
    return state


def route_after_classify(state: IntakeState) -> str:
    if state.get("is_confirmation"):
        return "extract_intake_node"
    return "converse_node"


# ============== NODE 2: Conversational turn ==============

async def converse_node(state: IntakeState) -> IntakeState:
    """Send the whole transcript to the assistant prompt and keep its reply verbatim."""
    try:
        reply = await call_llm_with_history(
            conversation_prompt(),
            state.get("messages", []),
            model=settings.CHAT_MODEL,
        )
        state["response"] = reply or EMPTY_REPLY_MESSAGE
    except Exception as e:
        logger.exception("Chat turn failed for conversation %s", state.get("conversation_id"))
        state["response"] = CONNECTION_ERROR_MESSAGE
        state["error"] = str(e)

    return state


# ============== NODE 3: Extract intake fields ==============

async def extract_intake_node(state: IntakeState) -> IntakeState:
    """Pull the 18 enquiry fields out of the entire transcript."""
    try:
        extracted = await extract_json_from_llm(
            EXTRACTION_PROMPT,
            transcript_text(state.get("messages", [])),
            model=settings.EXTRACTION_MODEL,
        )
        state["intake_payload"] = IntakePayload.from_extraction(extracted).model_dump()
    except Exception as e:
        logger.exception("Intake extraction failed for conversation %s", state.get("conversation_id"))
        state["intake_payload"] = None
        state["error"] = str(e)

    return state


def route_after_extract(state: IntakeState) -> str:
    if state.get("error") or state.get("intake_payload") is None:
        return "report_failure_node"
    return "submit_intake_node"


# ============== NODE 4: Submit to intake webhook ==============

async def submit_intake_node(state: IntakeState) -> IntakeState:
    try:
        result = await submit_intake(IntakePayload(**state["intake_payload"]))
    except Exception as e:
        logger.exception("Intake submission failed for conversation %s", state.get("conversation_id"))
        state["error"] = str(e)
        state["submitted"] = False
        state["response"] = SUBMISSION_FAILED_MESSAGE
        return state

    reference = pick_reference(result)
    logger.info("Enquiry submitted for conversation %s, reference %s", state.get("conversation_id"), reference)

    state["reference_number"] = reference
    state["submitted"] = True
    state["response"] = submitted_message(reference)
    return state


# ============== NODE 5: Report failure ==============

async def report_failure_node(state: IntakeState) -> IntakeState:
    state["submitted"] = False
    state["response"] = SUBMISSION_FAILED_MESSAGE
    return state
