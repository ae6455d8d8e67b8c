import json
import base64
import logging
from openai import AsyncOpenAI
from portflow.core.config import settings

logger = logging.getLogger(__name__)

# Initialize OpenAI client
client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)


def _parse_json_object(content: str | None) -> dict:
    """Parse a model reply as a JSON object, falling back to {} on anything else."""
    try:
        data = json.loads(content or "{}")
    except json.JSONDecodeError:
        logger.warning("LLM returned malformed JSON: %.200s", content)
        return {}
    if not isinstance(data, dict):
        logger.warning("LLM returned JSON %s instead of an object", type(data).__name__)
        return {}
    return data


async def call_llm_with_history(
    system_prompt: str,
    messages: list[dict],
    temperature: float = 0.7,
    model: str = settings.CHAT_MODEL
) -> str:
    """
    Call OpenAI API with full conversation history.

    Args:
        system_prompt: Instructions for the AI
        messages: List of {"role": "user"|"assistant", "content": "..."}
        temperature: Creativity level
        model: Which OpenAI model to use

    Returns:
        The AI's response as a string (empty if the model sent no text)
    """
    full_messages = [{"role": "system", "content": system_prompt}] + messages

    response = await client.chat.completions.create(
        model=model,
        messages=full_messages,
        temperature=temperature
    )

    return response.choices[0].message.content or ""


async def extract_json_from_llm(
    system_prompt: str,
    user_message: str,
    temperature: float = 0.0,
    model: str = settings.EXTRACTION_MODEL
) -> dict:
    """
    Call OpenAI API and parse the response as JSON.
    Used for structured extraction of the intake fields from a transcript.

    Args:
        system_prompt: Instructions that tell AI to respond in JSON
        user_message: The text to analyze
        temperature: Use 0 for deterministic extraction
        model: Which OpenAI model to use

    Returns:
        Parsed JSON as a dictionary, {} if the reply was not a JSON object
    """
    response = await client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message}
        ],
        temperature=temperature,
        response_format={"type": "json_object"}
    )

    return _parse_json_object(response.choices[0].message.content)


def _attachment_part(data: bytes, mime_type: str, filename: str) -> dict:
    encoded = base64.b64encode(data).decode("ascii")
    data_url = f"data:{mime_type};base64,{encoded}"
    if mime_type == "application/pdf":
        return {"type": "file", "file": {"filename": filename, "file_data": data_url}}
    return {"type": "image_url", "image_url": {"url": data_url}}


async def extract_json_from_document(
    instruction: str,
    schema: dict,
    data: bytes,
    mime_type: str,
    filename: str = "document",
    model: str = settings.SCAN_MODEL
) -> dict:
    """
    Send a document inline (base64) with an extraction instruction and
    a declared output schema, and parse the reply as JSON.

    Images go as image_url data URLs, PDFs as file parts.
    """
    response = await client.chat.completions.create(
        model=model,
        messages=[
            {
                "role": "user",
                "content": [
                    _attachment_part(data, mime_type, filename),
                    {"type": "text", "text": instruction},
                ],
            }
        ],
        temperature=0.0,
        response_format={
            "type": "json_schema",
            "json_schema": {"name": "freight_document", "schema": schema},
        }
    )

    return _parse_json_object(response.choices[0].message.content)
