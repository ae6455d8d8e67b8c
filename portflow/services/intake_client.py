import logging
import secrets
import requests
from fastapi.concurrency import run_in_threadpool

from portflow.core.config import settings
from portflow.schemas.intake import IntakePayload

logger = logging.getLogger(__name__)


class IntakeSubmissionError(RuntimeError):
    pass


def _post_enquiry(url: str, body: dict, timeout: float) -> dict:
    response = requests.post(
        url,
        json=body,
        headers={"Content-Type": "application/json"},
        timeout=timeout,
    )

    if not response.ok:
        # Body goes to the logs only
        logger.error("Intake webhook returned %s: %s", response.status_code, response.text)
        raise IntakeSubmissionError(f"Submission failed with status {response.status_code}")

    try:
        result = response.json()
    except ValueError:
        logger.info("Intake webhook returned a non-JSON body; no reference supplied")
        return {}

    return result if isinstance(result, dict) else {}


async def submit_intake(payload: IntakePayload) -> dict:
    """
    POST the enquiry to the intake webhook.

    Returns the decoded JSON object body, or {} for any other successful body.
    Raises IntakeSubmissionError on non-2xx, requests.RequestException on transport errors.
    """
    body = payload.model_dump()
    logger.info("Submitting enquiry for %s (%s -> %s)",
                body["company_name"] or body["customer_name"] or "unknown customer",
                body["origin_port"], body["destination_port"])

    return await run_in_threadpool(
        _post_enquiry, settings.INTAKE_WEBHOOK_URL, body, settings.INTAKE_TIMEOUT_SECONDS
    )


def generate_fallback_reference() -> str:
    return secrets.token_hex(3).upper()


def pick_reference(result: dict) -> str:
    """Reference from the webhook reply (quote_number, then id), else a local token."""
    reference = result.get("quote_number") or result.get("id")
    if reference:
        return str(reference)
    return generate_fallback_reference()
