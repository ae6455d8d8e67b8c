import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession

from portflow.core.config import settings
from portflow.models.enums import BookingStatus, ServiceType, Direction
from portflow.schemas.booking import Booking, ChargeItem, TimelineEntry
from portflow.services.booking_store import BookingStore, generate_booking_id, generate_reference
from portflow.services.llm import extract_json_from_document

logger = logging.getLogger(__name__)


SCAN_INSTRUCTION = (
    "Extract freight data into JSON schema including direction, shipper, consignee, route, and charges."
)

SCAN_SCHEMA = {
    "type": "object",
    "properties": {
        "direction": {"type": "string"},
        "shipment_type": {"type": "string"},
        "shipper_name": {"type": "string"},
        "shipper_address": {"type": "string"},
        "consignee_name": {"type": "string"},
        "consignee_address": {"type": "string"},
        "origin_port": {"type": "string"},
        "destination_port": {"type": "string"},
        "gross_weight": {"type": "number"},
        "commodity": {"type": "string"},
        "freight_charges": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "charge_code": {"type": "string"},
                    "charge_description": {"type": "string"},
                    "quantity": {"type": "number"},
                    "unit_price": {"type": "number"},
                    "currency": {"type": "string"},
                },
            },
        },
    },
}

# In-flight scans. A counter rather than a flag so overlapping uploads
# don't clear each other's indicator.
_scans_in_flight = 0


class ScanRejectedError(ValueError):
    """The upload is not something we scan (empty, or not an image/PDF)."""


class ScanFailedError(RuntimeError):
    pass


def scans_in_flight() -> int:
    return _scans_in_flight


def is_scannable(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.startswith("image/") or content_type == "application/pdf"


def _to_number(value, default: float | None) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _plain_number(value: float) -> int | float:
    # 2500.0 -> 2500, 12.5 -> 12.5
    return int(value) if float(value).is_integer() else value


def _format_number(value: float) -> str:
    return str(_plain_number(value))


def _text(value, default: str | None = None) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _service_type(shipment_type) -> ServiceType:
    if isinstance(shipment_type, str) and "air" in shipment_type.lower():
        return ServiceType.AIR
    return ServiceType.SEA


def _direction(value) -> Direction | None:
    if not isinstance(value, str):
        return None
    for direction in Direction:
        if value.strip().lower() == direction.value.lower():
            return direction
    return None


def _charge_from_extraction(raw) -> ChargeItem:
    if not isinstance(raw, dict):
        raw = {}
    qty = _plain_number(_to_number(raw.get("quantity"), 1) or 1)
    unit_price = _to_number(raw.get("unit_price"), 0)
    return ChargeItem(
        code=_text(raw.get("charge_code"), "MISC"),
        description=_text(raw.get("charge_description"), "Miscellaneous"),
        qty=qty,
        uom="UNT",
        unit_price=unit_price,
        currency=_text(raw.get("currency"), "USD"),
        # Never trust a total coming back from the model
        total=qty * unit_price,
    )


def booking_from_extraction(data: dict, now: datetime | None = None) -> Booking:
    """
    Map an extraction reply onto a new booking.
    Missing fields get placeholders; nothing here raises on a sparse or oddly-typed reply.
    """
    now = now or datetime.now(timezone.utc)
    if not isinstance(data, dict):
        data = {}

    gross_weight = _to_number(data.get("gross_weight"), None)
    raw_charges = data.get("freight_charges")
    if not isinstance(raw_charges, list):
        raw_charges = []

    return Booking(
        id=generate_booking_id(),
        reference_number=generate_reference(now),
        date_submitted=now,
        customer_name=_text(data.get("shipper_name"), "New Customer"),
        shipper_address=_text(data.get("shipper_address")),
        contact_person="Vision Extract",
        customer_email="pending@extracted.com",
        customer_phone="N/A",
        origin=_text(data.get("origin_port"), "TBD"),
        destination=_text(data.get("destination_port"), "TBD"),
        service_type=_service_type(data.get("shipment_type")),
        direction=_direction(data.get("direction")),
        weight=f"{_format_number(gross_weight or 0)} kg",
        gross_weight=gross_weight,
        commodity=_text(data.get("commodity"), "General Cargo"),
        consignee=_text(data.get("consignee_name"), "TBD"),
        consignee_address=_text(data.get("consignee_address")),
        is_urgent=False,
        status=BookingStatus.NEW,
        dimensions="Extracted",
        charges=[_charge_from_extraction(c) for c in raw_charges],
        timeline=[TimelineEntry(status=BookingStatus.NEW, date=now, note="AI Extraction complete.")],
    )


class ScanService:
    """
    Turns one uploaded shipping document into one new booking.
    Either the booking is stored in full or nothing changes.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = BookingStore(db)

    async def scan_document(
        self,
        data: bytes,
        content_type: str | None,
        filename: str | None = None
    ) -> Booking:
        global _scans_in_flight

        if not data:
            raise ScanRejectedError("No file selected")
        if not is_scannable(content_type):
            raise ScanRejectedError(f"Unsupported file type: {content_type}")

        _scans_in_flight += 1
        try:
            extracted = await extract_json_from_document(
                instruction=SCAN_INSTRUCTION,
                schema=SCAN_SCHEMA,
                data=data,
                mime_type=content_type,
                filename=filename or "document",
                model=settings.SCAN_MODEL,
            )
            booking = booking_from_extraction(extracted)
            booking = await self.store.add_booking(booking)
        except Exception as e:
            logger.exception("Document scan failed for %s", filename)
            await self.db.rollback()
            raise ScanFailedError("AI Scan failed.") from e
        finally:
            _scans_in_flight -= 1

        logger.info("Scanned %s into booking %s", filename, booking.reference_number)
        return booking
