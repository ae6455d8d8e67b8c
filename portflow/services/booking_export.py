import json

from portflow.schemas.booking import Booking


def export_filename(booking: Booking) -> str:
    return f"{booking.reference_number}.json"


def export_booking(booking: Booking) -> tuple[str, bytes]:
    """Render a booking as a pretty-printed JSON document named after its reference number."""
    document = json.dumps(
        booking.model_dump(mode="json", by_alias=True, exclude_none=True),
        indent=2,
        ensure_ascii=False,
    )
    return export_filename(booking), document.encode("utf-8")
