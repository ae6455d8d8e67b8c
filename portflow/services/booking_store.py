import json
import asyncio
import logging
import secrets
from datetime import datetime, timezone
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from portflow.core.config import settings
from portflow.models.enums import BookingStatus, ServiceType, Direction
from portflow.schemas.booking import Booking, ChargeItem, TimelineEntry
from portflow.services.local_storage import LocalStorage

logger = logging.getLogger(__name__)

_booking_list = TypeAdapter(list[Booking])

# Serializes load-modify-save on the bookings slot within this process
_write_lock = asyncio.Lock()


class BookingNotFoundError(ValueError):
    pass


def seed_bookings() -> list[Booking]:
    """Bookings shown on first load, before anything has been persisted."""
    return [
        Booking(
            id="1",
            reference_number="QRL-2024-0001",
            customer_ref="PO-99212",
            date_submitted=datetime(2024, 3, 20, 10, 30, tzinfo=timezone.utc),
            customer_name="TechCorp Solutions",
            contact_person="Sarah Jenkins",
            customer_email="shipping@techcorp.com",
            customer_phone="+1 (555) 123-4567",
            origin="Singapore (SGSIN)",
            destination="Hamburg (DEHAM)",
            service_type=ServiceType.SEA,
            direction=Direction.EXPORT,
            incoterm="FOB",
            vessel_name="MAERSK SEOUL",
            voyage_number="412W",
            is_urgent=True,
            status=BookingStatus.NEW,
            weight="2500 kg",
            dimensions="2x 20GP",
            commodity="Electronics - High Density Servers",
            consignee="EuroDistribution GmbH",
            charges=[
                ChargeItem(code="OF", description="OCEAN FREIGHT", qty=2, uom="CTR",
                           unit_price=1850.00, currency="USD", total=3700.00),
                ChargeItem(code="ADM", description="ADMIN FEES", qty=1, uom="SET",
                           unit_price=50.00, currency="SGD", total=50.00),
            ],
            timeline=[
                TimelineEntry(
                    status=BookingStatus.NEW,
                    date=datetime(2024, 3, 20, 10, 30, tzinfo=timezone.utc),
                    note="Booking request received via portal.",
                )
            ],
        )
    ]


def generate_booking_id() -> str:
    return secrets.token_hex(6)


def generate_reference(now: datetime | None = None) -> str:
    """
    Human-facing reference like QRL-2025-4821.
    Best-effort random; nothing checks it against existing references.
    """
    year = (now or datetime.now(timezone.utc)).year
    return f"{settings.REFERENCE_PREFIX}-{year}-{1000 + secrets.randbelow(9000)}"


def serialize_bookings(bookings: list[Booking]) -> str:
    return json.dumps(
        [b.model_dump(mode="json", by_alias=True, exclude_none=True) for b in bookings]
    )


class BookingStore:
    """
    Ordered list of bookings persisted as one JSON document in the bookings slot.
    Every mutation rewrites the whole list.
    """

    def __init__(self, db: AsyncSession, slot: str = settings.BOOKINGS_SLOT):
        self.storage = LocalStorage(db)
        self.slot = slot

    async def load(self) -> list[Booking]:
        raw = await self.storage.get_item(self.slot)
        if raw is None:
            return seed_bookings()
        try:
            return _booking_list.validate_python(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Stored bookings are unreadable, falling back to seed data: %s", e)
            return seed_bookings()

    async def save(self, bookings: list[Booking]) -> None:
        await self.storage.set_item(self.slot, serialize_bookings(bookings))

    async def list_bookings(self, search: str = "") -> list[Booking]:
        """All bookings whose customer name OR reference number contains search, ignoring case."""
        bookings = await self.load()
        term = search.lower()
        return [
            b for b in bookings
            if term in b.customer_name.lower() or term in b.reference_number.lower()
        ]

    async def get_booking(self, booking_id: str) -> Booking:
        for booking in await self.load():
            if booking.id == booking_id:
                return booking
        raise BookingNotFoundError(f"Booking not found: {booking_id}")

    async def add_booking(self, booking: Booking) -> Booking:
        """Prepend a booking (most recent first), re-rolling its id if it is already taken."""
        async with _write_lock:
            bookings = await self.load()
            taken = {b.id for b in bookings}

            while booking.id in taken:
                booking = booking.model_copy(update={"id": generate_booking_id()})

            await self.save([booking] + bookings)

        logger.info("Added booking %s (%s)", booking.reference_number, booking.id)
        return booking

    async def update_booking(self, booking_id: str, **changes) -> Booking:
        async with _write_lock:
            bookings = await self.load()

            for index, booking in enumerate(bookings):
                if booking.id == booking_id:
                    updated = booking.model_copy(update=changes)
                    bookings[index] = updated
                    await self.save(bookings)
                    return updated

        raise BookingNotFoundError(f"Booking not found: {booking_id}")

    async def finalize_booking(self, booking_id: str) -> Booking:
        """Mark a booking as Booked. Only the status changes; the timeline is left as is."""
        booking = await self.update_booking(booking_id, status=BookingStatus.BOOKED)
        logger.info("Finalized booking %s", booking.reference_number)
        return booking
