from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from datetime import datetime

from portflow.models.enums import BookingStatus, ServiceType, Direction


class CamelModel(BaseModel):
    """Serialized with camelCase keys, the shape stored in the bookings slot and exported."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ============== Booking Parts ==============

class ChargeItem(CamelModel):
    """One billable line. total is expected to equal qty * unit_price."""
    code: str
    description: str
    type: str | None = None
    qty: int | float
    uom: str
    unit_price: float
    currency: str
    total: float


class TimelineEntry(CamelModel):
    status: BookingStatus
    date: datetime
    note: str


class InsuranceAmount(CamelModel):
    currency: str
    amount: float


# ============== Booking ==============

class Booking(CamelModel):
    """Full jobsheet record for one shipment."""
    id: str
    reference_number: str
    customer_ref: str | None = None
    date_submitted: datetime
    customer_name: str
    contact_person: str
    customer_email: str
    customer_phone: str

    # Routing & transport
    origin: str
    destination: str
    service_type: ServiceType
    direction: Direction | None = None
    shipment_mode: str | None = None
    incoterm: str | None = None
    vessel_name: str | None = None
    voyage_number: str | None = None
    mawb: str | None = None
    awb: str | None = None
    hawb: str | None = None
    sub_bl_no: str | None = None
    booking_number: str | None = None
    quotation_number: str | None = None

    # Partners
    shipper_name: str | None = None
    shipper_address: str | None = None
    consignee: str
    consignee_address: str | None = None
    notify_party: str | None = None
    overseas_agent: str | None = None
    co_loader: str | None = None
    appointed_agent: str | None = None
    warehouse: str | None = None
    bill_to: str | None = None
    cargo_handling: str | None = None
    customs_broker: str | None = None
    forwarding_agent: str | None = None

    # Cargo
    weight: str
    gross_weight: float | None = None
    chargeable_weight: float | None = None
    volumetric_weight: float | None = None
    dimensions: str
    commodity: str
    hs_code: str | None = None
    pieces: int | None = None
    volume: float | None = None
    package_type: str | None = None

    # Dates
    preferred_shipping_date: str | None = None
    required_delivery_date: str | None = None
    expiration_date: str | None = None
    job_awb_date: str | None = None
    is_urgent: bool = False

    # Financials
    status: BookingStatus = BookingStatus.NEW
    charges: list[ChargeItem] | None = None
    currency_buy: str | None = None
    buy_rate: float | None = None
    currency_sell: str | None = None
    sell_rate: float | None = None
    insurance_amount: InsuranceAmount | None = None

    # Internal
    notes: str | None = None
    special_instructions: str | None = None
    timeline: list[TimelineEntry] = Field(default_factory=list)


def _place_name(location: str) -> str:
    # "Singapore (SGSIN)" -> "Singapore"
    return location.split(" (")[0]


class BookingListItem(CamelModel):
    """One row of the Ops Center bookings table."""
    id: str
    date_submitted: datetime
    reference_number: str
    customer_name: str
    service_type: ServiceType
    origin_name: str
    destination_name: str
    status: BookingStatus

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingListItem":
        return cls(
            id=booking.id,
            date_submitted=booking.date_submitted,
            reference_number=booking.reference_number,
            customer_name=booking.customer_name,
            service_type=booking.service_type,
            origin_name=_place_name(booking.origin),
            destination_name=_place_name(booking.destination),
            status=booking.status,
        )


class ScanStatusResponse(BaseModel):
    scanning: bool
    scans_in_flight: int
