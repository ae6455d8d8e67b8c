import asyncio

import pytest

import portflow.services.booking_store as booking_store
import portflow.services.scan_service as scan_service
from portflow.models.enums import BookingStatus, ServiceType, Direction
from portflow.services.booking_store import BookingStore
from portflow.services.scan_service import (
    ScanService,
    ScanRejectedError,
    ScanFailedError,
    booking_from_extraction,
)


def test_charge_total_is_recomputed():
    booking = booking_from_extraction({
        "freight_charges": [
            {"charge_code": "OF", "quantity": 2, "unit_price": 100, "currency": "USD", "total": 999},
        ]
    })

    charge = booking.charges[0]
    assert charge.code == "OF"
    assert charge.total == 200
    assert charge.uom == "UNT"


def test_empty_extraction_gets_placeholders():
    booking = booking_from_extraction({})

    assert booking.customer_name == "New Customer"
    assert booking.origin == "TBD"
    assert booking.destination == "TBD"
    assert booking.consignee == "TBD"
    assert booking.commodity == "General Cargo"
    assert booking.weight == "0 kg"
    assert booking.service_type == ServiceType.SEA
    assert booking.direction is None
    assert booking.charges == []
    assert booking.status == BookingStatus.NEW
    assert [t.note for t in booking.timeline] == ["AI Extraction complete."]


def test_sparse_charge_line_defaults():
    booking = booking_from_extraction({"freight_charges": [{}, "junk"]})

    for charge in booking.charges:
        assert (charge.code, charge.description, charge.qty, charge.unit_price, charge.currency, charge.total) == \
            ("MISC", "Miscellaneous", 1, 0, "USD", 0)


@pytest.mark.parametrize("shipment_type, expected", [
    ("Air Freight", ServiceType.AIR),
    ("AIR", ServiceType.AIR),
    ("Sea FCL", ServiceType.SEA),
    ("Road", ServiceType.SEA),
    (None, ServiceType.SEA),
])
def test_service_type_is_air_or_sea(shipment_type, expected):
    assert booking_from_extraction({"shipment_type": shipment_type}).service_type == expected


def test_string_numbers_and_direction_are_coerced():
    booking = booking_from_extraction({
        "direction": "import",
        "gross_weight": "1200",
        "freight_charges": [{"quantity": "3", "unit_price": "12.5"}],
    })

    assert booking.direction == Direction.IMPORT
    assert booking.weight == "1200 kg"
    assert booking.gross_weight == 1200
    assert booking.charges[0].total == 37.5


async def test_scan_prepends_new_booking(db, monkeypatch):
    calls = []

    async def fake_extract(**kwargs):
        calls.append(kwargs)
        return {"shipper_name": "Acme Exports", "shipment_type": "Air"}

    monkeypatch.setattr(scan_service, "extract_json_from_document", fake_extract)

    booking = await ScanService(db).scan_document(b"%PDF-1.7", "application/pdf", "bl.pdf")

    bookings = await BookingStore(db).load()
    assert bookings[0].id == booking.id
    assert booking.service_type == ServiceType.AIR
    assert calls[0]["mime_type"] == "application/pdf"
    assert calls[0]["data"] == b"%PDF-1.7"
    assert scan_service.scans_in_flight() == 0


async def test_failed_scan_leaves_store_unchanged(db, monkeypatch):
    async def failing_extract(**kwargs):
        raise RuntimeError("model unavailable")

    monkeypatch.setattr(scan_service, "extract_json_from_document", failing_extract)
    store = BookingStore(db)
    before = await store.load()

    with pytest.raises(ScanFailedError):
        await ScanService(db).scan_document(b"\x89PNG", "image/png", "invoice.png")

    assert await store.load() == before
    assert scan_service.scans_in_flight() == 0


@pytest.mark.parametrize("data, content_type", [
    (b"", "image/png"),
    (b"hello", "text/plain"),
    (b"hello", None),
])
async def test_unscannable_uploads_are_rejected_without_a_call(db, monkeypatch, data, content_type):
    async def unexpected(**kwargs):
        raise AssertionError("collaborator should not be called")

    monkeypatch.setattr(scan_service, "extract_json_from_document", unexpected)

    with pytest.raises(ScanRejectedError):
        await ScanService(db).scan_document(data, content_type, "file")


def _gated_extractor(gates, shippers):
    async def extract(**kwargs):
        await gates[kwargs["filename"]].wait()
        return {"shipper_name": shippers[kwargs["filename"]]}
    return extract


async def test_overlapping_scans_keep_indicator_until_last_finishes(session_factory, monkeypatch):
    gates = {"a.pdf": asyncio.Event(), "b.pdf": asyncio.Event()}
    monkeypatch.setattr(scan_service, "extract_json_from_document",
                        _gated_extractor(gates, {"a.pdf": "A Corp", "b.pdf": "B Corp"}))
    monkeypatch.setattr(booking_store, "_write_lock", asyncio.Lock())

    async with session_factory() as first_db, session_factory() as second_db:
        first = asyncio.create_task(ScanService(first_db).scan_document(b"%PDF", "application/pdf", "a.pdf"))
        second = asyncio.create_task(ScanService(second_db).scan_document(b"%PDF", "application/pdf", "b.pdf"))
        while scan_service.scans_in_flight() < 2:
            await asyncio.sleep(0)

        gates["a.pdf"].set()
        await first
        assert scan_service.scans_in_flight() == 1

        gates["b.pdf"].set()
        await second
        assert scan_service.scans_in_flight() == 0

    async with session_factory() as db:
        stored = [b.customer_name for b in await BookingStore(db).load()]
    assert stored == ["B Corp", "A Corp", "TechCorp Solutions"]


@pytest.mark.parametrize("seeded", [False, True])
async def test_simultaneous_scans_both_stored(session_factory, monkeypatch, seeded):
    gates = {"a.pdf": asyncio.Event(), "b.pdf": asyncio.Event()}
    monkeypatch.setattr(scan_service, "extract_json_from_document",
                        _gated_extractor(gates, {"a.pdf": "A Corp", "b.pdf": "B Corp"}))
    monkeypatch.setattr(booking_store, "_write_lock", asyncio.Lock())

    if seeded:
        async with session_factory() as db:
            store = BookingStore(db)
            await store.save(await store.load())

    async with session_factory() as first_db, session_factory() as second_db:
        scans = asyncio.gather(
            ScanService(first_db).scan_document(b"%PDF", "application/pdf", "a.pdf"),
            ScanService(second_db).scan_document(b"%PDF", "application/pdf", "b.pdf"),
        )
        while scan_service.scans_in_flight() < 2:
            await asyncio.sleep(0)
        gates["a.pdf"].set()
        gates["b.pdf"].set()
        results = await scans

    async with session_factory() as db:
        stored = await BookingStore(db).load()
    assert {b.customer_name for b in stored} == {"A Corp", "B Corp", "TechCorp Solutions"}
    assert {r.id for r in results} <= {b.id for b in stored}


def test_whole_quantities_stay_integers():
    booking = booking_from_extraction({
        "freight_charges": [{"quantity": "3", "unit_price": 10}, {"quantity": 1.5, "unit_price": 2}],
    })

    dumped = [c.model_dump(mode="json", by_alias=True) for c in booking.charges]
    assert dumped[0]["qty"] == 3 and isinstance(dumped[0]["qty"], int)
    assert dumped[1]["qty"] == 1.5
