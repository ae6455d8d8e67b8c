import logging
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from portflow.api.v1.session.router import require_session
from portflow.core.database import get_db
from portflow.schemas.booking import Booking, BookingListItem, ScanStatusResponse
from portflow.services.booking_export import export_booking
from portflow.services.booking_store import BookingStore, BookingNotFoundError
from portflow.services.scan_service import (
    ScanService,
    ScanRejectedError,
    ScanFailedError,
    scans_in_flight,
)

router = APIRouter(prefix="/bookings", tags=["Bookings"], dependencies=[Depends(require_session)])
logger = logging.getLogger(__name__)


# ==================== LIST ====================

@router.get("", response_model=list[BookingListItem])
async def list_bookings(search: str = "", db: AsyncSession = Depends(get_db)):
    """
    Ops Center table rows, most recent first.

    search matches customer name OR reference number, ignoring case.
    """
    bookings = await BookingStore(db).list_bookings(search)
    return [BookingListItem.from_booking(b) for b in bookings]


# ==================== SCAN ====================

@router.post("/scan", response_model=Booking, status_code=status.HTTP_201_CREATED)
async def scan_document(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a booking from a shipping document (image or PDF).

    The new booking is stored at the top of the list and returned so it can
    be opened straight away. On failure nothing is stored.
    """
    data = await file.read()
    try:
        return await ScanService(db).scan_document(
            data=data,
            content_type=file.content_type,
            filename=file.filename,
        )
    except ScanRejectedError as e:
        code = status.HTTP_400_BAD_REQUEST if not data else status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
        raise HTTPException(status_code=code, detail=str(e))
    except ScanFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e)
        )


@router.get("/scan/status", response_model=ScanStatusResponse)
async def scan_status():
    in_flight = scans_in_flight()
    return ScanStatusResponse(scanning=in_flight > 0, scans_in_flight=in_flight)


# ==================== DETAIL ====================

@router.get("/{booking_id}", response_model=Booking)
async def get_booking(booking_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return await BookingStore(db).get_booking(booking_id)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{booking_id}/export")
async def export_booking_json(booking_id: str, db: AsyncSession = Depends(get_db)):
    """Download the booking as <referenceNumber>.json."""
    try:
        booking = await BookingStore(db).get_booking(booking_id)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    filename, content = export_booking(booking)
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/{booking_id}/finalize", response_model=Booking)
async def finalize_booking(booking_id: str, db: AsyncSession = Depends(get_db)):
    """Finalize the jobsheet: status becomes Booked."""
    try:
        return await BookingStore(db).finalize_booking(booking_id)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
