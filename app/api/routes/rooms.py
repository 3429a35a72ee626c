from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.core.exceptions import ValidationError
from app.services.booking_service import get_room
from app.utils.availability import is_room_available

router = APIRouter(prefix="/api/rooms", tags=["Rooms"])


# =====================================================================
# ROOM AVAILABILITY
# =====================================================================
@router.get("/{room_id}/availability")
def room_availability(
    room_id: int,
    check_in: date = Query(alias="checkIn"),
    check_out: date = Query(alias="checkOut"),
    db: Session = Depends(get_db),
):
    if check_out <= check_in:
        raise ValidationError("checkOut must be after checkIn")

    room = get_room(db, room_id)

    return {
        "success": True,
        "roomId": room.id,
        "checkIn": check_in,
        "checkOut": check_out,
        "available": is_room_available(db, room.id, check_in, check_out),
    }
