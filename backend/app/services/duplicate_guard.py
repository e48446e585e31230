# app/services/duplicate_guard.py
from sqlalchemy.orm import Session

from app.models.request import ACTIVE_STATUSES, CareRequest


def find_active_duplicate(db: Session, full_name: str, contact_number: str, room_number: str):
    return (
        db.query(CareRequest)
        .filter(
            CareRequest.full_name == full_name,
            CareRequest.contact_number == contact_number,
            CareRequest.room_number == room_number,
            CareRequest.status.in_([s.value for s in ACTIVE_STATUSES]),
        )
        .first()
    )


def has_active_duplicate(db: Session, full_name: str, contact_number: str, room_number: str) -> bool:
    """
    True while an equivalent request is pending, assigned or in progress.

    This read is not atomic with the insert that follows it; the partial
    unique index on ``care_requests`` catches concurrent submissions.
    """
    return find_active_duplicate(db, full_name, contact_number, room_number) is not None
