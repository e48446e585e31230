# app/models/request.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime, Index, text

from app.database import Base


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = (RequestStatus.PENDING, RequestStatus.ASSIGNED, RequestStatus.IN_PROGRESS)
TERMINAL_STATUSES = (RequestStatus.COMPLETED, RequestStatus.CANCELLED)

# Used by the partial unique index below; must stay in sync with ACTIVE_STATUSES
_ACTIVE_STATUS_SQL = "status IN ('pending', 'assigned', 'in_progress')"
ACTIVE_REQUEST_INDEX = "uq_care_requests_active"


def _utcnow():
    return datetime.now(timezone.utc)


def _new_id():
    return str(uuid.uuid4())


class CareRequest(Base):
    __tablename__ = "care_requests"

    id = Column(String(36), primary_key=True, default=_new_id)
    requester_id = Column(String(64), nullable=True)  # absent for front-desk submissions
    full_name = Column(String(255), nullable=False)
    contact_number = Column(String(32), nullable=False)
    room_number = Column(String(32), nullable=False)
    bed_number = Column(String(32), nullable=True)
    disease = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    priority = Column(String(10), nullable=False, default=Priority.MEDIUM.value)
    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value)
    assigned_responder_id = Column(String(64), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_care_requests_status_priority", "status", "priority"),
        Index("ix_care_requests_requester", "requester_id"),
        Index("ix_care_requests_responder", "assigned_responder_id"),
        Index("ix_care_requests_created_at", "created_at"),
        # At most one active request per (name, contact, room)
        Index(
            ACTIVE_REQUEST_INDEX,
            "full_name",
            "contact_number",
            "room_number",
            unique=True,
            postgresql_where=text(_ACTIVE_STATUS_SQL),
            sqlite_where=text(_ACTIVE_STATUS_SQL),
        ),
    )

    def __repr__(self):
        return f"<CareRequest {self.id} {self.full_name!r} room={self.room_number} {self.status}/{self.priority}>"
