# app/services/request_service.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app import config
from app.errors import ConflictError, NotFoundError, PersistenceError, TransitionError, ValidationError
from app.models.request import ACTIVE_REQUEST_INDEX, CareRequest, RequestStatus
from app.models.request_models import RequestCreate
from app.services.dispatch import DispatchChannel
from app.services.duplicate_guard import has_active_duplicate
from app.services.priority_service import PriorityClassifier, assess

logger = logging.getLogger(__name__)

# ------------------------------- Transition table -------------------------------
TRANSITIONS = {
    RequestStatus.PENDING: {RequestStatus.ASSIGNED, RequestStatus.CANCELLED},
    RequestStatus.ASSIGNED: {RequestStatus.IN_PROGRESS, RequestStatus.CANCELLED},
    RequestStatus.IN_PROGRESS: {RequestStatus.COMPLETED, RequestStatus.CANCELLED},
    RequestStatus.COMPLETED: set(),
    RequestStatus.CANCELLED: set(),
}

# assign() may also hand an already-assigned request to another responder
ASSIGNABLE_STATUSES = {RequestStatus.PENDING, RequestStatus.ASSIGNED}

_ACTIVE_INDEX_COLUMNS = "care_requests.full_name, care_requests.contact_number, care_requests.room_number"

REQUIRED_FIELDS = (
    ("full_name", "Full name is required"),
    ("contact_number", "Contact number is required"),
    ("room_number", "Room number is required"),
    ("disease", "Disease is required"),
)


def is_transition_allowed(current, new) -> bool:
    return RequestStatus(new) in TRANSITIONS[RequestStatus(current)]


def _utcnow():
    return datetime.now(timezone.utc)


def _parse_status(value) -> RequestStatus:
    try:
        return RequestStatus(value)
    except ValueError:
        raise ValidationError("Invalid status", detail=f"unknown status {value!r}")


def _override_enabled(allow_override: Optional[bool]) -> bool:
    return config.ALLOW_STATUS_OVERRIDE if allow_override is None else allow_override


def _is_active_duplicate(error: IntegrityError) -> bool:
    """True only when the active-request unique index rejected the write."""
    diag = getattr(error.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint == ACTIVE_REQUEST_INDEX
    # SQLite names the indexed columns rather than the index
    message = str(error.orig)
    return ACTIVE_REQUEST_INDEX in message or _ACTIVE_INDEX_COLUMNS in message


def _commit(db: Session, record: CareRequest, action: str):
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if not _is_active_duplicate(e):
            logger.exception(f"❌ Integrity error during {action}")
            raise PersistenceError(detail=str(e.orig))
        logger.warning(f"⚠️ Active-request constraint rejected {action}: {e.orig}")
        raise ConflictError(detail=str(e.orig))
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"❌ Database error during {action}")
        raise PersistenceError(detail=str(e))
    db.refresh(record)


def _get_or_404(db: Session, request_id: str) -> CareRequest:
    try:
        record = db.query(CareRequest).filter(CareRequest.id == request_id).first()
    except SQLAlchemyError as e:
        logger.exception(f"❌ Database error loading request {request_id}")
        raise PersistenceError(detail=str(e))
    if record is None:
        raise NotFoundError(detail=f"request {request_id} does not exist")
    return record


# ------------------------------- Create -------------------------------
def _ensure_no_duplicate(db: Session, full_name: str, contact_number: str, room_number: str):
    try:
        duplicate = has_active_duplicate(db, full_name, contact_number, room_number)
    except SQLAlchemyError as e:
        logger.exception("❌ Database error during duplicate check")
        raise PersistenceError(detail=str(e))
    if duplicate:
        logger.info(f"Duplicate active request blocked for {full_name} / room {room_number}")
        raise ConflictError()


def _insert(db: Session, record: CareRequest) -> CareRequest:
    db.add(record)
    _commit(db, record, "request creation")
    return record


async def create_request(
    db: Session,
    channel: DispatchChannel,
    payload: RequestCreate,
    requester_id: Optional[str] = None,
    classifier: Optional[PriorityClassifier] = None,
) -> CareRequest:
    values = {
        name: value.strip() if isinstance(value, str) else value
        for name, value in payload.model_dump().items()
    }
    for field, message in REQUIRED_FIELDS:
        if not values.get(field):
            raise ValidationError(message)

    full_name, contact_number, room_number = values["full_name"], values["contact_number"], values["room_number"]
    disease = values["disease"]

    # Blocking session work runs off the event loop shared with the live feed
    await run_in_threadpool(_ensure_no_duplicate, db, full_name, contact_number, room_number)

    assessment = await assess(disease, classifier=classifier)
    logger.info(f"Triage for '{disease}': priority={assessment.priority.value}")

    record = CareRequest(
        requester_id=requester_id,
        full_name=full_name,
        contact_number=contact_number,
        room_number=room_number,
        bed_number=values.get("bed_number") or None,
        disease=disease,
        description=assessment.description,
        priority=assessment.priority.value,
        status=RequestStatus.PENDING.value,
    )
    await run_in_threadpool(_insert, db, record)
    logger.info(f"🆕 Request {record.id} created ({record.priority}) for room {record.room_number}")

    await channel.notify_created(record)
    return record


# ------------------------------- Queries -------------------------------
def list_requests(db: Session, status: Optional[str] = None) -> List[CareRequest]:
    query = db.query(CareRequest)
    if status:
        query = query.filter(CareRequest.status == _parse_status(status).value)
    try:
        return query.order_by(CareRequest.created_at.desc()).all()
    except SQLAlchemyError as e:
        logger.exception("❌ Database error listing requests")
        raise PersistenceError(detail=str(e))


def get_request(db: Session, request_id: str) -> CareRequest:
    return _get_or_404(db, request_id)


# ------------------------------- Transitions -------------------------------
def _apply_assignment(db: Session, request_id: str, responder_id: str, allow_override: Optional[bool]) -> CareRequest:
    record = _get_or_404(db, request_id)
    current = RequestStatus(record.status)
    if current not in ASSIGNABLE_STATUSES and not _override_enabled(allow_override):
        raise TransitionError(current.value, RequestStatus.ASSIGNED.value)

    record.assigned_responder_id = responder_id
    record.status = RequestStatus.ASSIGNED.value
    record.assigned_at = _utcnow()
    record.completed_at = None
    _commit(db, record, f"assignment of {request_id}")
    logger.info(f"👩‍⚕️ Request {record.id} assigned to {responder_id}")
    return record


async def assign_request(
    db: Session,
    channel: DispatchChannel,
    request_id: str,
    responder_id: str,
    allow_override: Optional[bool] = None,
) -> CareRequest:
    responder_id = (responder_id or "").strip()
    if not responder_id:
        raise ValidationError("Responder id is required")

    record = await run_in_threadpool(_apply_assignment, db, request_id, responder_id, allow_override)
    await channel.notify_status_updated(record)
    return record


def _apply_status(db: Session, request_id: str, target: RequestStatus, allow_override: Optional[bool]) -> CareRequest:
    record = _get_or_404(db, request_id)
    current = RequestStatus(record.status)

    if target not in TRANSITIONS[current]:
        if not _override_enabled(allow_override):
            raise TransitionError(current.value, target.value)
        logger.warning(f"⚠️ Status override on {record.id}: {current.value} -> {target.value}")

    record.status = target.value
    record.completed_at = _utcnow() if target == RequestStatus.COMPLETED else None
    _commit(db, record, f"status update of {request_id}")
    logger.info(f"🔄 Request {record.id}: {current.value} -> {target.value}")
    return record


async def update_status(
    db: Session,
    channel: DispatchChannel,
    request_id: str,
    new_status: str,
    allow_override: Optional[bool] = None,
) -> CareRequest:
    target = _parse_status(new_status)
    record = await run_in_threadpool(_apply_status, db, request_id, target, allow_override)

    await channel.notify_status_updated(record)
    if target == RequestStatus.COMPLETED:
        await channel.notify_completed(record)
    return record
