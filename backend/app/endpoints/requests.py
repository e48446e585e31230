# app/endpoints/requests.py
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.request_models import AssignRequest, RequestCreate, RequestOut, StatusUpdate
from app.services import request_service
from app.services.dispatch import DispatchChannel
from app.services.identity import Identity, get_identity

router = APIRouter(prefix="/api/requests", tags=["Requests"])


def get_dispatch(request: Request) -> DispatchChannel:
    return request.app.state.dispatch


def _envelope(record) -> dict:
    return {"success": True, "data": RequestOut.model_validate(record).model_dump(by_alias=True, mode="json")}


@router.post("", status_code=201)
async def create_request(
    payload: RequestCreate,
    db: Session = Depends(get_db),
    channel: DispatchChannel = Depends(get_dispatch),
    identity: Identity = Depends(get_identity),
):
    record = await request_service.create_request(db, channel, payload, requester_id=identity.user_id)
    return _envelope(record)


@router.get("")
def list_requests(status: Optional[str] = None, db: Session = Depends(get_db)):
    records = request_service.list_requests(db, status=status)
    return {
        "success": True,
        "data": [RequestOut.model_validate(r).model_dump(by_alias=True, mode="json") for r in records],
    }


# Declared before "/{request_id}" so it is not captured as an id
@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.get("/{request_id}")
def get_request(request_id: str, db: Session = Depends(get_db)):
    return _envelope(request_service.get_request(db, request_id))


@router.put("/{request_id}/status")
async def update_request_status(
    request_id: str,
    body: StatusUpdate,
    db: Session = Depends(get_db),
    channel: DispatchChannel = Depends(get_dispatch),
):
    record = await request_service.update_status(db, channel, request_id, body.status)
    return _envelope(record)


@router.put("/{request_id}/assign")
async def assign_request(
    request_id: str,
    body: AssignRequest,
    db: Session = Depends(get_db),
    channel: DispatchChannel = Depends(get_dispatch),
):
    record = await request_service.assign_request(db, channel, request_id, body.responder_id)
    return _envelope(record)
