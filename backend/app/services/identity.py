# app/services/identity.py
"""
Thin seam to the session/identity layer.

Credential issuance and session validation live outside this service. An
upstream gateway authenticates the caller and forwards who they are in the
``X-User-Id`` / ``X-User-Role`` headers; WebSocket clients may pass the role
as a ``role`` query parameter instead.
"""
import enum
from dataclasses import dataclass
from typing import Optional

from fastapi import Request, WebSocket

USER_ID_HEADER = "x-user-id"
USER_ROLE_HEADER = "x-user-role"


class Role(str, enum.Enum):
    REQUESTER = "requester"
    RESPONDER = "responder"
    ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    user_id: Optional[str]
    role: Role


def parse_role(value: Optional[str], default: Optional[Role] = None) -> Optional[Role]:
    if not value:
        return default
    try:
        return Role(value.strip().lower())
    except ValueError:
        return None


def get_identity(request: Request) -> Identity:
    user_id = (request.headers.get(USER_ID_HEADER) or "").strip() or None
    role = parse_role(request.headers.get(USER_ROLE_HEADER), default=Role.REQUESTER) or Role.REQUESTER
    return Identity(user_id=user_id, role=role)


def resolve_connection_role(websocket: WebSocket) -> Optional[Role]:
    """Role attached to a live connection at handshake; None if unknown."""
    raw = websocket.query_params.get("role") or websocket.headers.get(USER_ROLE_HEADER)
    return parse_role(raw)
