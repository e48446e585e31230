# app/services/dispatch.py
import enum
import logging
from typing import Any, Dict, Protocol, Set, Union

from pydantic import BaseModel

from app.models.request import CareRequest
from app.models.request_models import NewRequestEvent, RequestOut
from app.services.identity import Role

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Anything that can push JSON to a live client (e.g. a FastAPI WebSocket)."""

    async def send_json(self, data: Any) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


class Topic(str, enum.Enum):
    NEW_REQUEST = "newRequest"
    STATUS_UPDATED = "statusUpdated"
    REQUEST_COMPLETED = "requestCompleted"


# Each topic carries exactly one payload shape
TOPIC_PAYLOADS = {
    Topic.NEW_REQUEST: NewRequestEvent,
    Topic.STATUS_UPDATED: RequestOut,
    Topic.REQUEST_COMPLETED: RequestOut,
}


class DispatchChannel:
    """
    Role-partitioned registry of live connections.

    Delivery is best effort and at-most-once: there are no acknowledgements,
    retries or per-client queues. A client that is offline when an event is
    published misses it and is expected to re-fetch the request list after
    reconnecting. The registry is process-local.
    """

    def __init__(self):
        self._registry: Dict[Role, Set[Connection]] = {}
        self._roles: Dict[Connection, Role] = {}
        self._running = False

    # ---------------------------
    # Lifecycle
    # ---------------------------
    @property
    def is_running(self) -> bool:
        return self._running

    def start(self):
        self._running = True
        logger.info("✅ Dispatch channel started")

    async def close(self):
        self._running = False
        connections = list(self._roles)
        for connection in connections:
            try:
                await connection.close(code=1001)
            except Exception as e:
                logger.debug(f"Ignoring close failure for {id(connection)}: {e}")
        self._registry.clear()
        self._roles.clear()
        logger.info(f"🔌 Dispatch channel closed ({len(connections)} connections dropped)")

    # ---------------------------
    # Registry hooks
    # ---------------------------
    def connect(self, connection: Connection, role: Union[Role, str]):
        if not self._running:
            raise RuntimeError("Dispatch channel is not running")
        role = Role(role)
        self.disconnect(connection)
        self._registry.setdefault(role, set()).add(connection)
        self._roles[connection] = role
        logger.info(f"✅ Client {id(connection)} joined '{role.value}'. Total: {self.connection_count(role)}")

    def disconnect(self, connection: Connection):
        role = self._roles.pop(connection, None)
        if role is None:
            return
        members = self._registry.get(role)
        if members is not None:
            members.discard(connection)
            if not members:
                del self._registry[role]
        logger.info(f"🔌 Client {id(connection)} left '{role.value}'. Total: {self.connection_count(role)}")

    def connections(self, role: Union[Role, str]) -> Set[Connection]:
        return set(self._registry.get(Role(role), ()))

    def connection_count(self, role: Union[Role, str, None] = None) -> int:
        if role is None:
            return len(self._roles)
        return len(self._registry.get(Role(role), ()))

    # ---------------------------
    # Publishing
    # ---------------------------
    async def publish_to_role(self, role: Union[Role, str], event_name: str, payload: Dict[str, Any]) -> int:
        """Send ``payload`` under ``event_name`` to every connection of ``role``; returns deliveries."""
        role = Role(role)
        if not self._running:
            logger.warning(f"⚠️ Dropping '{event_name}': dispatch channel is not running")
            return 0

        message = {"event": event_name, "data": payload}
        targets = list(self._registry.get(role, ()))
        delivered = 0
        for connection in targets:
            try:
                await connection.send_json(message)
                delivered += 1
            except Exception as e:
                self.disconnect(connection)
                logger.warning(f"⚠️ Removed client {id(connection)} due to error: {e}")
        logger.info(f"📡 '{event_name}' delivered to {delivered}/{len(targets)} '{role.value}' clients")
        return delivered

    async def publish(self, role: Union[Role, str], topic: Topic, payload: BaseModel) -> int:
        expected = TOPIC_PAYLOADS[topic]
        if not isinstance(payload, expected):
            raise TypeError(f"Topic '{topic.value}' expects {expected.__name__}, got {type(payload).__name__}")
        return await self.publish_to_role(role, topic.value, payload.model_dump(by_alias=True, mode="json"))

    # ---------------------------
    # Lifecycle events
    # ---------------------------
    async def notify_created(self, request: CareRequest) -> int:
        event = NewRequestEvent(
            request_id=request.id,
            priority=request.priority,
            disease=request.disease,
            patient_name=request.full_name,
            room_number=request.room_number,
            description=request.description,
        )
        return await self.publish(Role.RESPONDER, Topic.NEW_REQUEST, event)

    async def notify_status_updated(self, request: CareRequest) -> int:
        return await self.publish(Role.RESPONDER, Topic.STATUS_UPDATED, RequestOut.model_validate(request))

    async def notify_completed(self, request: CareRequest) -> int:
        return await self.publish(Role.RESPONDER, Topic.REQUEST_COMPLETED, RequestOut.model_validate(request))
