"""
Base Service class that all gateway services inherit from.
Services answer named actions carried by ServiceMessages.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional
from uuid import uuid4

import structlog

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ServiceCapability(str, Enum):
    """Capabilities that services can advertise."""

    CAMPAIGNS = "campaigns"
    MILESTONES = "milestones"
    BUDGETS = "budgets"
    BANK_ACCOUNTS = "bank_accounts"
    NOTIFICATIONS = "notifications"
    KYC = "kyc"
    PROJECTS = "projects"
    TEAMS = "teams"


class MessageType(str, Enum):
    """Types of messages exchanged with services."""

    REQUEST = "request"
    RESPONSE = "response"
    ERROR = "error"


@dataclass
class ServiceMessage:
    """Message format for gateway-to-service communication."""

    id: str = field(default_factory=lambda: str(uuid4()))
    sender: str = ""
    recipient: str = ""
    message_type: str = MessageType.REQUEST.value
    action: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)
    correlation_id: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.message_type == MessageType.ERROR.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert message to dictionary."""
        return {
            "id": self.id,
            "sender": self.sender,
            "recipient": self.recipient,
            "message_type": self.message_type,
            "action": self.action,
            "payload": self.payload,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "correlation_id": self.correlation_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceMessage":
        """Create message from dictionary."""
        data = data.copy()
        if isinstance(data.get("timestamp"), str):
            data["timestamp"] = datetime.fromisoformat(data["timestamp"])
        return cls(**data)


@dataclass
class ServiceState:
    """Represents the current state of a service."""

    is_ready: bool = False
    is_processing: bool = False
    current_task: Optional[str] = None
    last_activity: Optional[datetime] = None
    error_count: int = 0
    processed_count: int = 0


Handler = Callable[[ServiceMessage], Awaitable[Dict[str, Any]]]


class BaseService(ABC):
    """
    Abstract base class for all services in the gateway.

    Each service has:
    - A unique identifier
    - A set of capabilities it provides
    - Handlers keyed by action name
    """

    def __init__(
        self,
        service_id: str,
        name: str,
        description: str,
        capabilities: List[ServiceCapability],
    ):
        self.service_id = service_id
        self.name = name
        self.description = description
        self.capabilities = capabilities
        self.state = ServiceState()
        self._message_handlers: Dict[str, Handler] = {}
        self._logger = logger.bind(service_id=service_id)

        self._register_default_handlers()

    def _register_default_handlers(self) -> None:
        self._message_handlers["ping"] = self._handle_ping
        self._message_handlers["status"] = self._handle_status

    async def _handle_ping(self, message: ServiceMessage) -> Dict[str, Any]:
        return {"status": "alive", "service_id": self.service_id}

    async def _handle_status(self, message: ServiceMessage) -> Dict[str, Any]:
        return {
            "service_id": self.service_id,
            "name": self.name,
            "state": {
                "is_ready": self.state.is_ready,
                "is_processing": self.state.is_processing,
                "current_task": self.state.current_task,
                "last_activity": self.state.last_activity.isoformat() if self.state.last_activity else None,
                "error_count": self.state.error_count,
                "processed_count": self.state.processed_count,
            },
        }

    def register_handler(self, action: str, handler: Handler) -> None:
        """Register a handler for a specific action."""
        self._message_handlers[action] = handler
        self._logger.debug("handler_registered", action=action)

    @property
    def actions(self) -> List[str]:
        return sorted(self._message_handlers)

    async def initialize(self) -> None:
        """Initialize the service."""
        self._logger.info("initializing_service")
        await self._initialize()
        self.state.is_ready = True
        self._logger.info("service_initialized")

    async def _initialize(self) -> None:
        """Service-specific initialization logic. Override if needed."""

    async def process_message(self, message: ServiceMessage) -> ServiceMessage:
        """
        Process an incoming message and return a response.

        Handler exceptions never escape: they are logged, counted and
        returned as an ``error`` message carrying the exception type.

        Args:
            message: The incoming service message

        Returns:
            Response message
        """
        self.state.is_processing = True
        self.state.current_task = message.action
        self.state.last_activity = _utcnow()

        self._logger.info(
            "processing_message",
            message_id=message.id,
            action=message.action,
            sender=message.sender,
        )

        try:
            handler = self._message_handlers.get(message.action)
            if handler is None:
                raise LookupError(f"Unknown action '{message.action}' for {self.service_id}")

            result = await handler(message)
            self.state.processed_count += 1

            response = ServiceMessage(
                sender=self.service_id,
                recipient=message.sender,
                message_type=MessageType.RESPONSE.value,
                action=f"{message.action}_response",
                payload=result,
                context=message.context,
                correlation_id=message.id,
            )

            self._logger.info(
                "message_processed",
                message_id=message.id,
                response_id=response.id,
            )
            return response

        except Exception as e:
            self.state.error_count += 1
            self._logger.error(
                "message_processing_failed",
                message_id=message.id,
                action=message.action,
                error=str(e),
                error_type=type(e).__name__,
            )

            payload = {"error": str(e), "error_type": type(e).__name__}
            status_code = getattr(e, "status_code", None)
            if status_code is not None:
                payload["status_code"] = status_code

            return ServiceMessage(
                sender=self.service_id,
                recipient=message.sender,
                message_type=MessageType.ERROR.value,
                action=f"{message.action}_error",
                payload=payload,
                context=message.context,
                correlation_id=message.id,
            )

        finally:
            self.state.is_processing = False
            self.state.current_task = None

    async def shutdown(self) -> None:
        """Gracefully shutdown the service."""
        self._logger.info("shutting_down_service")
        await self._shutdown()
        self.state.is_ready = False
        self._logger.info("service_shutdown_complete")

    async def _shutdown(self) -> None:
        """Service-specific shutdown logic. Override if needed."""

    def get_service_card(self) -> Dict[str, Any]:
        """Metadata for discovery."""
        return {
            "service_id": self.service_id,
            "name": self.name,
            "description": self.description,
            "capabilities": [cap.value for cap in self.capabilities],
            "actions": self.actions,
            "is_ready": self.state.is_ready,
        }
