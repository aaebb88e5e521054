"""
Service bus.
Handles message routing, service discovery, and event fan-out.
"""

import asyncio
import inspect
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set

import structlog

from dbef.config import settings
from dbef.core.base_service import BaseService, MessageType, ServiceCapability, ServiceMessage

logger = structlog.get_logger()


class UnknownServiceError(LookupError):
    """Raised when a message targets a service that is not registered."""


@dataclass
class ServiceRegistration:
    """Registration information for a service."""

    service_id: str
    name: str
    capabilities: List[ServiceCapability]


class ServiceRegistry:
    """
    Registry for service discovery.
    Maintains a catalog of available services and their capabilities.
    """

    def __init__(self):
        self._services: Dict[str, ServiceRegistration] = {}
        self._capability_index: Dict[ServiceCapability, Set[str]] = defaultdict(set)
        self._logger = logger.bind(component="service_registry")

    def register(
        self,
        service_id: str,
        name: str,
        capabilities: List[ServiceCapability],
    ) -> ServiceRegistration:
        registration = ServiceRegistration(
            service_id=service_id,
            name=name,
            capabilities=capabilities,
        )
        self._services[service_id] = registration

        for capability in capabilities:
            self._capability_index[capability].add(service_id)

        self._logger.info(
            "service_registered",
            service_id=service_id,
            capabilities=[c.value for c in capabilities],
        )
        return registration

    def find_by_capability(self, capability: ServiceCapability) -> List[str]:
        """Find all services with a specific capability."""
        return sorted(self._capability_index.get(capability, set()))


class ServiceBus:
    """
    Routes requests to local services and fans events out to subscribers.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.registry = ServiceRegistry()
        self.timeout = timeout if timeout is not None else settings.service_timeout_seconds
        self._services: Dict[str, BaseService] = {}
        self._event_handlers: Dict[str, List[Callable]] = defaultdict(list)
        self._logger = logger.bind(component="service_bus")

    def register_service(self, service: BaseService) -> None:
        """Register a local service and let it subscribe to events."""
        self._services[service.service_id] = service
        self.registry.register(
            service_id=service.service_id,
            name=service.name,
            capabilities=service.capabilities,
        )
        attach = getattr(service, "attach", None)
        if attach is not None:
            attach(self)

    async def send_message(
        self,
        sender_id: str,
        recipient_id: str,
        action: str,
        payload: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> ServiceMessage:
        """
        Send a request to a service and wait for its response.

        Args:
            sender_id: The caller's ID
            recipient_id: The receiving service's ID
            action: The action to perform
            payload: The message payload
            context: Optional context data
            timeout: Timeout in seconds, defaults to the bus timeout

        Returns:
            The response message

        Raises:
            UnknownServiceError: If no service is registered under recipient_id
            asyncio.TimeoutError: If the service does not answer in time
        """
        recipient = self._services.get(recipient_id)
        if recipient is None:
            raise UnknownServiceError(f"Unknown recipient service: {recipient_id}")

        message = ServiceMessage(
            sender=sender_id,
            recipient=recipient_id,
            message_type=MessageType.REQUEST.value,
            action=action,
            payload=payload,
            context=context or {},
        )

        self._logger.info(
            "sending_message",
            message_id=message.id,
            sender=sender_id,
            recipient=recipient_id,
            action=action,
        )

        return await asyncio.wait_for(
            recipient.process_message(message),
            timeout=self.timeout if timeout is None else timeout,
        )

    def subscribe_event(self, event_type: str, handler: Callable) -> None:
        """Subscribe to a specific event type."""
        self._event_handlers[event_type].append(handler)

    async def emit_event(
        self,
        event_type: str,
        payload: Dict[str, Any],
        source: Optional[str] = None,
    ) -> int:
        """
        Emit an event to all subscribers.

        A failing subscriber is logged and skipped; the others still run.

        Returns:
            Number of subscribers that handled the event
        """
        handlers = self._event_handlers.get(event_type, [])

        self._logger.info(
            "emitting_event",
            event_type=event_type,
            handler_count=len(handlers),
            source=source,
        )

        delivered = 0
        for handler in handlers:
            try:
                if inspect.iscoroutinefunction(handler):
                    await handler(event_type, payload, source)
                else:
                    handler(event_type, payload, source)
                delivered += 1
            except Exception as e:
                self._logger.error(
                    "event_handler_error",
                    event_type=event_type,
                    error=str(e),
                )
        return delivered

    async def initialize_all(self) -> None:
        """Initialize all registered services."""
        self._logger.info("initializing_all_services", count=len(self._services))
        await asyncio.gather(*(s.initialize() for s in self._services.values()))
        self._logger.info("all_services_initialized")

    async def shutdown_all(self) -> None:
        """Shutdown all registered services."""
        self._logger.info("shutting_down_all_services")
        await asyncio.gather(
            *(s.shutdown() for s in self._services.values()),
            return_exceptions=True,
        )
        self._logger.info("all_services_shutdown")

    def list_services(self) -> List[Dict[str, Any]]:
        return [service.get_service_card() for service in self._services.values()]
