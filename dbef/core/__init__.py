"""
Core module containing the service base class, the service bus and the
backend HTTP client.
"""

from dbef.core.base_service import BaseService, MessageType, ServiceCapability, ServiceMessage
from dbef.core.service_bus import ServiceBus, ServiceRegistry, UnknownServiceError
from dbef.core.backend_client import (
    AuthenticationError,
    BackendClient,
    BackendError,
    BackendUnavailableError,
)

__all__ = [
    # Base service
    "BaseService",
    "MessageType",
    "ServiceCapability",
    "ServiceMessage",
    # Service bus
    "ServiceBus",
    "ServiceRegistry",
    "UnknownServiceError",
    # Backend client
    "AuthenticationError",
    "BackendClient",
    "BackendError",
    "BackendUnavailableError",
]
