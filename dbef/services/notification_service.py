"""
Notification Service

Proxies the notification API and keeps a short in-memory history of
milestone toasts published on the bus.
"""

from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Optional

import structlog

from dbef.config import settings
from dbef.core.backend_client import BackendClient
from dbef.core.base_service import BaseService, ServiceCapability, ServiceMessage
from dbef.data.models import CreateNotificationRequest, Notification, NotificationPreference
from dbef.services.campaign_service import MILESTONE_CELEBRATED
from dbef.services.common import results_of

logger = structlog.get_logger()


class NotificationService(BaseService):
    """In-app notifications, preferences and celebration toasts."""

    def __init__(self, client: BackendClient, toast_history_size: Optional[int] = None):
        super().__init__(
            service_id="notification_service",
            name="Notification Service",
            description="Notifications, preferences and milestone toasts",
            capabilities=[ServiceCapability.NOTIFICATIONS],
        )
        self.client = client
        self.toasts: Deque[Dict[str, Any]] = deque(
            maxlen=toast_history_size or settings.toast_history_size
        )

        self.register_handler("list_notifications", self._handle_list_notifications)
        self.register_handler("unread", self._handle_unread)
        self.register_handler("mark_read", self._handle_mark_read)
        self.register_handler("mark_unread", self._handle_mark_unread)
        self.register_handler("mark_all_read", self._handle_mark_all_read)
        self.register_handler("create_notification", self._handle_create_notification)
        self.register_handler("get_preferences", self._handle_get_preferences)
        self.register_handler("update_preferences", self._handle_update_preferences)
        self.register_handler("recent_toasts", self._handle_recent_toasts)

    def attach(self, bus) -> None:
        bus.subscribe_event(MILESTONE_CELEBRATED, self.on_milestone_celebrated)

    async def on_milestone_celebrated(
        self,
        event_type: str,
        payload: Dict[str, Any],
        source: Optional[str] = None,
    ) -> None:
        toast = {
            **payload,
            "event_type": event_type,
            "source": source,
            "received_at": datetime.now(timezone.utc).isoformat(),
        }
        self.toasts.append(toast)
        self._logger.info(
            "toast_recorded",
            campaign_id=payload.get("campaign_id"),
            milestone_id=payload.get("milestone_id"),
        )

    async def _handle_list_notifications(self, message: ServiceMessage) -> Dict[str, Any]:
        data = await self.client.list_notifications(category=message.payload.get("category"))
        notifications = [Notification.model_validate(n) for n in results_of(data)]
        return {
            "status": "success",
            "count": len(notifications),
            "unread_count": sum(1 for n in notifications if not n.is_read),
            "notifications": [n.model_dump(mode="json") for n in notifications],
        }

    async def _handle_unread(self, message: ServiceMessage) -> Dict[str, Any]:
        data = await self.client.list_unread_notifications()
        notifications = [Notification.model_validate(n) for n in results_of(data)]
        return {
            "status": "success",
            "count": len(notifications),
            "notifications": [n.model_dump(mode="json") for n in notifications],
        }

    async def _handle_mark_read(self, message: ServiceMessage) -> Dict[str, Any]:
        result = await self.client.mark_notification_read(message.payload["notification_id"])
        return {"status": "success", "result": result}

    async def _handle_mark_unread(self, message: ServiceMessage) -> Dict[str, Any]:
        result = await self.client.mark_notification_unread(message.payload["notification_id"])
        return {"status": "success", "result": result}

    async def _handle_mark_all_read(self, message: ServiceMessage) -> Dict[str, Any]:
        result = await self.client.mark_all_notifications_read()
        return {"status": "success", "result": result}

    async def _handle_create_notification(self, message: ServiceMessage) -> Dict[str, Any]:
        request = CreateNotificationRequest.model_validate(message.payload["notification"])
        result = await self.client.create_notification(request.model_dump(mode="json", exclude_none=True))
        self._logger.info(
            "notification_created",
            notification_type=request.notification_type,
            recipients=len(request.recipients),
        )
        return {"status": "success", "result": result}

    async def _handle_get_preferences(self, message: ServiceMessage) -> Dict[str, Any]:
        data = await self.client.get_notification_preferences()
        preferences = [NotificationPreference.model_validate(p) for p in results_of(data)]
        return {
            "status": "success",
            "preferences": [p.model_dump(mode="json") for p in preferences],
        }

    async def _handle_update_preferences(self, message: ServiceMessage) -> Dict[str, Any]:
        preferences = [
            NotificationPreference.model_validate(p)
            for p in message.payload.get("preferences", [])
        ]
        result = await self.client.update_notification_preferences(
            [p.model_dump(mode="json", exclude_none=True) for p in preferences]
        )
        return {"status": "success", "result": result}

    async def _handle_recent_toasts(self, message: ServiceMessage) -> Dict[str, Any]:
        limit = message.payload.get("limit")
        toasts = list(reversed(self.toasts))
        if limit:
            toasts = toasts[:limit]
        return {"status": "success", "count": len(toasts), "toasts": toasts}
