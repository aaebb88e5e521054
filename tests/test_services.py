"""
Tests for the gateway services and the service bus.
"""

import asyncio

import pytest

from dbef.core.base_service import MessageType, ServiceMessage
from dbef.core.service_bus import ServiceBus, UnknownServiceError
from dbef.services import CampaignService, FinanceService, KYCService, NotificationService, ProjectService


def request(service, action, payload=None):
    return ServiceMessage(
        sender="test",
        recipient=service.service_id,
        action=action,
        payload=payload or {},
    )


@pytest.fixture
def bus(client):
    bus = ServiceBus(timeout=5)
    for service in (
        CampaignService(client),
        FinanceService(client),
        NotificationService(client, toast_history_size=3),
        KYCService(client),
        ProjectService(client),
    ):
        bus.register_service(service)
    return bus


class TestBaseService:
    """Tests for behavior shared by every service."""

    @pytest.fixture
    def service(self, client):
        return CampaignService(client)

    @pytest.mark.asyncio
    async def test_initialization(self, service):
        await service.initialize()
        assert service.state.is_ready

        await service.shutdown()
        assert not service.state.is_ready

    @pytest.mark.asyncio
    async def test_ping(self, service):
        response = await service.process_message(request(service, "ping"))
        assert response.payload == {"status": "alive", "service_id": "campaign_service"}
        assert response.correlation_id is not None

    @pytest.mark.asyncio
    async def test_unknown_action_is_error(self, service):
        response = await service.process_message(request(service, "fly"))

        assert response.is_error
        assert response.payload["error_type"] == "LookupError"
        assert service.state.error_count == 1

    @pytest.mark.asyncio
    async def test_status_counts(self, service):
        await service.process_message(request(service, "ping"))
        response = await service.process_message(request(service, "status"))
        assert response.payload["state"]["processed_count"] == 1

    def test_service_card(self, service):
        card = service.get_service_card()
        assert card["capabilities"] == ["campaigns", "milestones"]
        assert "celebrate_milestone" in card["actions"]

    def test_message_round_trip(self, service):
        message = request(service, "ping", {"a": 1})
        assert ServiceMessage.from_dict(message.to_dict()) == message


class TestServiceBus:
    """Tests for routing and events."""

    @pytest.mark.asyncio
    async def test_unknown_recipient(self, bus):
        with pytest.raises(UnknownServiceError):
            await bus.send_message("test", "nobody", "ping", {})

    @pytest.mark.asyncio
    async def test_find_by_capability(self, bus):
        from dbef.core.base_service import ServiceCapability

        assert bus.registry.find_by_capability(ServiceCapability.BUDGETS) == ["finance_service"]
        assert bus.registry.find_by_capability(ServiceCapability.TEAMS) == ["project_service"]
        assert len(bus.list_services()) == 5

    @pytest.mark.asyncio
    async def test_initialize_all(self, bus):
        await bus.initialize_all()
        assert all(card["is_ready"] for card in bus.list_services())
        await bus.shutdown_all()
        assert not any(card["is_ready"] for card in bus.list_services())

    @pytest.mark.asyncio
    async def test_failing_subscriber_is_skipped(self, bus):
        received = []

        def broken(event_type, payload, source):
            raise RuntimeError("boom")

        async def working(event_type, payload, source):
            received.append(payload)

        bus.subscribe_event("custom", broken)
        bus.subscribe_event("custom", working)

        delivered = await bus.emit_event("custom", {"x": 1})

        assert delivered == 1
        assert received == [{"x": 1}]

    @pytest.mark.asyncio
    async def test_timeout(self, client):
        class SlowService(CampaignService):
            def __init__(self, client):
                super().__init__(client)
                self.register_handler("slow", self._slow)

            async def _slow(self, message):
                await asyncio.sleep(1)
                return {}

        bus = ServiceBus(timeout=0.01)
        bus.register_service(SlowService(client))

        with pytest.raises(asyncio.TimeoutError):
            await bus.send_message("test", "campaign_service", "slow", {})

        patient = ServiceBus(timeout=30)
        patient.register_service(SlowService(client))

        with pytest.raises(asyncio.TimeoutError):
            await patient.send_message("test", "campaign_service", "slow", {}, timeout=0)

    @pytest.mark.asyncio
    async def test_message_types(self, bus):
        response = await bus.send_message("test", "campaign_service", "ping", {})
        assert response.message_type == MessageType.RESPONSE.value

        failed = await bus.send_message("test", "campaign_service", "fly", {})
        assert failed.message_type == MessageType.ERROR.value
        assert failed.is_error


class TestCampaignService:
    """Tests for the campaign service."""

    @pytest.mark.asyncio
    async def test_list_campaigns(self, bus):
        response = await bus.send_message("test", "campaign_service", "list_campaigns", {})
        assert response.payload["count"] == 2

    @pytest.mark.asyncio
    async def test_get_milestones(self, bus):
        response = await bus.send_message("test", "campaign_service", "get_milestones", {"campaign_id": 1})

        milestones = {m["id"]: m for m in response.payload["milestones"]}
        assert milestones["quarter_goal"]["achieved"]
        assert not milestones["half_goal"]["achieved"]
        assert milestones["half_goal"]["progress"] == 50.0
        assert response.payload["summary"]["next"]["id"] == "half_goal"

    @pytest.mark.asyncio
    async def test_missing_campaign(self, bus):
        response = await bus.send_message("test", "campaign_service", "get_campaign", {"campaign_id": 404})
        assert response.payload == {"status": "not_found"}

    @pytest.mark.asyncio
    async def test_preview(self, bus):
        response = await bus.send_message(
            "test", "campaign_service", "preview_milestones",
            {"snapshot": {"target_amount": 1000, "donors_count": 0}},
        )
        first = response.payload["milestones"][0]
        assert first["id"] == "first_donation"
        assert not first["achieved"]

    @pytest.mark.asyncio
    async def test_celebrate_publishes_toast(self, bus):
        response = await bus.send_message(
            "test", "campaign_service", "celebrate_milestone",
            {"campaign_id": 1, "milestone_id": "quarter_goal"},
        )

        assert response.payload["status"] == "success"
        assert response.payload["delivered"] == 1
        assert response.payload["toast"]["message"] == "🎉 Milestone Celebrated! 25% Goal Reached"

        toasts = await bus.send_message("test", "notification_service", "recent_toasts", {})
        assert toasts.payload["count"] == 1
        assert toasts.payload["toasts"][0]["milestone_id"] == "quarter_goal"
        assert toasts.payload["toasts"][0]["source"] == "campaign_service"

    @pytest.mark.asyncio
    async def test_celebrate_unachieved_is_error(self, bus):
        response = await bus.send_message(
            "test", "campaign_service", "celebrate_milestone",
            {"campaign_id": 1, "milestone_id": "goal_reached"},
        )
        assert response.is_error
        assert response.payload["error_type"] == "ValueError"

    @pytest.mark.asyncio
    async def test_celebrate_unknown_milestone(self, bus):
        response = await bus.send_message(
            "test", "campaign_service", "celebrate_milestone",
            {"campaign_id": 1, "milestone_id": "moon_landing"},
        )
        assert response.payload == {"status": "not_found"}

    @pytest.mark.asyncio
    async def test_performance_and_statistics(self, bus):
        performance = await bus.send_message("test", "campaign_service", "get_performance", {"campaign_id": 2})
        assert performance.payload["performance"]["health_status"] == "completed"

        statistics = await bus.send_message("test", "campaign_service", "get_statistics", {})
        assert statistics.payload["statistics"]["total_campaigns"] == 2
        assert statistics.payload["statistics"]["total_raised"] == 5250.0

    @pytest.mark.asyncio
    async def test_remote_actions(self, bus, backend):
        await bus.send_message("test", "campaign_service", "check_milestones", {"campaign_id": 1})
        response = await bus.send_message(
            "test", "campaign_service", "extend_deadline",
            {"campaign_id": 1, "new_end_date": "2026-12-31"},
        )
        assert response.payload["result"]["new_end_date"] == "2026-12-31"
        assert ("POST", "/finance_api/donation-campaigns/1/check_milestones/", None) in backend.requests

    @pytest.mark.asyncio
    async def test_backend_failure_carries_status(self, bus, backend):
        backend.fail_with = 500
        response = await bus.send_message("test", "campaign_service", "list_campaigns", {})

        assert response.is_error
        assert response.payload["error_type"] == "BackendError"
        assert response.payload["status_code"] == 500


class TestFinanceService:
    """Tests for the finance service."""

    @pytest.mark.asyncio
    async def test_budget_health(self, bus):
        response = await bus.send_message("test", "finance_service", "budget_health", {})

        assert response.payload["total_budgets"] == 2
        assert response.payload["counts"]["critical"] == 1
        assert response.payload["alerts"][0]["budget_id"] == 2

    @pytest.mark.asyncio
    async def test_get_budget(self, bus):
        response = await bus.send_message("test", "finance_service", "get_budget", {"budget_id": 1})
        assert response.payload["utilization"]["spent_percentage"] == 50.0

        missing = await bus.send_message("test", "finance_service", "get_budget", {"budget_id": 9})
        assert missing.payload == {"status": "not_found"}

    @pytest.mark.asyncio
    async def test_account_statistics(self, bus):
        response = await bus.send_message("test", "finance_service", "account_statistics", {})

        assert response.payload["statistics"]["total_accounts"] == 2
        assert [a["id"] for a in response.payload["low_balance_accounts"]] == [1]

    @pytest.mark.asyncio
    async def test_balance_history(self, bus):
        response = await bus.send_message(
            "test", "finance_service", "balance_history", {"account_id": 1, "days": 7}
        )
        assert response.payload["days"] == 7
        assert [p["balance"] for p in response.payload["history"]] == [90.0, 100.0]

    @pytest.mark.asyncio
    async def test_account_transactions(self, bus):
        response = await bus.send_message(
            "test", "finance_service", "account_transactions", {"account_id": 1}
        )
        assert response.payload["count"] == 2
        assert response.payload["transactions"][1]["amount"] == -40.0

        missing = await bus.send_message(
            "test", "finance_service", "account_transactions", {"account_id": 9}
        )
        assert missing.payload == {"status": "not_found"}

    @pytest.mark.asyncio
    async def test_balance_history_rejects_bad_days(self, bus):
        response = await bus.send_message(
            "test", "finance_service", "balance_history", {"account_id": 1, "days": 0}
        )
        assert response.payload["error_type"] == "ValueError"

    @pytest.mark.asyncio
    async def test_freeze_and_low_balance(self, bus, backend):
        frozen = await bus.send_message("test", "finance_service", "freeze_account", {"account_id": 2})
        assert frozen.payload["result"] == {"status": "frozen"}

        await bus.send_message("test", "finance_service", "unfreeze_account", {"account_id": 2})
        low = await bus.send_message(
            "test", "finance_service", "check_low_balance", {"account_id": 1, "threshold": 250}
        )
        assert low.payload["result"]["threshold"] == "250"
        assert ("POST", "/finance_api/bank-accounts/2/unfreeze/", None) in backend.requests


class TestNotificationService:
    """Tests for the notification service."""

    @pytest.mark.asyncio
    async def test_list_and_unread(self, bus):
        listed = await bus.send_message("test", "notification_service", "list_notifications", {})
        assert listed.payload["count"] == 2
        assert listed.payload["unread_count"] == 1

        unread = await bus.send_message("test", "notification_service", "unread", {})
        assert unread.payload["count"] == 1

    @pytest.mark.asyncio
    async def test_category_filter_is_forwarded(self, bus, backend):
        await bus.send_message("test", "notification_service", "list_notifications", {"category": "finance"})
        method, path, _ = backend.requests[-1]
        assert (method, path) == ("GET", "/notification_api/notifications/")

    @pytest.mark.asyncio
    async def test_create_requires_recipients(self, bus):
        response = await bus.send_message(
            "test", "notification_service", "create_notification",
            {"notification": {"recipients": [], "notification_type": "general"}},
        )
        assert response.is_error
        assert response.payload["error_type"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_create(self, bus):
        response = await bus.send_message(
            "test", "notification_service", "create_notification",
            {"notification": {"recipients": [1, 2], "notification_type": "general"}},
        )
        assert response.payload["result"] == {"created": 2}

    @pytest.mark.asyncio
    async def test_preferences(self, bus):
        prefs = await bus.send_message("test", "notification_service", "get_preferences", {})
        assert prefs.payload["preferences"][0]["notification_type"] == 3

        updated = await bus.send_message(
            "test", "notification_service", "update_preferences",
            {"preferences": [{"notification_type": 3, "receive_email": False}]},
        )
        assert updated.payload["result"] == {"updated": 1}

    @pytest.mark.asyncio
    async def test_toast_history_is_bounded(self, client):
        service = NotificationService(client, toast_history_size=3)
        for i in range(5):
            await service.on_milestone_celebrated("milestone_celebrated", {"milestone_id": f"m{i}"})

        response = await service.process_message(request(service, "recent_toasts"))
        assert [t["milestone_id"] for t in response.payload["toasts"]] == ["m4", "m3", "m2"]

        limited = await service.process_message(request(service, "recent_toasts", {"limit": 1}))
        assert limited.payload["count"] == 1


class TestProjectService:
    """Tests for the project service."""

    @pytest.mark.asyncio
    async def test_list_projects(self, bus, backend):
        response = await bus.send_message(
            "test", "project_service", "list_projects", {"filters": {"status": "in_progress", "search": ""}}
        )

        assert response.payload["count"] == 2
        assert response.payload["summary"]["overbudget_projects"] == 1
        over = response.payload["projects"][1]["budget_status"]
        assert over["is_overbudget"]
        assert over["utilization_percentage"] == 125.0

    @pytest.mark.asyncio
    async def test_get_project(self, bus):
        response = await bus.send_message("test", "project_service", "get_project", {"project_id": 1})
        assert response.payload["budget_status"]["remaining"] == 5000.0

        missing = await bus.send_message("test", "project_service", "get_project", {"project_id": 9})
        assert missing.payload == {"status": "not_found"}

    @pytest.mark.asyncio
    async def test_statistics_pass_through(self, bus):
        response = await bus.send_message("test", "project_service", "project_statistics", {})
        assert response.payload["statistics"]["status_counts"] == {"in_progress": 2}

    @pytest.mark.asyncio
    async def test_project_milestones(self, bus, backend):
        response = await bus.send_message("test", "project_service", "project_milestones", {"project_id": 1})

        overview = response.payload["overview"]
        assert overview["total_milestones"] == 3
        assert overview["overdue"] == [21]
        assert overview["upcoming"] == [22]
        assert backend.requests[-1][1] == "/project_api/milestones/by_project/"

    @pytest.mark.asyncio
    async def test_project_without_milestones(self, bus):
        response = await bus.send_message("test", "project_service", "project_milestones", {"project_id": 2})
        assert response.payload["overview"]["total_milestones"] == 0

    @pytest.mark.asyncio
    async def test_project_team(self, bus):
        response = await bus.send_message("test", "project_service", "project_team", {"project_id": 1})

        assert response.payload["total_members"] == 3
        assert response.payload["active_members"] == 2
        assert response.payload["role_counts"] == {"Team Lead": 1, "Trainer": 2}

        missing = await bus.send_message("test", "project_service", "project_team", {"project_id": 9})
        assert missing.payload == {"status": "not_found"}


class TestKYCService:
    """Tests for the KYC service."""

    @pytest.mark.asyncio
    async def test_pending(self, bus):
        response = await bus.send_message("test", "kyc_service", "pending_submissions", {})
        assert response.payload["count"] == 1

        submission = response.payload["submissions"][0]
        assert submission["profile_id"] == 7
        assert submission["email"].endswith("@example.com")
        assert len(submission["applicant"].split()) == 2
        assert not submission["documents"]["is_kyc_verified"]

    @pytest.mark.asyncio
    async def test_documents(self, bus):
        response = await bus.send_message("test", "kyc_service", "get_documents", {"profile_id": 7})
        assert not response.payload["documents"]["is_kyc_verified"]

        missing = await bus.send_message("test", "kyc_service", "get_documents", {"profile_id": 8})
        assert missing.payload == {"status": "not_found"}

    @pytest.mark.asyncio
    async def test_reject_requires_reason(self, bus, backend):
        response = await bus.send_message(
            "test", "kyc_service", "verify",
            {"profile_id": 7, "decision": {"action": "reject", "reason": "  "}},
        )
        assert response.is_error
        assert not any(path.endswith("verify_kyc/") for _, path, _ in backend.requests)

    @pytest.mark.asyncio
    async def test_approve(self, bus):
        response = await bus.send_message(
            "test", "kyc_service", "verify",
            {"profile_id": 7, "decision": {"action": "approve"}},
        )
        assert response.payload["result"] == {"status": "approve"}
