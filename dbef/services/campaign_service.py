"""
Campaign Service

Serves donation campaigns from the finance API together with the views
derived locally from each campaign snapshot:
- Milestone tracking and celebration
- Performance metrics and projections
- Portfolio statistics across campaigns
"""

from typing import Any, Dict, List, Optional

import structlog

from dbef.core.backend_client import BackendClient, BackendError
from dbef.core.base_service import BaseService, ServiceCapability, ServiceMessage
from dbef.data.models import CampaignSnapshot, DonationCampaign
from dbef.finance import campaign_metrics
from dbef.finance.milestones import (
    build_milestones,
    celebration_message,
    milestone_progress,
    milestone_report,
)
from dbef.services.common import not_found, results_of

logger = structlog.get_logger()

MILESTONE_CELEBRATED = "milestone_celebrated"


class CampaignService(BaseService):
    """
    Campaign service.

    Every figure it reports is computed from backend aggregates; nothing
    is written back except through the backend's own campaign actions.
    """

    def __init__(self, client: BackendClient):
        super().__init__(
            service_id="campaign_service",
            name="Campaign Service",
            description="Donation campaigns, milestones and performance",
            capabilities=[ServiceCapability.CAMPAIGNS, ServiceCapability.MILESTONES],
        )
        self.client = client
        self._bus = None

        self.register_handler("list_campaigns", self._handle_list_campaigns)
        self.register_handler("get_campaign", self._handle_get_campaign)
        self.register_handler("get_milestones", self._handle_get_milestones)
        self.register_handler("preview_milestones", self._handle_preview_milestones)
        self.register_handler("celebrate_milestone", self._handle_celebrate_milestone)
        self.register_handler("get_performance", self._handle_get_performance)
        self.register_handler("get_statistics", self._handle_get_statistics)
        self.register_handler("check_milestones", self._handle_check_milestones)
        self.register_handler("extend_deadline", self._handle_extend_deadline)

    def attach(self, bus) -> None:
        """Keep a handle on the bus for publishing celebration events."""
        self._bus = bus

    async def _fetch_campaign(self, campaign_id: int) -> Optional[DonationCampaign]:
        try:
            data = await self.client.get_campaign(campaign_id)
        except BackendError as e:
            if e.status_code == 404:
                return None
            raise
        return DonationCampaign.model_validate(data)

    async def _fetch_campaigns(self, filters: Dict[str, Any]) -> List[DonationCampaign]:
        data = await self.client.list_campaigns(**filters)
        return [DonationCampaign.model_validate(item) for item in results_of(data)]

    async def _handle_list_campaigns(self, message: ServiceMessage) -> Dict[str, Any]:
        filters = message.payload.get("filters", {})
        campaigns = await self._fetch_campaigns(filters)
        return {
            "status": "success",
            "count": len(campaigns),
            "campaigns": [c.model_dump(mode="json") for c in campaigns],
        }

    async def _handle_get_campaign(self, message: ServiceMessage) -> Dict[str, Any]:
        campaign = await self._fetch_campaign(message.payload["campaign_id"])
        if campaign is None:
            return not_found()
        return {"status": "success", "campaign": campaign.model_dump(mode="json")}

    async def _handle_get_milestones(self, message: ServiceMessage) -> Dict[str, Any]:
        campaign = await self._fetch_campaign(message.payload["campaign_id"])
        if campaign is None:
            return not_found()
        report = milestone_report(campaign.snapshot())
        return {"status": "success", "campaign_id": campaign.id, **report}

    async def _handle_preview_milestones(self, message: ServiceMessage) -> Dict[str, Any]:
        snapshot = CampaignSnapshot.model_validate(message.payload["snapshot"])
        return {"status": "success", **milestone_report(snapshot)}

    async def _handle_celebrate_milestone(self, message: ServiceMessage) -> Dict[str, Any]:
        campaign_id = message.payload["campaign_id"]
        milestone_id = message.payload["milestone_id"]

        campaign = await self._fetch_campaign(campaign_id)
        if campaign is None:
            return not_found()

        milestones = {m.id: m for m in build_milestones(campaign.snapshot())}
        milestone = milestones.get(milestone_id)
        if milestone is None:
            return not_found()
        if not milestone.achieved:
            raise ValueError(
                f"Milestone '{milestone_id}' is not achieved yet "
                f"({milestone_progress(milestone):.0f}% complete)"
            )

        toast = {
            "campaign_id": campaign.id,
            "campaign_title": campaign.title,
            "milestone_id": milestone.id,
            "message": celebration_message(milestone),
        }
        delivered = 0
        if self._bus is not None:
            delivered = await self._bus.emit_event(MILESTONE_CELEBRATED, toast, source=self.service_id)

        self._logger.info("milestone_celebrated", campaign_id=campaign.id, milestone_id=milestone.id)
        return {"status": "success", "toast": toast, "delivered": delivered}

    async def _handle_get_performance(self, message: ServiceMessage) -> Dict[str, Any]:
        campaign = await self._fetch_campaign(message.payload["campaign_id"])
        if campaign is None:
            return not_found()
        return {"status": "success", "performance": campaign_metrics.campaign_performance(campaign)}

    async def _handle_get_statistics(self, message: ServiceMessage) -> Dict[str, Any]:
        campaigns = await self._fetch_campaigns(message.payload.get("filters", {}))
        ranked = campaign_metrics.rank_campaigns_by_progress(campaigns)
        return {
            "status": "success",
            "statistics": campaign_metrics.campaign_statistics(campaigns),
            "ranking": [
                {"id": c.id, "title": c.title, "progress_percentage": c.progress_percentage}
                for c in ranked
            ],
        }

    async def _handle_check_milestones(self, message: ServiceMessage) -> Dict[str, Any]:
        result = await self.client.check_campaign_milestones(message.payload["campaign_id"])
        return {"status": "success", "result": result}

    async def _handle_extend_deadline(self, message: ServiceMessage) -> Dict[str, Any]:
        result = await self.client.extend_campaign_deadline(
            message.payload["campaign_id"],
            message.payload["new_end_date"],
        )
        return {"status": "success", "result": result}
