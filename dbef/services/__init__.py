"""Gateway services answering actions on the service bus."""

from dbef.services.campaign_service import MILESTONE_CELEBRATED, CampaignService
from dbef.services.finance_service import FinanceService
from dbef.services.kyc_service import KYCService
from dbef.services.notification_service import NotificationService
from dbef.services.project_service import ProjectService

__all__ = [
    "MILESTONE_CELEBRATED",
    "CampaignService",
    "FinanceService",
    "KYCService",
    "NotificationService",
    "ProjectService",
]
