"""
FastAPI application for the DBEF platform.
Exposes the gateway services over REST under the versioned API prefix.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Body, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from dbef.config import settings
from dbef.core.backend_client import BackendClient
from dbef.core.service_bus import ServiceBus, UnknownServiceError
from dbef.data.models import (
    CreateNotificationRequest,
    KYCVerificationRequest,
    NotificationPreference,
)
from dbef.logging_config import configure_logging
from dbef.services import CampaignService, FinanceService, KYCService, NotificationService, ProjectService

logger = structlog.get_logger()

CAMPAIGN_SERVICE = "campaign_service"
FINANCE_SERVICE = "finance_service"
NOTIFICATION_SERVICE = "notification_service"
KYC_SERVICE = "kyc_service"
PROJECT_SERVICE = "project_service"

VALIDATION_ERRORS = {"ValueError", "ValidationError"}


# Request Models
class ExtendDeadlineRequest(BaseModel):
    """Request to push a campaign's end date out."""
    new_end_date: date


class CheckLowBalanceRequest(BaseModel):
    """Request to check an account against a balance threshold."""
    threshold: Optional[float] = Field(default=None, ge=0)


class UpdatePreferencesRequest(BaseModel):
    """Request to replace notification delivery preferences."""
    preferences: List[NotificationPreference]


def error_status(payload: Dict[str, Any]) -> int:
    """HTTP status for an error reply from a service."""
    error_type = payload.get("error_type")
    status_code = payload.get("status_code")

    if error_type in VALIDATION_ERRORS:
        return 422
    if error_type == "TimeoutError":
        return 504
    if status_code is not None:
        if error_type == "BackendError" and status_code >= 500:
            return 502
        return status_code
    return 500


async def dispatch(
    request: Request,
    recipient: str,
    action: str,
    payload: Optional[Dict[str, Any]] = None,
    not_found_detail: str = "Resource not found",
) -> Dict[str, Any]:
    """Send an action to a service and translate its reply for HTTP."""
    bus: Optional[ServiceBus] = getattr(request.app.state, "bus", None)
    if not bus:
        raise HTTPException(status_code=503, detail="Service not initialized")

    try:
        response = await bus.send_message("api", recipient, action, payload or {})
    except UnknownServiceError:
        raise HTTPException(status_code=503, detail=f"Service '{recipient}' is not available")
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail=f"Service '{recipient}' timed out")

    if response.is_error:
        raise HTTPException(
            status_code=error_status(response.payload),
            detail=response.payload.get("error", "Service error"),
        )

    if response.payload.get("status") == "not_found":
        raise HTTPException(status_code=404, detail=not_found_detail)

    return response.payload


router = APIRouter(prefix=settings.api_v1_prefix)


# Health and discovery
@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    bus = getattr(request.app.state, "bus", None)
    return {
        "status": "healthy",
        "app": settings.app_name,
        "services": bus.list_services() if bus else [],
    }


@router.get("/services")
async def list_services(request: Request):
    """List all registered services."""
    bus = getattr(request.app.state, "bus", None)
    if not bus:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return {"services": bus.list_services()}


# ============================================================================
# Campaign Endpoints
# ============================================================================

@router.get("/campaigns")
async def list_campaigns(
    request: Request,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    page: Optional[int] = Query(None, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=100),
):
    """List donation campaigns."""
    filters = {"search": search, "is_active": is_active, "page": page, "page_size": page_size}
    return await dispatch(request, CAMPAIGN_SERVICE, "list_campaigns", {"filters": filters})


@router.get("/campaigns/statistics")
async def campaign_statistics(request: Request, is_active: Optional[bool] = None):
    """Portfolio totals and the progress ranking across campaigns."""
    return await dispatch(
        request, CAMPAIGN_SERVICE, "get_statistics", {"filters": {"is_active": is_active}}
    )


@router.get("/campaigns/{campaign_id}")
async def get_campaign(request: Request, campaign_id: int):
    return await dispatch(
        request, CAMPAIGN_SERVICE, "get_campaign",
        {"campaign_id": campaign_id}, not_found_detail="Campaign not found",
    )


@router.get("/campaigns/{campaign_id}/milestones")
async def get_campaign_milestones(request: Request, campaign_id: int):
    """Milestones derived from the campaign's current aggregates."""
    return await dispatch(
        request, CAMPAIGN_SERVICE, "get_milestones",
        {"campaign_id": campaign_id}, not_found_detail="Campaign not found",
    )


@router.post("/campaigns/{campaign_id}/milestones/{milestone_id}/celebrate")
async def celebrate_milestone(request: Request, campaign_id: int, milestone_id: str):
    """Publish a celebration toast for an achieved milestone."""
    return await dispatch(
        request, CAMPAIGN_SERVICE, "celebrate_milestone",
        {"campaign_id": campaign_id, "milestone_id": milestone_id},
        not_found_detail="Campaign or milestone not found",
    )


@router.get("/campaigns/{campaign_id}/performance")
async def get_campaign_performance(request: Request, campaign_id: int):
    return await dispatch(
        request, CAMPAIGN_SERVICE, "get_performance",
        {"campaign_id": campaign_id}, not_found_detail="Campaign not found",
    )


@router.post("/campaigns/{campaign_id}/check-milestones")
async def check_campaign_milestones(request: Request, campaign_id: int):
    """Ask the backend to record newly reached milestones."""
    return await dispatch(request, CAMPAIGN_SERVICE, "check_milestones", {"campaign_id": campaign_id})


@router.post("/campaigns/{campaign_id}/extend-deadline")
async def extend_campaign_deadline(request: Request, campaign_id: int, body: ExtendDeadlineRequest):
    return await dispatch(
        request, CAMPAIGN_SERVICE, "extend_deadline",
        {"campaign_id": campaign_id, "new_end_date": body.new_end_date.isoformat()},
    )


@router.post("/milestones/preview")
async def preview_milestones(request: Request, snapshot: Dict[str, Any] = Body(...)):
    """Evaluate milestones for an arbitrary snapshot without a backend call."""
    return await dispatch(
        request, CAMPAIGN_SERVICE, "preview_milestones",
        {"snapshot": snapshot},
    )


# ============================================================================
# Project Endpoints
# ============================================================================

@router.get("/projects")
async def list_projects(
    request: Request,
    status: Optional[str] = None,
    search: Optional[str] = None,
    category: Optional[str] = None,
    manager: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
):
    """List projects with budget use and a portfolio summary."""
    filters = {"status": status, "search": search, "category": category, "manager": manager, "page": page}
    return await dispatch(request, PROJECT_SERVICE, "list_projects", {"filters": filters})


@router.get("/projects/statistics")
async def project_statistics(request: Request):
    return await dispatch(request, PROJECT_SERVICE, "project_statistics")


@router.get("/projects/{project_id}")
async def get_project(request: Request, project_id: int):
    return await dispatch(
        request, PROJECT_SERVICE, "get_project",
        {"project_id": project_id}, not_found_detail="Project not found",
    )


@router.get("/projects/{project_id}/milestones")
async def get_project_milestones(request: Request, project_id: int):
    """Delivery milestones with overdue and upcoming lists."""
    return await dispatch(
        request, PROJECT_SERVICE, "project_milestones",
        {"project_id": project_id}, not_found_detail="Project not found",
    )


@router.get("/projects/{project_id}/team")
async def get_project_team(request: Request, project_id: int):
    return await dispatch(
        request, PROJECT_SERVICE, "project_team",
        {"project_id": project_id}, not_found_detail="Project not found",
    )


# ============================================================================
# Budget Endpoints
# ============================================================================

@router.get("/budgets")
async def list_budgets(request: Request, status: Optional[str] = None, fiscal_year: Optional[str] = None):
    filters = {"status": status, "fiscal_year": fiscal_year}
    return await dispatch(request, FINANCE_SERVICE, "list_budgets", {"filters": filters})


@router.get("/budgets/health")
async def budget_health(request: Request, fiscal_year: Optional[str] = None):
    """Health levels and alerts across budgets."""
    return await dispatch(
        request, FINANCE_SERVICE, "budget_health", {"filters": {"fiscal_year": fiscal_year}}
    )


@router.get("/budgets/{budget_id}")
async def get_budget(request: Request, budget_id: int):
    return await dispatch(
        request, FINANCE_SERVICE, "get_budget",
        {"budget_id": budget_id}, not_found_detail="Budget not found",
    )


# ============================================================================
# Bank Account Endpoints
# ============================================================================

@router.get("/bank-accounts")
async def list_bank_accounts(
    request: Request,
    account_type: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
):
    filters = {"account_type": account_type, "is_active": is_active, "search": search}
    return await dispatch(request, FINANCE_SERVICE, "list_bank_accounts", {"filters": filters})


@router.get("/bank-accounts/statistics")
async def bank_account_statistics(request: Request, threshold: Optional[float] = Query(None, ge=0)):
    """Account counts, balances and low-balance accounts."""
    return await dispatch(request, FINANCE_SERVICE, "account_statistics", {"threshold": threshold})


@router.get("/bank-accounts/{account_id}")
async def get_bank_account(request: Request, account_id: int):
    return await dispatch(
        request, FINANCE_SERVICE, "get_bank_account",
        {"account_id": account_id}, not_found_detail="Bank account not found",
    )


@router.get("/bank-accounts/{account_id}/balance-history")
async def get_balance_history(request: Request, account_id: int, days: int = Query(30, ge=1, le=365)):
    return await dispatch(
        request, FINANCE_SERVICE, "balance_history",
        {"account_id": account_id, "days": days}, not_found_detail="Bank account not found",
    )


@router.get("/bank-accounts/{account_id}/transactions")
async def get_account_transactions(
    request: Request,
    account_id: int,
    transaction_type: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
):
    filters = {"transaction_type": transaction_type, "page": page}
    return await dispatch(
        request, FINANCE_SERVICE, "account_transactions",
        {"account_id": account_id, "filters": filters}, not_found_detail="Bank account not found",
    )


@router.post("/bank-accounts/{account_id}/check-low-balance")
async def check_low_balance(request: Request, account_id: int, body: Optional[CheckLowBalanceRequest] = None):
    threshold = body.threshold if body else None
    return await dispatch(
        request, FINANCE_SERVICE, "check_low_balance",
        {"account_id": account_id, "threshold": threshold},
    )


@router.post("/bank-accounts/{account_id}/freeze")
async def freeze_bank_account(request: Request, account_id: int):
    return await dispatch(request, FINANCE_SERVICE, "freeze_account", {"account_id": account_id})


@router.post("/bank-accounts/{account_id}/unfreeze")
async def unfreeze_bank_account(request: Request, account_id: int):
    return await dispatch(request, FINANCE_SERVICE, "unfreeze_account", {"account_id": account_id})


# ============================================================================
# Notification Endpoints
# ============================================================================

@router.get("/notifications")
async def list_notifications(request: Request, category: Optional[str] = None):
    return await dispatch(request, NOTIFICATION_SERVICE, "list_notifications", {"category": category})


@router.get("/notifications/unread")
async def list_unread_notifications(request: Request):
    return await dispatch(request, NOTIFICATION_SERVICE, "unread")


@router.get("/notifications/toasts")
async def recent_toasts(request: Request, limit: Optional[int] = Query(None, ge=1)):
    """Most recent milestone celebration toasts, newest first."""
    return await dispatch(request, NOTIFICATION_SERVICE, "recent_toasts", {"limit": limit})


@router.post("/notifications/read-all")
async def mark_all_notifications_read(request: Request):
    return await dispatch(request, NOTIFICATION_SERVICE, "mark_all_read")


@router.post("/notifications/{notification_id}/read")
async def mark_notification_read(request: Request, notification_id: int):
    return await dispatch(request, NOTIFICATION_SERVICE, "mark_read", {"notification_id": notification_id})


@router.post("/notifications/{notification_id}/unread")
async def mark_notification_unread(request: Request, notification_id: int):
    return await dispatch(request, NOTIFICATION_SERVICE, "mark_unread", {"notification_id": notification_id})


@router.post("/notifications")
async def create_notification(request: Request, body: CreateNotificationRequest):
    """Fan a notification out to one or more recipients."""
    return await dispatch(
        request, NOTIFICATION_SERVICE, "create_notification",
        {"notification": body.model_dump(mode="json")},
    )


@router.get("/notification-preferences")
async def get_notification_preferences(request: Request):
    return await dispatch(request, NOTIFICATION_SERVICE, "get_preferences")


@router.post("/notification-preferences")
async def update_notification_preferences(request: Request, body: UpdatePreferencesRequest):
    return await dispatch(
        request, NOTIFICATION_SERVICE, "update_preferences",
        {"preferences": [p.model_dump(mode="json") for p in body.preferences]},
    )


# ============================================================================
# KYC Endpoints
# ============================================================================

@router.get("/kyc/pending")
async def pending_kyc_submissions(request: Request):
    return await dispatch(request, KYC_SERVICE, "pending_submissions")


@router.get("/kyc/{profile_id}/documents")
async def get_kyc_documents(request: Request, profile_id: int):
    return await dispatch(
        request, KYC_SERVICE, "get_documents",
        {"profile_id": profile_id}, not_found_detail="Profile not found",
    )


@router.post("/kyc/{profile_id}/verify")
async def verify_kyc(request: Request, profile_id: int, body: KYCVerificationRequest):
    """Approve or reject a KYC submission."""
    return await dispatch(
        request, KYC_SERVICE, "verify",
        {"profile_id": profile_id, "decision": body.model_dump(mode="json")},
    )


def create_app(client: Optional[BackendClient] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        client: Backend client to use; one is built from settings when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        configure_logging()

        backend = client or BackendClient()
        bus = ServiceBus()

        services = [
            CampaignService(backend),
            FinanceService(backend),
            NotificationService(backend),
            KYCService(backend),
            ProjectService(backend),
        ]
        for service in services:
            bus.register_service(service)

        await bus.initialize_all()
        app.state.client = backend
        app.state.bus = bus
        logger.info("gateway_started", backend_url=backend.base_url, services=len(services))

        yield

        await bus.shutdown_all()
        app.state.bus = None
        if client is None:
            await backend.aclose()
        logger.info("gateway_stopped")

    app = FastAPI(
        title=settings.app_name,
        description="Backend-for-frontend gateway for donations, budgets and bank accounts",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
