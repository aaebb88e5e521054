"""
Data models for the DBEF platform.
The remote backend owns these entities; the models here validate and
coerce its JSON (decimals arrive as strings) for local derivations.
"""

from datetime import date
from typing import Any, Dict, Generic, List, Optional, TypeVar
import enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BackendModel(BaseModel):
    """Base class for all backend shapes."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, allow_inf_nan=False)


# Enums
class AccountType(str, enum.Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    MONEY_MARKET = "money_market"
    RESTRICTED = "restricted"
    PROJECT = "project"
    GRANT = "grant"
    EMERGENCY = "emergency"
    INVESTMENT = "investment"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    MOBILE_MONEY = "mobile_money"


class AccountStatus(str, enum.Enum):
    ACTIVE = "active"
    FROZEN = "frozen"
    CLOSED = "closed"
    PENDING = "pending"


class BudgetStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProjectStatus(str, enum.Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"


class ProjectMilestoneStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


class KYCAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


# Shared
class Currency(BackendModel):
    """Currency reference."""
    id: Optional[int] = None
    code: str = "USD"
    name: str = ""


class User(BackendModel):
    """User reference embedded in finance records."""
    id: int
    username: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""

    @property
    def full_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.username


class FinancialInstitution(BackendModel):
    id: Optional[int] = None
    name: str = ""
    short_name: str = ""


T = TypeVar("T")


class Page(BackendModel, Generic[T]):
    """Paginated envelope returned by list endpoints."""
    count: int = 0
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[T] = Field(default_factory=list)


# Campaigns
class DonationTrend(BackendModel):
    day: str
    count: int = 0
    total: float = 0.0


class DonorSegments(BackendModel):
    micro: int = 0
    small: int = 0
    medium: int = 0
    large: int = 0
    major: int = 0


class CampaignSnapshot(BackendModel):
    """Numeric view of a campaign used by the milestone tracker."""
    target_amount: float = Field(0.0, ge=0)
    current_amount_in_target_currency: float = 0.0
    progress_percentage: float = 0.0
    donors_count: int = 0
    days_active: int = 0
    days_remaining: int = 0
    currency_code: str = "USD"


class DonationCampaign(BackendModel):
    """Donation campaign as served by the finance API."""
    id: int
    title: str
    description: str = ""
    target_amount: float = 0.0
    target_currency: Optional[Currency] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_active: bool = True
    is_featured: bool = False
    is_completed: bool = False
    current_amount_in_target_currency: float = 0.0
    progress_percentage: float = 0.0
    donations_count: int = 0
    donors_count: int = 0
    days_active: int = 0
    days_remaining: int = 0
    created_at: Optional[str] = None
    donation_trends: List[DonationTrend] = Field(default_factory=list)
    donor_segments: Optional[DonorSegments] = None

    @property
    def currency_code(self) -> str:
        return self.target_currency.code if self.target_currency else "USD"

    def snapshot(self) -> CampaignSnapshot:
        """Extract the numeric snapshot."""
        return CampaignSnapshot(
            target_amount=self.target_amount,
            current_amount_in_target_currency=self.current_amount_in_target_currency,
            progress_percentage=self.progress_percentage,
            donors_count=self.donors_count,
            days_active=self.days_active,
            days_remaining=self.days_remaining,
            currency_code=self.currency_code,
        )


# Bank accounts
class BankAccount(BackendModel):
    """Organizational bank account record."""
    id: int
    name: str
    account_number: str = ""
    account_type: AccountType = AccountType.CHECKING
    financial_institution: Optional[FinancialInstitution] = None
    currency: Currency = Field(default_factory=Currency)
    purpose: str = ""
    is_restricted: bool = False
    is_active: bool = True
    current_balance: float = 0.0
    minimum_balance: float = 0.0
    transactions_count: int = 0
    accepts_donations: bool = False
    online_banking_enabled: bool = False
    mobile_banking_enabled: bool = False
    debit_card_enabled: bool = False
    overdraft_protection: bool = False
    account_status: AccountStatus = AccountStatus.ACTIVE
    risk_level: str = "low"
    compliance_status: str = "compliant"
    last_transaction_date: Optional[str] = None


class AccountTransaction(BackendModel):
    id: int
    transaction_type: str = ""
    amount: float = 0.0
    description: str = ""
    reference_number: str = ""
    transaction_date: Optional[str] = None
    status: str = "completed"


class BalancePoint(BackendModel):
    date: str
    balance: float = 0.0
    formatted_balance: str = ""


# Budgets
class BudgetItem(BackendModel):
    id: int
    name: str = ""
    category: str = ""
    budgeted_amount: float = 0.0
    spent_amount: float = 0.0


class Budget(BackendModel):
    """Budget record with its spend to date."""
    id: int
    title: str
    description: str = ""
    budget_type: str = "organizational"
    total_amount: float = 0.0
    spent_amount: float = 0.0
    currency: Currency = Field(default_factory=Currency)
    status: BudgetStatus = BudgetStatus.DRAFT
    fiscal_year: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    items: List[BudgetItem] = Field(default_factory=list)


# Projects
class Project(BackendModel):
    """Project record from the project API."""
    id: int
    title: str
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.PLANNED
    category: str = ""
    project_type: str = ""
    location: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    target_end_date: Optional[str] = None
    days_remaining: int = 0
    completion_percentage: float = 0.0
    budget: float = 0.0
    funds_allocated: float = 0.0
    funds_spent: float = 0.0
    budget_utilization: Optional[float] = None
    is_overbudget: bool = False
    manager_details: Optional[User] = None


class ProjectMilestone(BackendModel):
    """Delivery milestone on a project; unrelated to campaign milestones."""
    id: int
    project: int
    title: str
    description: str = ""
    due_date: Optional[date] = None
    completion_date: Optional[date] = None
    status: ProjectMilestoneStatus = ProjectMilestoneStatus.PENDING
    priority: str = "medium"
    completion_percentage: float = Field(0.0, ge=0, le=100)
    assigned_to: List[User] = Field(default_factory=list)


class ProjectTeamMember(BackendModel):
    id: int
    project: int
    user: User
    role: str = "member"
    responsibilities: str = ""
    join_date: Optional[date] = None
    end_date: Optional[date] = None


# Notifications
class Notification(BackendModel):
    id: int
    recipient: Optional[int] = None
    title: str = ""
    body: str = ""
    notification_type_name: str = ""
    notification_type_category: str = ""
    priority: str = "normal"
    action_url: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    read_at: Optional[str] = None
    created_at: Optional[str] = None


class NotificationPreference(BackendModel):
    id: Optional[int] = None
    notification_type: int
    notification_type_name: str = ""
    receive_in_app: bool = True
    receive_email: bool = True
    receive_sms: bool = False
    receive_push: bool = False


class CreateNotificationRequest(BackendModel):
    """Payload for fanning out a notification to recipients."""
    recipients: List[int] = Field(min_length=1)
    notification_type: str
    context_data: Dict[str, Any] = Field(default_factory=dict)
    related_object_type: Optional[str] = None
    related_object_id: Optional[int] = None
    action_url: Optional[str] = None
    priority: Optional[str] = None
    send_email: bool = False
    send_sms: bool = False
    send_push: bool = False


# KYC
class KYCDocuments(BackendModel):
    id_document_type: str = ""
    id_document_number: str = ""
    id_document_image_front: Optional[str] = None
    id_document_image_back: Optional[str] = None
    selfie_image: Optional[str] = None
    kyc_submission_date: Optional[str] = None
    is_kyc_verified: bool = False
    kyc_verification_date: Optional[str] = None
    kyc_rejection_reason: Optional[str] = None


class KYCVerificationRequest(BackendModel):
    """Approve or reject a KYC submission."""
    action: KYCAction
    reason: Optional[str] = None

    @model_validator(mode="after")
    def require_reason_on_reject(self):
        if self.action == KYCAction.REJECT and not (self.reason or "").strip():
            raise ValueError("A reason is required when rejecting a KYC submission")
        return self
