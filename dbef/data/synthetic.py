"""
Synthetic data generator for testing and demonstration.
Generates backend-shaped campaigns, budgets, bank accounts, notifications,
KYC records and projects with their milestones and teams.
"""

import random
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

# Sample data for generation
FIRST_NAMES = [
    "Emma", "Liam", "Olivia", "Noah", "Ava", "Ethan", "Sophia", "Mason",
    "Isabella", "William", "Mia", "James", "Charlotte", "Oliver", "Amelia",
    "Benjamin", "Harper", "Elijah", "Evelyn", "Lucas", "Abigail", "Michael",
]

LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller",
    "Davis", "Rodriguez", "Martinez", "Hernandez", "Lopez", "Gonzalez",
    "Wilson", "Anderson", "Thomas", "Taylor", "Moore", "Jackson", "Martin",
]

CAMPAIGN_TITLES = [
    "Build a Well in {place}",
    "Youth Choir Tour {year}",
    "Sanctuary Roof Repair",
    "Food Bank Winter Drive",
    "Scholarships for {place} Students",
    "Community Center Renovation",
    "Medical Mission to {place}",
    "Back to School Supplies",
]

PLACES = ["Kisumu", "Accra", "Lagos", "Nairobi", "Kampala", "Lusaka", "Harare"]

CURRENCIES = [
    {"id": 1, "code": "USD", "name": "US Dollar"},
    {"id": 2, "code": "EUR", "name": "Euro"},
    {"id": 3, "code": "KES", "name": "Kenyan Shilling"},
    {"id": 4, "code": "NGN", "name": "Nigerian Naira"},
]

INSTITUTIONS = [
    {"id": 1, "name": "First Community Bank", "short_name": "FCB"},
    {"id": 2, "name": "Equity Bank", "short_name": "EQB"},
    {"id": 3, "name": "Standard Chartered", "short_name": "SCB"},
]

ACCOUNT_TYPES = ["checking", "savings", "money_market", "restricted", "project", "grant", "mobile_money"]

BUDGET_TITLES = [
    "Missions", "Youth Ministry", "Facilities", "Worship", "Outreach",
    "Administration", "Children's Ministry", "Benevolence",
]

NOTIFICATION_TYPES = [
    ("Donation Received", "finance"),
    ("Budget Alert", "finance"),
    ("Event Reminder", "events"),
    ("New Member", "membership"),
    ("KYC Submitted", "security"),
]

SEGMENTS = ["micro", "small", "medium", "large", "major"]

PROJECT_TITLES = [
    "Clean Water for {place}",
    "Vocational Training Centre",
    "Mobile Health Clinic",
    "Women's Enterprise Fund",
    "School Feeding in {place}",
]

PROJECT_STATUSES = ["planned", "in_progress", "in_progress", "completed", "on_hold"]

MILESTONE_TITLES = [
    "Site survey", "Procurement", "Community briefing", "Construction",
    "Staff training", "Handover", "Final report",
]

TEAM_ROLES = ["Team Lead", "Program Director", "Trainer", "Health Educator", "Financial Advisor"]


class SyntheticDataGenerator:
    """Generates synthetic backend payloads for testing."""

    def __init__(self, seed: Optional[int] = None):
        """Initialize with optional random seed for reproducibility."""
        self._random = random.Random(seed)
        self._next_id = 1

    def _id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def _name(self) -> str:
        return f"{self._random.choice(FIRST_NAMES)} {self._random.choice(LAST_NAMES)}"

    def generate_campaign(
        self,
        campaign_id: Optional[int] = None,
        target_amount: Optional[float] = None,
        funding_ratio: Optional[float] = None,
        donors_count: Optional[int] = None,
        days_active: Optional[int] = None,
        currency: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Generate a donation campaign as returned by the finance API."""
        rng = self._random
        campaign_id = campaign_id or self._id()

        if target_amount is None:
            target_amount = rng.choice([5000, 10000, 25000, 50000, 100000])
        if funding_ratio is None:
            funding_ratio = rng.uniform(0.0, 1.2)
        current = round(target_amount * funding_ratio, 2)
        if donors_count is None:
            donors_count = int(current / rng.uniform(40, 120)) if current else 0
        if days_active is None:
            days_active = rng.randint(0, 120)
        days_remaining = rng.randint(0, 90)
        currency = currency or CURRENCIES[0]

        start = date.today() - timedelta(days=days_active)
        end = date.today() + timedelta(days=days_remaining)
        progress = round(current / target_amount * 100, 2) if target_amount else 0.0

        title = rng.choice(CAMPAIGN_TITLES).format(place=rng.choice(PLACES), year=start.year)

        return {
            "id": campaign_id,
            "title": title,
            "description": f"Raising funds for {title.lower()}.",
            # The backend serializes decimals as strings
            "target_amount": f"{target_amount:.2f}",
            "target_currency": currency,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "is_active": days_remaining > 0,
            "is_featured": rng.random() > 0.8,
            "is_completed": current >= target_amount,
            "current_amount_in_target_currency": f"{current:.2f}",
            "progress_percentage": progress,
            "donations_count": donors_count + rng.randint(0, donors_count),
            "donors_count": donors_count,
            "days_active": days_active,
            "days_remaining": days_remaining,
            "created_at": datetime.combine(start, datetime.min.time()).isoformat(),
            "donation_trends": self._generate_trends(min(days_active, 14)),
            "donor_segments": self._generate_segments(donors_count),
        }

    def _generate_trends(self, days: int) -> List[Dict[str, Any]]:
        trends = []
        for offset in range(days, 0, -1):
            count = self._random.randint(0, 8)
            trends.append({
                "day": (date.today() - timedelta(days=offset)).isoformat(),
                "count": count,
                "total": f"{count * self._random.uniform(20, 150):.2f}",
            })
        return trends

    def _generate_segments(self, donors_count: int) -> Dict[str, int]:
        segments = {name: 0 for name in SEGMENTS}
        for _ in range(donors_count):
            segments[self._random.choices(SEGMENTS, weights=[40, 30, 18, 9, 3])[0]] += 1
        return segments

    def generate_bank_account(
        self,
        account_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        current_balance: Optional[float] = None,
        minimum_balance: float = 500.0,
        account_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Generate an organizational bank account."""
        rng = self._random
        account_id = account_id or self._id()
        account_type = account_type or rng.choice(ACCOUNT_TYPES)
        if is_active is None:
            is_active = rng.random() > 0.15
        if current_balance is None:
            current_balance = round(rng.uniform(0, 50000), 2)
        is_restricted = rng.random() > 0.85

        return {
            "id": account_id,
            "name": f"{rng.choice(BUDGET_TITLES)} {account_type.replace('_', ' ').title()}",
            "account_number": "****" + str(rng.randint(1000, 9999)),
            "account_type": account_type,
            "financial_institution": rng.choice(INSTITUTIONS + [None]),
            "currency": rng.choice(CURRENCIES),
            "is_restricted": is_restricted,
            "is_active": is_active,
            "current_balance": f"{current_balance:.2f}",
            "minimum_balance": f"{minimum_balance:.2f}",
            "transactions_count": rng.randint(0, 400),
            "accepts_donations": rng.random() > 0.6,
            "account_status": "active" if is_active else rng.choice(["frozen", "closed"]),
            "risk_level": rng.choice(["low", "low", "medium", "high"]),
            "compliance_status": "compliant",
        }

    def generate_budget(
        self,
        budget_id: Optional[int] = None,
        total_amount: Optional[float] = None,
        spent_ratio: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Generate a budget with its line items."""
        rng = self._random
        budget_id = budget_id or self._id()
        if total_amount is None:
            total_amount = float(rng.choice([2000, 5000, 12000, 30000, 75000]))
        if spent_ratio is None:
            spent_ratio = rng.uniform(0.2, 1.15)
        spent = round(total_amount * spent_ratio, 2)
        year = date.today().year

        return {
            "id": budget_id,
            "title": f"{rng.choice(BUDGET_TITLES)} {year}",
            "budget_type": rng.choice(["organizational", "departmental", "project"]),
            "total_amount": f"{total_amount:.2f}",
            "spent_amount": f"{spent:.2f}",
            "currency": CURRENCIES[0],
            "status": rng.choice(["active", "approved"]),
            "fiscal_year": str(year),
            "start_date": date(year, 1, 1).isoformat(),
            "end_date": date(year, 12, 31).isoformat(),
            "items": [
                {
                    "id": self._id(),
                    "name": category,
                    "category": category.lower(),
                    "budgeted_amount": f"{total_amount / 2:.2f}",
                    "spent_amount": f"{spent / 2:.2f}",
                }
                for category in ("Supplies", "Services")
            ],
        }

    def generate_notification(self, notification_id: Optional[int] = None, is_read: Optional[bool] = None) -> Dict[str, Any]:
        rng = self._random
        type_name, category = rng.choice(NOTIFICATION_TYPES)
        if is_read is None:
            is_read = rng.random() > 0.5
        created = datetime.now() - timedelta(hours=rng.randint(1, 240))
        return {
            "id": notification_id or self._id(),
            "recipient": rng.randint(1, 50),
            "title": type_name,
            "body": f"{type_name} for {self._name()}",
            "notification_type_name": type_name,
            "notification_type_category": category,
            "priority": rng.choice(["low", "normal", "high"]),
            "is_read": is_read,
            "read_at": created.isoformat() if is_read else None,
            "created_at": created.isoformat(),
        }

    def _user(self) -> Dict[str, Any]:
        rng = self._random
        first_name = rng.choice(FIRST_NAMES)
        last_name = rng.choice(LAST_NAMES)
        return {
            "id": self._id(),
            "username": f"{first_name.lower()}{rng.randint(1, 99)}",
            "first_name": first_name,
            "last_name": last_name,
            "email": f"{first_name.lower()}.{last_name.lower()}@example.com",
        }

    def generate_kyc_profile(self, profile_id: Optional[int] = None) -> Dict[str, Any]:
        """Generate a profile with a pending KYC submission."""
        rng = self._random
        profile_id = profile_id or self._id()
        return {
            "id": profile_id,
            "user": self._user(),
            "kyc_status": "pending",
            "id_document_type": rng.choice(["passport", "national_id", "drivers_license"]),
            "id_document_number": str(rng.randint(10000000, 99999999)),
            "kyc_submission_date": (datetime.now() - timedelta(days=rng.randint(0, 10))).isoformat(),
            "is_kyc_verified": False,
        }

    def generate_project(
        self,
        project_id: Optional[int] = None,
        budget: Optional[float] = None,
        spent_ratio: Optional[float] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Generate a project as served by the project API."""
        rng = self._random
        project_id = project_id or self._id()
        if budget is None:
            budget = float(rng.choice([5000, 15000, 40000, 120000]))
        if spent_ratio is None:
            spent_ratio = rng.uniform(0.0, 1.1)
        status = status or rng.choice(PROJECT_STATUSES)
        spent = round(budget * spent_ratio, 2)
        start = date.today() - timedelta(days=rng.randint(10, 200))
        end = start + timedelta(days=rng.randint(90, 365))

        return {
            "id": project_id,
            "title": rng.choice(PROJECT_TITLES).format(place=rng.choice(PLACES)),
            "description": "Community development project.",
            "status": status,
            "category": rng.choice(["education", "health", "livelihoods", "water"]),
            "project_type": rng.choice(["community", "infrastructure", "training"]),
            "location": rng.choice(PLACES),
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "target_end_date": end.isoformat(),
            "days_remaining": max((end - date.today()).days, 0),
            "completion_percentage": 100 if status == "completed" else rng.randint(0, 95),
            "budget": f"{budget:.2f}",
            "funds_allocated": f"{budget:.2f}",
            "funds_spent": f"{spent:.2f}",
            "is_overbudget": spent > budget,
            "manager_details": self._user(),
        }

    def generate_project_milestone(
        self,
        project_id: int,
        milestone_id: Optional[int] = None,
        due_in_days: Optional[int] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Generate a delivery milestone; negative ``due_in_days`` is in the past."""
        rng = self._random
        if due_in_days is None:
            due_in_days = rng.randint(-30, 60)
        status = status or rng.choice(["pending", "in_progress", "completed"])
        return {
            "id": milestone_id or self._id(),
            "project": project_id,
            "title": rng.choice(MILESTONE_TITLES),
            "description": "",
            "due_date": (date.today() + timedelta(days=due_in_days)).isoformat(),
            "status": status,
            "priority": rng.choice(["low", "medium", "high", "critical"]),
            "completion_percentage": 100 if status == "completed" else rng.randint(0, 90),
            "assigned_to": [self._user()],
        }

    def generate_team_member(
        self,
        project_id: int,
        member_id: Optional[int] = None,
        role: Optional[str] = None,
        active: bool = True,
    ) -> Dict[str, Any]:
        rng = self._random
        joined = date.today() - timedelta(days=rng.randint(30, 400))
        return {
            "id": member_id or self._id(),
            "project": project_id,
            "user": self._user(),
            "role": role or rng.choice(TEAM_ROLES),
            "responsibilities": "",
            "join_date": joined.isoformat(),
            "end_date": None if active else (date.today() - timedelta(days=1)).isoformat(),
        }

    def generate_dataset(
        self,
        num_campaigns: int = 10,
        num_accounts: int = 6,
        num_budgets: int = 5,
        num_notifications: int = 8,
        num_kyc: int = 3,
        num_projects: int = 4,
    ) -> Dict[str, List[Dict[str, Any]]]:
        """Generate a complete dataset."""
        return {
            "campaigns": [self.generate_campaign() for _ in range(num_campaigns)],
            "bank_accounts": [self.generate_bank_account() for _ in range(num_accounts)],
            "budgets": [self.generate_budget() for _ in range(num_budgets)],
            "notifications": [self.generate_notification() for _ in range(num_notifications)],
            "kyc_profiles": [self.generate_kyc_profile() for _ in range(num_kyc)],
            "projects": [self.generate_project() for _ in range(num_projects)],
        }
