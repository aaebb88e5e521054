"""
Shared fixtures: an in-memory fake of the REST backend served through
``httpx.MockTransport``.
"""

import json
import re

import httpx
import pytest

from dbef.core.backend_client import BackendClient
from dbef.data.synthetic import SyntheticDataGenerator


class FakeBackend:
    """Answers the finance, project, notification and profile endpoints from memory."""

    def __init__(self, generator: SyntheticDataGenerator):
        self.campaigns = {
            1: generator.generate_campaign(
                campaign_id=1, target_amount=1000, funding_ratio=0.25, donors_count=4, days_active=3,
            ),
            2: generator.generate_campaign(
                campaign_id=2, target_amount=5000, funding_ratio=1.0, donors_count=60, days_active=30,
            ),
        }
        self.budgets = {
            1: generator.generate_budget(budget_id=1, total_amount=1000, spent_ratio=0.5),
            2: generator.generate_budget(budget_id=2, total_amount=1000, spent_ratio=0.95),
        }
        self.accounts = {
            1: generator.generate_bank_account(account_id=1, is_active=True, current_balance=100),
            2: generator.generate_bank_account(account_id=2, is_active=True, current_balance=9000),
        }
        self.notifications = {
            1: generator.generate_notification(notification_id=1, is_read=False),
            2: generator.generate_notification(notification_id=2, is_read=True),
        }
        self.profiles = {7: generator.generate_kyc_profile(profile_id=7)}
        self.projects = {
            1: generator.generate_project(project_id=1, budget=10000, spent_ratio=0.5, status="in_progress"),
            2: generator.generate_project(project_id=2, budget=4000, spent_ratio=1.25, status="in_progress"),
        }
        self.project_milestones = {
            1: [
                generator.generate_project_milestone(1, milestone_id=21, due_in_days=-5, status="pending"),
                generator.generate_project_milestone(1, milestone_id=22, due_in_days=3, status="in_progress"),
                generator.generate_project_milestone(1, milestone_id=23, due_in_days=-10, status="completed"),
            ],
        }
        self.teams = {
            1: [
                generator.generate_team_member(1, member_id=31, role="Team Lead"),
                generator.generate_team_member(1, member_id=32, role="Trainer"),
                generator.generate_team_member(1, member_id=33, role="Trainer", active=False),
            ],
        }
        self.requests = []
        self.fail_with = None

    @staticmethod
    def page(items):
        items = list(items)
        return {"count": len(items), "next": None, "previous": None, "results": items}

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        params = request.url.params
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, body))

        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"detail": "Backend failure"})

        routes = [
            ("GET", r"/finance_api/donation-campaigns/", lambda: self.page(self.campaigns.values())),
            ("GET", r"/finance_api/donation-campaigns/(\d+)/", lambda i: self.campaigns.get(i)),
            ("POST", r"/finance_api/donation-campaigns/(\d+)/check_milestones/",
             lambda i: {"new_milestones": []} if i in self.campaigns else None),
            ("POST", r"/finance_api/donation-campaigns/(\d+)/extend_deadline/",
             lambda i: {"status": "extended", **(body or {})} if i in self.campaigns else None),
            ("GET", r"/finance_api/budgets/", lambda: self.page(self.budgets.values())),
            ("GET", r"/finance_api/budgets/(\d+)/", lambda i: self.budgets.get(i)),
            ("GET", r"/finance_api/bank-accounts/", lambda: self.page(self.accounts.values())),
            ("GET", r"/finance_api/bank-accounts/(\d+)/", lambda i: self.accounts.get(i)),
            ("GET", r"/finance_api/bank-accounts/(\d+)/balance_history/",
             lambda i: [
                 {"date": "2026-10-01", "balance": "90.00", "formatted_balance": "$90.00"},
                 {"date": "2026-10-02", "balance": "100.00", "formatted_balance": "$100.00"},
             ] if i in self.accounts else None),
            ("GET", r"/finance_api/bank-accounts/(\d+)/transactions/",
             lambda i: self.page([
                 {"id": 11, "transaction_type": "deposit", "amount": "250.00", "status": "completed"},
                 {"id": 12, "transaction_type": "withdrawal", "amount": "-40.00", "status": "pending"},
             ]) if i in self.accounts else None),
            ("POST", r"/finance_api/bank-accounts/(\d+)/check_low_balance/",
             lambda i: {"is_low": True, **(body or {})} if i in self.accounts else None),
            ("POST", r"/finance_api/bank-accounts/(\d+)/freeze/",
             lambda i: {"status": "frozen"} if i in self.accounts else None),
            ("POST", r"/finance_api/bank-accounts/(\d+)/unfreeze/",
             lambda i: {"status": "active"} if i in self.accounts else None),
            ("GET", r"/notification_api/notifications/", lambda: self.page(self.notifications.values())),
            ("GET", r"/notification_api/notifications/unread/",
             lambda: [n for n in self.notifications.values() if not n["is_read"]]),
            ("POST", r"/notification_api/notifications/mark_all_read/", lambda: {"marked": 1}),
            ("POST", r"/notification_api/notifications/create_notification/",
             lambda: {"created": len(body["recipients"])}),
            ("POST", r"/notification_api/notifications/(\d+)/mark_read/",
             lambda i: {"status": "read"} if i in self.notifications else None),
            ("POST", r"/notification_api/notifications/(\d+)/mark_unread/",
             lambda i: {"status": "unread"} if i in self.notifications else None),
            ("GET", r"/notification_api/notification-preferences/",
             lambda: [{"id": 1, "notification_type": 3, "receive_email": True}]),
            ("POST", r"/notification_api/notification-preferences/update_preferences/",
             lambda: {"updated": len(body["preferences"])}),
            ("GET", r"/project_api/projects/", lambda: self.page(self.projects.values())),
            ("GET", r"/project_api/projects/statistics/",
             lambda: {"status_counts": {"in_progress": len(self.projects)}, "category_counts": {}}),
            ("GET", r"/project_api/projects/(\d+)/", lambda i: self.projects.get(i)),
            ("GET", r"/project_api/milestones/by_project/",
             lambda: self.project_milestones.get(int(params["project_id"]), [])),
            ("GET", r"/project_api/team-members/by_project/",
             lambda: self.teams.get(int(params["project_id"]), [])),
            ("GET", r"/api/profiles/", lambda: self.page(self.profiles.values())),
            ("GET", r"/api/profiles/(\d+)/kyc_documents/", lambda i: self.profiles.get(i)),
            ("POST", r"/api/profiles/(\d+)/verify_kyc/",
             lambda i: {"status": body["action"]} if i in self.profiles else None),
        ]

        for method, pattern, respond in routes:
            match = re.fullmatch(pattern, path)
            if method == request.method and match:
                result = respond(*(int(g) for g in match.groups()))
                if result is None:
                    return httpx.Response(404, json={"detail": "Not found."})
                return httpx.Response(200, json=result)

        return httpx.Response(404, json={"detail": "Not found."})


@pytest.fixture
def generator():
    """Create a synthetic data generator."""
    return SyntheticDataGenerator(seed=42)


@pytest.fixture
def backend(generator):
    return FakeBackend(generator)


@pytest.fixture
def client(backend):
    return BackendClient(
        base_url="http://backend.test",
        access_token="token",
        refresh_token="refresh",
        transport=httpx.MockTransport(backend.handler),
    )
