"""
Project dashboard views: budget use, delivery milestones and team rosters.
"""

from collections import Counter
from datetime import date, timedelta
from typing import Any, Dict, Optional, Sequence

from dbef.data.models import (
    Project,
    ProjectMilestone,
    ProjectMilestoneStatus,
    ProjectStatus,
    ProjectTeamMember,
)

# Utilization above this is flagged on the dashboard
UTILIZATION_WARNING = 90.0
UPCOMING_WINDOW_DAYS = 14

CLOSED_MILESTONES = {ProjectMilestoneStatus.COMPLETED, ProjectMilestoneStatus.CANCELLED}


def _percentage(part: float, whole: float) -> float:
    return round(part / whole * 100, 2) if whole > 0 else 0.0


def project_budget(project: Project) -> Dict[str, Any]:
    """Spend against budget for a single project."""
    utilization = _percentage(project.funds_spent, project.budget)
    return {
        "budget": project.budget,
        "funds_allocated": project.funds_allocated,
        "funds_spent": project.funds_spent,
        "remaining": round(project.budget - project.funds_spent, 2),
        "utilization_percentage": utilization,
        "is_overbudget": project.is_overbudget or project.funds_spent > project.budget,
        "within_target": utilization <= UTILIZATION_WARNING,
    }


def portfolio_summary(projects: Sequence[Project]) -> Dict[str, Any]:
    """Counts by status and combined spend across projects."""
    statuses = Counter(p.status.value for p in projects)
    total_budget = sum(p.budget for p in projects)
    total_spent = sum(p.funds_spent for p in projects)
    active = statuses.get(ProjectStatus.IN_PROGRESS.value, 0)

    return {
        "total_projects": len(projects),
        "active_projects": active,
        "completed_projects": statuses.get(ProjectStatus.COMPLETED.value, 0),
        "status_counts": dict(statuses),
        "overbudget_projects": sum(1 for p in projects if project_budget(p)["is_overbudget"]),
        "total_budget": round(total_budget, 2),
        "total_spent": round(total_spent, 2),
        "average_budget": round(total_budget / active, 2) if active else 0.0,
        "budget_utilization": _percentage(total_spent, total_budget),
    }


def is_overdue(milestone: ProjectMilestone, today: date) -> bool:
    if milestone.status in CLOSED_MILESTONES or milestone.due_date is None:
        return False
    return milestone.due_date < today


def milestone_overview(
    milestones: Sequence[ProjectMilestone],
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Delivery milestone summary for one project.

    Overdue milestones are open ones past their due date; upcoming ones
    are open and due within the next two weeks.
    """
    today = today or date.today()
    horizon = today + timedelta(days=UPCOMING_WINDOW_DAYS)

    overdue = [m for m in milestones if is_overdue(m, today)]
    upcoming = [
        m for m in milestones
        if m.status not in CLOSED_MILESTONES
        and m.due_date is not None
        and today <= m.due_date <= horizon
    ]
    upcoming.sort(key=lambda m: m.due_date)

    average = (
        round(sum(m.completion_percentage for m in milestones) / len(milestones), 1)
        if milestones else 0.0
    )

    return {
        "total_milestones": len(milestones),
        "status_counts": dict(Counter(m.status.value for m in milestones)),
        "priority_counts": dict(Counter(m.priority for m in milestones)),
        "average_completion": average,
        "overdue_count": len(overdue),
        "overdue": [m.id for m in overdue],
        "upcoming": [m.id for m in upcoming],
    }


def team_roster(
    members: Sequence[ProjectTeamMember],
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Team members with display names, grouped by role."""
    today = today or date.today()
    roster = []
    for member in members:
        active = member.end_date is None or member.end_date >= today
        roster.append({
            "id": member.id,
            "user_id": member.user.id,
            "name": member.user.full_name,
            "email": member.user.email,
            "role": member.role,
            "responsibilities": member.responsibilities,
            "join_date": member.join_date.isoformat() if member.join_date else None,
            "end_date": member.end_date.isoformat() if member.end_date else None,
            "is_active": active,
        })

    return {
        "total_members": len(roster),
        "active_members": sum(1 for r in roster if r["is_active"]),
        "role_counts": dict(Counter(r["role"] for r in roster)),
        "members": roster,
    }
