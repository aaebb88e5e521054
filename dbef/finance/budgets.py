"""
Budget utilization and health indicators.
"""

from enum import Enum
from typing import Any, Dict, List, Sequence

from dbef.data.models import Budget


class HealthLevel(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    OVER_BUDGET = "over_budget"


WARNING_THRESHOLD = 75.0
CRITICAL_THRESHOLD = 90.0

_ALERT_ACTIONS = {
    HealthLevel.WARNING: "Review spending patterns",
    HealthLevel.CRITICAL: "Immediate funding required",
    HealthLevel.OVER_BUDGET: "Budget reallocation needed",
}


def budget_utilization(budget: Budget) -> Dict[str, float]:
    spent = budget.spent_amount
    remaining = budget.total_amount - spent
    percentage = spent / budget.total_amount * 100 if budget.total_amount > 0 else 0.0
    return {
        "total": budget.total_amount,
        "spent": spent,
        "remaining": round(remaining, 2),
        "spent_percentage": round(percentage, 2),
    }


def budget_health_level(budget: Budget) -> HealthLevel:
    if budget.total_amount <= 0:
        return HealthLevel.OVER_BUDGET if budget.spent_amount > 0 else HealthLevel.HEALTHY
    percentage = budget.spent_amount / budget.total_amount * 100
    if percentage > 100:
        return HealthLevel.OVER_BUDGET
    if percentage >= CRITICAL_THRESHOLD:
        return HealthLevel.CRITICAL
    if percentage >= WARNING_THRESHOLD:
        return HealthLevel.WARNING
    return HealthLevel.HEALTHY


def budget_health(budgets: Sequence[Budget]) -> Dict[str, Any]:
    """
    Health summary across budgets.

    The overall score is the share of healthy budgets; every non-healthy
    budget produces an alert.
    """
    counts = {level.value: 0 for level in HealthLevel}
    alerts: List[Dict[str, Any]] = []

    for budget in budgets:
        level = budget_health_level(budget)
        counts[level.value] += 1
        if level != HealthLevel.HEALTHY:
            utilization = budget_utilization(budget)
            alerts.append({
                "budget_id": budget.id,
                "budget": budget.title,
                "level": level.value,
                "spent_percentage": utilization["spent_percentage"],
                "remaining": utilization["remaining"],
                "action": _ALERT_ACTIONS[level],
            })

    total = len(budgets)
    score = round(counts[HealthLevel.HEALTHY.value] / total * 100) if total else 100

    return {
        "total_budgets": total,
        "counts": counts,
        "overall_score": score,
        "alerts": sorted(alerts, key=lambda a: a["spent_percentage"], reverse=True),
    }
