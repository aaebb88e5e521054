"""
Campaign performance metrics derived from backend aggregates.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from dbef.data.models import CampaignSnapshot, DonationCampaign, DonationTrend, DonorSegments


class HealthStatus(str, Enum):
    COMPLETED = "completed"
    ON_TRACK = "on_track"
    URGENT = "urgent"
    GOOD = "good"
    NEEDS_ATTENTION = "needs_attention"


DONOR_SEGMENT_LABELS = {
    "micro": "Micro (<$50)",
    "small": "Small ($50-$250)",
    "medium": "Medium ($250-$1K)",
    "large": "Large ($1K-$5K)",
    "major": "Major ($5K+)",
}


def daily_average(snapshot: CampaignSnapshot) -> float:
    return snapshot.current_amount_in_target_currency / max(snapshot.days_active, 1)


def projected_total(snapshot: CampaignSnapshot) -> float:
    """Amount raised by the end date if the daily average holds."""
    return daily_average(snapshot) * (snapshot.days_active + snapshot.days_remaining)


def projected_completion(snapshot: CampaignSnapshot) -> float:
    if snapshot.target_amount <= 0:
        return 0.0
    return projected_total(snapshot) / snapshot.target_amount * 100


def average_donation(snapshot: CampaignSnapshot) -> float:
    return snapshot.current_amount_in_target_currency / max(snapshot.donors_count, 1)


def health_status(snapshot: CampaignSnapshot) -> HealthStatus:
    progress = snapshot.progress_percentage
    if progress >= 100:
        return HealthStatus.COMPLETED
    if progress >= 75:
        return HealthStatus.ON_TRACK
    if snapshot.days_remaining <= 7:
        return HealthStatus.URGENT
    if progress >= 50:
        return HealthStatus.GOOD
    return HealthStatus.NEEDS_ATTENTION


def donation_velocity(trends: Sequence[DonationTrend]) -> float:
    """Average change in daily totals across the trend window."""
    if len(trends) < 2:
        return 0.0
    return (trends[-1].total - trends[0].total) / len(trends)


def donor_segment_breakdown(segments: Optional[DonorSegments]) -> List[Dict[str, Any]]:
    """Labelled donor segments, skipping empty ones."""
    if segments is None:
        return []
    data = segments.model_dump()
    return [
        {"segment": key, "name": label, "value": data[key]}
        for key, label in DONOR_SEGMENT_LABELS.items()
        if data.get(key, 0) > 0
    ]


def campaign_performance(campaign: DonationCampaign) -> Dict[str, Any]:
    """Key performance indicators and projections for one campaign."""
    snapshot = campaign.snapshot()
    return {
        "campaign_id": campaign.id,
        "title": campaign.title,
        "currency": snapshot.currency_code,
        "progress_percentage": snapshot.progress_percentage,
        "daily_average": round(daily_average(snapshot), 2),
        "projected_total": round(projected_total(snapshot), 2),
        "projected_completion": round(projected_completion(snapshot), 2),
        "average_donation": round(average_donation(snapshot), 2),
        "health_status": health_status(snapshot).value,
        "donation_velocity": round(donation_velocity(campaign.donation_trends), 2),
        "donor_segments": donor_segment_breakdown(campaign.donor_segments),
    }


def rank_campaigns_by_progress(
    campaigns: Sequence[DonationCampaign],
    limit: int = 10,
) -> List[DonationCampaign]:
    active = [c for c in campaigns if c.is_active]
    return sorted(active, key=lambda c: c.progress_percentage, reverse=True)[:limit]


def campaign_statistics(campaigns: Sequence[DonationCampaign]) -> Dict[str, Any]:
    """Portfolio totals across campaigns."""
    total = len(campaigns)
    active = sum(1 for c in campaigns if c.is_active)
    completed = sum(1 for c in campaigns if c.is_completed)
    total_raised = sum(c.current_amount_in_target_currency for c in campaigns)
    total_target = sum(c.target_amount for c in campaigns)

    top = sorted(
        campaigns,
        key=lambda c: c.current_amount_in_target_currency,
        reverse=True,
    )[:5]

    return {
        "total_campaigns": total,
        "active_campaigns": active,
        "completed_campaigns": completed,
        "inactive_campaigns": max(total - active - completed, 0),
        "total_raised": round(total_raised, 2),
        "total_target": round(total_target, 2),
        "overall_progress": round(total_raised / total_target * 100, 2) if total_target > 0 else 0.0,
        "top_campaigns": [
            {
                "id": c.id,
                "title": c.title,
                "raised": c.current_amount_in_target_currency,
                "target": c.target_amount,
                "progress": c.progress_percentage,
            }
            for c in top
        ],
    }


def donation_growth(monthly_trend: Sequence[Dict[str, Any]]) -> float:
    """Month-over-month growth of ``total_amount`` in percent."""
    if len(monthly_trend) < 2:
        return 0.0
    current = float(monthly_trend[-1].get("total_amount") or 0)
    previous = float(monthly_trend[-2].get("total_amount") or 0)
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100
