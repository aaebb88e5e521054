"""
Locally-computed finance views: campaign milestones, performance metrics,
budget health, bank account statistics, project dashboards and currency
formatting.
"""

from dbef.finance.milestones import (
    Milestone,
    MilestoneSummary,
    MilestoneType,
    build_milestones,
    milestone_progress,
    next_milestone,
    progress_text,
    summarize,
)
from dbef.finance.currency import format_currency, format_percentage, parse_currency

__all__ = [
    "Milestone",
    "MilestoneSummary",
    "MilestoneType",
    "build_milestones",
    "milestone_progress",
    "next_milestone",
    "progress_text",
    "summarize",
    "format_currency",
    "format_percentage",
    "parse_currency",
]
