"""
Campaign Milestone Tracker.

Derives a fixed list of progress checkpoints from a campaign snapshot:
- First donation
- 10%, 25%, 50% and 100% of the fundraising goal
- 10 and 50 unique donors
- One week active

Every milestone is achieved when its current value reaches its target.
The derivation is pure; celebrating a milestone is a transient event
published by the campaign service.
"""

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from dbef.data.models import CampaignSnapshot
from dbef.finance.currency import format_currency


class MilestoneType(str, Enum):
    """Kinds of value a milestone tracks."""
    AMOUNT = "amount"
    DONORS = "donors"
    TIME = "time"
    SPECIAL = "special"


@dataclass(frozen=True)
class MilestoneDefinition:
    """A predefined checkpoint, independent of any campaign."""
    id: str
    title: str
    description: str
    type: MilestoneType
    reward: str
    goal_fraction: Optional[float] = None  # amount milestones: share of target_amount
    threshold: Optional[float] = None      # donor and time milestones


@dataclass
class Milestone:
    """A milestone evaluated against one campaign snapshot."""
    id: str
    title: str
    description: str
    type: MilestoneType
    target: float
    current: float
    achieved: bool
    reward: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        return data


MILESTONE_DEFINITIONS: List[MilestoneDefinition] = [
    MilestoneDefinition(
        id="first_donation",
        title="First Donation",
        description="Receive your first donation",
        type=MilestoneType.DONORS,
        reward="Campaign momentum boost",
        threshold=1,
    ),
    MilestoneDefinition(
        id="ten_percent",
        title="10% Goal Reached",
        description="Reach 10% of your fundraising goal",
        type=MilestoneType.AMOUNT,
        reward="Social media boost",
        goal_fraction=0.10,
    ),
    MilestoneDefinition(
        id="quarter_goal",
        title="25% Goal Reached",
        description="Reach 25% of your fundraising goal",
        type=MilestoneType.AMOUNT,
        reward="Featured campaign status",
        goal_fraction=0.25,
    ),
    MilestoneDefinition(
        id="half_goal",
        title="50% Goal Reached",
        description="Reach halfway to your goal",
        type=MilestoneType.AMOUNT,
        reward="Newsletter feature",
        goal_fraction=0.50,
    ),
    MilestoneDefinition(
        id="ten_donors",
        title="10 Donors",
        description="Reach 10 unique donors",
        type=MilestoneType.DONORS,
        reward="Donor appreciation email",
        threshold=10,
    ),
    MilestoneDefinition(
        id="fifty_donors",
        title="50 Donors",
        description="Build a community of 50 supporters",
        type=MilestoneType.DONORS,
        reward="Donor wall feature",
        threshold=50,
    ),
    MilestoneDefinition(
        id="one_week",
        title="One Week Active",
        description="Campaign running for 7 days",
        type=MilestoneType.TIME,
        reward="Performance analytics",
        threshold=7,
    ),
    MilestoneDefinition(
        id="goal_reached",
        title="Goal Achieved!",
        description="Reach 100% of your fundraising goal",
        type=MilestoneType.AMOUNT,
        reward="Success celebration package",
        goal_fraction=1.0,
    ),
]


def _current_value(definition: MilestoneDefinition, snapshot: CampaignSnapshot) -> float:
    if definition.type == MilestoneType.AMOUNT:
        return snapshot.current_amount_in_target_currency
    if definition.type == MilestoneType.DONORS:
        return snapshot.donors_count
    if definition.type == MilestoneType.TIME:
        return snapshot.days_active
    raise ValueError(f"Unsupported milestone type: {definition.type}")


def _target_value(definition: MilestoneDefinition, snapshot: CampaignSnapshot) -> float:
    if definition.goal_fraction is not None:
        # Amounts are compared at cent precision
        return round(snapshot.target_amount * definition.goal_fraction, 2)
    return definition.threshold


def evaluate_milestone(definition: MilestoneDefinition, snapshot: CampaignSnapshot) -> Milestone:
    """Evaluate a single definition against a snapshot."""
    current = _current_value(definition, snapshot)
    target = _target_value(definition, snapshot)
    return Milestone(
        id=definition.id,
        title=definition.title,
        description=definition.description,
        type=definition.type,
        target=target,
        current=current,
        achieved=current >= target,
        reward=definition.reward,
    )


def build_milestones(
    snapshot: CampaignSnapshot,
    definitions: Optional[List[MilestoneDefinition]] = None,
) -> List[Milestone]:
    """Derive the ordered milestone list for a campaign snapshot."""
    definitions = MILESTONE_DEFINITIONS if definitions is None else definitions
    return [evaluate_milestone(definition, snapshot) for definition in definitions]


def milestone_progress(milestone: Milestone) -> float:
    """Progress towards a milestone as a percentage in [0, 100]."""
    if milestone.achieved:
        return 100.0
    if milestone.target <= 0:
        return 0.0
    ratio = milestone.current / milestone.target
    if not math.isfinite(ratio):
        return 0.0
    return max(min(ratio, 1.0), 0.0) * 100


def next_milestone(milestones: List[Milestone]) -> Optional[Milestone]:
    """
    Pick the upcoming milestone closest to completion.

    Ties keep list order, so the earliest defined milestone wins.
    """
    upcoming = [m for m in milestones if not m.achieved]
    if not upcoming:
        return None
    return max(upcoming, key=milestone_progress)


def progress_text(milestone: Milestone, currency_code: str = "USD") -> str:
    """Human-readable "current / target" for a milestone."""
    if milestone.type == MilestoneType.AMOUNT:
        current = format_currency(currency_code, milestone.current, decimals=0)
        target = format_currency(currency_code, milestone.target, decimals=0)
        return f"{current} / {target}"
    if milestone.type == MilestoneType.DONORS:
        return f"{milestone.current:g} / {milestone.target:g} donors"
    if milestone.type == MilestoneType.TIME:
        return f"{milestone.current:g} / {milestone.target:g} days"
    return f"{milestone.current:g} / {milestone.target:g}"


def celebration_message(milestone: Milestone) -> str:
    return f"🎉 Milestone Celebrated! {milestone.title}"


@dataclass
class MilestoneSummary:
    """Aggregate view shown alongside the milestone list."""
    achieved: int
    upcoming: int
    completion_percentage: int
    next: Optional[Milestone] = None
    recent_achievements: List[Milestone] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "achieved": self.achieved,
            "upcoming": self.upcoming,
            "completion_percentage": self.completion_percentage,
            "next": self.next.to_dict() if self.next else None,
            "recent_achievements": [m.to_dict() for m in self.recent_achievements],
        }


def summarize(milestones: List[Milestone]) -> MilestoneSummary:
    """Count achieved and upcoming milestones and pick the next one."""
    achieved = [m for m in milestones if m.achieved]
    total = len(milestones)
    completion = round(len(achieved) / total * 100) if total else 0
    return MilestoneSummary(
        achieved=len(achieved),
        upcoming=total - len(achieved),
        completion_percentage=completion,
        next=next_milestone(milestones),
        recent_achievements=achieved[-3:],
    )


def milestone_report(snapshot: CampaignSnapshot) -> Dict[str, Any]:
    """Milestones plus summary, serialized for API responses."""
    milestones = build_milestones(snapshot)
    return {
        "milestones": [
            {
                **m.to_dict(),
                "progress": milestone_progress(m),
                "progress_text": progress_text(m, snapshot.currency_code),
            }
            for m in milestones
        ],
        "summary": summarize(milestones).to_dict(),
    }
