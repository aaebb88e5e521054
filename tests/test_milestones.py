"""
Tests for the campaign milestone tracker.
"""

import pytest

from dbef.data.models import CampaignSnapshot, DonationCampaign
from dbef.data.synthetic import SyntheticDataGenerator
from dbef.finance.milestones import (
    MILESTONE_DEFINITIONS,
    Milestone,
    MilestoneType,
    build_milestones,
    celebration_message,
    milestone_progress,
    milestone_report,
    next_milestone,
    progress_text,
    summarize,
)


def by_id(milestones):
    return {m.id: m for m in milestones}


@pytest.fixture
def quarter_snapshot():
    """A campaign a quarter of the way to its goal."""
    return CampaignSnapshot(
        target_amount=1000,
        current_amount_in_target_currency=250,
        progress_percentage=25,
        donors_count=4,
        days_active=3,
        days_remaining=20,
    )


class TestBuildMilestones:
    """Tests for deriving milestones from a snapshot."""

    def test_quarter_goal_example(self, quarter_snapshot):
        milestones = by_id(build_milestones(quarter_snapshot))

        assert milestones["ten_percent"].achieved
        assert milestones["quarter_goal"].achieved
        assert not milestones["half_goal"].achieved
        assert milestones["half_goal"].target == 500
        assert milestone_progress(milestones["half_goal"]) == 50.0

    def test_no_donors_means_no_first_donation(self):
        snapshot = CampaignSnapshot(target_amount=1000, donors_count=0)
        milestones = by_id(build_milestones(snapshot))

        assert not milestones["first_donation"].achieved
        assert milestone_progress(milestones["first_donation"]) == 0.0

    def test_first_donor_achieves_first_donation(self):
        snapshot = CampaignSnapshot(target_amount=1000, donors_count=1)
        assert by_id(build_milestones(snapshot))["first_donation"].achieved

    def test_fixed_order(self, quarter_snapshot):
        ids = [m.id for m in build_milestones(quarter_snapshot)]
        assert ids == [d.id for d in MILESTONE_DEFINITIONS]
        assert ids == [
            "first_donation",
            "ten_percent",
            "quarter_goal",
            "half_goal",
            "ten_donors",
            "fifty_donors",
            "one_week",
            "goal_reached",
        ]

    def test_deterministic(self, quarter_snapshot):
        first = [m.to_dict() for m in build_milestones(quarter_snapshot)]
        second = [m.to_dict() for m in build_milestones(quarter_snapshot)]
        assert first == second

    def test_donor_count_does_not_change_amount_milestones(self, quarter_snapshot):
        more_donors = quarter_snapshot.model_copy(update={"donors_count": 75})

        before = by_id(build_milestones(quarter_snapshot))
        after = by_id(build_milestones(more_donors))

        for milestone_id, milestone in before.items():
            if milestone.type == MilestoneType.AMOUNT:
                assert after[milestone_id].achieved == milestone.achieved
        assert after["fifty_donors"].achieved
        assert not before["fifty_donors"].achieved

    def test_goal_reached_at_exact_target(self):
        snapshot = CampaignSnapshot(target_amount=5000, current_amount_in_target_currency=5000)
        assert by_id(build_milestones(snapshot))["goal_reached"].achieved

    def test_fractional_targets_round_to_cents(self):
        snapshot = CampaignSnapshot(target_amount=333.33, current_amount_in_target_currency=33.33)
        milestones = by_id(build_milestones(snapshot))

        assert milestones["ten_percent"].target == 33.33
        assert milestones["ten_percent"].achieved

    def test_one_week_uses_days_active(self):
        assert by_id(build_milestones(CampaignSnapshot(days_active=7)))["one_week"].achieved
        assert not by_id(build_milestones(CampaignSnapshot(days_active=6)))["one_week"].achieved

    def test_zero_target_amount(self):
        milestones = by_id(build_milestones(CampaignSnapshot(target_amount=0)))
        for milestone_id in ("ten_percent", "quarter_goal", "half_goal", "goal_reached"):
            assert milestones[milestone_id].target == 0
            assert milestone_progress(milestones[milestone_id]) == 100.0

    def test_negative_target_rejected(self):
        with pytest.raises(ValueError):
            CampaignSnapshot(target_amount=-10)

    def test_snapshot_from_backend_campaign(self):
        campaign = DonationCampaign.model_validate({
            "id": 7,
            "title": "Roof Repair",
            "target_amount": "2000.00",
            "current_amount_in_target_currency": "1000.00",
            "progress_percentage": 50,
            "donors_count": 12,
            "days_active": 9,
            "target_currency": {"id": 2, "code": "EUR", "name": "Euro"},
        })
        milestones = by_id(build_milestones(campaign.snapshot()))

        assert milestones["half_goal"].achieved
        assert milestones["ten_donors"].achieved
        assert milestones["one_week"].achieved
        assert not milestones["goal_reached"].achieved


class TestMilestoneProgress:
    """Tests for progress percentages."""

    def _milestone(self, current, target, achieved=False):
        return Milestone(
            id="m",
            title="M",
            description="",
            type=MilestoneType.AMOUNT,
            target=target,
            current=current,
            achieved=achieved,
        )

    def test_clamped_to_hundred(self):
        assert milestone_progress(self._milestone(900, 500)) == 100.0

    def test_clamped_to_zero(self):
        assert milestone_progress(self._milestone(-50, 500)) == 0.0

    def test_achieved_is_full(self):
        assert milestone_progress(self._milestone(0, 500, achieved=True)) == 100.0

    def test_partial(self):
        assert milestone_progress(self._milestone(125, 500)) == 25.0

    def test_nan_current_is_zero(self):
        assert milestone_progress(self._milestone(float("nan"), 500)) == 0.0

    @pytest.mark.parametrize("value", ["nan", float("nan"), "inf", float("-inf")])
    def test_snapshot_rejects_non_finite_amounts(self, value):
        with pytest.raises(ValueError):
            CampaignSnapshot(target_amount=1000, current_amount_in_target_currency=value)


class TestNextMilestone:
    """Tests for choosing the upcoming milestone."""

    def test_highest_progress_wins(self, quarter_snapshot):
        upcoming = next_milestone(build_milestones(quarter_snapshot))
        # one_week is at 3/7 (~43%), half_goal at 50%
        assert upcoming.id == "half_goal"

    def test_ties_keep_definition_order(self):
        snapshot = CampaignSnapshot(target_amount=1000)
        milestones = build_milestones(snapshot)
        # first_donation and ten_donors both sit at 0%
        upcoming = next_milestone(milestones)
        assert upcoming.id == "first_donation"

    def test_none_when_all_achieved(self):
        snapshot = CampaignSnapshot(
            target_amount=100,
            current_amount_in_target_currency=150,
            donors_count=60,
            days_active=30,
        )
        assert next_milestone(build_milestones(snapshot)) is None


class TestSummary:
    """Tests for the milestone summary and report."""

    def test_summarize_counts(self, quarter_snapshot):
        summary = summarize(build_milestones(quarter_snapshot))

        assert summary.achieved == 3
        assert summary.upcoming == 5
        assert summary.completion_percentage == round(3 / 8 * 100)
        assert [m.id for m in summary.recent_achievements] == [
            "first_donation",
            "ten_percent",
            "quarter_goal",
        ]

    def test_recent_achievements_last_three(self):
        snapshot = CampaignSnapshot(
            target_amount=100,
            current_amount_in_target_currency=150,
            donors_count=60,
            days_active=30,
        )
        summary = summarize(build_milestones(snapshot))
        assert [m.id for m in summary.recent_achievements] == [
            "fifty_donors",
            "one_week",
            "goal_reached",
        ]

    def test_empty_list(self):
        summary = summarize([])
        assert summary.completion_percentage == 0
        assert summary.next is None

    def test_report_shape(self, quarter_snapshot):
        report = milestone_report(quarter_snapshot)

        assert len(report["milestones"]) == len(MILESTONE_DEFINITIONS)
        half = report["milestones"][3]
        assert half["id"] == "half_goal"
        assert half["type"] == "amount"
        assert half["progress"] == 50.0
        assert half["progress_text"] == "$250 / $500"
        assert report["summary"]["next"]["id"] == "half_goal"

    def test_synthetic_campaigns(self):
        generator = SyntheticDataGenerator(seed=42)
        for _ in range(20):
            campaign = DonationCampaign.model_validate(generator.generate_campaign())
            milestones = build_milestones(campaign.snapshot())
            assert len(milestones) == len(MILESTONE_DEFINITIONS)
            for m in milestones:
                assert 0.0 <= milestone_progress(m) <= 100.0


class TestMilestoneText:
    """Tests for display text."""

    def test_amount_text_uses_currency(self):
        snapshot = CampaignSnapshot(
            target_amount=10000,
            current_amount_in_target_currency=1234,
            currency_code="EUR",
        )
        quarter = by_id(build_milestones(snapshot))["quarter_goal"]
        assert progress_text(quarter, "EUR") == "€1,234 / €2,500"

    def test_donor_text(self, quarter_snapshot):
        ten_donors = by_id(build_milestones(quarter_snapshot))["ten_donors"]
        assert progress_text(ten_donors) == "4 / 10 donors"

    def test_time_text(self, quarter_snapshot):
        one_week = by_id(build_milestones(quarter_snapshot))["one_week"]
        assert progress_text(one_week) == "3 / 7 days"

    def test_celebration_message(self, quarter_snapshot):
        quarter = by_id(build_milestones(quarter_snapshot))["quarter_goal"]
        assert celebration_message(quarter) == "🎉 Milestone Celebrated! 25% Goal Reached"
