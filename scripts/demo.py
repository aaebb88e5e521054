#!/usr/bin/env python3
"""
Demo script for the DBEF platform.
Shows milestone tracking, campaign performance, budget health and project
dashboards for synthetic data, with no backend required.
"""

import argparse
import json

# Add parent directory to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dbef.data.models import BankAccount, Budget, DonationCampaign, Project, ProjectMilestone, ProjectTeamMember
from dbef.data.synthetic import SyntheticDataGenerator
from dbef.finance import campaign_metrics
from dbef.finance.bank_accounts import account_statistics
from dbef.finance.budgets import budget_health
from dbef.finance.currency import format_currency, format_percentage
from dbef.finance.milestones import build_milestones, milestone_progress, progress_text, summarize
from dbef.finance.projects import milestone_overview, portfolio_summary, team_roster


def print_section(title: str):
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def print_subsection(title: str):
    """Print a subsection header."""
    print(f"\n  --- {title} ---")


def print_json(data: dict, indent: int = 2):
    """Pretty print JSON data."""
    print(json.dumps(data, indent=indent, default=str))


def progress_bar(percentage: float, width: int = 20) -> str:
    filled = int(round(percentage / 100 * width))
    return "█" * filled + "░" * (width - filled)


def demo_milestones(campaigns):
    """Milestone tracking for each campaign."""
    print_section("🏁 CAMPAIGN MILESTONES")

    for campaign in campaigns:
        snapshot = campaign.snapshot()
        milestones = build_milestones(snapshot)
        summary = summarize(milestones)

        print_subsection(f"#{campaign.id} {campaign.title}")
        print(
            f"  Raised {format_currency(snapshot.currency_code, snapshot.current_amount_in_target_currency)}"
            f" of {format_currency(snapshot.currency_code, snapshot.target_amount)}"
            f" ({format_percentage(snapshot.progress_percentage, 1)}),"
            f" {snapshot.donors_count} donors, {snapshot.days_active} days active"
        )
        for milestone in milestones:
            mark = "✅" if milestone.achieved else "⬜"
            progress = milestone_progress(milestone)
            print(
                f"  {mark} {milestone.title:<20} {progress_bar(progress)} {progress:5.1f}%"
                f"  {progress_text(milestone, snapshot.currency_code)}"
            )
        if summary.next:
            print(f"  Next up: {summary.next.title}")
        print(f"  Completion: {summary.completion_percentage}% ({summary.achieved}/{len(milestones)})")


def demo_performance(campaigns):
    """Portfolio statistics and per-campaign health."""
    print_section("📈 CAMPAIGN PERFORMANCE")

    for campaign in campaign_metrics.rank_campaigns_by_progress(campaigns, limit=5):
        performance = campaign_metrics.campaign_performance(campaign)
        print(
            f"  {campaign.title[:40]:<40} {performance['health_status']:<16}"
            f" projected {format_percentage(performance['projected_completion'], 0)}"
        )

    print_subsection("Portfolio")
    print_json(campaign_metrics.campaign_statistics(campaigns))


def demo_finance(budgets, accounts):
    """Budget health and bank account statistics."""
    print_section("💰 BUDGETS AND ACCOUNTS")

    health = budget_health(budgets)
    print(f"  Budget health score: {health['overall_score']}%")
    for alert in health["alerts"]:
        print(f"  ⚠️  {alert['budget']}: {alert['level']} ({alert['spent_percentage']}% spent), {alert['action']}")

    stats = account_statistics(accounts)
    print_subsection("Bank accounts")
    print(f"  Active: {stats['active_accounts']}/{stats['total_accounts']}")
    print(f"  Total balance: {format_currency('USD', stats['total_balance'], compact=True)}")


def demo_projects(generator, projects):
    """Project portfolio, delivery milestones and the team of the first project."""
    print_section("🏗️  PROJECTS")

    summary = portfolio_summary(projects)
    print(f"  Projects: {summary['total_projects']} ({summary['active_projects']} active)")
    print(f"  Budget utilization: {format_percentage(summary['budget_utilization'])}")

    if not projects:
        return
    project = projects[0]
    milestones = [
        ProjectMilestone.model_validate(generator.generate_project_milestone(project.id))
        for _ in range(4)
    ]
    team = [ProjectTeamMember.model_validate(generator.generate_team_member(project.id)) for _ in range(3)]

    print_subsection(project.title)
    overview = milestone_overview(milestones)
    print(f"  Milestones: {overview['total_milestones']}, overdue: {overview['overdue_count']}")
    for member in team_roster(team)["members"]:
        print(f"  👤 {member['name']} ({member['role']})")


def main():
    parser = argparse.ArgumentParser(description="DBEF milestone and finance demo")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for synthetic data")
    parser.add_argument("--campaigns", type=int, default=4, help="Number of campaigns to generate")
    args = parser.parse_args()

    generator = SyntheticDataGenerator(seed=args.seed)
    dataset = generator.generate_dataset(num_campaigns=args.campaigns)

    campaigns = [DonationCampaign.model_validate(c) for c in dataset["campaigns"]]
    budgets = [Budget.model_validate(b) for b in dataset["budgets"]]
    accounts = [BankAccount.model_validate(a) for a in dataset["bank_accounts"]]
    projects = [Project.model_validate(p) for p in dataset["projects"]]

    demo_milestones(campaigns)
    demo_performance(campaigns)
    demo_finance(budgets, accounts)
    demo_projects(generator, projects)


if __name__ == "__main__":
    main()
