"""
Bank account statistics.
"""

from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence

from dbef.data.models import AccountStatus, BankAccount


def account_statistics(accounts: Sequence[BankAccount]) -> Dict[str, Any]:
    """Counts, balances and distributions across bank accounts."""
    total = len(accounts)
    active = [a for a in accounts if a.is_active]
    total_balance = sum(a.current_balance for a in active)

    by_type: Dict[str, int] = defaultdict(int)
    by_institution: Dict[str, int] = defaultdict(int)
    by_currency: Dict[str, Dict[str, float]] = defaultdict(lambda: {"count": 0, "balance": 0.0})

    for account in accounts:
        by_type[account.account_type.value] += 1
        institution = account.financial_institution.name if account.financial_institution else "Unknown"
        by_institution[institution] += 1
        by_currency[account.currency.code]["count"] += 1
        if account.is_active:
            by_currency[account.currency.code]["balance"] += account.current_balance

    def share(count: float, whole: float) -> float:
        return round(count / whole * 100, 1) if whole else 0.0

    return {
        "total_accounts": total,
        "active_accounts": len(active),
        "donation_accounts": sum(1 for a in accounts if a.accepts_donations),
        "restricted_accounts": sum(1 for a in accounts if a.is_restricted),
        "frozen_accounts": sum(1 for a in accounts if a.account_status == AccountStatus.FROZEN),
        "total_balance": round(total_balance, 2),
        "average_balance": round(total_balance / max(len(active), 1), 2),
        "by_type": [
            {"type": t, "count": c, "percentage": share(c, total)}
            for t, c in by_type.items()
        ],
        "by_currency": [
            {
                "currency": code,
                "count": int(data["count"]),
                "balance": round(data["balance"], 2),
                "percentage": share(data["balance"], total_balance),
            }
            for code, data in by_currency.items()
        ],
        "by_institution": [
            {"institution": name, "count": c, "percentage": share(c, total)}
            for name, c in by_institution.items()
        ],
    }


def low_balance_accounts(
    accounts: Sequence[BankAccount],
    threshold: Optional[float] = None,
) -> List[BankAccount]:
    """Active accounts below ``threshold`` or their own minimum balance."""
    flagged = []
    for account in accounts:
        if not account.is_active:
            continue
        limit = account.minimum_balance if threshold is None else threshold
        if account.current_balance < limit:
            flagged.append(account)
    return flagged
