"""
Finance Service

Budgets and organizational bank accounts, with health and statistics
views computed over the records the finance API returns.
"""

from typing import Any, Dict, List, Optional

import structlog

from dbef.core.backend_client import BackendClient, BackendError
from dbef.core.base_service import BaseService, ServiceCapability, ServiceMessage
from dbef.data.models import AccountTransaction, BalancePoint, BankAccount, Budget
from dbef.finance.bank_accounts import account_statistics, low_balance_accounts
from dbef.finance.budgets import budget_health, budget_utilization
from dbef.services.common import not_found, results_of

logger = structlog.get_logger()


class FinanceService(BaseService):
    """Budget health and bank-account oversight."""

    def __init__(self, client: BackendClient):
        super().__init__(
            service_id="finance_service",
            name="Finance Service",
            description="Budgets, bank accounts and balance monitoring",
            capabilities=[ServiceCapability.BUDGETS, ServiceCapability.BANK_ACCOUNTS],
        )
        self.client = client

        self.register_handler("list_budgets", self._handle_list_budgets)
        self.register_handler("get_budget", self._handle_get_budget)
        self.register_handler("budget_health", self._handle_budget_health)
        self.register_handler("list_bank_accounts", self._handle_list_bank_accounts)
        self.register_handler("get_bank_account", self._handle_get_bank_account)
        self.register_handler("account_statistics", self._handle_account_statistics)
        self.register_handler("balance_history", self._handle_balance_history)
        self.register_handler("account_transactions", self._handle_account_transactions)
        self.register_handler("check_low_balance", self._handle_check_low_balance)
        self.register_handler("freeze_account", self._handle_freeze_account)
        self.register_handler("unfreeze_account", self._handle_unfreeze_account)

    async def _fetch_budgets(self, filters: Dict[str, Any]) -> List[Budget]:
        data = await self.client.list_budgets(**filters)
        return [Budget.model_validate(item) for item in results_of(data)]

    async def _fetch_accounts(self, filters: Dict[str, Any]) -> List[BankAccount]:
        data = await self.client.list_bank_accounts(**filters)
        return [BankAccount.model_validate(item) for item in results_of(data)]

    async def _fetch_one(self, fetch, object_id: int) -> Optional[Dict[str, Any]]:
        try:
            return await fetch(object_id)
        except BackendError as e:
            if e.status_code == 404:
                return None
            raise

    # Budgets

    async def _handle_list_budgets(self, message: ServiceMessage) -> Dict[str, Any]:
        budgets = await self._fetch_budgets(message.payload.get("filters", {}))
        return {
            "status": "success",
            "count": len(budgets),
            "budgets": [
                {**b.model_dump(mode="json"), "utilization": budget_utilization(b)}
                for b in budgets
            ],
        }

    async def _handle_get_budget(self, message: ServiceMessage) -> Dict[str, Any]:
        data = await self._fetch_one(self.client.get_budget, message.payload["budget_id"])
        if data is None:
            return not_found()
        budget = Budget.model_validate(data)
        return {
            "status": "success",
            "budget": budget.model_dump(mode="json"),
            "utilization": budget_utilization(budget),
        }

    async def _handle_budget_health(self, message: ServiceMessage) -> Dict[str, Any]:
        budgets = await self._fetch_budgets(message.payload.get("filters", {}))
        health = budget_health(budgets)
        if health["alerts"]:
            self._logger.warning("budget_alerts", count=len(health["alerts"]))
        return {"status": "success", **health}

    # Bank accounts

    async def _handle_list_bank_accounts(self, message: ServiceMessage) -> Dict[str, Any]:
        accounts = await self._fetch_accounts(message.payload.get("filters", {}))
        return {
            "status": "success",
            "count": len(accounts),
            "accounts": [a.model_dump(mode="json") for a in accounts],
        }

    async def _handle_get_bank_account(self, message: ServiceMessage) -> Dict[str, Any]:
        data = await self._fetch_one(self.client.get_bank_account, message.payload["account_id"])
        if data is None:
            return not_found()
        account = BankAccount.model_validate(data)
        return {"status": "success", "account": account.model_dump(mode="json")}

    async def _handle_account_statistics(self, message: ServiceMessage) -> Dict[str, Any]:
        accounts = await self._fetch_accounts(message.payload.get("filters", {}))
        low = low_balance_accounts(accounts, message.payload.get("threshold"))
        return {
            "status": "success",
            "statistics": account_statistics(accounts),
            "low_balance_accounts": [
                {
                    "id": a.id,
                    "name": a.name,
                    "current_balance": a.current_balance,
                    "minimum_balance": a.minimum_balance,
                    "currency": a.currency.code,
                }
                for a in low
            ],
        }

    async def _handle_balance_history(self, message: ServiceMessage) -> Dict[str, Any]:
        account_id = message.payload["account_id"]
        days = message.payload.get("days", 30)
        if days < 1:
            raise ValueError("days must be at least 1")
        data = await self._fetch_one(
            lambda object_id: self.client.get_balance_history(object_id, days=days),
            account_id,
        )
        if data is None:
            return not_found()
        points = [BalancePoint.model_validate(p) for p in data or []]
        return {
            "status": "success",
            "account_id": account_id,
            "days": days,
            "history": [p.model_dump(mode="json") for p in points],
        }

    async def _handle_account_transactions(self, message: ServiceMessage) -> Dict[str, Any]:
        account_id = message.payload["account_id"]
        filters = message.payload.get("filters", {})
        data = await self._fetch_one(
            lambda object_id: self.client.get_account_transactions(object_id, **filters),
            account_id,
        )
        if data is None:
            return not_found()
        transactions = [AccountTransaction.model_validate(t) for t in results_of(data)]
        return {
            "status": "success",
            "account_id": account_id,
            "count": len(transactions),
            "transactions": [t.model_dump(mode="json") for t in transactions],
        }

    async def _handle_check_low_balance(self, message: ServiceMessage) -> Dict[str, Any]:
        threshold = message.payload.get("threshold")
        result = await self.client.check_low_balance(
            message.payload["account_id"],
            str(threshold) if threshold is not None else None,
        )
        return {"status": "success", "result": result}

    async def _handle_freeze_account(self, message: ServiceMessage) -> Dict[str, Any]:
        account_id = message.payload["account_id"]
        result = await self.client.freeze_bank_account(account_id)
        self._logger.info("bank_account_frozen", account_id=account_id)
        return {"status": "success", "result": result}

    async def _handle_unfreeze_account(self, message: ServiceMessage) -> Dict[str, Any]:
        account_id = message.payload["account_id"]
        result = await self.client.unfreeze_bank_account(account_id)
        self._logger.info("bank_account_unfrozen", account_id=account_id)
        return {"status": "success", "result": result}
