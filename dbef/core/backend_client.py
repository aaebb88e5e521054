"""
Async HTTP client for the remote DBEF backend.

The backend owns persistence, authorization and statistics. This client
attaches bearer credentials, drops empty query parameters and refreshes
the access token once on a 401 before giving up.
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx
import structlog

from dbef.config import settings

logger = structlog.get_logger()

FINANCE_API = "finance_api"
NOTIFICATION_API = "notification_api"
PROFILE_API = "api"
PROJECT_API = "project_api"

REFRESH_PATH = "/jwt/refresh/"


class BackendError(Exception):
    """The backend answered with a non-success status."""

    def __init__(self, status_code: int, detail: Any = None, path: str = ""):
        self.status_code = status_code
        self.detail = detail
        self.path = path
        super().__init__(f"Backend returned {status_code} for {path}: {detail}")


class AuthenticationError(BackendError):
    """Credentials were rejected and could not be refreshed."""

    def __init__(self, detail: Any = "Authentication credentials were rejected", path: str = ""):
        super().__init__(401, detail, path)


class BackendUnavailableError(Exception):
    """The backend could not be reached."""

    status_code = 503


def clean_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop query parameters whose value is None or an empty string."""
    if not params:
        return {}
    cleaned = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[key] = value
    return cleaned


def _error_detail(response: httpx.Response) -> Any:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        return body["detail"]
    return body


class BackendClient:
    """
    Thin wrapper over ``httpx.AsyncClient`` with one method per backend
    endpoint used by the gateway services.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self.access_token = access_token if access_token is not None else settings.access_token
        self.refresh_token = refresh_token if refresh_token is not None else settings.refresh_token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.request_timeout_seconds if timeout is None else timeout,
            transport=transport,
            headers={"X-Requested-With": "XMLHttpRequest"},
        )
        self._refresh_lock = asyncio.Lock()
        self._logger = logger.bind(component="backend_client", base_url=self.base_url)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _auth_headers(self) -> Dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        files: Any = None,
        data: Any = None,
    ) -> httpx.Response:
        headers = self._auth_headers()
        if files is None:
            headers["Content-Type"] = "application/json"
        try:
            return await self._client.request(
                method,
                path,
                params=clean_params(params),
                json=json,
                files=files,
                data=data,
                headers=headers,
            )
        except httpx.TransportError as e:
            self._logger.error("backend_unreachable", method=method, path=path, error=str(e))
            raise BackendUnavailableError(f"Backend unreachable: {e}") from e

    async def _refresh_access_token(self, stale_token: Optional[str]) -> bool:
        """
        Exchange the refresh token for a new access token.

        Concurrent 401s share a single refresh: a caller that waited on the
        lock finds the token already rotated and simply retries.
        """
        async with self._refresh_lock:
            if self.access_token and self.access_token != stale_token:
                return True
            if not self.refresh_token:
                self._logger.warning("token_refresh_skipped", reason="no_refresh_token")
                return False

            response = await self._send("POST", REFRESH_PATH, json={"refresh": self.refresh_token})
            if response.is_success:
                try:
                    body = response.json()
                except ValueError:
                    body = None
                access = body.get("access") if isinstance(body, dict) else None
                if access:
                    self.access_token = access
                    self._logger.info("access_token_refreshed")
                    return True

            self._logger.warning("token_refresh_failed", status_code=response.status_code)
            self.access_token = ""
            self.refresh_token = ""
            return False

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        files: Any = None,
        data: Any = None,
    ) -> Any:
        """
        Perform a request and decode the JSON body.

        Raises:
            AuthenticationError: 401 that survived a token refresh
            BackendError: any other non-success status
            BackendUnavailableError: transport failure
        """
        token_used = self.access_token
        response = await self._send(method, path, params, json, files, data)

        if response.status_code == 401:
            if await self._refresh_access_token(token_used):
                response = await self._send(method, path, params, json, files, data)
            if response.status_code == 401:
                raise AuthenticationError(_error_detail(response), path)

        if not response.is_success:
            self._logger.warning(
                "backend_request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise BackendError(response.status_code, _error_detail(response), path)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def upload(self, path: str, files: Dict[str, Any], data: Optional[Dict[str, Any]] = None, method: str = "POST") -> Any:
        """Multipart upload; httpx sets the boundary content type."""
        return await self.request(method, path, files=files, data=data)

    # ------------------------------------------------------------------
    # Donation campaigns
    # ------------------------------------------------------------------

    async def list_campaigns(self, **params: Any) -> Any:
        return await self.get(f"/{FINANCE_API}/donation-campaigns/", params=params)

    async def get_campaign(self, campaign_id: int) -> Dict[str, Any]:
        return await self.get(f"/{FINANCE_API}/donation-campaigns/{campaign_id}/")

    async def check_campaign_milestones(self, campaign_id: int) -> Dict[str, Any]:
        return await self.post(f"/{FINANCE_API}/donation-campaigns/{campaign_id}/check_milestones/")

    async def extend_campaign_deadline(self, campaign_id: int, new_end_date: str) -> Dict[str, Any]:
        return await self.post(
            f"/{FINANCE_API}/donation-campaigns/{campaign_id}/extend_deadline/",
            json={"new_end_date": new_end_date},
        )

    # ------------------------------------------------------------------
    # Budgets
    # ------------------------------------------------------------------

    async def list_budgets(self, **params: Any) -> Any:
        return await self.get(f"/{FINANCE_API}/budgets/", params=params)

    async def get_budget(self, budget_id: int) -> Dict[str, Any]:
        return await self.get(f"/{FINANCE_API}/budgets/{budget_id}/")

    # ------------------------------------------------------------------
    # Bank accounts
    # ------------------------------------------------------------------

    async def list_bank_accounts(self, **params: Any) -> Any:
        return await self.get(f"/{FINANCE_API}/bank-accounts/", params=params)

    async def get_bank_account(self, account_id: int) -> Dict[str, Any]:
        return await self.get(f"/{FINANCE_API}/bank-accounts/{account_id}/")

    async def get_account_transactions(self, account_id: int, **params: Any) -> Any:
        return await self.get(f"/{FINANCE_API}/bank-accounts/{account_id}/transactions/", params=params)

    async def get_balance_history(self, account_id: int, days: int = 30) -> List[Dict[str, Any]]:
        return await self.get(
            f"/{FINANCE_API}/bank-accounts/{account_id}/balance_history/",
            params={"days": days},
        )

    async def check_low_balance(self, account_id: int, threshold: Optional[str] = None) -> Dict[str, Any]:
        body = {"threshold": threshold} if threshold else {}
        return await self.post(f"/{FINANCE_API}/bank-accounts/{account_id}/check_low_balance/", json=body)

    async def freeze_bank_account(self, account_id: int) -> Dict[str, Any]:
        return await self.post(f"/{FINANCE_API}/bank-accounts/{account_id}/freeze/")

    async def unfreeze_bank_account(self, account_id: int) -> Dict[str, Any]:
        return await self.post(f"/{FINANCE_API}/bank-accounts/{account_id}/unfreeze/")

    # ------------------------------------------------------------------
    # Projects and teams
    # ------------------------------------------------------------------

    async def list_projects(self, **params: Any) -> Any:
        return await self.get(f"/{PROJECT_API}/projects/", params=params)

    async def get_project(self, project_id: int) -> Dict[str, Any]:
        return await self.get(f"/{PROJECT_API}/projects/{project_id}/")

    async def get_project_statistics(self) -> Dict[str, Any]:
        return await self.get(f"/{PROJECT_API}/projects/statistics/")

    async def list_project_milestones(self, project_id: int) -> Any:
        return await self.get(f"/{PROJECT_API}/milestones/by_project/", params={"project_id": project_id})

    async def list_project_team(self, project_id: int) -> Any:
        return await self.get(f"/{PROJECT_API}/team-members/by_project/", params={"project_id": project_id})

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def list_notifications(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self.get(f"/{NOTIFICATION_API}/notifications/", params={"category": category})

    async def list_unread_notifications(self) -> List[Dict[str, Any]]:
        return await self.get(f"/{NOTIFICATION_API}/notifications/unread/")

    async def mark_notification_read(self, notification_id: int) -> Dict[str, Any]:
        return await self.post(f"/{NOTIFICATION_API}/notifications/{notification_id}/mark_read/")

    async def mark_notification_unread(self, notification_id: int) -> Dict[str, Any]:
        return await self.post(f"/{NOTIFICATION_API}/notifications/{notification_id}/mark_unread/")

    async def mark_all_notifications_read(self) -> Dict[str, Any]:
        return await self.post(f"/{NOTIFICATION_API}/notifications/mark_all_read/")

    async def create_notification(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self.post(f"/{NOTIFICATION_API}/notifications/create_notification/", json=body)

    async def get_notification_preferences(self) -> List[Dict[str, Any]]:
        return await self.get(f"/{NOTIFICATION_API}/notification-preferences/")

    async def update_notification_preferences(self, preferences: List[Dict[str, Any]]) -> Dict[str, Any]:
        return await self.post(
            f"/{NOTIFICATION_API}/notification-preferences/update_preferences/",
            json={"preferences": preferences},
        )

    # ------------------------------------------------------------------
    # KYC
    # ------------------------------------------------------------------

    async def list_pending_kyc(self) -> Any:
        return await self.get(f"/{PROFILE_API}/profiles/", params={"kyc_status": "pending"})

    async def get_kyc_documents(self, profile_id: int) -> Dict[str, Any]:
        return await self.get(f"/{PROFILE_API}/profiles/{profile_id}/kyc_documents/")

    async def verify_kyc(self, profile_id: int, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self.post(f"/{PROFILE_API}/profiles/{profile_id}/verify_kyc/", json=body)
