"""
KYC Service

Review queue for identity verification submissions held on user profiles.
"""

from typing import Any, Dict

import structlog

from dbef.core.backend_client import BackendClient, BackendError
from dbef.core.base_service import BaseService, ServiceCapability, ServiceMessage
from dbef.data.models import KYCDocuments, KYCVerificationRequest, User
from dbef.services.common import not_found, results_of

logger = structlog.get_logger()


class KYCService(BaseService):
    def __init__(self, client: BackendClient):
        super().__init__(
            service_id="kyc_service",
            name="KYC Service",
            description="Pending KYC submissions and verification decisions",
            capabilities=[ServiceCapability.KYC],
        )
        self.client = client

        self.register_handler("pending_submissions", self._handle_pending_submissions)
        self.register_handler("get_documents", self._handle_get_documents)
        self.register_handler("verify", self._handle_verify)

    async def _handle_pending_submissions(self, message: ServiceMessage) -> Dict[str, Any]:
        submissions = []
        for profile in results_of(await self.client.list_pending_kyc()):
            user = User.model_validate(profile["user"]) if profile.get("user") else None
            submissions.append({
                "profile_id": profile["id"],
                "applicant": user.full_name if user else None,
                "email": user.email if user else None,
                "documents": KYCDocuments.model_validate(profile).model_dump(mode="json"),
            })
        return {"status": "success", "count": len(submissions), "submissions": submissions}

    async def _handle_get_documents(self, message: ServiceMessage) -> Dict[str, Any]:
        profile_id = message.payload["profile_id"]
        try:
            data = await self.client.get_kyc_documents(profile_id)
        except BackendError as e:
            if e.status_code == 404:
                return not_found()
            raise
        documents = KYCDocuments.model_validate(data)
        return {
            "status": "success",
            "profile_id": profile_id,
            "documents": documents.model_dump(mode="json"),
        }

    async def _handle_verify(self, message: ServiceMessage) -> Dict[str, Any]:
        profile_id = message.payload["profile_id"]
        decision = KYCVerificationRequest.model_validate(message.payload["decision"])
        result = await self.client.verify_kyc(profile_id, decision.model_dump(mode="json", exclude_none=True))
        self._logger.info("kyc_decision_recorded", profile_id=profile_id, action=decision.action.value)
        return {"status": "success", "result": result}
