"""
대화방 참여자 조회 서비스

대화방은 Job 단위입니다. 참여자 판별(입장/전송 권한)과 메시지 수신자 결정을
Job/Proposal/Contract 문서와 메시지 기록으로부터 수행합니다.
"""

from typing import Optional
from pymongo import DESCENDING

from skillnest_chat.core.logging import get_logger
from skillnest_chat.models.jobs import Contract, Job, Proposal
from skillnest_chat.services.message_service import MessageStore, to_object_id

logger = get_logger(__name__)

# 수신자 후보가 되는 제안서 상태
ENGAGED_PROPOSAL_STATUSES = ["hired", "accepted"]


class ConversationDirectory:
    """Job 기반 대화방 참여자 조회"""

    def __init__(self, message_store: MessageStore):
        self.message_store = message_store

    async def get_job(self, job_id: str) -> Optional[Job]:
        return await Job.get(to_object_id(job_id, "job_id"))

    async def is_participant(self, job_id: str, user_id: str) -> bool:
        """
        사용자가 대화방의 참여자인지 확인합니다.

        참여자: Job 작성자(client), 거절되지 않은 제안서를 낸 프리랜서,
        계약 당사자, 또는 이미 이 대화방에서 메시지를 주고받은 사용자.
        """
        jid = to_object_id(job_id, "job_id")
        uid = to_object_id(user_id, "user_id")

        job = await Job.get(jid)
        if job is not None and job.client == uid:
            return True

        proposal = await Proposal.find_one({
            "job": jid,
            "freelancer": uid,
            "status": {"$ne": "rejected"},
        })
        if proposal is not None:
            return True

        contract = await Contract.find_one({
            "job": jid,
            "$or": [{"client": uid}, {"freelancer": uid}],
        })
        if contract is not None:
            return True

        return await self.message_store.has_participated(job_id, user_id)

    async def resolve_receiver(self, job_id: str, sender_id: str) -> Optional[str]:
        """
        메시지 수신자(상대방)를 결정합니다.

        Returns:
            상대방 사용자 ID, 찾지 못하면 None (호출 측에서 발신자로 대체)
        """
        jid = to_object_id(job_id, "job_id")
        uid = to_object_id(sender_id, "sender_id")

        job = await Job.get(jid)
        if job is None:
            logger.warning(f"Job {job_id} not found while resolving receiver")
            return None

        if job.client is not None and job.client != uid:
            return str(job.client)

        # 발신자가 client인 경우: 계약 → 고용된 제안서 → 메시지 기록 순으로 프리랜서를 찾음
        contract = await Contract.find(
            {"job": jid, "status": "active", "freelancer": {"$ne": None}}
        ).sort([("_id", DESCENDING)]).first_or_none()
        if contract is not None and contract.freelancer != uid:
            return str(contract.freelancer)

        proposal = await Proposal.find(
            {"job": jid, "status": {"$in": ENGAGED_PROPOSAL_STATUSES}, "freelancer": {"$ne": None}}
        ).sort([("_id", DESCENDING)]).first_or_none()
        if proposal is not None and proposal.freelancer != uid:
            return str(proposal.freelancer)

        return await self.message_store.last_counterpart(job_id, sender_id)
