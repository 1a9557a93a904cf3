import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from beanie import PydanticObjectId

from skillnest_chat.core.errors import InvalidIdentifierError
from skillnest_chat.models.jobs import Contract, Job, Proposal
from skillnest_chat.services.conversation_service import ConversationDirectory
from skillnest_chat.services.message_service import to_object_id

JOB = PydanticObjectId()
CLIENT = PydanticObjectId()
FREELANCER = PydanticObjectId()
STRANGER = PydanticObjectId()


def query_returning(document):
    """find(...).sort(...).first_or_none() 체인 대체"""
    query = MagicMock()
    query.sort.return_value.first_or_none = AsyncMock(return_value=document)
    return MagicMock(return_value=query)


@pytest.fixture
def message_store():
    store = MagicMock()
    store.has_participated = AsyncMock(return_value=False)
    store.last_counterpart = AsyncMock(return_value=None)
    return store


@pytest.fixture
def directory(message_store):
    return ConversationDirectory(message_store)


@pytest.fixture
def documents(monkeypatch):
    """Job/Proposal/Contract 조회를 기본적으로 '없음'으로 대체"""
    state = SimpleNamespace(
        job=SimpleNamespace(id=JOB, client=CLIENT),
        proposal=None,
        contract=None,
        active_contract=None,
        engaged_proposal=None,
    )
    monkeypatch.setattr(Job, "get", AsyncMock(side_effect=lambda _: state.job))
    monkeypatch.setattr(Proposal, "find_one", AsyncMock(side_effect=lambda *_: state.proposal))
    monkeypatch.setattr(Contract, "find_one", AsyncMock(side_effect=lambda *_: state.contract))

    def contract_find(*_):
        return query_returning(state.active_contract)()

    def proposal_find(*_):
        return query_returning(state.engaged_proposal)()

    monkeypatch.setattr(Contract, "find", contract_find)
    monkeypatch.setattr(Proposal, "find", proposal_find)
    return state


class TestToObjectId:
    def test_valid(self):
        assert to_object_id(str(JOB)) == JOB

    @pytest.mark.parametrize("value", ["J1", "", None, 123])
    def test_invalid(self, value):
        with pytest.raises(InvalidIdentifierError):
            to_object_id(value, "job_id")


class TestIsParticipant:
    """대화방 참여자 판별 테스트"""

    @pytest.mark.asyncio
    async def test_job_client(self, directory, documents):
        assert await directory.is_participant(str(JOB), str(CLIENT)) is True

    @pytest.mark.asyncio
    async def test_proposal_freelancer(self, directory, documents):
        documents.proposal = SimpleNamespace(freelancer=FREELANCER, status="pending")
        assert await directory.is_participant(str(JOB), str(FREELANCER)) is True

    @pytest.mark.asyncio
    async def test_contract_party(self, directory, documents):
        documents.contract = SimpleNamespace(freelancer=FREELANCER)
        assert await directory.is_participant(str(JOB), str(FREELANCER)) is True

    @pytest.mark.asyncio
    async def test_message_history(self, directory, documents, message_store):
        message_store.has_participated.return_value = True
        assert await directory.is_participant(str(JOB), str(FREELANCER)) is True

    @pytest.mark.asyncio
    async def test_stranger(self, directory, documents):
        assert await directory.is_participant(str(JOB), str(STRANGER)) is False

    @pytest.mark.asyncio
    async def test_malformed_id(self, directory, documents):
        with pytest.raises(InvalidIdentifierError):
            await directory.is_participant("J1", str(CLIENT))


class TestResolveReceiver:
    """메시지 수신자 결정 테스트"""

    @pytest.mark.asyncio
    async def test_freelancer_writes_to_client(self, directory, documents):
        assert await directory.resolve_receiver(str(JOB), str(FREELANCER)) == str(CLIENT)

    @pytest.mark.asyncio
    async def test_client_writes_to_contract_freelancer(self, directory, documents):
        documents.active_contract = SimpleNamespace(freelancer=FREELANCER)
        assert await directory.resolve_receiver(str(JOB), str(CLIENT)) == str(FREELANCER)

    @pytest.mark.asyncio
    async def test_client_writes_to_hired_freelancer(self, directory, documents):
        documents.engaged_proposal = SimpleNamespace(freelancer=FREELANCER)
        assert await directory.resolve_receiver(str(JOB), str(CLIENT)) == str(FREELANCER)

    @pytest.mark.asyncio
    async def test_client_falls_back_to_last_counterpart(self, directory, documents, message_store):
        message_store.last_counterpart.return_value = str(FREELANCER)

        assert await directory.resolve_receiver(str(JOB), str(CLIENT)) == str(FREELANCER)
        message_store.last_counterpart.assert_awaited_once_with(str(JOB), str(CLIENT))

    @pytest.mark.asyncio
    async def test_unknown_counterpart(self, directory, documents):
        assert await directory.resolve_receiver(str(JOB), str(CLIENT)) is None

    @pytest.mark.asyncio
    async def test_missing_job(self, directory, documents):
        documents.job = None
        assert await directory.resolve_receiver(str(JOB), str(FREELANCER)) is None
