import asyncio
import pytest


class TestPresenceTracker:
    """접속 상태 추적 테스트"""

    @pytest.mark.asyncio
    async def test_first_connection_broadcasts_online_once(self, presence, connect):
        """첫 연결(0→1)에서만 online 브로드캐스트"""
        _, observer = connect("observer")

        assert await presence.connect("u1") is True
        assert await presence.connect("u1") is False

        updates = observer.of_type("presenceUpdate")
        assert updates == [{"type": "presenceUpdate", "userId": "u1", "online": True}]
        assert presence.count("u1") == 2

    @pytest.mark.asyncio
    async def test_last_disconnection_broadcasts_offline_once(self, presence, connect):
        """마지막 연결 해제(1→0)에서만 offline 브로드캐스트"""
        _, observer = connect("observer")
        await presence.connect("u1")
        await presence.connect("u1")
        observer.sent.clear()

        assert await presence.disconnect("u1") is False
        assert observer.sent == []
        assert presence.count("u1") == 1

        assert await presence.disconnect("u1") is True
        assert observer.of_type("presenceUpdate") == [
            {"type": "presenceUpdate", "userId": "u1", "online": False}
        ]
        assert presence.is_online("u1") is False
        assert "u1" not in presence.online_users()

    @pytest.mark.asyncio
    async def test_counter_never_goes_negative(self, presence, connect):
        """연결 없는 사용자의 disconnect는 무시"""
        _, observer = connect("observer")

        assert await presence.disconnect("ghost") is False
        assert presence.count("ghost") == 0
        assert observer.sent == []

    @pytest.mark.asyncio
    async def test_concurrent_transitions_are_exact(self, presence, connect):
        """동시 connect/disconnect에서도 전환 브로드캐스트는 정확히 한 번씩"""
        _, observer = connect("observer")

        await asyncio.gather(*(presence.connect("u1") for _ in range(10)))
        assert presence.count("u1") == 10

        await asyncio.gather(*(presence.disconnect("u1") for _ in range(10)))
        assert presence.count("u1") == 0

        updates = observer.of_type("presenceUpdate")
        assert [update["online"] for update in updates] == [True, False]

    @pytest.mark.asyncio
    async def test_ping_rebroadcasts_online(self, presence, connect):
        """presence 요청은 항상 online 이벤트를 다시 보냄"""
        _, observer = connect("observer")
        await presence.connect("u1")
        observer.sent.clear()

        await presence.ping("u1")

        assert observer.sent == [{"type": "presenceUpdate", "userId": "u1", "online": True}]

    @pytest.mark.asyncio
    async def test_broadcast_failure_does_not_break_counting(self, presence, connect):
        """전송 실패한 소켓이 있어도 카운트는 유지"""
        connect("broken", fail=True)

        assert await presence.connect("u1") is True
        assert presence.is_online("u1") is True
