import asyncio

from auction.session.heartbeat import HeartbeatMonitor
from auction.tests.mocks import MockConnection


class TestHeartbeatMonitor:
    async def test_silent_connection_closed(self):
        monitor = HeartbeatMonitor(check_interval=0.01, timeout=0.03)
        connection = MockConnection()
        monitor.record_connect(connection.connection_id)

        monitor.start_for_room("room1", lambda _room_id: [connection])
        await asyncio.sleep(0.1)
        await monitor.stop_all()

        assert connection.is_closed
        assert connection._close_reason == "heartbeat_timeout"

    async def test_pinging_connection_kept_alive(self):
        monitor = HeartbeatMonitor(check_interval=0.01, timeout=0.05)
        connection = MockConnection()
        monitor.record_connect(connection.connection_id)
        monitor.start_for_room("room1", lambda _room_id: [connection])

        for _ in range(10):
            monitor.record_ping(connection.connection_id)
            await asyncio.sleep(0.01)
        await monitor.stop_all()

        assert not connection.is_closed

    async def test_loop_ends_when_room_gone(self):
        monitor = HeartbeatMonitor(check_interval=0.01, timeout=1)
        monitor.start_for_room("room1", lambda _room_id: None)
        task = monitor._tasks["room1"]

        await asyncio.wait_for(task, timeout=1.0)

        assert task.done()

    async def test_stop_for_room_cancels_loop(self):
        monitor = HeartbeatMonitor(check_interval=10, timeout=30)
        monitor.start_for_room("room1", lambda _room_id: [])

        await monitor.stop_for_room("room1")

        assert "room1" not in monitor._tasks

    async def test_unknown_connection_ping_ignored(self):
        monitor = HeartbeatMonitor()
        monitor.record_ping("ghost")
        assert "ghost" not in monitor._last_ping
