from auction.logic.enums import TimeoutType
from auction.tests.helpers.session import room_with_members, started_room


class TestDisconnect:
    async def test_disconnect_removes_member_silently(self, session_manager, message_router):
        alice, bob = await room_with_members(session_manager)

        await message_router.handle_disconnect(bob)

        assert bob.sent_messages == []
        assert not session_manager.is_in_room(bob.connection_id)
        assert alice.notices("player_left")[0]["msg"] == "Bob left"
        assert session_manager.get_room("room1").usernames == ["Alice"]

    async def test_disconnected_high_bidder_keeps_bid_but_cannot_win(self, session_manager, message_router):
        alice, bob, carol = await started_room(session_manager, ("Alice", "Bob", "Carol"))
        room = session_manager.get_room("room1")
        auction = room.current_auction
        await session_manager.place_bid(bob, "room1", auction.base_price)

        await message_router.handle_disconnect(bob)

        assert room.current_auction is auction
        assert auction.highest_bidder_name == "Bob"

        await session_manager._handle_timeout("room1", TimeoutType.FINALIZE, auction.auction_id)

        assert alice.notices("finalize_failed")
        assert carol.notices("finalize_failed")[0]["msg"] == f"Could not finalize {auction.item.name} for Bob"
        assert auction.item.name in room.sold_names
        assert all(not m.team for m in room.members.values())

    async def test_everyone_leaving_cancels_timers(self, session_manager, message_router):
        alice, bob = await started_room(session_manager)
        auction = session_manager.get_room("room1").current_auction
        countdown_task = auction.countdown_timer._active_task

        await message_router.handle_disconnect(alice)
        await message_router.handle_disconnect(bob)

        assert session_manager.room_count == 0
        assert auction.countdown_timer.is_active is False
        assert countdown_task.cancelling() or countdown_task.cancelled()

    async def test_late_timer_after_room_closed_is_ignored(self, session_manager, message_router):
        alice, bob = await started_room(session_manager)
        generation = session_manager.get_room("room1").current_auction.auction_id
        await message_router.handle_disconnect(alice)
        await message_router.handle_disconnect(bob)

        await session_manager._handle_timeout("room1", TimeoutType.FINALIZE, generation)

        assert session_manager.get_room("room1") is None

    async def test_disconnect_outside_room_only_unregisters(self, session_manager, message_router, mock_connection):
        await message_router.handle_connect(mock_connection)

        await message_router.handle_disconnect(mock_connection)

        assert mock_connection.sent_messages == []
        assert mock_connection.connection_id not in session_manager._connections

    async def test_shutdown_cancels_running_timers(self, session_manager):
        await started_room(session_manager)
        auction = session_manager.get_room("room1").current_auction

        await session_manager.shutdown()

        assert auction.countdown_timer.is_active is False
