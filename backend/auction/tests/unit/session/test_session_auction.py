from auction.logic.enums import TimeoutType
from auction.tests.helpers.session import connect, room_with_members, started_room


def _auction(manager):
    return manager.get_room("room1").current_auction


class TestStartGame:
    async def test_start_broadcasts_first_auction(self, session_manager):
        alice, bob = await room_with_members(session_manager)

        await session_manager.start_game(alice, "room1", request_id="go")

        assert alice.last_ack()["ok"] is True
        for connection in (alice, bob):
            assert connection.notices("game_started")
            (start,) = connection.messages_of_type("auction_start")
            assert start["auction"]["time_left"] == 45
            assert start["auction"]["highest_bidder"] is None
        assert session_manager.running_room_count == 1

    async def test_non_host_cannot_start(self, session_manager):
        _alice, bob = await room_with_members(session_manager)

        await session_manager.start_game(bob, "room1")

        assert bob.last_ack()["code"] == "not_host"
        assert bob.messages_of_type("auction_start") == []

    async def test_lone_host_cannot_start(self, session_manager):
        (alice,) = await room_with_members(session_manager, ("Alice",))
        await session_manager.start_game(alice, "room1")
        assert alice.last_ack()["code"] == "not_enough_players"

    async def test_second_start_rejected(self, session_manager):
        alice, _bob = await started_room(session_manager)
        await session_manager.start_game(alice, "room1")
        assert alice.last_ack()["code"] == "already_started"


class TestBidding:
    async def test_accepted_bid_broadcast_to_all(self, session_manager):
        alice, bob = await started_room(session_manager)
        base = _auction(session_manager).base_price

        await session_manager.place_bid(bob, "room1", base, request_id="b1")

        ack = bob.last_ack()
        assert (ack["ok"], ack["request"], ack["request_id"]) == (True, "bid", "b1")
        for connection in (alice, bob):
            (update,) = connection.messages_of_type("auction_update")
            assert update["auction"]["current_bid"] == base
            assert update["auction"]["highest_bidder"] == "Bob"
            assert update["auction"]["phase"] == "awaiting_finalize"

    async def test_invalid_first_bid_ack(self, session_manager):
        alice, _bob = await started_room(session_manager)
        base = _auction(session_manager).base_price

        await session_manager.place_bid(alice, "room1", base + 1)

        ack = alice.last_ack()
        assert ack["ok"] is False
        assert ack["code"] == "invalid_first_bid"
        assert ack["msg"] == f"First bid must be {base} or {base + 5}"
        assert alice.messages_of_type("auction_update") == []

    async def test_bid_too_low_reports_minimum(self, session_manager):
        alice, bob = await started_room(session_manager)
        base = _auction(session_manager).base_price
        await session_manager.place_bid(bob, "room1", base + 5)

        await session_manager.place_bid(alice, "room1", base + 9)

        assert alice.last_ack()["code"] == "bid_too_low"
        assert alice.last_ack()["msg"] == f"Bid too low, minimum is {base + 10}"

    async def test_bid_from_non_member(self, session_manager):
        await started_room(session_manager)
        (stranger,) = connect(session_manager, 1)

        await session_manager.place_bid(stranger, "room1", _auction(session_manager).base_price)

        assert stranger.last_ack()["code"] == "not_a_member"

    async def test_bid_in_unknown_room(self, session_manager):
        (alice,) = connect(session_manager, 1)
        await session_manager.place_bid(alice, "nope", 50)
        assert alice.last_ack()["code"] == "room_not_found"

    async def test_bid_before_start(self, session_manager):
        alice, _bob = await room_with_members(session_manager)
        await session_manager.place_bid(alice, "room1", 50)
        assert alice.last_ack()["code"] == "no_active_auction"

    async def test_skip_then_bid(self, session_manager):
        alice, bob = await started_room(session_manager)

        await session_manager.skip(bob, "room1")
        assert bob.last_ack()["ok"] is True
        assert alice.notices("skip")[0]["msg"].startswith("Bob skipped")

        await session_manager.place_bid(bob, "room1", _auction(session_manager).base_price)
        assert bob.last_ack()["code"] == "already_skipped"


class TestTimerCallbacks:
    async def test_tick_broadcast(self, session_manager):
        alice, bob = await started_room(session_manager)
        auction = _auction(session_manager)

        await session_manager._handle_timeout("room1", TimeoutType.TICK, auction.auction_id)

        for connection in (alice, bob):
            assert connection.messages_of_type("auction_tick") == [{"type": "auction_tick", "time_left": 44}]

    async def test_finalize_settles_and_broadcasts(self, session_manager):
        alice, bob = await started_room(session_manager)
        auction = _auction(session_manager)
        await session_manager.place_bid(bob, "room1", auction.base_price)

        await session_manager._handle_timeout("room1", TimeoutType.FINALIZE, auction.auction_id)

        room = session_manager.get_room("room1")
        assert room.current_auction is None
        bob_member = room.members[bob.connection_id]
        assert bob_member.balance == 1000 - auction.base_price
        assert [t.name for t in bob_member.team] == [auction.item.name]
        for connection in (alice, bob):
            assert connection.notices("win")
            update = connection.messages_of_type("room_update")[-1]
            assert update["room"]["sold_count"] == 1

    async def test_duplicate_finalize_is_harmless(self, session_manager):
        _alice, bob = await started_room(session_manager)
        auction = _auction(session_manager)
        await session_manager.place_bid(bob, "room1", auction.base_price)

        await session_manager._handle_timeout("room1", TimeoutType.FINALIZE, auction.auction_id)
        bob.clear()
        await session_manager._handle_timeout("room1", TimeoutType.FINALIZE, auction.auction_id)

        assert bob.sent_messages == []
        assert session_manager.get_room("room1").members[bob.connection_id].balance == 1000 - auction.base_price

    async def test_timeout_for_closed_room_is_noop(self, session_manager):
        await session_manager._handle_timeout("gone", TimeoutType.TICK, 1)


class TestChatAndPing:
    async def test_chat_broadcast_with_author(self, session_manager):
        alice, bob = await room_with_members(session_manager)

        await session_manager.broadcast_chat(alice, "hi all")

        for connection in (alice, bob):
            (chat,) = connection.notices("message")
            assert chat["player_name"] == "Alice"
            assert chat["msg"] == "hi all"

    async def test_chat_outside_room(self, session_manager):
        (alice,) = connect(session_manager, 1)

        await session_manager.broadcast_chat(alice, "hello?")

        (error,) = alice.messages_of_type("session_error")
        assert error["code"] == "not_in_room"

    async def test_ping_answered_with_pong(self, session_manager):
        (alice,) = connect(session_manager, 1)
        await session_manager.handle_ping(alice)
        assert alice.sent_messages == [{"type": "pong"}]
