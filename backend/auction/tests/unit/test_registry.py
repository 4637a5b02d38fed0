import pytest

from auction.logic.enums import AuctionErrorCode, RoomPhase
from auction.logic.exceptions import InvalidCapacityError, RoomExistsError, RoomFullError, RoomNotFoundError
from auction.tests.helpers.rooms import make_room


class TestCreateRoom:
    def test_creator_is_host_and_first_member(self, registry):
        room = registry.create_room("room1", 4, "p0", "Alice")

        assert room.host_id == "p0"
        assert room.phase is RoomPhase.LOBBY
        assert room.usernames == ["Alice"]
        assert room.members["p0"].balance == 1000
        assert room.members["p0"].team == []
        assert registry.get_room("room1") is room

    def test_duplicate_id_rejected(self, registry):
        registry.create_room("room1", 4, "p0", "Alice")

        with pytest.raises(RoomExistsError) as exc_info:
            registry.create_room("room1", 4, "p9", "Zed")

        assert exc_info.value.code is AuctionErrorCode.ROOM_EXISTS
        assert registry.room_count == 1

    @pytest.mark.parametrize("capacity", [0, 2, 7, 100])
    def test_capacity_out_of_range_rejected(self, registry, capacity):
        with pytest.raises(InvalidCapacityError, match="between 3 and 6"):
            registry.create_room("room1", capacity, "p0", "Alice")
        assert registry.room_count == 0

    @pytest.mark.parametrize("capacity", [3, 6])
    def test_capacity_bounds_inclusive(self, registry, capacity):
        assert registry.create_room("room1", capacity, "p0", "Alice").capacity == capacity


class TestJoinRoom:
    def test_join_appends_member_in_order(self, registry):
        room = make_room(registry, usernames=("Alice", "Bob", "Carol"))
        assert room.usernames == ["Alice", "Bob", "Carol"]
        assert list(room.members) == ["p0", "p1", "p2"]

    def test_unknown_room(self, registry):
        with pytest.raises(RoomNotFoundError):
            registry.join_room("nope", "p1", "Bob")

    def test_full_room_rejected(self, registry):
        make_room(registry, capacity=3, usernames=("Alice", "Bob", "Carol"))

        with pytest.raises(RoomFullError):
            registry.join_room("room1", "p3", "Dave")

    def test_join_allowed_while_running(self, registry):
        room = make_room(registry)
        room.phase = RoomPhase.RUNNING
        registry.join_room("room1", "p2", "Carol")
        assert room.member_count == 3


class TestRemoveParticipant:
    def test_host_passes_to_next_member(self, registry):
        room = make_room(registry, usernames=("Alice", "Bob", "Carol"))

        removed = registry.remove_participant("room1", "p0")

        assert removed.username == "Alice"
        assert room.host_id == "p1"

    def test_non_host_leaving_keeps_host(self, registry):
        room = make_room(registry, usernames=("Alice", "Bob", "Carol"))
        registry.remove_participant("room1", "p1")
        assert room.host_id == "p0"
        assert room.usernames == ["Alice", "Carol"]

    def test_last_member_closes_room(self, registry):
        make_room(registry)
        registry.remove_participant("room1", "p0")
        registry.remove_participant("room1", "p1")

        assert registry.get_room("room1") is None
        assert registry.room_count == 0

    def test_room_id_reusable_after_close(self, registry):
        make_room(registry)
        registry.remove_participant("room1", "p0")
        registry.remove_participant("room1", "p1")

        room = registry.create_room("room1", 3, "p5", "Eve")
        assert room.host_id == "p5"

    def test_unknown_member_or_room_is_noop(self, registry):
        make_room(registry)
        assert registry.remove_participant("room1", "ghost") is None
        assert registry.remove_participant("nope", "p0") is None
        assert registry.room_count == 1
