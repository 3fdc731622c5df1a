import json
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

import src.data.room_store as room_store_module
from src.data.room_store import RoomStore

from src.pool.errors import (
    RoomNotFoundError,
    RoomClosedError,
    DuplicateSubmissionError,
    RoomConfigurationError,
    CostMismatchError,
    StructuralMismatchError,
    InvalidOutcomeError,
)

VALID_SIGNS = [['1', 'X'], ['2'], ['1'], ['X']]


@pytest.fixture
def room(store, match_rows):
    return store.create_room("Week 3", 2, match_rows)


def test_create_room(store, room):
    assert room.title == "Week 3"
    assert room.target_cost == 2
    assert [m.id for m in room.matches] == ['1', '2', '3', '4']
    assert room.is_open
    assert room.tickets == ()
    assert store.get_room(room.id) == room


def test_create_room_keeps_given_match_ids(store):
    room = store.create_room("Draw", 1, [
        {'id': 7, 'home': "AIK", 'away': "Hammarby"},
        {'id': 8, 'home': "Malmö", 'away': "IFK Göteborg", 'distribution': {'one': '40'}},
    ], draw_number=4711)

    stored = store.get_room(room.id)
    assert [m.id for m in stored.matches] == ['7', '8']
    assert stored.matches[1].distribution is None
    assert stored.draw_number == 4711


@pytest.mark.parametrize("title, target_cost, field", [
    ("", 2, "title"),
    ("   ", 2, "title"),
    ("Week 3", 0, "target_cost"),
    ("Week 3", -12, "target_cost"),
    ("Week 3", 2.0, "target_cost"),
    ("Week 3", True, "target_cost"),
])
def test_create_room_rejects_bad_parameters(store, match_rows, title, target_cost, field):
    with pytest.raises(RoomConfigurationError) as exc_info:
        store.create_room(title, target_cost, match_rows)
    assert exc_info.value.details['field'] == field


def test_create_room_needs_matches(store):
    with pytest.raises(RoomConfigurationError):
        store.create_room("Week 3", 2, [])

    with pytest.raises(RoomConfigurationError):
        store.create_room("Week 3", 2, [{'home': "AIK", 'away': ""}])

    with pytest.raises(RoomConfigurationError):
        store.create_room("Week 3", 2, [
            {'id': '1', 'home': "A", 'away': "B"},
            {'id': '1', 'home': "C", 'away': "D"},
        ])


def test_infeasible_target_cost_is_allowed(store, match_rows):
    room = store.create_room("Week 3", 10, match_rows)
    assert store.get_room(room.id).target_cost == 10


def test_get_missing_room(store):
    with pytest.raises(RoomNotFoundError):
        store.get_room("nope")


def test_submit_ticket(store, room):
    ticket = store.submit_ticket(room.id, " Anna ", [['X', '1'], ['2'], ['1'], ['X']], "client-1")

    assert ticket.player_name == "Anna"
    assert ticket.cost == 2
    assert ticket.combinations == 2
    assert ticket.selections[0].outcomes == ('1', 'X')
    assert ticket.client_id_hash != "client-1"
    assert len(ticket.client_id_hash) == 64

    stored = store.get_room(room.id)
    assert stored.tickets == (ticket,)


def test_client_id_is_not_stored(store, room, tmp_path):
    store.submit_ticket(room.id, "Anna", VALID_SIGNS, "secret-client")

    raw = (tmp_path / "rooms" / f"{room.id}.json").read_text(encoding="utf-8")
    assert "secret-client" not in raw


def test_duplicate_submission(store, room):
    store.submit_ticket(room.id, "Anna", VALID_SIGNS, "client-1")

    with pytest.raises(DuplicateSubmissionError):
        store.submit_ticket(room.id, "Anna again", VALID_SIGNS, "client-1")

    assert len(store.get_room(room.id).tickets) == 1
    assert store.has_submitted(room.id, "client-1")
    assert not store.has_submitted(room.id, "client-2")


def test_rejected_ticket_is_not_stored(store, room):
    with pytest.raises(CostMismatchError):
        store.submit_ticket(room.id, "Anna", [['1', 'X'], ['1', 'X'], ['1'], ['1']], "client-1")

    with pytest.raises(StructuralMismatchError):
        store.submit_ticket(room.id, "Anna", [['1']], "client-1")

    assert store.get_room(room.id).tickets == ()
    # A rejected ticket doesn't use up the client's submission
    store.submit_ticket(room.id, "Anna", VALID_SIGNS, "client-1")


def test_submit_needs_name_and_client(store, room):
    with pytest.raises(RoomConfigurationError):
        store.submit_ticket(room.id, "  ", VALID_SIGNS, "client-1")

    with pytest.raises(RoomConfigurationError):
        store.submit_ticket(room.id, "Anna", VALID_SIGNS, "")


def test_submit_to_missing_room(store):
    with pytest.raises(RoomNotFoundError):
        store.submit_ticket("nope", "Anna", VALID_SIGNS, "client-1")


def test_closed_room(store, room):
    closed = store.close_room(room.id)
    assert not closed.is_open

    with pytest.raises(RoomClosedError):
        store.submit_ticket(room.id, "Anna", VALID_SIGNS, "client-1")


def test_snapshot_does_not_change(store, room):
    store.submit_ticket(room.id, "Anna", VALID_SIGNS, "client-1")
    snapshot = store.get_room(room.id)

    store.submit_ticket(room.id, "Erik", VALID_SIGNS, "client-2")

    assert len(snapshot.tickets) == 1
    assert len(store.get_room(room.id).tickets) == 2


def test_concurrent_duplicate_submissions(store, room):
    def submit(_):
        try:
            store.submit_ticket(room.id, "Anna", VALID_SIGNS, "same-client")
            return True
        except DuplicateSubmissionError:
            return False

    with ThreadPoolExecutor(max_workers=8) as executor:
        accepted = list(executor.map(submit, range(16)))

    assert accepted.count(True) == 1
    assert len(store.get_room(room.id).tickets) == 1


def test_list_rooms_skips_broken_files(store, room, tmp_path):
    (tmp_path / "rooms" / "broken.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "rooms" / "partial.json").write_text(json.dumps({'id': "partial"}), encoding="utf-8")

    rooms = store.list_rooms()

    assert [r.id for r in rooms] == [room.id]


@pytest.fixture
def slow_validation(monkeypatch):
    """Widen the window between reading and writing a room file"""
    validate = room_store_module.validate_ticket

    def slow_validate_ticket(**kwargs):
        time.sleep(0.2)
        validate(**kwargs)

    monkeypatch.setattr(room_store_module, "validate_ticket", slow_validate_ticket)


def test_two_stores_keep_every_ticket(room, tmp_path, slow_validation):
    store_a = RoomStore(rooms_dir=tmp_path / "rooms")
    store_b = RoomStore(rooms_dir=tmp_path / "rooms")
    submissions = [(store_a, "Anna", "client-1"), (store_b, "Erik", "client-2")] * 2
    submissions = [(s, f"{name}{i}", f"{client}-{i}") for i, (s, name, client) in enumerate(submissions)]

    with ThreadPoolExecutor(max_workers=4) as executor:
        tickets = list(executor.map(
            lambda args: args[0].submit_ticket(room.id, args[1], VALID_SIGNS, args[2]),
            submissions,
        ))

    stored = store_a.get_room(room.id).tickets
    assert len(stored) == 4
    assert {t.id for t in stored} == {t.id for t in tickets}


def test_two_stores_reject_duplicate_client(room, tmp_path, slow_validation):
    stores = [RoomStore(rooms_dir=tmp_path / "rooms") for _ in range(2)]

    def submit(store):
        try:
            store.submit_ticket(room.id, "Anna", VALID_SIGNS, "same-client")
            return True
        except DuplicateSubmissionError:
            return False

    with ThreadPoolExecutor(max_workers=4) as executor:
        accepted = list(executor.map(submit, stores * 2))

    assert accepted.count(True) == 1
    assert len(stores[1].get_room(room.id).tickets) == 1


def test_unhashable_outcome_is_invalid(store, room):
    with pytest.raises(InvalidOutcomeError) as exc_info:
        store.submit_ticket(room.id, "Anna", [[['1']], ['2'], ['1'], ['X']], "client-1")

    assert exc_info.value.details == {'value': ['1'], 'match_index': 0}
    assert store.get_room(room.id).tickets == ()


def test_missing_room_takes_no_lock(store, tmp_path):
    locks_before = len(room_store_module._room_locks)

    with pytest.raises(RoomNotFoundError):
        store.get_room("nope")
    with pytest.raises(RoomNotFoundError):
        store.submit_ticket("nope", "Anna", VALID_SIGNS, "client-1")
    with pytest.raises(RoomNotFoundError):
        store.close_room("nope")

    assert len(room_store_module._room_locks) == locks_before
    assert not list((tmp_path / "rooms").glob("nope*"))
