from datetime import datetime, timezone

import pytest

from src.pool.allocation import generate_final_ticket
from src.pool.coupon import (
    format_outcomes,
    coupon_dataframe,
    count_hits,
    format_coupon_text,
    save_coupon_to_file,
    ticket_rows,
)
from src.pool.models import Room

from conftest import make_matches, make_ticket


@pytest.fixture
def room():
    matches = make_matches(4)
    tickets = (
        make_ticket(matches, ['1', '1', '1', '2'], "Anna"),
        make_ticket(matches, ['X', '1', 'X', '2'], "Erik"),
        make_ticket(matches, ['2', 'X', '1', '2'], "Sara"),
    )
    return Room(
        id="room1",
        title="Friday pool",
        target_cost=12,
        matches=matches,
        created_at=datetime(2025, 1, 13, tzinfo=timezone.utc),
        tickets=tickets,
        draw_number=4811,
    )


def test_format_outcomes():
    assert format_outcomes(['2', '1']) == "12"
    assert format_outcomes(('X', '2', '1')) == "1X2"


def test_coupon_dataframe(room):
    result = generate_final_ticket(room.matches, room.tickets, room.target_cost)

    df = coupon_dataframe(room, result.ticket.selections)

    assert list(df['Sign']) == ["1X2", "1X", "1X", "2"]
    assert list(df.columns) == ['Match', 'Home', 'Away', 'Sign', '1 %', 'X %', '2 %']
    assert df.iloc[3]['2 %'] == 100.0


def test_count_hits(room):
    result = generate_final_ticket(room.matches, room.tickets, room.target_cost)
    results = [
        {'event_number': 1, 'outcome': '2'},
        {'event_number': 2, 'outcome': '2'},
        {'event_number': 4, 'outcome': '2'},
        {'event_number': 3, 'outcome': None},
    ]

    hits = count_hits(room.matches, result.ticket.selections, results)

    assert hits == {'hits': 2, 'decided': 3, 'total': 4}


def test_count_hits_without_results(room):
    result = generate_final_ticket(room.matches, room.tickets, room.target_cost)
    assert count_hits(room.matches, result.ticket.selections, []) == {'hits': 0, 'decided': 0, 'total': 4}


def test_coupon_text(room):
    result = generate_final_ticket(room.matches, room.tickets, room.target_cost)

    text = format_coupon_text(room, result, generated_at=datetime(2025, 1, 17, 18, 30))

    assert "STRYKTIPSET POOL - Friday pool" in text
    assert "Generated: 2025-01-17 18:30" in text
    assert "Draw: 4811" in text
    assert "[1X2]" in text
    assert "Singles: 1" in text
    assert "Doubles: 2" in text
    assert "Triples: 1" in text
    assert "Formula: 2^2 × 3^1 = 12 kr" in text
    assert "Cost: 12 kr" in text


def test_coupon_text_without_tickets(room):
    empty = Room(id=room.id, title=room.title, target_cost=12,
                 matches=room.matches, created_at=room.created_at)

    text = format_coupon_text(empty, generate_final_ticket(empty.matches, (), 12))

    assert "No tickets submitted yet." in text


def test_coupon_text_infeasible(room):
    result = generate_final_ticket(room.matches, room.tickets, 10)

    text = format_coupon_text(room, result)

    assert "can't be split into doubles and triples" in text
    assert "Formula" not in text


def test_save_coupon_to_file(room, tmp_path):
    result = generate_final_ticket(room.matches, room.tickets, room.target_cost)

    path = save_coupon_to_file(room, result, output_folder=tmp_path)

    assert path.parent == tmp_path
    assert path.name.startswith("stryktipset_room1_12kr_")
    assert "Cost: 12 kr" in path.read_text(encoding="utf-8")


def test_ticket_rows(room):
    rows = ticket_rows(room)

    assert len(rows) == 3
    assert rows[0]['Player'] == "Anna"
    assert rows[2]['1'] == "2"
    assert rows[1]['3'] == "X"


def test_coupon_text_marks_unmet_target(room):
    result = generate_final_ticket(room.matches, room.tickets, 3 ** 5)
    unmet = Room(id=room.id, title=room.title, target_cost=3 ** 5,
                 matches=room.matches, created_at=room.created_at, tickets=room.tickets)

    text = format_coupon_text(unmet, result)

    assert "Formula: 2^0 × 3^5 = 243 kr (not met, ticket costs 81 kr)" in text
    assert "Cost: 81 kr" in text
