"""
Shared fixtures for the pool tests
"""

from datetime import datetime, timezone

import pytest

from src.data.room_store import RoomStore
from src.pool.models import Match, Selection, Ticket, sort_outcomes


def make_matches(count):
    return tuple(
        Match(id=str(i), home=f"Home {i}", away=f"Away {i}")
        for i in range(1, count + 1)
    )


def make_ticket(matches, signs, player_name="Player"):
    """Build a ticket from coupon signs like ['1', 'X2', '1X2']"""
    selections = tuple(
        Selection(match_id=match.id, outcomes=sort_outcomes(sign))
        for match, sign in zip(matches, signs)
    )
    combinations = 1
    for selection in selections:
        combinations *= len(selection.outcomes)
    return Ticket(
        id=f"t-{player_name}",
        player_name=player_name,
        selections=selections,
        combinations=combinations,
        cost=combinations,
        created_at=datetime(2025, 1, 18, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def four_matches():
    return make_matches(4)


@pytest.fixture
def store(tmp_path):
    return RoomStore(rooms_dir=tmp_path / "rooms")


@pytest.fixture
def match_rows():
    return [{'home': f"Home {i}", 'away': f"Away {i}"} for i in range(1, 5)]
