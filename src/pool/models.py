"""
Data model for pool rooms, tickets and the aggregated final ticket
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Any, Optional, Tuple, Iterable

from config import OUTCOMES, ROOM_STATUS_OPEN
from utils.utils import datetime_to_string, string_to_datetime


def sort_outcomes(outcomes: Iterable[str]) -> Tuple[str, ...]:
    """Deduplicate outcomes and put them in display order (1, X, 2)"""
    unique = set(outcomes)
    return tuple(o for o in OUTCOMES if o in unique)


@dataclass(frozen=True)
class Match:
    id: str
    home: str
    away: str
    # Display only, changes during the week and is never stored with a room
    distribution: Optional[Dict[str, str]] = None

    @property
    def title(self) -> str:
        return f"{self.home} vs {self.away}"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "home": self.home, "away": self.away}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Match":
        return cls(id=str(data["id"]), home=data["home"], away=data["away"])


@dataclass(frozen=True)
class Selection:
    match_id: str
    outcomes: Tuple[str, ...]

    @property
    def signs(self) -> str:
        """Outcomes as a coupon sign, e.g. '1X'"""
        return "".join(sort_outcomes(self.outcomes))

    def to_dict(self) -> Dict[str, Any]:
        return {"match_id": self.match_id, "outcomes": list(self.outcomes)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Selection":
        return cls(match_id=str(data["match_id"]), outcomes=tuple(data["outcomes"]))


@dataclass(frozen=True)
class Ticket:
    id: str
    player_name: str
    selections: Tuple[Selection, ...]
    combinations: int
    cost: int
    created_at: datetime
    client_id_hash: Optional[str] = None

    def outcomes_for(self, match_id: str) -> Tuple[str, ...]:
        for selection in self.selections:
            if selection.match_id == match_id:
                return selection.outcomes
        return ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "player_name": self.player_name,
            "client_id_hash": self.client_id_hash,
            "selections": [s.to_dict() for s in self.selections],
            "combinations": self.combinations,
            "cost": self.cost,
            "created_at": datetime_to_string(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Ticket":
        return cls(
            id=data["id"],
            player_name=data["player_name"],
            client_id_hash=data.get("client_id_hash"),
            selections=tuple(Selection.from_dict(s) for s in data["selections"]),
            combinations=data["combinations"],
            cost=data["cost"],
            created_at=string_to_datetime(data["created_at"]),
        )


@dataclass(frozen=True)
class Room:
    id: str
    title: str
    target_cost: int
    matches: Tuple[Match, ...]
    created_at: datetime
    tickets: Tuple[Ticket, ...] = ()
    status: str = ROOM_STATUS_OPEN
    draw_number: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.status == ROOM_STATUS_OPEN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "target_cost": self.target_cost,
            "status": self.status,
            "draw_number": self.draw_number,
            "created_at": datetime_to_string(self.created_at),
            "matches": [m.to_dict() for m in self.matches],
            "tickets": [t.to_dict() for t in self.tickets],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Room":
        return cls(
            id=data["id"],
            title=data["title"],
            target_cost=data["target_cost"],
            status=data.get("status", ROOM_STATUS_OPEN),
            draw_number=data.get("draw_number"),
            created_at=string_to_datetime(data["created_at"]),
            matches=tuple(Match.from_dict(m) for m in data["matches"]),
            tickets=tuple(Ticket.from_dict(t) for t in data.get("tickets", [])),
        )


@dataclass(frozen=True)
class AggregatedTicket:
    """Final combined system, derived on demand from a room snapshot"""
    selections: Tuple[Selection, ...]
    twos: int
    threes: int
    combinations: int
    cost: int
    picks: Dict[str, int] = field(default_factory=dict, compare=False)

    def as_lists(self) -> List[List[str]]:
        return [list(s.outcomes) for s in self.selections]
