"""
Room store
Keeps rooms and their tickets as JSON files, one file per room.
Tickets are only ever appended, one accept at a time per room.
"""

import json
import os
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, List, Any, Optional, Sequence, Iterable

from filelock import FileLock

from config import ROOMS_DIR, ROOM_STATUS_OPEN, ROOM_STATUS_CLOSED, ROOM_LOCK_TIMEOUT_SECONDS
from src.pool.combinations import calculate_combinations, calculate_cost
from src.pool.errors import (
    RoomNotFoundError,
    RoomClosedError,
    DuplicateSubmissionError,
    RoomConfigurationError,
    TicketValidationError,
)
from src.pool.factorize import factorize_cost, nearest_feasible_costs
from src.pool.models import Match, Room, Selection, Ticket, sort_outcomes
from src.pool.validation import validate_selections, validate_ticket
from utils.utils import setup_logging, hash_client_id, utc_now


logger = setup_logging(__name__)

# One lock per room file, shared by every RoomStore in the process
_room_locks: Dict[str, threading.Lock] = {}
_room_locks_guard = threading.Lock()


def generate_id() -> str:
    return uuid.uuid4().hex[:12]


def _room_lock(room_path: Path) -> threading.Lock:
    key = str(room_path.resolve())
    with _room_locks_guard:
        if key not in _room_locks:
            _room_locks[key] = threading.Lock()
        return _room_locks[key]


class RoomStore:
    """
    JSON file persistence for rooms with an atomic ticket accept
    """

    def __init__(self, rooms_dir: Path = ROOMS_DIR):
        """
        Initialize the store

        Args:
            rooms_dir: Directory holding one <room_id>.json per room
        """
        self.rooms_dir = Path(rooms_dir)
        self.rooms_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"RoomStore initialized ({self.rooms_dir})")

    def _get_room_path(self, room_id: str) -> Path:
        """Get the file path for a room"""
        return self.rooms_dir / f"{room_id}.json"

    @contextmanager
    def _locked_room(self, room_id: str):
        """
        Hold a room for a read-modify-write

        The thread lock serializes stores within this process, the file lock
        serializes other processes (CLI next to the dashboard).

        Raises:
            RoomNotFoundError: no such room, nothing is locked
        """
        room_path = self._get_room_path(room_id)
        if not room_path.exists():
            raise RoomNotFoundError(room_id)

        with _room_lock(room_path), FileLock(f"{room_path}.lock", timeout=ROOM_LOCK_TIMEOUT_SECONDS):
            yield

    def _load_room_data(self, room_id: str) -> Dict[str, Any]:
        room_path = self._get_room_path(room_id)
        if not room_path.exists():
            raise RoomNotFoundError(room_id)

        with open(room_path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _save_room_data(self, data: Dict[str, Any]):
        """Write a room file atomically (temp file + replace)"""
        room_path = self._get_room_path(data['id'])
        tmp_path = room_path.with_suffix('.json.tmp')

        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, room_path)

    def create_room(self, title: str, target_cost: int, matches: Sequence[Dict[str, Any]],
                    draw_number: Optional[int] = None) -> Room:
        """
        Create a room with a fixed match list and target cost

        Args:
            title: Room title
            target_cost: Cost every ticket must have
            matches: List of {'home': ..., 'away': ...} (an 'id' is optional)
            draw_number: Svenska Spel draw the room plays, for live results

        Returns:
            The created room
        """
        if not title or not isinstance(title, str) or not title.strip():
            raise RoomConfigurationError("Room title is required", field="title")

        if isinstance(target_cost, bool) or not isinstance(target_cost, int) or target_cost <= 0:
            raise RoomConfigurationError(
                "Valid target cost is required (a positive whole number of kr)",
                field="target_cost"
            )

        if not matches:
            raise RoomConfigurationError("At least one match is required", field="matches")

        room_matches = []
        seen_ids = set()
        for index, match in enumerate(matches):
            if not match.get('home') or not match.get('away'):
                raise RoomConfigurationError(
                    f"Match {index + 1} must have home and away teams",
                    field="matches"
                )
            match_id = str(match.get('id') or index + 1)
            if match_id in seen_ids:
                raise RoomConfigurationError(
                    f"Match {index + 1} has duplicate id {match_id}",
                    field="matches"
                )
            seen_ids.add(match_id)
            # Distribution is not stored, it changes throughout the week
            room_matches.append(Match(id=match_id, home=match['home'], away=match['away']))

        if factorize_cost(target_cost) is None:
            logger.warning(
                f"Target cost {target_cost} kr is not 2^a × 3^b, no final ticket can be built "
                f"(nearest: {nearest_feasible_costs(target_cost, len(room_matches))})"
            )

        room = Room(
            id=generate_id(),
            title=title.strip(),
            target_cost=target_cost,
            matches=tuple(room_matches),
            created_at=utc_now(),
            status=ROOM_STATUS_OPEN,
            draw_number=draw_number,
        )

        # New id, nobody else can be writing this file yet
        self._save_room_data(room.to_dict())

        logger.info(f"Created room {room.id} '{room.title}' ({len(room_matches)} matches, {target_cost} kr)")
        return room

    def get_room(self, room_id: str) -> Room:
        """
        Read one consistent snapshot of a room and all its tickets

        Room files are only ever replaced whole, so no lock is needed to read.

        Raises:
            RoomNotFoundError: no such room
        """
        return Room.from_dict(self._load_room_data(room_id))

    def list_rooms(self) -> List[Room]:
        rooms = []
        for room_file in sorted(self.rooms_dir.glob('*.json')):
            try:
                rooms.append(self.get_room(room_file.stem))
            except (json.JSONDecodeError, KeyError) as e:
                logger.error(f"Skipping unreadable room file {room_file.name}: {e}")
        rooms.sort(key=lambda r: r.created_at, reverse=True)
        return rooms

    def close_room(self, room_id: str) -> Room:
        """Stop accepting tickets for a room"""
        with self._locked_room(room_id):
            data = self._load_room_data(room_id)
            data['status'] = ROOM_STATUS_CLOSED
            self._save_room_data(data)

        logger.info(f"Closed room {room_id}")
        return Room.from_dict(data)

    def submit_ticket(self, room_id: str, player_name: str,
                      selections: Sequence[Iterable[str]], client_id: str) -> Ticket:
        """
        Accept a ticket into a room

        Duplicate check, validation and append all happen under the room lock,
        so two submissions from one client can't both get in.

        Args:
            room_id: Room to submit to
            player_name: Display name
            selections: One outcome collection per room match, in match order
            client_id: Submitter identity, stored only as a hash

        Returns:
            The accepted ticket

        Raises:
            RoomConfigurationError: missing player name or client id
            RoomNotFoundError, RoomClosedError, DuplicateSubmissionError,
            TicketValidationError subclasses
        """
        if not player_name or not isinstance(player_name, str) or not player_name.strip():
            raise RoomConfigurationError("Player name is required", field="player_name")
        if not client_id or not isinstance(client_id, str):
            raise RoomConfigurationError("Client ID is required", field="client_id")

        selections = [list(outcomes) for outcomes in selections]
        client_id_hash = hash_client_id(client_id)

        with self._locked_room(room_id):
            data = self._load_room_data(room_id)

            if data.get('status', ROOM_STATUS_OPEN) != ROOM_STATUS_OPEN:
                raise RoomClosedError(room_id)

            if any(t.get('client_id_hash') == client_id_hash for t in data.get('tickets', [])):
                logger.warning(f"Duplicate submission rejected for room {room_id}")
                raise DuplicateSubmissionError(room_id)

            try:
                # Shape and outcomes first, the cost is only defined for valid signs
                validate_selections(selections, match_count=len(data['matches']))
                combinations = calculate_combinations(selections)
                cost = calculate_cost(combinations)
                validate_ticket(
                    selections=selections,
                    match_count=len(data['matches']),
                    cost=cost,
                    target_cost=data['target_cost'],
                )
            except TicketValidationError as e:
                logger.warning(f"Ticket rejected for room {room_id}: {e}")
                raise

            ticket = Ticket(
                id=generate_id(),
                player_name=player_name.strip(),
                client_id_hash=client_id_hash,
                selections=tuple(
                    Selection(match_id=str(match['id']), outcomes=sort_outcomes(outcomes))
                    for match, outcomes in zip(data['matches'], selections)
                ),
                combinations=combinations,
                cost=cost,
                created_at=utc_now(),
            )

            data.setdefault('tickets', []).append(ticket.to_dict())
            self._save_room_data(data)

        logger.info(f"Accepted ticket {ticket.id} from {ticket.player_name} in room {room_id} ({cost} kr)")
        return ticket

    def has_submitted(self, room_id: str, client_id: str) -> bool:
        client_id_hash = hash_client_id(client_id)
        room = self.get_room(room_id)
        return any(t.client_id_hash == client_id_hash for t in room.tickets)
