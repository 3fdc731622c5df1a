"""
Main orchestrator for the Stryktipset Pool
Ties the room store, the Svenska Spel fetcher and the final ticket logic together
"""

import argparse
import getpass
import json
import sys
from functools import lru_cache
from typing import Dict, List, Any, Optional, Sequence, Iterable

import pandas as pd

from config import REQUIRE_OPEN_DRAW, DEFAULT_TARGET_COST, MATCHES_PER_ROUND
from src.data.draw_fetcher import SvenskaSpelFetcher
from src.data.room_store import RoomStore
from src.pool.allocation import AggregationResult, generate_final_ticket
from src.pool.coupon import count_hits, format_coupon_text, save_coupon_to_file
from src.pool.errors import PoolError, DrawClosedError
from src.pool.factorize import factorize_cost, describe_decomposition, nearest_feasible_costs
from src.pool.models import Room, Ticket
from src.pool.votes import votes_dataframe
from utils.utils import setup_logging

logger = setup_logging(__name__)


class TipsPool:
    """
    Pool service: rooms, ticket submission and the final combined ticket
    """

    def __init__(self, store: Optional[RoomStore] = None,
                 fetcher: Optional[SvenskaSpelFetcher] = None,
                 require_open_draw: bool = REQUIRE_OPEN_DRAW):
        """
        Initialize the pool

        Args:
            store: Room persistence (JSON files under data/rooms by default)
            fetcher: Svenska Spel client
            require_open_draw: Reject tickets when no draw is open
        """
        self.store = store or RoomStore()
        self.fetcher = fetcher or SvenskaSpelFetcher()
        self.require_open_draw = require_open_draw

        logger.info(f"TipsPool initialized (require open draw: {self.require_open_draw})")

    def create_room(self, title: str, target_cost: int,
                    matches: Sequence[Dict[str, Any]], draw_number: Optional[int] = None) -> Room:
        return self.store.create_room(title, target_cost, matches, draw_number=draw_number)

    def create_room_from_current_draw(self, title: str, target_cost: int) -> Room:
        """
        Create a room with the matches of the currently open draw

        Raises:
            DrawClosedError: Svenska Spel has no open draw
        """
        draw = self.fetcher.get_current_draw()
        if draw is None or not draw['matches']:
            raise DrawClosedError()

        return self.store.create_room(
            title, target_cost, draw['matches'], draw_number=draw['draw_number']
        )

    def get_room(self, room_id: str) -> Room:
        return self.store.get_room(room_id)

    def submit_ticket(self, room_id: str, player_name: str,
                      selections: Sequence[Iterable[str]], client_id: str) -> Ticket:
        """
        Submit a ticket, checking with Svenska Spel that the draw is still open

        Raises:
            DrawClosedError and everything RoomStore.submit_ticket raises
        """
        if self.require_open_draw and not self.fetcher.is_draw_open():
            logger.warning(f"Ticket for room {room_id} rejected, draw is closed")
            raise DrawClosedError()

        return self.store.submit_ticket(room_id, player_name, selections, client_id)

    def final_ticket(self, room_id: str) -> AggregationResult:
        """
        Build the final ticket from one snapshot of the room
        """
        room = self.store.get_room(room_id)
        return self.final_ticket_for(room)

    @staticmethod
    def final_ticket_for(room: Room) -> AggregationResult:
        return generate_final_ticket(room.matches, room.tickets, room.target_cost)

    @staticmethod
    def vote_table(room: Room) -> pd.DataFrame:
        return votes_dataframe(room.matches, room.tickets)

    def live_hits(self, room: Room, result: AggregationResult) -> Optional[Dict[str, int]]:
        """
        Count how many matches the final ticket currently has right

        Returns:
            None when the room has no draw number or no final ticket
        """
        if not room.draw_number or result.ticket is None:
            return None

        results = self.fetcher.get_draw_results(room.draw_number)
        return count_hits(room.matches, result.ticket.selections, results)


@lru_cache(maxsize=None)
def get_pool() -> TipsPool:
    """Process-wide pool shared by the dashboard pages"""
    return TipsPool()


def target_cost_hint(target_cost: int, match_count: int = MATCHES_PER_ROUND) -> str:
    """One-line explanation of a target cost, for room creation"""
    factors = factorize_cost(target_cost)
    if factors is None:
        nearest = nearest_feasible_costs(target_cost, match_count) if target_cost > 0 else []
        suggestion = f" Try {' or '.join(str(c) for c in nearest)} kr." if nearest else ""
        return f"{target_cost} kr is not 2^a × 3^b, no final ticket can be built.{suggestion}"

    twos, threes = factors
    if twos + threes > match_count:
        return f"{target_cost} kr needs {twos + threes} covered matches but there are only {match_count}."
    return f"{target_cost} kr = {describe_decomposition(twos, threes)}: {threes} triples + {twos} doubles"


def parse_selections(text: str) -> List[List[str]]:
    """
    Parse a coupon line such as '1 X2 1X2 2' into per-match selections
    """
    return [list(part.upper()) for part in text.split()]


def main():
    """
    Main entry point
    """
    parser = argparse.ArgumentParser(description='Stryktipset Pool')
    subparsers = parser.add_subparsers(dest='command', required=True)

    create_parser = subparsers.add_parser('create', help='Create a room')
    create_parser.add_argument('--title', type=str, required=True, help='Room title')
    create_parser.add_argument('--target-cost', type=int, default=DEFAULT_TARGET_COST,
                               help='Cost every ticket must have (kr)')
    create_parser.add_argument('--matches', type=str, default=None,
                               help='JSON file with [{"home": ..., "away": ...}] '
                                    '(default: current Svenska Spel draw)')

    submit_parser = subparsers.add_parser('submit', help='Submit a ticket')
    submit_parser.add_argument('room_id', type=str)
    submit_parser.add_argument('--name', type=str, required=True, help='Player name')
    submit_parser.add_argument('--signs', type=str, required=True,
                               help="Signs per match, e.g. '1 X 12 1X2 ...'")
    submit_parser.add_argument('--client-id', type=str, default=None,
                               help='Submitter identity (default: OS user name)')

    show_parser = subparsers.add_parser('show', help='Show the final ticket of a room')
    show_parser.add_argument('room_id', type=str)
    show_parser.add_argument('--save', action='store_true', help='Save the coupon to data/coupons')
    show_parser.add_argument('--votes', action='store_true', help='Print the vote table')

    close_parser = subparsers.add_parser('close', help='Stop accepting tickets in a room')
    close_parser.add_argument('room_id', type=str)

    subparsers.add_parser('draw', help='Show the current Svenska Spel draw')

    args = parser.parse_args()

    pool = TipsPool()

    try:
        if args.command == 'create':
            if args.matches:
                with open(args.matches, 'r', encoding='utf-8') as f:
                    matches = json.load(f)
                room = pool.create_room(args.title, args.target_cost, matches)
            else:
                room = pool.create_room_from_current_draw(args.title, args.target_cost)

            print(f"\n✓ Created room {room.id}: {room.title}")
            print(f"  Matches: {len(room.matches)}")
            print(f"  {target_cost_hint(room.target_cost, len(room.matches))}")

        elif args.command == 'submit':
            client_id = args.client_id or getpass.getuser()
            ticket = pool.submit_ticket(args.room_id, args.name,
                                        parse_selections(args.signs), client_id)
            print(f"\n✓ Ticket accepted for {ticket.player_name} ({ticket.cost} kr)")

        elif args.command == 'show':
            room = pool.get_room(args.room_id)
            result = pool.final_ticket_for(room)
            print(format_coupon_text(room, result))

            if args.votes:
                print(pool.vote_table(room).to_string(index=False))

            hits = pool.live_hits(room, result)
            if hits:
                print(f"\nLive: {hits['hits']}/{hits['decided']} decided matches right "
                      f"({hits['total']} matches)")

            if args.save and result.ticket is not None:
                path = save_coupon_to_file(room, result)
                print(f"\n💾 Saved to: {path}")

        elif args.command == 'close':
            room = pool.store.close_room(args.room_id)
            print(f"\n✓ Room {room.id} closed with {len(room.tickets)} tickets")

        elif args.command == 'draw':
            draw = pool.fetcher.get_current_draw()
            if draw is None:
                raise DrawClosedError()

            print(f"\nDraw {draw['draw_number']} - week {draw['week_number']} "
                  f"(closes {draw['reg_close_time']})")
            for match in draw['matches']:
                dist = match['distribution'] or {}
                print(f"{match['event_number']:2d}. {match['home']} vs {match['away']:30s} "
                      f"1:{dist.get('one', '-')}% X:{dist.get('x', '-')}% 2:{dist.get('two', '-')}%")

    except PoolError as e:
        print(f"\n✗ {e.message}")
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"\n✗ Matches file is not valid JSON: {e}")
        sys.exit(1)
    except OSError as e:
        print(f"\n✗ {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
