"""
Coupon output for the final ticket
Text and CSV exports, plus hit counting against live results
"""

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Any, Iterable, Optional, Sequence

import pandas as pd

from config import OUTCOMES, COUPONS_DIR, SVENSKA_SPEL_COUPON_URL
from src.pool.allocation import (
    AggregationResult,
    STATUS_READY,
    STATUS_NO_TICKETS,
    STATUS_CAPACITY_EXCEEDED,
)
from src.pool.combinations import summarize_coverage
from src.pool.factorize import describe_decomposition
from src.pool.models import Room, Selection, sort_outcomes
from src.pool.votes import vote_percentages
from utils.utils import setup_logging


logger = setup_logging(__name__)


def format_outcomes(outcomes: Iterable[str]) -> str:
    """Outcomes as a coupon sign in display order, e.g. ['X', '1'] -> '1X'"""
    return ''.join(sort_outcomes(outcomes))


def coupon_dataframe(room: Room, selections: Sequence[Selection]) -> pd.DataFrame:
    """
    One row per match with the covered signs and the group's vote shares
    """
    percentages = vote_percentages(room.matches, room.tickets)
    signs = {s.match_id: format_outcomes(s.outcomes) for s in selections}

    rows = []
    for i, match in enumerate(room.matches, 1):
        row = {
            'Match': i,
            'Home': match.home,
            'Away': match.away,
            'Sign': signs.get(match.id, ''),
        }
        for outcome in OUTCOMES:
            row[f'{outcome} %'] = round(percentages[match.id][outcome], 1)
        rows.append(row)

    return pd.DataFrame(rows)


def count_hits(matches: Sequence[Any], selections: Sequence[Selection],
               results: Sequence[Dict[str, Any]]) -> Dict[str, int]:
    """
    Count matches whose live result is covered by the selections

    Args:
        matches: Room matches (ids are Svenska Spel event numbers)
        selections: Ticket or final ticket selections
        results: Parsed draw results with 'event_number' and 'outcome'

    Returns:
        {'hits': n, 'decided': n, 'total': n}
    """
    outcome_by_match = {
        str(r['event_number']): r['outcome']
        for r in results
        if r.get('event_number') is not None and r.get('outcome') in OUTCOMES
    }
    covered = {s.match_id: set(s.outcomes) for s in selections}

    hits = 0
    decided = 0
    for match in matches:
        outcome = outcome_by_match.get(match.id)
        if outcome is None:
            continue
        decided += 1
        if outcome in covered.get(match.id, set()):
            hits += 1

    return {'hits': hits, 'decided': decided, 'total': len(matches)}


def format_coupon_text(room: Room, result: AggregationResult,
                       generated_at: Optional[datetime] = None) -> str:
    """
    Render the final ticket as a plain text coupon
    """
    generated_at = generated_at or datetime.now()

    lines = []
    lines.append("=" * 80)
    lines.append(f"STRYKTIPSET POOL - {room.title}")
    lines.append("=" * 80)
    lines.append(f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M')}")
    if room.draw_number:
        lines.append(f"Draw: {room.draw_number}")
    lines.append(f"Tickets: {len(room.tickets)}")
    lines.append(f"Target cost: {room.target_cost} kr")
    lines.append("")

    if result.status == STATUS_NO_TICKETS:
        lines.append("No tickets submitted yet.")
        return "\n".join(lines) + "\n"

    if result.ticket is None:
        lines.append(f"⚠️  {result.error.message}")
        return "\n".join(lines) + "\n"

    if result.status == STATUS_CAPACITY_EXCEEDED:
        lines.append(f"⚠️  {result.error.message}")
        lines.append("")

    ticket = result.ticket
    stats = summarize_coverage([s.outcomes for s in ticket.selections])
    percentages = vote_percentages(room.matches, room.tickets)

    lines.append("-" * 80)
    for i, (match, selection) in enumerate(zip(room.matches, ticket.selections), 1):
        pct = percentages[match.id]
        lines.append(
            f"{i:2d}. {match.title:45s} [{format_outcomes(selection.outcomes):3s}]  "
            f"1:{pct['1']:3.0f}% | X:{pct['X']:3.0f}% | 2:{pct['2']:3.0f}%"
        )
    lines.append("-" * 80)

    lines.append(f"Singles: {stats['single_signs']}")
    lines.append(f"Doubles: {stats['double_signs']}")
    lines.append(f"Triples: {stats['triple_signs']}")
    formula = describe_decomposition(ticket.twos, ticket.threes)
    if ticket.cost == room.target_cost:
        lines.append(f"Formula: {formula} = {room.target_cost} kr")
    else:
        lines.append(f"Formula: {formula} = {room.target_cost} kr (not met, ticket costs {ticket.cost} kr)")
    lines.append(f"Total rows: {ticket.combinations}")
    lines.append(f"Cost: {ticket.cost} kr")
    if result.status == STATUS_READY:
        lines.append(f"Play it at {SVENSKA_SPEL_COUPON_URL}")
    lines.append("=" * 80)

    return "\n".join(lines) + "\n"


def save_coupon_to_file(room: Room, result: AggregationResult,
                        output_folder: Path = COUPONS_DIR) -> Path:
    """
    Save the final coupon as a text file

    Returns:
        Path of the written file
    """
    output_folder = Path(output_folder)
    output_folder.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = output_folder / f"stryktipset_{room.id}_{room.target_cost}kr_{timestamp}.txt"

    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(format_coupon_text(room, result))

    logger.info(f"Saved coupon to {filepath}")
    return filepath


def ticket_rows(room: Room) -> List[Dict[str, Any]]:
    """Submitted tickets flattened for a table, one row per ticket"""
    rows = []
    for ticket in room.tickets:
        row = {
            'Player': ticket.player_name,
            'Submitted': ticket.created_at.strftime('%Y-%m-%d %H:%M'),
            'Cost': ticket.cost,
        }
        for i, match in enumerate(room.matches, 1):
            row[str(i)] = format_outcomes(ticket.outcomes_for(match.id))
        rows.append(row)
    return rows
