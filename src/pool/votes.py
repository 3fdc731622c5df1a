"""
Vote tally: how the group split on every match
"""

from typing import Dict, Sequence

import pandas as pd

from config import OUTCOMES
from src.pool.models import Match, Ticket


def empty_votes() -> Dict[str, int]:
    return {outcome: 0 for outcome in OUTCOMES}


def tally_votes(matches: Sequence[Match], tickets: Sequence[Ticket]) -> Dict[str, Dict[str, int]]:
    """
    Count how many tickets picked each outcome on each match

    A ticket covering two outcomes on a match gives one vote to each.
    Ties are kept as equal counts.

    Args:
        matches: Room matches
        tickets: Accepted tickets (one snapshot)

    Returns:
        {match_id: {'1': n, 'X': n, '2': n}}
    """
    votes = {match.id: empty_votes() for match in matches}

    for ticket in tickets:
        for selection in ticket.selections:
            match_votes = votes.get(selection.match_id)
            if match_votes is None:
                continue
            for outcome in set(selection.outcomes):
                if outcome in match_votes:
                    match_votes[outcome] += 1

    return votes


def vote_percentages(matches: Sequence[Match], tickets: Sequence[Ticket]) -> Dict[str, Dict[str, float]]:
    """
    Share of tickets (0-100) that included each outcome
    """
    votes = tally_votes(matches, tickets)
    ticket_count = len(tickets)

    if ticket_count == 0:
        return {match_id: {o: 0.0 for o in OUTCOMES} for match_id in votes}

    return {
        match_id: {o: 100.0 * count / ticket_count for o, count in match_votes.items()}
        for match_id, match_votes in votes.items()
    }


def votes_dataframe(matches: Sequence[Match], tickets: Sequence[Ticket]) -> pd.DataFrame:
    """
    Vote counts and percentages as a table, one row per match
    """
    votes = tally_votes(matches, tickets)
    percentages = vote_percentages(matches, tickets)

    rows = []
    for i, match in enumerate(matches, 1):
        row = {
            'match_num': i,
            'match': match.title,
        }
        for outcome in OUTCOMES:
            row[f'votes_{outcome}'] = votes[match.id][outcome]
        for outcome in OUTCOMES:
            row[f'pct_{outcome}'] = round(percentages[match.id][outcome], 1)
        rows.append(row)

    return pd.DataFrame(rows)
