"""
Final ticket generation
Combines all submitted tickets into one system that costs exactly the room's
target cost. Doubles and triples go to the matches the group is most split on.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from config import OUTCOMES
from src.pool.combinations import calculate_combinations, calculate_cost
from src.pool.errors import (
    PoolError,
    InfeasibleTargetCostError,
    AllocationCapacityExceededError,
)
from src.pool.factorize import factorize_cost, nearest_feasible_costs
from src.pool.models import AggregatedTicket, Match, Selection, Ticket
from src.pool.votes import tally_votes
from utils.utils import setup_logging


logger = setup_logging(__name__)

STATUS_READY = "ready"
STATUS_NO_TICKETS = "no_tickets"
STATUS_INFEASIBLE = "infeasible_target_cost"
STATUS_CAPACITY_EXCEEDED = "capacity_exceeded"


@dataclass(frozen=True)
class MatchScore:
    index: int
    match_id: str
    votes: Dict[str, int]
    ranked: Tuple[str, ...]
    score2: float  # Score for adding a 2nd pick
    score3: float  # Score for adding a 3rd pick


@dataclass(frozen=True)
class AggregationResult:
    status: str
    target_cost: int
    ticket: Optional[AggregatedTicket] = None
    error: Optional[PoolError] = None
    scores: Tuple[MatchScore, ...] = ()

    @property
    def is_ready(self) -> bool:
        return self.status == STATUS_READY

    def raise_for_status(self):
        """Raise the carried error for infeasible or under-allocated results"""
        if self.error is not None:
            raise self.error


def rank_outcomes(votes: Dict[str, int]) -> Tuple[str, ...]:
    """
    Rank outcomes by votes, most votes first

    Equal votes keep the canonical 1, X, 2 order (sorted() is stable).
    """
    return tuple(sorted(OUTCOMES, key=lambda o: votes.get(o, 0), reverse=True))


def calculate_match_scores(matches: Sequence[Match], tickets: Sequence[Ticket]) -> List[MatchScore]:
    """
    Uncertainty scores per match. Higher means more people voted for the
    2nd/3rd outcome relative to the top pick.
    """
    votes = tally_votes(matches, tickets)
    scores = []

    for index, match in enumerate(matches):
        match_votes = votes[match.id]
        ranked = rank_outcomes(match_votes)

        top1_votes = match_votes[ranked[0]]
        top2_votes = match_votes[ranked[1]]
        top3_votes = match_votes[ranked[2]]

        scores.append(MatchScore(
            index=index,
            match_id=match.id,
            votes=match_votes,
            ranked=ranked,
            score2=top2_votes / max(top1_votes, 1),
            score3=top3_votes / max(top1_votes, 1),
        ))

    return scores


def assign_picks(scores: Sequence[MatchScore], twos: int, threes: int) -> Dict[str, int]:
    """
    Decide how many outcomes to cover on each match

    Every match starts with 1 pick. The `threes` matches with highest score3
    get 3 picks, then the `twos` highest score2 matches among the rest get 2.
    Equal scores go to the earlier match.

    Returns:
        {match_id: picks}
    """
    picks = {s.match_id: 1 for s in scores}

    by_score3 = sorted(scores, key=lambda s: (-s.score3, s.index))
    by_score2 = sorted(scores, key=lambda s: (-s.score2, s.index))

    for s in by_score3[:threes]:
        picks[s.match_id] = 3

    twos_assigned = 0
    for s in by_score2:
        if twos_assigned >= twos:
            break
        if picks[s.match_id] != 3:
            picks[s.match_id] = 2
            twos_assigned += 1

    return picks


def generate_final_ticket(matches: Sequence[Match], tickets: Sequence[Ticket],
                          target_cost: int) -> AggregationResult:
    """
    Generate the final ticket for a room snapshot

    Args:
        matches: Room matches, in coupon order
        tickets: All accepted tickets, read once
        target_cost: Room target cost

    Returns:
        AggregationResult. `ticket` is set when status is ready, and also
        (under target) when status is capacity_exceeded.
    """
    if len(tickets) == 0:
        logger.info("No tickets submitted yet, nothing to aggregate")
        return AggregationResult(status=STATUS_NO_TICKETS, target_cost=target_cost)

    factors = factorize_cost(target_cost)
    if factors is None:
        suggestions = []
        if isinstance(target_cost, int) and not isinstance(target_cost, bool) and target_cost > 0:
            suggestions = nearest_feasible_costs(target_cost, max(len(matches), 1))
        error = InfeasibleTargetCostError(target_cost, suggestions)
        logger.warning(error.message)
        return AggregationResult(status=STATUS_INFEASIBLE, target_cost=target_cost, error=error)

    twos, threes = factors
    scores = calculate_match_scores(matches, tickets)
    picks = assign_picks(scores, twos, threes)

    selections = tuple(
        Selection(match_id=s.match_id, outcomes=s.ranked[:picks[s.match_id]])
        for s in scores
    )
    combinations = calculate_combinations([s.outcomes for s in selections])
    ticket = AggregatedTicket(
        selections=selections,
        twos=twos,
        threes=threes,
        combinations=combinations,
        cost=calculate_cost(combinations),
        picks=picks,
    )

    if ticket.cost != target_cost:
        error = AllocationCapacityExceededError(target_cost, ticket.cost, len(matches))
        logger.error(error.message)
        return AggregationResult(
            status=STATUS_CAPACITY_EXCEEDED,
            target_cost=target_cost,
            ticket=ticket,
            error=error,
            scores=tuple(scores),
        )

    logger.info(
        f"Final ticket from {len(tickets)} tickets: "
        f"{threes} triples + {twos} doubles = {ticket.cost} kr"
    )
    return AggregationResult(
        status=STATUS_READY,
        target_cost=target_cost,
        ticket=ticket,
        scores=tuple(scores),
    )
