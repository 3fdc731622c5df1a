"""
Ticket validation
Rules are checked in order and the first failing rule wins.
"""

from typing import Any, Iterable, Optional, Sequence

from config import OUTCOMES
from src.pool.errors import (
    TicketValidationError,
    StructuralMismatchError,
    EmptySelectionError,
    InvalidOutcomeError,
    CostMismatchError,
)


def validate_selections(selections: Sequence[Iterable[Any]], match_count: int) -> None:
    """
    Check shape and outcomes of a ticket, everything except its cost

    Raises:
        StructuralMismatchError, EmptySelectionError, InvalidOutcomeError
    """
    if len(selections) != match_count:
        raise StructuralMismatchError(expected=match_count, actual=len(selections))

    for index, outcomes in enumerate(selections):
        outcomes = list(outcomes)
        if len(outcomes) == 0:
            raise EmptySelectionError(match_index=index)

        for outcome in outcomes:
            if not isinstance(outcome, str) or outcome not in OUTCOMES:
                raise InvalidOutcomeError(value=outcome, match_index=index)


def validate_ticket(selections: Sequence[Iterable[Any]], match_count: int,
                    cost: int, target_cost: int) -> None:
    """
    Validate that a ticket can be submitted

    Args:
        selections: One outcome collection per match
        match_count: Number of matches in the room
        cost: Computed ticket cost
        target_cost: Room target cost

    Raises:
        StructuralMismatchError: wrong number of selections
        EmptySelectionError: a match has no outcomes
        InvalidOutcomeError: an outcome isn't 1, X or 2
        CostMismatchError: cost differs from the target cost
    """
    validate_selections(selections, match_count)

    if cost != target_cost:
        raise CostMismatchError(required=target_cost, actual=cost)


def check_ticket(selections: Sequence[Iterable[Any]], match_count: int,
                 cost: int, target_cost: int) -> Optional[TicketValidationError]:
    """Same rules as validate_ticket, returning the error instead of raising"""
    try:
        validate_ticket(selections, match_count, cost, target_cost)
    except TicketValidationError as e:
        return e
    return None
