"""
Target cost factorization
A Stryktipset system costs 2^(doubles) × 3^(triples), so a target cost is only
reachable when it has no prime factors other than 2 and 3.
"""

from typing import Any, Dict, List, Optional, Tuple

from config import MATCHES_PER_ROUND


def factorize_cost(n: Any) -> Optional[Tuple[int, int]]:
    """
    Factorize a target cost into 2^twos × 3^threes

    Args:
        n: Target cost

    Returns:
        (twos, threes), or None if n isn't a positive integer of that form
    """
    if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
        return None

    remaining = n
    twos = 0
    threes = 0

    while remaining % 2 == 0:
        twos += 1
        remaining //= 2

    while remaining % 3 == 0:
        threes += 1
        remaining //= 3

    if remaining != 1:
        return None

    return twos, threes


def is_feasible_cost(n: Any) -> bool:
    return factorize_cost(n) is not None


def describe_decomposition(twos: int, threes: int) -> str:
    """Human readable formula, e.g. '2^6 × 3^1'"""
    return f"2^{twos} × 3^{threes}"


def feasible_costs(match_count: int = MATCHES_PER_ROUND,
                   max_cost: Optional[int] = None) -> List[Dict[str, int]]:
    """
    Enumerate every cost a coupon with match_count matches can have

    Args:
        match_count: Number of matches on the coupon
        max_cost: Skip distributions costing more than this

    Returns:
        Distributions sorted by cost, one per distinct cost
    """
    by_cost = {}

    for triples in range(match_count + 1):
        for doubles in range(match_count - triples + 1):
            cost = (2 ** doubles) * (3 ** triples)
            if max_cost is not None and cost > max_cost:
                continue
            if cost not in by_cost:
                by_cost[cost] = {
                    'singles': match_count - doubles - triples,
                    'doubles': doubles,
                    'triples': triples,
                    'cost': cost,
                }

    return [by_cost[cost] for cost in sorted(by_cost)]


def nearest_feasible_costs(n: int, match_count: int = MATCHES_PER_ROUND) -> List[int]:
    """
    Closest reachable costs below and above n

    Used to suggest a valid target cost when n can't be reached.
    """
    below = None
    above = None

    for combo in feasible_costs(match_count):
        cost = combo['cost']
        if cost < n:
            below = cost
        elif cost > n:
            above = cost
            break

    return [cost for cost in (below, above) if cost is not None]
