"""
Combination counting for Stryktipset rows
Cost = 1^singles × 2^doubles × 3^triples (1 SEK per row)
"""

from typing import Dict, Iterable, Sequence

from config import COST_PER_COMBINATION


def calculate_combinations(selections: Sequence[Iterable[str]]) -> int:
    """
    Calculate number of rows a set of per-match selections implies

    Args:
        selections: One outcome collection per match, e.g. [['1'], ['1', 'X']]

    Returns:
        Product of the selection sizes. 0 for no matches at all;
        an empty selection counts as 1 so an incomplete entry
        doesn't collapse the whole product.
    """
    if len(selections) == 0:
        return 0

    total = 1
    for outcomes in selections:
        count = len(set(outcomes))
        total *= count if count > 0 else 1
    return total


def calculate_cost(combinations: int) -> int:
    """Cost in SEK for a number of rows"""
    return combinations * COST_PER_COMBINATION


def summarize_coverage(selections: Sequence[Iterable[str]]) -> Dict[str, int]:
    """
    Count single, double and triple signs in a coupon
    """
    sizes = [len(set(outcomes)) for outcomes in selections]
    combinations = calculate_combinations(selections)

    return {
        'single_signs': sum(1 for s in sizes if s <= 1),
        'double_signs': sum(1 for s in sizes if s == 2),
        'triple_signs': sum(1 for s in sizes if s == 3),
        'total_combinations': combinations,
        'cost_sek': calculate_cost(combinations),
    }
