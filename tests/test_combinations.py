from src.pool.combinations import calculate_combinations, calculate_cost, summarize_coverage


def test_product_of_selection_sizes():
    assert calculate_combinations([['1'], ['1', 'X'], ['1', 'X', '2']]) == 6


def test_no_matches_is_zero():
    assert calculate_combinations([]) == 0


def test_empty_selection_counts_as_one():
    assert calculate_combinations([['1', 'X'], [], ['2']]) == 2


def test_duplicate_outcomes_count_once():
    assert calculate_combinations([['1', '1', 'X']]) == 2


def test_full_coupon_of_singles():
    assert calculate_combinations([['1']] * 13) == 1


def test_cost_is_one_kr_per_row():
    assert calculate_cost(192) == 192


def test_summarize_coverage():
    stats = summarize_coverage([['1'], ['1', 'X'], ['X', '2'], ['1', 'X', '2'], []])

    assert stats == {
        'single_signs': 2,
        'double_signs': 2,
        'triple_signs': 1,
        'total_combinations': 12,
        'cost_sek': 12,
    }
