"""
Unit Tests - Ratio Helpers
"""
import math

from marketplace_analytics.analytics.ratios import allocate_percentages, as_number, safe_divide, safe_ratio


class TestSafeRatio:
    def test_zero_denominator(self):
        assert safe_ratio(5, 0) == 0.0
        assert safe_ratio(None, 3) == 0.0

    def test_clamped(self):
        assert safe_ratio(5, 4) == 1.0
        assert safe_ratio(-1, 4) == 0.0
        assert safe_ratio(2, 3) == 0.6667

    def test_divide_and_number(self):
        assert safe_divide(60, 3) == 20.0
        assert safe_divide(1, 0) == 0.0
        assert as_number(None) == 0.0
        assert as_number(math.nan) == 0.0
        assert as_number(12.3456) == 12.35


class TestAllocatePercentages:
    """Largest-remainder allocation"""

    def test_shares_add_up_to_100(self):
        shares = allocate_percentages([1, 1, 1])

        assert shares == [33.34, 33.33, 33.33]
        assert round(sum(shares), 2) == 100.0

    def test_proportional(self):
        assert allocate_percentages([32.0, 6.0]) == [84.21, 15.79]

    def test_empty_and_zero_totals(self):
        assert allocate_percentages([]) == []
        assert allocate_percentages([0.0, 0.0]) == [0.0, 0.0]
