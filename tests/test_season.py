"""
Tests for the festive-season helper.
"""

import datetime

import pytest

from snow_season import is_festive_season


class TestFestiveSeason:
    @pytest.mark.parametrize("month, day", [(12, 1), (12, 25), (12, 31), (1, 1), (1, 3)])
    def test_in_season(self, month, day):
        assert is_festive_season(datetime.date(2024, month, day))

    @pytest.mark.parametrize("month, day", [(1, 4), (1, 31), (2, 14), (7, 4), (11, 30)])
    def test_out_of_season(self, month, day):
        assert not is_festive_season(datetime.date(2024, month, day))

    def test_defaults_to_today(self):
        assert isinstance(is_festive_season(), bool)
