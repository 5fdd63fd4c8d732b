"""Tests for the shared integer rounding helper."""

import pytest

from gridpulse.services.rounding import round_half_up


@pytest.mark.parametrize(
    "value,expected", [(0.5, 1), (2.5, 3), (32.5, 33), (4.49, 4), (7.0, 7), (0.0, 0)]
)
def test_halves_round_up(value, expected):
    assert round_half_up(value) == expected
