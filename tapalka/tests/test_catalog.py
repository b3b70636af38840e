"""
Tests for the upgrade catalog.
"""

import pytest

from ..economy.catalog import (
    MAX_LEVEL,
    UpgradeKind,
    cost_for_level,
    default_levels,
    derive_rates,
    value_at_level,
)


class TestTierTables:
    """Tier values and costs."""

    @pytest.mark.parametrize("kind, values", [
        (UpgradeKind.CAPACITY, [30, 60, 100]),
        (UpgradeKind.REGEN_SPEED, [1.0, 1.5, 2.5]),
        (UpgradeKind.TAP_POWER, [1, 2, 4]),
    ])
    def test_values(self, kind, values):
        assert [value_at_level(kind, level) for level in (1, 2, 3)] == values

    @pytest.mark.parametrize("kind, costs", [
        (UpgradeKind.CAPACITY, [None, 500, 2500]),
        (UpgradeKind.REGEN_SPEED, [None, 1000, 5000]),
        (UpgradeKind.TAP_POWER, [None, 2000, 10000]),
    ])
    def test_costs(self, kind, costs):
        """Level 1 is the free baseline."""
        assert [cost_for_level(kind, level) for level in (1, 2, 3)] == costs

    def test_max_level_is_three(self):
        assert MAX_LEVEL == 3

    def test_out_of_range_level_raises(self):
        with pytest.raises(ValueError):
            value_at_level(UpgradeKind.CAPACITY, 4)
        with pytest.raises(ValueError):
            cost_for_level(UpgradeKind.TAP_POWER, 0)

    def test_accepts_kind_names(self):
        assert value_at_level("tap_power", 3) == 4


class TestDeriveRates:
    """Derived constants from an upgrade mapping."""

    def test_baseline(self):
        rates = derive_rates(default_levels())
        assert rates.max_energy == 30
        assert rates.regen_per_second == 3.0
        assert rates.tap_power == 1

    def test_all_maxed(self):
        rates = derive_rates({kind: 3 for kind in UpgradeKind})
        assert rates.max_energy == 100
        assert rates.regen_per_second == 7.5
        assert rates.tap_power == 4

    def test_missing_kinds_default_to_level_one(self):
        rates = derive_rates({UpgradeKind.CAPACITY: 2})
        assert rates.max_energy == 60
        assert rates.regen_per_second == 3.0
        assert rates.tap_power == 1
