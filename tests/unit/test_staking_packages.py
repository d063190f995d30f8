"""
Tests for the staking package catalog.

Tests cover:
- Exact-amount package lookup
- Visible vs legacy tiers
- Daily earning and cap math
"""

from decimal import Decimal

import pytest

from app.config.staking_packages import (
    STAKING_PACKAGES,
    available_amounts,
    calculate_daily_earning,
    calculate_max_earning,
    find_package_for_amount,
    get_package,
    get_visible_packages,
    is_cap_reached,
)


class TestPackageLookup:
    """Test package resolution by amount and ID."""

    def test_exact_amount_matches(self):
        """Test 100 USDT resolves to Bronze."""
        package = find_package_for_amount(Decimal("100"))
        assert package.name == "Bronze Node"

    def test_amount_between_tiers_has_no_package(self):
        """Test amounts are matched exactly, never rounded to a tier."""
        assert find_package_for_amount(Decimal("150")) is None
        assert find_package_for_amount(Decimal("99.99")) is None

    def test_shared_amount_prefers_visible_tier(self):
        """Test 250 resolves to Gold rather than legacy Silver."""
        package = find_package_for_amount(Decimal("250"))
        assert package.id == 3
        assert package.visible is True

    def test_get_package_by_id(self):
        """Test lookup by catalog ID."""
        assert get_package(0).name == "Trial Node"
        assert get_package(2).visible is False
        assert get_package(99) is None

    def test_visible_packages_hide_legacy_tier(self):
        """Test listings skip hidden tiers but keep catalog order."""
        visible = get_visible_packages()
        assert [p.id for p in visible] == [0, 1, 3, 4, 5, 6, 7, 8]

    def test_available_amounts_are_distinct_and_sorted(self):
        """Test amounts offered in error messages."""
        amounts = available_amounts()
        assert amounts == sorted(set(amounts))
        assert amounts[0] == Decimal("10")
        assert amounts[-1] == Decimal("25000")

    def test_catalog_is_immutable(self):
        """Test the catalog is a tuple of tuples."""
        assert isinstance(STAKING_PACKAGES, tuple)
        with pytest.raises(AttributeError):
            STAKING_PACKAGES[0].amount = Decimal("1")


class TestPackageMath:
    """Test earnings math helpers."""

    def test_daily_earning(self):
        """Test 1.1% of 250."""
        assert calculate_daily_earning(Decimal("250"), Decimal("1.1")) == Decimal("2.75")

    @pytest.mark.parametrize("package", STAKING_PACKAGES, ids=lambda p: p.name)
    def test_max_earning_is_amount_times_cap(self, package):
        """Test every tier's cap."""
        assert calculate_max_earning(package.amount, package.cap) == package.amount * package.cap

    def test_cap_reached(self):
        """Test cap detection."""
        assert is_cap_reached(Decimal("180"), Decimal("180")) is True
        assert is_cap_reached(Decimal("179.99"), Decimal("180")) is False

    def test_uncapped_entry_never_reaches_cap(self):
        """Test flushed voucher positions (max_earning 0) are never capped."""
        assert is_cap_reached(Decimal("1000"), Decimal("0")) is False
