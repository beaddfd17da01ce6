import pytest
from datetime import date, datetime
from decimal import Decimal

from tests.helpers import at_noon


@pytest.fixture
def category(services):
    return services.categories.create("S&P500")


class TestValuationService:
    """Tests for ValuationService."""

    def test_create_valuation(self, services, category):
        """Test recording a valuation."""
        recorded_at = at_noon(date(2025, 3, 1))

        valuation = services.valuations.create(category.id, Decimal("1234.5"), recorded_at)

        assert valuation.id is not None
        found = services.valuations.find(valuation.id)
        assert found.category_id == category.id
        assert found.current_value == Decimal("1234.5")
        assert found.recorded_at == recorded_at

    def test_create_defaults_to_now(self, services, category):
        """Test that the timestamp defaults to the current time."""
        before = datetime.now()

        valuation = services.valuations.create(category.id, Decimal("1"))

        assert valuation.recorded_at >= before

    def test_find_not_found(self, services):
        """Test finding a non-existent valuation returns None."""
        assert services.valuations.find(9999) is None

    def test_find_by_category_oldest_first(self, services, category):
        """Test that valuations are returned in time order."""
        services.valuations.create(category.id, Decimal("200"), at_noon(date(2025, 3, 2)))
        services.valuations.create(category.id, Decimal("100"), at_noon(date(2025, 3, 1)))

        values = [v.current_value for v in services.valuations.find_by_category(category.id)]

        assert values == [Decimal("100"), Decimal("200")]

    def test_bulk_create_shares_timestamp(self, services, category):
        """Test that a bulk valuation stamps every row the same."""
        bonds = services.categories.create("Bonds")
        recorded_at = at_noon(date(2025, 3, 1))

        created = services.valuations.bulk_create(
            [(category.id, Decimal("100")), (bonds.id, Decimal("50"))], recorded_at
        )

        assert len(created) == 2
        assert {v.recorded_at for v in services.valuations.find_all()} == {recorded_at}

    def test_bulk_create_is_atomic(self, services, category):
        """Test that a failing row leaves nothing behind."""
        with pytest.raises(TypeError):
            services.valuations.bulk_create(
                [(category.id, Decimal("100")), (category.id, object())],
                at_noon(date(2025, 3, 1)),
            )

        assert services.valuations.find_all() == []

    def test_bulk_create_empty(self, services):
        """Test that no values creates nothing."""
        assert services.valuations.bulk_create([]) == []

    def test_find_all_by_category(self, services, category):
        """Test grouping valuations by category."""
        bonds = services.categories.create("Bonds")
        services.valuations.create(category.id, Decimal("1"), at_noon(date(2025, 3, 1)))
        services.valuations.create(bonds.id, Decimal("2"), at_noon(date(2025, 3, 1)))
        services.valuations.create(category.id, Decimal("3"), at_noon(date(2025, 3, 2)))

        grouped = services.valuations.find_all_by_category()

        assert [v.current_value for v in grouped[category.id]] == [
            Decimal("1"),
            Decimal("3"),
        ]
        assert len(grouped[bonds.id]) == 1

    def test_update_valuation(self, services, category):
        """Test changing value and timestamp."""
        valuation = services.valuations.create(
            category.id, Decimal("1"), at_noon(date(2025, 3, 1))
        )
        new_time = at_noon(date(2025, 3, 5))

        updated = services.valuations.update(valuation.id, Decimal("9"), new_time)

        assert updated.current_value == Decimal("9")
        assert updated.recorded_at == new_time

    def test_update_not_found(self, services):
        """Test that updating a missing valuation raises."""
        with pytest.raises(Exception, match="Valuation with ID 9999 not found"):
            services.valuations.update(9999, Decimal("1"), datetime.now())

    def test_delete_valuation(self, services, category):
        """Test deleting a valuation."""
        valuation = services.valuations.create(category.id, Decimal("1"))

        assert services.valuations.delete(valuation.id) is True
        assert services.valuations.find(valuation.id) is None
        assert services.valuations.delete(valuation.id) is False
