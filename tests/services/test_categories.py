import pytest
import sqlite3
from datetime import date
from decimal import Decimal

from models.category import DEFAULT_COLOR
from models.transaction import Transaction, DEPOSIT
from tests.helpers import at_noon


class TestCategoryService:
    """Tests for CategoryService."""

    def test_create_category_defaults(self, services):
        """Test creating a root category with default settings."""
        category = services.categories.create("Stocks")

        assert category.id is not None
        assert category.id > 0
        assert category.name == "Stocks"
        assert category.color == DEFAULT_COLOR
        assert category.parent_id is None
        assert category.is_cash is False
        assert category.is_liability is False

    def test_create_category_with_flags(self, services):
        """Test creating cash and liability categories."""
        bank = services.categories.create("Bank", color="#22c55e", is_cash=True)
        loan = services.categories.create("Mortgage", is_liability=True)

        found_bank = services.categories.find(bank.id)
        found_loan = services.categories.find(loan.id)

        assert found_bank.is_cash is True
        assert found_bank.color == "#22c55e"
        assert found_loan.is_liability is True

    def test_create_category_with_parent(self, services):
        """Test creating a category with a parent."""
        parent = services.categories.create("Stocks")
        child = services.categories.create("S&P500", parent_id=parent.id)

        assert child.parent_id == parent.id
        assert [c.id for c in services.categories.children_of(parent.id)] == [child.id]

    def test_create_order_increments(self, services):
        """Test that order defaults to one past the current maximum."""
        first = services.categories.create("A")
        second = services.categories.create("B")
        explicit = services.categories.create("C", order=10)
        after = services.categories.create("D")

        assert first.order == 0
        assert second.order == 1
        assert explicit.order == 10
        assert after.order == 11

    def test_create_duplicate_name(self, services):
        """Test that category names are unique."""
        services.categories.create("Stocks")

        with pytest.raises(sqlite3.IntegrityError):
            services.categories.create("Stocks")

    def test_find_category_by_id_not_found(self, services):
        """Test finding a non-existent category returns None."""
        assert services.categories.find(9999) is None

    def test_find_by_name(self, services):
        """Test finding a category by name."""
        services.categories.create("Bonds")

        found = services.categories.find_by_name("Bonds")

        assert found is not None
        assert found.name == "Bonds"

    def test_find_by_name_case_sensitive(self, services):
        """Test that category name lookup is case-sensitive."""
        services.categories.create("Bonds")

        assert services.categories.find_by_name("bonds") is None

    def test_find_all_empty(self, services):
        """Test finding all categories when database is empty."""
        categories = services.categories.find_all()

        assert categories == []
        assert isinstance(categories, list)

    def test_find_all_ordered(self, services):
        """Test that find_all returns categories by sort order."""
        services.categories.create("Late", order=5)
        services.categories.create("Early", order=1)

        names = [c.name for c in services.categories.find_all()]

        assert names == ["Early", "Late"]

    def test_update_category(self, services):
        """Test updating a category's name, color and flags."""
        category = services.categories.create("Savings")

        updated = services.categories.update(
            category.id, "Emergency fund", color="#000000", order=3, is_cash=True
        )

        assert updated.name == "Emergency fund"
        assert updated.color == "#000000"
        assert updated.order == 3
        assert updated.is_cash is True

    def test_update_category_not_found(self, services):
        """Test that updating a missing category raises."""
        with pytest.raises(Exception, match="Category with ID 9999 not found"):
            services.categories.update(9999, "Nothing")

    def test_update_rejects_self_parent(self, services):
        """Test that a category cannot be its own parent."""
        category = services.categories.create("Stocks")

        with pytest.raises(ValueError):
            services.categories.update(category.id, "Stocks", parent_id=category.id)

    def test_update_rejects_descendant_parent(self, services):
        """Test that a category cannot be moved under its own descendant."""
        root = services.categories.create("Stocks")
        child = services.categories.create("US", parent_id=root.id)
        grandchild = services.categories.create("S&P500", parent_id=child.id)

        with pytest.raises(ValueError):
            services.categories.update(root.id, "Stocks", parent_id=grandchild.id)

        assert services.categories.find(root.id).parent_id is None

    def test_update_moves_under_new_parent(self, services):
        """Test re-parenting to an unrelated category."""
        stocks = services.categories.create("Stocks")
        bonds = services.categories.create("Bonds")
        fund = services.categories.create("Fund", parent_id=stocks.id)

        updated = services.categories.update(fund.id, "Fund", parent_id=bonds.id)

        assert updated.parent_id == bonds.id

    def test_update_valuation_settings(self, services):
        """Test bulk update of the valuation form settings."""
        a = services.categories.create("A")
        b = services.categories.create("B")

        count = services.categories.update_valuation_settings(
            [(a.id, 2, True), (b.id, 1, False)]
        )

        assert count == 2
        assert services.categories.find(a.id).valuation_order == 2
        assert services.categories.find(b.id).is_valuation_target is False

    def test_update_valuation_settings_empty(self, services):
        """Test that no settings updates nothing."""
        assert services.categories.update_valuation_settings([]) == 0

    def test_delete_category(self, services):
        """Test deleting a category."""
        category = services.categories.create("Temporary")

        assert services.categories.delete(category.id) is True
        assert services.categories.find(category.id) is None

    def test_delete_category_not_found(self, services):
        """Test deleting a non-existent category returns False."""
        assert services.categories.delete(9999) is False

    def test_delete_orphans_children(self, services):
        """Test that children survive as roots when their parent is deleted."""
        parent = services.categories.create("Stocks")
        child = services.categories.create("S&P500", parent_id=parent.id)

        services.categories.delete(parent.id)

        found = services.categories.find(child.id)
        assert found is not None
        assert found.parent_id is None

    def test_delete_removes_records(self, services):
        """Test that the category's valuations and transactions go with it."""
        category = services.categories.create("S&P500")
        other = services.categories.create("Bonds")
        day = date(2025, 1, 10)
        services.valuations.create(category.id, Decimal("100"), at_noon(day))
        services.valuations.create(other.id, Decimal("50"), at_noon(day))
        services.transactions.create(
            Transaction(
                id=None,
                category_id=category.id,
                type=DEPOSIT,
                amount=Decimal("100"),
                transacted_at=at_noon(day),
            )
        )

        services.categories.delete(category.id)

        assert services.valuations.find_by_category(category.id) == []
        assert services.transactions.find_by_category(category.id) == []
        assert len(services.valuations.find_by_category(other.id)) == 1
