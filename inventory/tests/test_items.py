from decimal import Decimal

import pytest

from inventory.models import Category, Item, StockMovement
from inventory.services import (
    ItemService, StockAdjustmentService,
    CategoryNotFoundError, InvalidRequestError, InvalidUnitError,
    NegativeValueError, InvalidQuantityError, ItemNotFoundError,
)
from inventory.services.base_service import MAX_STOCK

pytestmark = pytest.mark.django_db


class TestCreate:

    def test_create(self, org_id, category):
        result = ItemService.create(
            organization_id=org_id,
            category_id=category.id,
            name=" Olive Oil ",
            unit_of_measurement="ltr",
            minimum_threshold=2000,
            current_stock=5500,
            sku="",
            unit_cost="12.50",
        )

        data = result["item"]
        assert data["name"] == "Olive Oil"
        assert data["sku"] is None
        assert data["current_stock"] == 5500
        assert data["current_stock_display"] == "5.500"
        assert data["minimum_threshold_display"] == "2.000"
        assert data["unit_cost"] == "12.5000"
        assert data["base_unit"] == "ml"
        assert data["track_stock"] is True

    def test_unknown_unit(self, org_id, category):
        with pytest.raises(InvalidUnitError):
            ItemService.create(org_id, category.id, "Thing", "oz")

    def test_negative_values(self, org_id, category):
        with pytest.raises(NegativeValueError):
            ItemService.create(org_id, category.id, "Thing", "pcs", minimum_threshold=-1)
        with pytest.raises(NegativeValueError):
            ItemService.create(org_id, category.id, "Thing", "pcs", current_stock=-3)
        with pytest.raises(NegativeValueError):
            ItemService.create(org_id, category.id, "Thing", "pcs", unit_cost="-1")

    def test_fractional_base_quantity_rejected(self, org_id, category):
        with pytest.raises(InvalidQuantityError):
            ItemService.create(org_id, category.id, "Thing", "pcs", current_stock=1.5)

    def test_values_beyond_column_limits_rejected(self, org_id, category):
        with pytest.raises(InvalidQuantityError):
            ItemService.create(org_id, category.id, "Thing", "pcs", current_stock=MAX_STOCK + 1)
        with pytest.raises(InvalidQuantityError):
            ItemService.create(org_id, category.id, "Thing", "pcs", minimum_threshold=10 ** 20)
        with pytest.raises(InvalidQuantityError):
            ItemService.create(org_id, category.id, "Thing", "pcs", unit_cost="1e30")
        with pytest.raises(InvalidQuantityError):
            ItemService.create(org_id, category.id, "Thing", "pcs", unit_cost="100000000000")
        assert not Item.objects.exists()

    def test_blank_name(self, org_id, category):
        with pytest.raises(InvalidRequestError):
            ItemService.create(org_id, category.id, "  ", "pcs")

    def test_missing_category(self, org_id):
        with pytest.raises(CategoryNotFoundError):
            ItemService.create(org_id, 987654, "Thing", "pcs")

    def test_category_of_other_organization(self, org_id, other_org_id):
        foreign = Category.objects.create(organization_id=other_org_id, name="Foreign")
        with pytest.raises(InvalidRequestError):
            ItemService.create(org_id, foreign.id, "Thing", "pcs")
        assert not Item.objects.exists()


class TestUpdate:

    def test_update_fields(self, item, org_id):
        ItemService.update(item.id, org_id, name="Rye Flour", sku="RF-1", unit_cost=Decimal("2.5"))
        item.refresh_from_db()
        assert (item.name, item.sku, item.unit_cost) == ("Rye Flour", "RF-1", Decimal("2.5"))

    def test_stock_is_not_editable(self, item, org_id):
        with pytest.raises(InvalidRequestError):
            ItemService.update(item.id, org_id, current_stock=1)
        item.refresh_from_db()
        assert item.current_stock == 100

    def test_category_change_validated(self, item, org_id, other_org_id):
        with pytest.raises(CategoryNotFoundError):
            ItemService.update(item.id, org_id, category_id=555555)

        foreign = Category.objects.create(organization_id=other_org_id, name="Foreign")
        with pytest.raises(InvalidRequestError):
            ItemService.update(item.id, org_id, category_id=foreign.id)

        target = Category.objects.create(organization_id=org_id, name="Baking")
        ItemService.update(item.id, org_id, category_id=target.id)
        item.refresh_from_db()
        assert item.category_id == target.id

    def test_unit_change_within_family(self, item, org_id):
        ItemService.update(item.id, org_id, unit_of_measurement="gm")
        item.refresh_from_db()
        assert item.unit_of_measurement == "gm"
        assert item.current_stock == 100

    def test_unit_change_across_family_refused_while_stocked(self, item, org_id):
        with pytest.raises(InvalidRequestError):
            ItemService.update(item.id, org_id, unit_of_measurement="ltr")

    def test_unit_change_across_family_allowed_when_empty(self, make_item, org_id):
        empty = make_item(unit_of_measurement="kg", current_stock=0)
        ItemService.update(empty.id, org_id, unit_of_measurement="pcs")
        empty.refresh_from_db()
        assert empty.unit_of_measurement == "pcs"

    def test_other_organization_cannot_update(self, item, other_org_id):
        with pytest.raises(ItemNotFoundError):
            ItemService.update(item.id, other_org_id, name="Hijacked")


class TestListAndDelete:

    def test_list_filters(self, org_id, make_item):
        make_item(name="Apple", sku="FR-1", current_stock=5, minimum_threshold=10)
        make_item(name="Banana", sku="FR-2", current_stock=50, minimum_threshold=10)
        make_item(name="Cabbage", current_stock=0, minimum_threshold=10, track_stock=False)
        make_item(name="Dates", is_active=False)

        names = lambda result: [i["name"] for i in result["items"]]

        assert names(ItemService.list(org_id)) == ["Apple", "Banana", "Cabbage"]
        assert names(ItemService.list(org_id, search="fr-")) == ["Apple", "Banana"]
        assert names(ItemService.list(org_id, low_stock_only=True)) == ["Apple"]
        assert "Dates" in names(ItemService.list(org_id, include_inactive=True))

    def test_list_paginates(self, org_id, make_item):
        for i in range(5):
            make_item(name=f"Item {i}")

        result = ItemService.list(org_id, page=2, per_page=2)
        assert [i["name"] for i in result["items"]] == ["Item 2", "Item 3"]
        assert result["pagination"]["total_items"] == 5
        assert result["pagination"]["total_pages"] == 3

    def test_delete_cascades_movements(self, item, org_id, user_id):
        StockAdjustmentService.adjust(item.id, "IN", 1, user_id)
        ItemService.delete(item.id, org_id)

        assert not Item.objects.filter(id=item.id).exists()
        assert not StockMovement.objects.exists()
        with pytest.raises(ItemNotFoundError):
            ItemService.get(item.id)


class TestStats:

    def test_dashboard_metrics(self, org_id, other_org_id, make_item, user_id, category):
        flour = make_item(unit_of_measurement="kg", current_stock=2500, minimum_threshold=1000,
                          unit_cost=Decimal("2.00"))
        make_item(unit_of_measurement="pcs", current_stock=3, minimum_threshold=10,
                  unit_cost=Decimal("0.50"))
        make_item(unit_of_measurement="pcs", current_stock=0, minimum_threshold=10)
        make_item(unit_of_measurement="pcs", current_stock=0, minimum_threshold=10, track_stock=False)
        StockAdjustmentService.adjust(flour.id, "OUT", 500, user_id)

        stats = ItemService.get_stats(org_id)

        assert stats["total_items"] == 4
        # 2.0 kg * 2.00 + 3 pcs * 0.50
        assert stats["total_value"] == "5.50"
        assert stats["low_stock_count"] == 1
        assert stats["out_of_stock_count"] == 1
        assert stats["recent_movements_count"] == 1
        assert ItemService.get_stats(other_org_id)["total_items"] == 0
