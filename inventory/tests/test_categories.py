import pytest

from inventory.models import Category, Item
from inventory.services import (
    CategoryService, ItemService,
    CategoryNotFoundError, CategoryHasItemsError, InvalidRequestError,
)

pytestmark = pytest.mark.django_db


class TestCategoryCrud:

    def test_create_normalises_optional_fields(self, org_id):
        result = CategoryService.create(org_id, "  Produce ", description="", color="  ")
        category = Category.objects.get(id=result["category"]["id"])
        assert category.name == "Produce"
        assert category.description is None
        assert category.color is None

    def test_create_requires_name(self, org_id):
        with pytest.raises(InvalidRequestError):
            CategoryService.create(org_id, "   ")

    def test_list_includes_item_counts(self, org_id, category, make_item):
        make_item()
        make_item()
        CategoryService.create(org_id, "Empty")

        result = CategoryService.list(org_id)
        counts = {c["name"]: c["item_count"] for c in result["categories"]}
        assert counts == {"Dry Goods": 2, "Empty": 0}

    @pytest.mark.parametrize("sort_order", [-1, "3", 1.5, True])
    def test_sort_order_must_be_non_negative_integer(self, org_id, category, sort_order):
        with pytest.raises(InvalidRequestError):
            CategoryService.create(org_id, "Spices", sort_order=sort_order)
        with pytest.raises(InvalidRequestError):
            CategoryService.update(category.id, org_id, sort_order=sort_order)

        assert not Category.objects.filter(name="Spices").exists()
        category.refresh_from_db()
        assert category.sort_order == 0

    def test_update(self, org_id, category):
        CategoryService.update(category.id, org_id, name="Pantry", color="#00ff00")
        category.refresh_from_db()
        assert (category.name, category.color) == ("Pantry", "#00ff00")

    def test_get_in_other_organization_is_not_found(self, category, other_org_id):
        with pytest.raises(CategoryNotFoundError):
            CategoryService.get(category.id, other_org_id)


class TestCategoryDelete:

    def test_delete_empty_category(self, org_id):
        category_id = CategoryService.create(org_id, "Temp")["category"]["id"]
        CategoryService.delete(category_id)
        assert not Category.objects.filter(id=category_id).exists()

    def test_delete_missing_category(self):
        with pytest.raises(CategoryNotFoundError):
            CategoryService.delete(424242)

    def test_delete_with_items_and_no_target_is_refused(self, category, make_item):
        item = make_item()
        with pytest.raises(CategoryHasItemsError) as exc:
            CategoryService.delete(category.id)

        assert exc.value.code == "CATEGORY_HAS_ITEMS"
        assert Category.objects.filter(id=category.id).exists()
        item.refresh_from_db()
        assert item.category_id == category.id

    def test_delete_with_target_reassigns_then_deletes(self, org_id, category, make_item):
        items = [make_item(), make_item(), make_item()]
        target_id = CategoryService.create(org_id, "Pantry")["category"]["id"]

        result = CategoryService.delete(category.id, target_category_id=target_id)

        assert result["reassigned_items"] == 3
        assert not Category.objects.filter(id=category.id).exists()
        for item in items:
            assert ItemService.get(item.id)["item"]["category_id"] == target_id

    def test_target_equal_to_source(self, category, make_item):
        make_item()
        with pytest.raises(InvalidRequestError):
            CategoryService.delete(category.id, target_category_id=category.id)

    def test_missing_target(self, category, make_item):
        make_item()
        with pytest.raises(CategoryNotFoundError):
            CategoryService.delete(category.id, target_category_id=999999)
        assert Category.objects.filter(id=category.id).exists()

    def test_target_in_other_organization(self, category, make_item, other_org_id):
        item = make_item()
        foreign = Category.objects.create(organization_id=other_org_id, name="Foreign")

        with pytest.raises(InvalidRequestError):
            CategoryService.delete(category.id, target_category_id=foreign.id)

        item.refresh_from_db()
        assert item.category_id == category.id
        assert Category.objects.filter(id=category.id).exists()

    def test_failed_delete_rolls_back_reassignment(self, org_id, category, make_item, monkeypatch):
        item = make_item()
        target_id = CategoryService.create(org_id, "Pantry")["category"]["id"]

        def broken_delete(self, *args, **kwargs):
            raise RuntimeError("storage failure")

        monkeypatch.setattr(Category, "delete", broken_delete)

        with pytest.raises(RuntimeError):
            CategoryService.delete(category.id, target_category_id=target_id)

        item.refresh_from_db()
        assert item.category_id == category.id
        assert Item.objects.filter(category_id=target_id).count() == 0
