"""
Category Service - categories and their deletion with item reassignment
"""
import logging
from typing import Dict, Any

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from inventory.models import Category, Item
from inventory.services.base_service import (
    BaseService, success_response,
    CategoryNotFoundError, CategoryHasItemsError, InvalidRequestError,
    clean_optional_text, MAX_STOCK,
)

logger = logging.getLogger(__name__)


def clean_sort_order(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_STOCK:
        raise InvalidRequestError("sort_order must be a non-negative integer", "sort_order")
    return value


class CategoryService(BaseService):
    """Manage item categories"""

    model = Category

    # ==================== SERIALIZATION ====================

    @classmethod
    def serialize(cls, category: Category, item_count: int = None) -> Dict[str, Any]:
        data = {
            "id": category.id,
            "uuid": str(category.uuid),
            "organization_id": str(category.organization_id),
            "name": category.name,
            "description": category.description,
            "color": category.color,
            "sort_order": category.sort_order,
            "created_at": category.created_at.isoformat(),
            "updated_at": category.updated_at.isoformat(),
        }
        if item_count is not None:
            data["item_count"] = item_count
        return data

    # ==================== LOOKUP ====================

    @classmethod
    def get_category(cls, category_id: int, organization_id=None, for_update: bool = False) -> Category:
        queryset = cls.model.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        if organization_id is not None:
            queryset = queryset.filter(organization_id=organization_id)
        try:
            return queryset.get(id=category_id)
        except (cls.model.DoesNotExist, ValueError, TypeError):
            raise CategoryNotFoundError(category_id)

    @classmethod
    def get_for_organization(cls, category_id: int, organization_id) -> Category:
        """Category an item of `organization_id` may reference."""
        if category_id is None:
            raise InvalidRequestError("category_id is required", "category_id")
        category = cls.get_category(category_id)
        if str(category.organization_id) != str(organization_id):
            raise InvalidRequestError(
                "Category does not belong to the item's organization", "category_id"
            )
        return category

    @classmethod
    def list(cls, organization_id) -> Dict[str, Any]:
        queryset = cls.model.objects.filter(
            organization_id=organization_id
        ).annotate(
            num_items=Count("items")
        ).order_by("sort_order", "name")

        categories = [cls.serialize(cat, item_count=cat.num_items) for cat in queryset]

        return success_response({
            "categories": categories,
            "count": len(categories),
        })

    @classmethod
    def get(cls, category_id: int, organization_id=None) -> Dict[str, Any]:
        category = cls.get_category(category_id, organization_id)
        return success_response({
            "category": cls.serialize(category, item_count=category.items.count())
        })

    # ==================== CREATE / UPDATE ====================

    @classmethod
    @transaction.atomic
    def create(cls,
               organization_id,
               name: str,
               description: str = None,
               color: str = None,
               sort_order: int = 0) -> Dict[str, Any]:
        name = (name or "").strip()
        if not name:
            raise InvalidRequestError("Category name is required", "name")

        category = cls.model.objects.create(
            organization_id=organization_id,
            name=name,
            description=clean_optional_text(description),
            color=clean_optional_text(color),
            sort_order=clean_sort_order(sort_order),
        )
        logger.info(f"Category {category.id} '{category.name}' created")

        return success_response({
            "category": cls.serialize(category, item_count=0)
        }, "Category created")

    @classmethod
    @transaction.atomic
    def update(cls, category_id: int, organization_id=None, **kwargs) -> Dict[str, Any]:
        category = cls.get_category(category_id, organization_id, for_update=True)

        if "name" in kwargs:
            name = (kwargs["name"] or "").strip()
            if not name:
                raise InvalidRequestError("Category name is required", "name")
            category.name = name

        if "description" in kwargs:
            category.description = clean_optional_text(kwargs["description"])

        if "color" in kwargs:
            category.color = clean_optional_text(kwargs["color"])

        if "sort_order" in kwargs:
            category.sort_order = clean_sort_order(kwargs["sort_order"])

        category.save()

        return success_response({
            "category": cls.serialize(category, item_count=category.items.count())
        }, "Category updated")

    # ==================== DELETE ====================

    @classmethod
    @transaction.atomic
    def delete(cls,
               category_id: int,
               target_category_id: int = None,
               organization_id=None) -> Dict[str, Any]:
        """
        Delete a category. Items still in it are moved to `target_category_id`
        first; without a target the delete is refused. Reassignment and delete
        commit together or not at all.
        """
        category = cls.get_category(category_id, organization_id, for_update=True)
        item_count = Item.objects.filter(category_id=category.id).count()
        moved = 0

        if item_count:
            if target_category_id is None:
                raise CategoryHasItemsError(category.name, item_count)

            if str(target_category_id) == str(category.id):
                raise InvalidRequestError(
                    "Cannot reassign items to the category being deleted", "target_category_id"
                )

            target = cls.get_category(target_category_id, for_update=True)
            if target.organization_id != category.organization_id:
                raise InvalidRequestError(
                    "Target category must belong to the same organization", "target_category_id"
                )

            moved = Item.objects.filter(category_id=category.id).update(
                category=target, updated_at=timezone.now()
            )
            logger.info(f"Moved {moved} item(s) from category {category.id} to {target.id}")

        category.delete()
        logger.info(f"Category {category_id} deleted")

        return success_response({
            "category_id": category_id,
            "reassigned_items": moved,
            "target_category_id": target_category_id if moved else None,
        }, "Category deleted")
