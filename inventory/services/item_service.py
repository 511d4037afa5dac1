import logging
from datetime import timedelta
from decimal import Decimal
from typing import Dict, Any, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Q, F
from django.utils import timezone

from inventory.models import Item, StockMovement
from inventory.services.base_service import (
    BaseService, success_response, paginate_queryset,
    ItemNotFoundError, InvalidQuantityError, InvalidRequestError, NegativeValueError,
    to_decimal, round_decimal, clean_optional_text, require_within_limit,
)
from inventory.services.alert_service import AlertService
from inventory.services.category_service import CategoryService
from inventory.services.locking import ItemLocks
from inventory.services import unit_service

logger = logging.getLogger(__name__)

# unit_cost is DecimalField(max_digits=15, decimal_places=4)
MAX_UNIT_COST = Decimal("100000000000")


def require_count(value: Any, field: str) -> int:
    """Non-negative integer quantity in base units."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantityError(f"{field} must be a whole number of base units", field)
    if value < 0:
        raise NegativeValueError(f"{field} cannot be negative", field)
    return require_within_limit(value, field)


def clean_name(name: Any) -> str:
    name = str(name or "").strip()
    if not name:
        raise InvalidRequestError("Name is required", "name")
    return name


def clean_unit_cost(unit_cost: Any) -> Optional[Decimal]:
    if unit_cost is None or unit_cost == "":
        return None
    value = to_decimal(unit_cost)
    if value < 0:
        raise NegativeValueError("unit_cost cannot be negative", "unit_cost")
    value = round_decimal(value, 4)
    if value >= MAX_UNIT_COST:
        raise InvalidQuantityError(f"unit_cost must be below {MAX_UNIT_COST}", "unit_cost")
    return value


class ItemService(BaseService):
    model = Item

    # ==================== SERIALIZATION ====================

    @classmethod
    def serialize(cls, item: Item) -> Dict[str, Any]:
        unit = unit_service.get_unit(item.unit_of_measurement)
        return {
            "id": item.id,
            "uuid": str(item.uuid),
            "organization_id": str(item.organization_id),
            "category_id": item.category_id,
            "category": {
                "id": item.category.id,
                "name": item.category.name,
                "color": item.category.color,
            },
            "name": item.name,
            "sku": item.sku,
            "unit": unit.code,
            "unit_name": unit.name,
            "base_unit": unit.base_unit,
            "current_stock": item.current_stock,
            "minimum_threshold": item.minimum_threshold,
            "current_stock_display": unit_service.format_quantity(item.current_stock, unit.code),
            "minimum_threshold_display": unit_service.format_quantity(item.minimum_threshold, unit.code),
            "unit_cost": str(item.unit_cost) if item.unit_cost is not None else None,
            "is_active": item.is_active,
            "track_stock": item.track_stock,
            "is_low_stock": item.is_below_threshold,
            "created_at": item.created_at.isoformat(),
            "updated_at": item.updated_at.isoformat(),
        }

    # ==================== LOOKUP ====================

    @classmethod
    def get_item(cls, item_id: int, organization_id=None, for_update: bool = False) -> Item:
        queryset = cls.model.objects.select_related("category")
        if for_update:
            queryset = queryset.select_for_update()
        if organization_id is not None:
            queryset = queryset.filter(organization_id=organization_id)
        try:
            return queryset.get(id=item_id)
        except (cls.model.DoesNotExist, ValueError, TypeError):
            raise ItemNotFoundError(item_id)

    @classmethod
    def get(cls, item_id: int, organization_id=None) -> Dict[str, Any]:
        item = cls.get_item(item_id, organization_id)
        return success_response({"item": cls.serialize(item)})

    @classmethod
    def list(cls,
             organization_id,
             search: str = None,
             category_id: int = None,
             low_stock_only: bool = False,
             include_inactive: bool = False,
             page: int = 1,
             per_page: int = None) -> Dict[str, Any]:
        queryset = cls.model.objects.select_related("category").filter(
            organization_id=organization_id
        )

        if not include_inactive:
            queryset = queryset.filter(is_active=True)

        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(sku__icontains=search)
            )

        if category_id:
            queryset = queryset.filter(category_id=category_id)

        if low_stock_only:
            queryset = queryset.filter(
                track_stock=True,
                current_stock__lt=F("minimum_threshold"),
            )

        items, pagination = paginate_queryset(queryset.order_by("name", "id"), page, per_page)

        return success_response({
            "items": [cls.serialize(item) for item in items],
            "pagination": pagination,
        })

    # ==================== CREATE ====================

    @classmethod
    def create(cls,
               organization_id,
               category_id: int,
               name: str,
               unit_of_measurement: str,
               minimum_threshold: int = 0,
               current_stock: int = 0,
               sku: str = None,
               unit_cost: Any = None,
               track_stock: bool = True) -> Dict[str, Any]:
        """
        Create an item. Quantities are in base units; the opening stock is
        stored as-is and later changes go through stock adjustments.
        """
        name = clean_name(name)
        unit = unit_service.validate(unit_of_measurement)
        minimum_threshold = require_count(minimum_threshold, "minimum_threshold")
        current_stock = require_count(current_stock, "current_stock")
        unit_cost = clean_unit_cost(unit_cost)

        with transaction.atomic():
            category = CategoryService.get_for_organization(category_id, organization_id)
            item = cls.model.objects.create(
                organization_id=organization_id,
                category=category,
                name=name,
                sku=clean_optional_text(sku),
                unit_of_measurement=unit,
                minimum_threshold=minimum_threshold,
                current_stock=current_stock,
                unit_cost=unit_cost,
                track_stock=bool(track_stock),
                is_active=True,
            )

        logger.info(f"Item {item.id} '{item.name}' created in organization {organization_id}")
        AlertService.best_effort(AlertService.reconcile_on_create, item)

        return success_response({"item": cls.serialize(item)}, "Item created")

    # ==================== UPDATE ====================

    @classmethod
    def update(cls, item_id: int, organization_id=None, **kwargs) -> Dict[str, Any]:
        """
        Edit item fields. Stock is never written here; it only changes through
        StockAdjustmentService.adjust.
        """
        with ItemLocks.hold(item_id, operation="update item"):
            with transaction.atomic():
                item = cls.get_item(item_id, organization_id, for_update=True)
                was_below = item.is_below_threshold
                cls._apply_changes(item, kwargs)
                item.save()

            AlertService.best_effort(AlertService.reconcile_after_edit, item, was_below)

        logger.info(f"Item {item.id} updated: {sorted(kwargs)}")
        return success_response({"item": cls.serialize(item)}, "Item updated")

    @classmethod
    def _apply_changes(cls, item: Item, changes: Dict[str, Any]):
        if "current_stock" in changes:
            raise InvalidRequestError(
                "current_stock can only be changed through stock movements", "current_stock"
            )

        if "name" in changes:
            item.name = clean_name(changes["name"])

        if "sku" in changes:
            item.sku = clean_optional_text(changes["sku"])

        if "unit_of_measurement" in changes:
            unit = unit_service.validate(changes["unit_of_measurement"])
            if (unit != item.unit_of_measurement
                    and item.current_stock > 0
                    and not unit_service.same_family(unit, item.unit_of_measurement)):
                raise InvalidRequestError(
                    f"Cannot change unit from {item.unit_of_measurement} to {unit} while the item holds stock",
                    "unit_of_measurement"
                )
            item.unit_of_measurement = unit

        if "minimum_threshold" in changes:
            item.minimum_threshold = require_count(changes["minimum_threshold"], "minimum_threshold")

        if "unit_cost" in changes:
            item.unit_cost = clean_unit_cost(changes["unit_cost"])

        if "category_id" in changes and changes["category_id"] != item.category_id:
            item.category = CategoryService.get_for_organization(
                changes["category_id"], item.organization_id
            )

        if "track_stock" in changes:
            item.track_stock = bool(changes["track_stock"])

        if "is_active" in changes:
            item.is_active = bool(changes["is_active"])

    # ==================== DELETE ====================

    @classmethod
    def delete(cls, item_id: int, organization_id=None) -> Dict[str, Any]:
        """Hard delete. Movements and alerts of the item go with it."""
        with ItemLocks.hold(item_id, operation="delete item"):
            with transaction.atomic():
                item = cls.get_item(item_id, organization_id, for_update=True)
                AlertService.clear_for_item(item.id)
                movement_count = item.movements.count()
                item.delete()

        logger.info(f"Item {item_id} deleted with {movement_count} movement(s)")
        return success_response({"item_id": item_id}, "Item deleted")

    # ==================== STATS ====================

    @classmethod
    def get_stats(cls, organization_id) -> Dict[str, Any]:
        items = cls.model.objects.filter(organization_id=organization_id, is_active=True)

        total_value = Decimal("0")
        for item in items.exclude(unit_cost__isnull=True).only(
            "current_stock", "unit_of_measurement", "unit_cost"
        ):
            display_stock = unit_service.from_base_unit(item.current_stock, item.unit_of_measurement)
            total_value += display_stock * item.unit_cost

        tracked = items.filter(track_stock=True)
        low_stock = tracked.filter(
            current_stock__gt=0,
            current_stock__lt=F("minimum_threshold"),
        ).count()
        out_of_stock = tracked.filter(current_stock=0).count()

        days = settings.INVENTORY_RECENT_MOVEMENT_DAYS
        recent_movements = StockMovement.objects.filter(
            item__organization_id=organization_id,
            created_at__gte=timezone.now() - timedelta(days=days),
        ).count()

        return success_response({
            "total_items": items.count(),
            "total_value": str(round_decimal(total_value, 2)),
            "low_stock_count": low_stock,
            "out_of_stock_count": out_of_stock,
            "recent_movements_count": recent_movements,
            "recent_movement_days": days,
        })

