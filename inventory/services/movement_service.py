import logging
from datetime import datetime
from typing import Dict, Any, Optional

from django.db import transaction
from django.utils import timezone

from inventory.models import Item, StockMovement
from inventory.services.base_service import (
    BaseService, success_response, paginate_queryset,
    NotFoundError, InsufficientStockError, InvalidQuantityError, InvalidRequestError,
    clean_optional_text, require_within_limit, MAX_STOCK,
)
from inventory.services.alert_service import AlertService
from inventory.services.item_service import ItemService
from inventory.services.locking import ItemLocks, check_deadline
from inventory.services import unit_service

logger = logging.getLogger(__name__)

MovementType = StockMovement.MovementType


def apply_movement(movement_type: str, previous_stock: int, quantity: int, item_name: str) -> int:
    """Stock level after a movement. ADJUSTMENT sets the level, it does not add to it."""
    if movement_type == MovementType.IN:
        if previous_stock + quantity > MAX_STOCK:
            raise InvalidQuantityError(
                f"Stock of {item_name} cannot exceed {MAX_STOCK} base units", "quantity"
            )
        return previous_stock + quantity
    if movement_type == MovementType.OUT:
        if quantity > previous_stock:
            raise InsufficientStockError(item_name, quantity, previous_stock)
        return previous_stock - quantity
    return quantity


class StockAdjustmentService:

    @classmethod
    def validate(cls, movement_type: Any, quantity: Any) -> str:
        if movement_type not in MovementType.values:
            raise InvalidRequestError(
                f"Invalid movement type: {movement_type}. Valid: {MovementType.values}",
                "movement_type"
            )
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantityError("Quantity must be a whole number of base units", "quantity")
        if movement_type == MovementType.ADJUSTMENT:
            if quantity < 0:
                raise InvalidQuantityError("Adjusted stock cannot be negative", "quantity")
        elif quantity <= 0:
            raise InvalidQuantityError("Quantity must be greater than zero", "quantity")
        require_within_limit(quantity)
        return str(movement_type)

    @classmethod
    def adjust(cls,
               item_id: int,
               movement_type: str,
               quantity: int,
               created_by,
               reference: str = None,
               notes: str = None,
               organization_id=None,
               deadline: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Apply one stock movement to an item.

        The stock update and the ledger entry commit together. Alerts are
        reconciled afterwards; a failure there is logged and does not undo
        the movement. Calls for the same item run one at a time.
        """
        movement_type = cls.validate(movement_type, quantity)

        with ItemLocks.hold(item_id, deadline):
            check_deadline(deadline, "adjust stock")

            with transaction.atomic():
                item = ItemService.get_item(item_id, organization_id, for_update=True)
                previous_stock = item.current_stock
                new_stock = apply_movement(movement_type, previous_stock, quantity, item.name)

                check_deadline(deadline, "adjust stock")

                now = timezone.now()
                Item.objects.filter(id=item.id).update(current_stock=new_stock, updated_at=now)
                item.current_stock = new_stock
                item.updated_at = now

                movement = StockMovement.objects.create(
                    item=item,
                    movement_type=movement_type,
                    quantity=quantity,
                    previous_stock=previous_stock,
                    new_stock=new_stock,
                    reference=clean_optional_text(reference),
                    notes=clean_optional_text(notes),
                    created_by=created_by,
                )

            AlertService.best_effort(
                AlertService.reconcile_after_movement, item, previous_stock, new_stock
            )

        logger.info(
            f"Stock {movement_type} on item {item.id}: {previous_stock} -> {new_stock} "
            f"(movement {movement.id})"
        )

        return success_response({
            "movement": StockMovementService.serialize(movement),
            "item": ItemService.serialize(item),
        }, "Stock adjusted")


class StockMovementService(BaseService):
    model = StockMovement

    @classmethod
    def serialize(cls, movement: StockMovement) -> Dict[str, Any]:
        unit = movement.item.unit_of_measurement
        return {
            "id": movement.id,
            "uuid": str(movement.uuid),
            "item_id": movement.item_id,
            "item_name": movement.item.name,
            "movement_type": movement.movement_type,
            "movement_type_display": movement.get_movement_type_display(),
            "unit": unit,
            "quantity": movement.quantity,
            "previous_stock": movement.previous_stock,
            "new_stock": movement.new_stock,
            "quantity_display": unit_service.format_quantity(movement.quantity, unit),
            "previous_stock_display": unit_service.format_quantity(movement.previous_stock, unit),
            "new_stock_display": unit_service.format_quantity(movement.new_stock, unit),
            "reference": movement.reference,
            "notes": movement.notes,
            "created_by": str(movement.created_by),
            "created_at": movement.created_at.isoformat(),
        }

    @classmethod
    def get(cls, movement_id: int, organization_id=None) -> Dict[str, Any]:
        queryset = cls.model.objects.select_related("item")
        if organization_id is not None:
            queryset = queryset.filter(item__organization_id=organization_id)
        try:
            movement = queryset.get(id=movement_id)
        except (cls.model.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Stock movement", movement_id)

        return success_response({"movement": cls.serialize(movement)})

    @classmethod
    def list(cls,
             organization_id,
             item_id: int = None,
             movement_type: str = None,
             date_from: datetime = None,
             date_to: datetime = None,
             page: int = 1,
             per_page: int = None) -> Dict[str, Any]:
        queryset = cls.model.objects.select_related("item").filter(
            item__organization_id=organization_id
        )

        if item_id:
            queryset = queryset.filter(item_id=item_id)

        if movement_type:
            if movement_type not in MovementType.values:
                raise InvalidRequestError(f"Invalid movement type: {movement_type}", "movement_type")
            queryset = queryset.filter(movement_type=movement_type)

        if date_from:
            queryset = queryset.filter(created_at__gte=date_from)

        if date_to:
            queryset = queryset.filter(created_at__lte=date_to)

        movements, pagination = paginate_queryset(queryset, page, per_page)

        return success_response({
            "movements": [cls.serialize(m) for m in movements],
            "pagination": pagination,
        })

    @classmethod
    def list_for_item(cls,
                      item_id: int,
                      organization_id=None,
                      page: int = 1,
                      per_page: int = None) -> Dict[str, Any]:
        item = ItemService.get_item(item_id, organization_id)
        queryset = cls.model.objects.select_related("item").filter(item=item)

        movements, pagination = paginate_queryset(queryset, page, per_page)

        return success_response({
            "item": ItemService.serialize(item),
            "movements": [cls.serialize(m) for m in movements],
            "pagination": pagination,
        })
