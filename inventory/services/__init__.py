"""
Inventory Services - stock ledger business logic

Usage:
    from inventory.services import ItemService, StockAdjustmentService

    # Create item (quantities in base units)
    result = ItemService.create(organization_id=org, category_id=1, name="Flour",
                                unit_of_measurement="kg", minimum_threshold=5000)

    # Adjust stock
    StockAdjustmentService.adjust(item_id=1, movement_type="IN", quantity=1500, created_by=user)
"""

# Base utilities
from inventory.services.base_service import (
    ServiceError,
    ValidationError,
    InvalidQuantityError,
    InvalidUnitError,
    NegativeValueError,
    InvalidRequestError,
    NotFoundError,
    ItemNotFoundError,
    CategoryNotFoundError,
    BusinessRuleError,
    CategoryHasItemsError,
    InsufficientStockError,
    DeadlineExceededError,
    success_response,
    paginate_queryset,
    BaseService,
)

# Units
from .unit_service import UnitService

# Core entities
from .category_service import CategoryService
from .alert_service import AlertService
from .item_service import ItemService

# Stock operations
from .movement_service import StockAdjustmentService, StockMovementService


__all__ = [
    # Base
    'ServiceError',
    'ValidationError',
    'InvalidQuantityError',
    'InvalidUnitError',
    'NegativeValueError',
    'InvalidRequestError',
    'NotFoundError',
    'ItemNotFoundError',
    'CategoryNotFoundError',
    'BusinessRuleError',
    'CategoryHasItemsError',
    'InsufficientStockError',
    'DeadlineExceededError',
    'success_response',
    'paginate_queryset',
    'BaseService',

    # Units
    'UnitService',

    # Core entities
    'CategoryService',
    'AlertService',
    'ItemService',

    # Stock operations
    'StockAdjustmentService',
    'StockMovementService',
]
