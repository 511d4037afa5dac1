"""
Inventory API views.

Request quantities are display values in the item's unit (or in an explicit
`unit` of the same family); they are converted to integer base units here,
before any service is called.
"""
import logging

from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from inventory.authentication import IsAdminRole
from inventory.services import (
    ServiceError, ValidationError, NotFoundError, BusinessRuleError,
    InsufficientStockError, InvalidRequestError, InvalidUnitError,
    UnitService, CategoryService, ItemService, AlertService,
    StockAdjustmentService, StockMovementService,
)
from inventory.services import unit_service

logger = logging.getLogger(__name__)


STATUS_BY_CODE = {
    "CATEGORY_HAS_ITEMS": status.HTTP_409_CONFLICT,
    "DEADLINE_EXCEEDED": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(message: str, code: str = "ERROR", http_status: int = 400, details: dict = None):
    data = {"success": False, "error": {"code": code, "message": message}}
    if details:
        data["error"]["details"] = details
    return Response(data, status=http_status)


def handle_service_error(e: Exception):
    if isinstance(e, ServiceError):
        if e.code in STATUS_BY_CODE:
            http_status = STATUS_BY_CODE[e.code]
        elif isinstance(e, NotFoundError):
            http_status = status.HTTP_404_NOT_FOUND
        elif isinstance(e, (ValidationError, InsufficientStockError, BusinessRuleError)):
            http_status = status.HTTP_400_BAD_REQUEST
        else:
            http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
        details = dict(e.details)
        if isinstance(e, ValidationError) and e.field:
            details["field"] = e.field
        logger.warning(f"Request refused: {e.code} {e.message}")
        return error_response(e.message, e.code, http_status, details)

    logger.exception("Unexpected error while handling inventory request")
    return error_response(
        "Internal server error", "INTERNAL_ERROR", status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def parse_int(value, field: str, default: int = None) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise InvalidRequestError(f"{field} must be an integer", field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRequestError(f"{field} must be an integer", field)


def parse_datetime_param(value, field: str):
    if not value:
        return None
    try:
        parsed = parse_datetime(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise InvalidRequestError(f"{field} must be an ISO 8601 datetime", field)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def parse_bool(value, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def resolve_unit(item_unit: str, requested_unit: str = None) -> str:
    """Unit a request quantity is expressed in; must share the item's base unit."""
    if not requested_unit:
        return item_unit
    if not unit_service.same_family(requested_unit, item_unit):
        raise InvalidUnitError(
            requested_unit,
            f"Unit {requested_unit} cannot be used for an item measured in {item_unit}"
        )
    return requested_unit


class BaseInventoryView(APIView):

    def identity(self, request):
        return request.user

    def pagination_params(self, request):
        return {
            "page": parse_int(request.query_params.get("page"), "page", 1),
            "per_page": parse_int(request.query_params.get("per_page"), "per_page"),
        }

    def success(self, data: dict, http_status: int = 200):
        return Response({"success": True, **data}, status=http_status)


# ==================== UNITS ====================

class UnitListView(BaseInventoryView):

    def get(self, request):
        try:
            return self.success(UnitService.list())
        except Exception as e:
            return handle_service_error(e)


class UnitConvertView(BaseInventoryView):

    def get(self, request):
        try:
            params = request.query_params
            value = params.get("value")
            if value is None:
                raise InvalidRequestError("value is required", "value")
            result = UnitService.convert(value, params.get("from_unit"), params.get("to_unit"))
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


# ==================== CATEGORIES ====================

class CategoryListView(BaseInventoryView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        try:
            result = CategoryService.list(self.identity(request).organization_id)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = request.data
            result = CategoryService.create(
                organization_id=self.identity(request).organization_id,
                name=data.get("name"),
                description=data.get("description"),
                color=data.get("color"),
                sort_order=parse_int(data.get("sort_order"), "sort_order", 0),
            )
            return self.success(result, status.HTTP_201_CREATED)
        except Exception as e:
            return handle_service_error(e)


class CategoryDetailView(BaseInventoryView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request, category_id):
        try:
            result = CategoryService.get(category_id, self.identity(request).organization_id)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, category_id):
        try:
            data = request.data
            allowed = {
                field: data.get(field)
                for field in ("name", "description", "color")
                if field in data
            }
            if "sort_order" in data:
                allowed["sort_order"] = parse_int(data.get("sort_order"), "sort_order", 0)
            result = CategoryService.update(
                category_id, self.identity(request).organization_id, **allowed
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    patch = put

    def delete(self, request, category_id):
        try:
            target = request.query_params.get("target_category_id")
            if target is None and isinstance(request.data, dict):
                target = request.data.get("target_category_id")
            result = CategoryService.delete(
                category_id,
                target_category_id=parse_int(target, "target_category_id"),
                organization_id=self.identity(request).organization_id,
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


# ==================== ITEMS ====================

class ItemListView(BaseInventoryView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        try:
            params = request.query_params
            result = ItemService.list(
                organization_id=self.identity(request).organization_id,
                search=params.get("search"),
                category_id=parse_int(params.get("category_id"), "category_id"),
                low_stock_only=parse_bool(params.get("low_stock")),
                include_inactive=parse_bool(params.get("include_inactive")),
                **self.pagination_params(request),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = request.data
            unit = data.get("unit")
            unit_service.validate(unit)
            result = ItemService.create(
                organization_id=self.identity(request).organization_id,
                category_id=parse_int(data.get("category_id"), "category_id"),
                name=data.get("name"),
                unit_of_measurement=unit,
                minimum_threshold=unit_service.to_base_unit(data.get("minimum_threshold", 0), unit),
                current_stock=unit_service.to_base_unit(data.get("current_stock", 0), unit),
                sku=data.get("sku"),
                unit_cost=data.get("unit_cost"),
                track_stock=parse_bool(data.get("track_stock"), True),
            )
            return self.success(result, status.HTTP_201_CREATED)
        except Exception as e:
            return handle_service_error(e)


class ItemStatsView(BaseInventoryView):

    def get(self, request):
        try:
            result = ItemService.get_stats(self.identity(request).organization_id)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class ItemDetailView(BaseInventoryView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request, item_id):
        try:
            result = ItemService.get(item_id, self.identity(request).organization_id)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, item_id):
        try:
            organization_id = self.identity(request).organization_id
            data = request.data
            changes = {}

            for field in ("name", "sku", "unit_cost"):
                if field in data:
                    changes[field] = data[field]
            for field in ("track_stock", "is_active"):
                if field in data:
                    changes[field] = parse_bool(data[field])
            if "category_id" in data:
                changes["category_id"] = parse_int(data["category_id"], "category_id")
            if "current_stock" in data:
                raise InvalidRequestError(
                    "current_stock can only be changed through stock movements", "current_stock"
                )

            unit = data.get("unit")
            if unit:
                changes["unit_of_measurement"] = unit_service.validate(unit)
            if "minimum_threshold" in data:
                if not unit:
                    unit = ItemService.get_item(item_id, organization_id).unit_of_measurement
                changes["minimum_threshold"] = unit_service.to_base_unit(data["minimum_threshold"], unit)

            result = ItemService.update(item_id, organization_id, **changes)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    patch = put

    def delete(self, request, item_id):
        try:
            result = ItemService.delete(item_id, self.identity(request).organization_id)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


# ==================== MOVEMENTS ====================

class MovementCreateMixin:

    def record_movement(self, request, item_id):
        identity = self.identity(request)
        data = request.data

        item = ItemService.get_item(parse_int(item_id, "item_id"), identity.organization_id)
        unit = resolve_unit(item.unit_of_measurement, data.get("unit"))
        quantity = data.get("quantity")
        if quantity is None:
            raise InvalidRequestError("quantity is required", "quantity")

        return StockAdjustmentService.adjust(
            item_id=item.id,
            movement_type=data.get("movement_type"),
            quantity=unit_service.to_base_unit(quantity, unit),
            created_by=identity.user_id,
            reference=data.get("reference"),
            notes=data.get("notes"),
            organization_id=identity.organization_id,
        )


class MovementListView(MovementCreateMixin, BaseInventoryView):

    def get(self, request):
        try:
            params = request.query_params
            result = StockMovementService.list(
                organization_id=self.identity(request).organization_id,
                item_id=parse_int(params.get("item_id"), "item_id"),
                movement_type=params.get("movement_type"),
                date_from=parse_datetime_param(params.get("date_from"), "date_from"),
                date_to=parse_datetime_param(params.get("date_to"), "date_to"),
                **self.pagination_params(request),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            item_id = request.data.get("item_id")
            if item_id is None:
                raise InvalidRequestError("item_id is required", "item_id")
            result = self.record_movement(request, item_id)
            return self.success(result, status.HTTP_201_CREATED)
        except Exception as e:
            return handle_service_error(e)


class MovementDetailView(BaseInventoryView):

    def get(self, request, movement_id):
        try:
            result = StockMovementService.get(movement_id, self.identity(request).organization_id)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class ItemMovementView(MovementCreateMixin, BaseInventoryView):

    def get(self, request, item_id):
        try:
            result = StockMovementService.list_for_item(
                item_id,
                self.identity(request).organization_id,
                **self.pagination_params(request),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request, item_id):
        try:
            result = self.record_movement(request, item_id)
            return self.success(result, status.HTTP_201_CREATED)
        except Exception as e:
            return handle_service_error(e)


# ==================== ALERTS ====================

class AlertListView(BaseInventoryView):

    def get(self, request):
        try:
            organization_id = self.identity(request).organization_id
            result = AlertService.list(
                organization_id,
                unread_only=parse_bool(request.query_params.get("unread_only")),
                **self.pagination_params(request),
            )
            result["unread_count"] = AlertService.unread_count(organization_id)["unread_count"]
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class AlertReadView(BaseInventoryView):

    def post(self, request, alert_id):
        try:
            result = AlertService.mark_read(alert_id, self.identity(request).organization_id)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)
