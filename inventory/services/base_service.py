from typing import Dict, Any, Optional, List, Tuple
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from django.conf import settings
from django.db.models import Model

# Upper bound of the PositiveIntegerField quantity columns on every backend
MAX_STOCK = 2147483647


class ServiceError(Exception):
    def __init__(self, message: str, code: str = "ERROR", details: Dict = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class ValidationError(ServiceError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str = None, details: Dict = None):
        super().__init__(message, self.code, details)
        self.field = field


class InvalidQuantityError(ValidationError):
    code = "INVALID_QUANTITY"


class InvalidUnitError(ValidationError):
    code = "INVALID_UNIT"

    def __init__(self, unit_code: Any, message: str = None):
        super().__init__(
            message or f"Invalid unit: {unit_code}",
            "unit",
            {"unit": str(unit_code)}
        )


class NegativeValueError(ValidationError):
    code = "NEGATIVE_VALUE"


class InvalidRequestError(ValidationError):
    code = "INVALID_REQUEST"


class NotFoundError(ServiceError):
    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} not found: {identifier}",
            self.code,
            {"resource": resource, "identifier": str(identifier)}
        )


class ItemNotFoundError(NotFoundError):
    code = "ITEM_NOT_FOUND"

    def __init__(self, identifier: Any):
        super().__init__("Item", identifier)


class CategoryNotFoundError(NotFoundError):
    code = "CATEGORY_NOT_FOUND"

    def __init__(self, identifier: Any):
        super().__init__("Category", identifier)


class BusinessRuleError(ServiceError):
    code = "BUSINESS_RULE_VIOLATION"

    def __init__(self, message: str, rule: str = None):
        super().__init__(message, self.code, {"rule": rule})


class CategoryHasItemsError(BusinessRuleError):
    code = "CATEGORY_HAS_ITEMS"

    def __init__(self, category_name: str, item_count: int):
        super().__init__(
            f"Category '{category_name}' still has {item_count} item(s); "
            f"provide a target category to move them to",
            "category_has_items"
        )
        self.details["item_count"] = item_count


class InsufficientStockError(ServiceError):
    def __init__(self, item_name: str, required: Any, available: Any):
        super().__init__(
            f"Insufficient stock for {item_name}: required {required}, available {available}",
            "INSUFFICIENT_STOCK",
            {"item": item_name, "required": str(required), "available": str(available)}
        )


class DeadlineExceededError(ServiceError):
    def __init__(self, operation: str):
        super().__init__(
            f"Deadline exceeded while waiting to {operation}",
            "DEADLINE_EXCEEDED",
            {"operation": operation}
        )


def success_response(data: Any = None, message: str = "Success") -> Dict:
    response = {"success": True, "message": message}
    if data is not None:
        if isinstance(data, dict):
            response.update(data)
        else:
            response["data"] = data
    return response


def paginate_queryset(queryset, page: int = 1, per_page: int = None) -> Tuple[List, Dict]:
    if per_page is None:
        per_page = settings.INVENTORY_DEFAULT_PAGE_SIZE
    page = max(1, page)
    per_page = min(max(1, per_page), settings.INVENTORY_MAX_PAGE_SIZE)

    total = queryset.count()
    total_pages = (total + per_page - 1) // per_page

    offset = (page - 1) * per_page
    items = list(queryset[offset:offset + per_page])

    return items, {
        "page": page,
        "per_page": per_page,
        "total_items": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1
    }


def to_decimal(value: Any) -> Decimal:
    """Exact Decimal for a caller-supplied number; floats go through str()."""
    if isinstance(value, bool) or value is None:
        raise InvalidQuantityError(f"Invalid quantity: {value!r}", "quantity")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidQuantityError(f"Invalid quantity: {value!r}", "quantity")
    if not result.is_finite():
        raise InvalidQuantityError(f"Invalid quantity: {value!r}", "quantity")
    return result


def round_decimal(value: Decimal, places: int = 0) -> Decimal:
    exponent = Decimal("1") if places <= 0 else Decimal("0." + "0" * places)
    try:
        return value.quantize(exponent, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidQuantityError(f"Quantity out of range: {value}", "quantity")


def require_within_limit(value: int, field: str = "quantity") -> int:
    if value > MAX_STOCK:
        raise InvalidQuantityError(f"{field} cannot exceed {MAX_STOCK} base units", field)
    return value


def clean_optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class BaseService:
    model = None

    @classmethod
    def get_by_id(cls, id: int) -> Optional[Model]:
        try:
            return cls.model.objects.get(id=id)
        except (cls.model.DoesNotExist, ValueError, TypeError):
            return None

