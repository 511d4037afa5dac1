import logging
from typing import Dict, Any

from django.db import transaction

from inventory.models import Alert, Item
from inventory.services.base_service import (
    BaseService, success_response, paginate_queryset, NotFoundError,
)
from inventory.services.unit_service import format_quantity

logger = logging.getLogger(__name__)


class AlertService(BaseService):
    model = Alert

    @classmethod
    def serialize(cls, alert: Alert) -> Dict[str, Any]:
        return {
            "id": alert.id,
            "uuid": str(alert.uuid),
            "organization_id": str(alert.organization_id),
            "item_id": alert.item_id,
            "alert_type": alert.alert_type,
            "severity": alert.severity,
            "title": alert.title,
            "message": alert.message,
            "is_read": alert.is_read,
            "created_at": alert.created_at.isoformat(),
        }

    # ==================== DERIVATION ====================

    @classmethod
    def create_low_stock(cls, item: Item, current_stock: int) -> Alert:
        unit = item.unit_of_measurement
        alert = cls.model.objects.create(
            organization_id=item.organization_id,
            item=item,
            alert_type=Alert.AlertType.LOW_STOCK,
            severity=Alert.Severity.WARNING,
            title=f"Low Stock: {item.name}",
            message=(
                f"Item '{item.name}' is below minimum threshold. "
                f"Current stock: {format_quantity(current_stock, unit)} {unit}, "
                f"Threshold: {format_quantity(item.minimum_threshold, unit)} {unit}"
            ),
        )
        logger.info(f"Low stock alert {alert.id} raised for item {item.id}")
        return alert

    @classmethod
    def clear_for_item(cls, item_id: int) -> int:
        deleted, _ = cls.model.objects.filter(item_id=item_id).delete()
        if deleted:
            logger.info(f"Cleared {deleted} alert(s) for item {item_id}")
        return deleted

    @classmethod
    def best_effort(cls, reconcile, item: Item, *args):
        """Run a reconcile step after the stock write has committed; failures are only logged."""
        try:
            reconcile(item, *args)
        except Exception:
            logger.exception(f"Alert reconciliation failed for item {item.id}")

    @classmethod
    @transaction.atomic
    def reconcile_after_movement(cls, item: Item, previous_stock: int, new_stock: int):
        """
        Derive alert state from a committed stock change.

        A tracked item that ends below its threshold gets a new alert on every
        such movement. Crossing back to or above the threshold clears the
        item's alerts, as does having tracking switched off.
        """
        if not item.track_stock:
            cls.clear_for_item(item.id)
            return

        threshold = item.minimum_threshold
        if new_stock < threshold:
            cls.create_low_stock(item, new_stock)
        elif previous_stock < threshold:
            cls.clear_for_item(item.id)

    @classmethod
    @transaction.atomic
    def reconcile_after_edit(cls, item: Item, was_below: bool):
        if not item.track_stock:
            cls.clear_for_item(item.id)
            return

        is_below = item.current_stock < item.minimum_threshold
        if is_below and not was_below:
            cls.create_low_stock(item, item.current_stock)
        elif was_below and not is_below:
            cls.clear_for_item(item.id)

    @classmethod
    @transaction.atomic
    def reconcile_on_create(cls, item: Item):
        if item.is_below_threshold:
            cls.create_low_stock(item, item.current_stock)

    # ==================== QUERIES ====================

    @classmethod
    def list(cls,
             organization_id,
             unread_only: bool = False,
             page: int = 1,
             per_page: int = None) -> Dict[str, Any]:
        queryset = cls.model.objects.filter(organization_id=organization_id)

        if unread_only:
            queryset = queryset.filter(is_read=False)

        alerts, pagination = paginate_queryset(queryset, page, per_page)

        return success_response({
            "alerts": [cls.serialize(alert) for alert in alerts],
            "pagination": pagination,
        })

    @classmethod
    def unread_count(cls, organization_id) -> Dict[str, Any]:
        count = cls.model.objects.filter(
            organization_id=organization_id, is_read=False
        ).count()
        return success_response({"unread_count": count})

    @classmethod
    def mark_read(cls, alert_id: int, organization_id) -> Dict[str, Any]:
        updated = cls.model.objects.filter(
            id=alert_id, organization_id=organization_id
        ).update(is_read=True)
        if not updated:
            raise NotFoundError("Alert", alert_id)

        return success_response(
            {"alert": cls.serialize(cls.get_by_id(alert_id))},
            "Alert marked as read"
        )
