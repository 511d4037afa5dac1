import uuid as uuid_lib

from django.db import models


def unit_choices():
    from inventory.services.unit_service import UNIT_CHOICES
    return UNIT_CHOICES


class Category(models.Model):
    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    organization_id = models.UUIDField(db_index=True)
    name = models.CharField(max_length=100)
    description = models.TextField(null=True, blank=True)
    color = models.CharField(max_length=20, null=True, blank=True)
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "categories"
        ordering = ["sort_order", "name"]

    def __str__(self):
        return self.name


class Item(models.Model):
    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    organization_id = models.UUIDField(db_index=True)
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name="items",
    )
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=100, null=True, blank=True, db_index=True)
    unit_of_measurement = models.CharField(max_length=10, choices=unit_choices)

    # Quantities are integers in the unit's base unit (g, ml, pcs)
    minimum_threshold = models.PositiveIntegerField(default=0)
    current_stock = models.PositiveIntegerField(default=0)

    unit_cost = models.DecimalField(max_digits=15, decimal_places=4, null=True, blank=True)
    is_active = models.BooleanField(default=True)
    track_stock = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["organization_id", "name"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(current_stock__gte=0),
                name="item_current_stock_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(minimum_threshold__gte=0),
                name="item_minimum_threshold_non_negative",
            ),
        ]

    def __str__(self):
        return self.name

    @property
    def is_below_threshold(self) -> bool:
        return self.track_stock and self.current_stock < self.minimum_threshold


class StockMovement(models.Model):
    """
    Ledger entry for one stock change. Rows are append-only: they are never
    edited and only go away together with their item.
    """

    class MovementType(models.TextChoices):
        IN = "IN", "Stock In"
        OUT = "OUT", "Stock Out"
        ADJUSTMENT = "ADJUSTMENT", "Adjustment"

    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    item = models.ForeignKey(
        Item, on_delete=models.CASCADE, related_name="movements"
    )
    movement_type = models.CharField(
        max_length=20, choices=MovementType.choices, db_index=True
    )
    quantity = models.PositiveIntegerField()
    previous_stock = models.PositiveIntegerField()
    new_stock = models.PositiveIntegerField()
    reference = models.CharField(max_length=255, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    created_by = models.UUIDField()
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["item", "created_at"]),
        ]

    def __str__(self):
        return f"{self.movement_type} {self.quantity} ({self.item_id})"

    def save(self, *args, **kwargs):
        from inventory.services.base_service import BusinessRuleError

        if not self._state.adding:
            raise BusinessRuleError("Stock movements cannot be modified", "movement_immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        from inventory.services.base_service import BusinessRuleError

        raise BusinessRuleError("Stock movements cannot be deleted", "movement_immutable")


class Alert(models.Model):
    class AlertType(models.TextChoices):
        LOW_STOCK = "LOW_STOCK", "Low Stock"
        OUT_OF_STOCK = "OUT_OF_STOCK", "Out of Stock"

    class Severity(models.TextChoices):
        INFO = "INFO", "Info"
        WARNING = "WARNING", "Warning"
        CRITICAL = "CRITICAL", "Critical"

    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    organization_id = models.UUIDField(db_index=True)
    item = models.ForeignKey(
        Item,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="alerts",
    )
    alert_type = models.CharField(max_length=20, choices=AlertType.choices)
    severity = models.CharField(
        max_length=10, choices=Severity.choices, default=Severity.WARNING
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["organization_id", "is_read"]),
        ]

    def __str__(self):
        return self.title
