import uuid as uuid_lib

from django.db import models
from django.utils import timezone

from assembly.stages import STAGE_CHOICES


class Product(models.Model):
    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    name = models.CharField(max_length=200)
    model_number = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")
    image_url = models.URLField(max_length=500, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} ({self.model_number})"


class Batch(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        IN_PROGRESS = "IN_PROGRESS", "In Progress"
        COMPLETE = "COMPLETE", "Complete"

    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    name = models.CharField(max_length=100)
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="batches",
    )
    quantity = models.PositiveIntegerField(
        help_text="Target number of units; may exceed the serialized items created so far",
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    created_by = models.ForeignKey(
        "main.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_batches",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "batches"
        ordering = ["-created_at"]

    def __str__(self):
        return f"Batch {self.name}"


class SerializedItem(models.Model):
    class Status(models.TextChoices):
        NOT_STARTED = "NOT_STARTED", "Not Started"
        IN_PROGRESS = "IN_PROGRESS", "In Progress"
        COMPLETE = "COMPLETE", "Complete"

    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    batch = models.ForeignKey(
        Batch,
        on_delete=models.CASCADE,
        related_name="serialized_items",
    )
    serial_number = models.CharField(max_length=32, unique=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.NOT_STARTED,
        db_index=True,
    )
    current_stage = models.CharField(
        max_length=32,
        choices=STAGE_CHOICES,
        null=True,
        blank=True,
        help_text="Null only while the unit is NOT_STARTED",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        ordering = ["serial_number"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(status="NOT_STARTED", current_stage__isnull=True)
                    | (~models.Q(status="NOT_STARTED") & models.Q(current_stage__isnull=False))
                ),
                name="serialized_item_stage_matches_status",
            ),
        ]

    def __str__(self):
        return self.serial_number


class UnitStageLog(models.Model):
    """Append-only ledger of stage outcomes. Rows are never updated or deleted."""

    class LogStatus(models.TextChoices):
        COMPLETE = "COMPLETE", "Complete"
        REJECTED = "REJECTED", "Rejected"

    unit = models.ForeignKey(
        SerializedItem,
        on_delete=models.CASCADE,
        related_name="stage_logs",
    )
    stage = models.CharField(max_length=32, choices=STAGE_CHOICES, db_index=True)
    status = models.CharField(max_length=10, choices=LogStatus.choices, db_index=True)
    completed_by = models.ForeignKey(
        "main.User",
        on_delete=models.PROTECT,
        related_name="stage_logs",
    )
    notes = models.TextField(blank=True, default="")
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["timestamp", "id"]
        indexes = [
            models.Index(fields=["status", "timestamp"], name="stagelog_status_ts_idx"),
            models.Index(fields=["unit", "stage", "status"], name="stagelog_unit_stage_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Stage log entries are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Stage log entries cannot be deleted")

    def __str__(self):
        return f"{self.unit} {self.stage} {self.status}"
