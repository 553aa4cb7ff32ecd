"""
Batch Service - Production batches and their serialized units
"""
import logging
import re
from decimal import Decimal
from typing import Dict, Any, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Count, Q

from assembly.models import Batch, Product, SerializedItem
from assembly.services.base_service import (
    BaseService, success_response, round_half_up, isoformat,
    ValidationError, NotFoundError, ConflictError, clean_text
)
from assembly.services.product_service import ProductService


logger = logging.getLogger(__name__)

SERIAL_NUMBER_PATTERN = re.compile(r"^\d{5}$")
SERIAL_SEPARATORS = re.compile(r"[\s,;]+")


def calculate_progress_percent(completed: int, quantity: int) -> int:
    """round(100 * completed / quantity), half-up, clamped to 0..100; 0 for an empty target."""
    if not quantity or quantity <= 0:
        return 0
    percent = round_half_up(Decimal(100 * completed) / Decimal(quantity))
    return max(0, min(100, percent))


def parse_serial_numbers(value) -> List[str]:
    """Accept a list of serials or one string separated by spaces, commas or newlines."""
    if value is None:
        return []
    if isinstance(value, str):
        return [s for s in SERIAL_SEPARATORS.split(value) if s]
    if not isinstance(value, (list, tuple)):
        raise ValidationError("Serial numbers must be a list", field="serial_numbers")
    return [str(s).strip() for s in value if str(s).strip()]


class BatchService(BaseService):
    """Create batches and compute their progress from member units"""

    model = Batch

    # ==================== SERIALIZATION ====================

    @classmethod
    def serialize_item(cls, item: SerializedItem) -> Dict[str, Any]:
        return {
            "id": item.id,
            "serial_number": item.serial_number,
            "status": item.status,
            "status_display": item.get_status_display(),
            "current_stage": item.current_stage,
            "updated_at": isoformat(item.updated_at),
        }

    @classmethod
    def serialize(cls, batch: Batch, items: Optional[List[SerializedItem]] = None) -> Dict[str, Any]:
        """Batch with derived progress; pass `items` to include the member list."""
        if items is not None:
            completed_count = sum(1 for i in items if i.status == SerializedItem.Status.COMPLETE)
            item_count = len(items)
        else:
            completed_count = batch.completed_count
            item_count = batch.item_count

        data = {
            "id": batch.id,
            "uuid": str(batch.uuid),
            "name": batch.name,
            "product_id": batch.product_id,
            "product": ProductService.serialize_brief(batch.product),
            "product_name": batch.product.name,
            "quantity": batch.quantity,
            "status": batch.status,
            "status_display": batch.get_status_display(),
            "item_count": item_count,
            "completed_count": completed_count,
            "progress_percent": calculate_progress_percent(completed_count, batch.quantity),
            "created_at": isoformat(batch.created_at),
        }

        if items is not None:
            data["serialized_items"] = [
                cls.serialize_item(i) for i in sorted(items, key=lambda i: i.serial_number)
            ]

        return data

    # ==================== LIST & GET ====================

    @classmethod
    def _annotated(cls):
        return cls.model.objects.select_related("product").annotate(
            item_count=Count("serialized_items"),
            completed_count=Count(
                "serialized_items",
                filter=Q(serialized_items__status=SerializedItem.Status.COMPLETE),
            ),
        )

    @classmethod
    def get_all_batches(cls) -> Dict[str, Any]:
        batches = cls._annotated().order_by("-created_at", "-id")
        return success_response({
            "batches": [cls.serialize(b) for b in batches],
            "count": len(batches),
        })

    @classmethod
    def get_batch(cls, batch_id: int) -> Dict[str, Any]:
        batch = cls.model.objects.select_related("product").filter(id=batch_id).first()
        if not batch:
            raise NotFoundError("Batch", batch_id)

        items = list(batch.serialized_items.order_by("serial_number"))
        return success_response({"batch": cls.serialize(batch, items=items)})

    # ==================== VALIDATION ====================

    @classmethod
    def _validate_serials(cls, serials: List[str]) -> None:
        malformed = [s for s in serials if not SERIAL_NUMBER_PATTERN.match(s)]
        if malformed:
            raise ValidationError(
                f"Each serial number must be exactly 5 digits: {', '.join(malformed)}",
                field="serial_numbers",
                details={"invalid": malformed},
            )

        seen = set()
        duplicates = []
        for serial in serials:
            if serial in seen and serial not in duplicates:
                duplicates.append(serial)
            seen.add(serial)
        if duplicates:
            raise ValidationError(
                f"Duplicate serial numbers in input: {', '.join(duplicates)}",
                field="serial_numbers",
                details={"duplicates": duplicates},
            )

    @classmethod
    def _check_conflicts(cls, serials: List[str]) -> None:
        existing = sorted(
            SerializedItem.objects.filter(serial_number__in=serials)
            .values_list("serial_number", flat=True)
        )
        if existing:
            raise ConflictError(
                f"Serial numbers already exist: {', '.join(existing)}",
                details={"existing": existing},
            )

    @classmethod
    def _create_items(cls, batch: Batch, serials: List[str]) -> None:
        try:
            with transaction.atomic():
                SerializedItem.objects.bulk_create([
                    SerializedItem(batch=batch, serial_number=serial)
                    for serial in serials
                ])
        except IntegrityError:
            # another request claimed one of the serials after the conflict check
            raise ConflictError("Serial numbers already exist", details={"serials": serials})

    # ==================== CREATE ====================

    @classmethod
    def create_batch(cls,
                     name: str,
                     product_id: int,
                     quantity: int,
                     serial_numbers=None,
                     actor=None) -> Dict[str, Any]:
        """
        Create a batch, optionally with its serialized units.

        When serial numbers are supplied there must be exactly `quantity` of
        them, each 5 digits, unique in the input and not used by any existing
        unit. Without serials the batch starts empty and units are assigned
        later with assign_serial_numbers().
        """
        cls.authorize(actor, "manage_batches")

        name = clean_text(name, "name", "Batch name")

        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Quantity must be a positive integer", field="quantity")

        product = Product.objects.filter(id=product_id).first() if product_id else None
        if not product:
            raise NotFoundError("Product", product_id)

        serials = parse_serial_numbers(serial_numbers)
        if serials:
            cls._validate_serials(serials)
            if len(serials) != quantity:
                raise ValidationError(
                    f"The number of serial numbers ({len(serials)}) must match "
                    f"the specified quantity ({quantity})",
                    field="serial_numbers",
                )
            cls._check_conflicts(serials)

        with transaction.atomic():
            batch = cls.model.objects.create(
                name=name,
                product=product,
                quantity=quantity,
                status=Batch.Status.PENDING,
                created_by=actor,
            )
            if serials:
                cls._create_items(batch, serials)

        logger.info(
            "Batch %s (%s) created by user %s: quantity=%s serials=%s",
            batch.id, batch.name, actor.id, quantity, len(serials)
        )

        return success_response(
            {"batch": cls.serialize(batch, items=list(batch.serialized_items.all()))},
            "Batch created"
        )

    @classmethod
    def assign_serial_numbers(cls, batch_id: int, serial_numbers, actor=None) -> Dict[str, Any]:
        """Add units to an existing batch, up to its target quantity."""
        cls.authorize(actor, "manage_batches")

        batch = cls.get_or_404(batch_id)

        serials = parse_serial_numbers(serial_numbers)
        if not serials:
            raise ValidationError("At least one serial number is required", field="serial_numbers")
        cls._validate_serials(serials)

        existing_count = batch.serialized_items.count()
        remaining = batch.quantity - existing_count
        if len(serials) > remaining:
            raise ValidationError(
                f"Batch {batch.name} has room for {remaining} more serial number(s), "
                f"{len(serials)} given",
                field="serial_numbers",
            )
        cls._check_conflicts(serials)

        cls._create_items(batch, serials)
        logger.info("Assigned %s serial(s) to batch %s by user %s", len(serials), batch.id, actor.id)

        return cls.get_batch(batch.id)

    # ==================== STATUS ====================

    @classmethod
    def refresh_status(cls, batch: Batch) -> Batch:
        """Re-derive the batch status from its units under a row lock on the batch."""
        with transaction.atomic():
            batch = cls.model.objects.select_for_update().get(pk=batch.pk)
            return cls._apply_status(batch)

    @classmethod
    def _apply_status(cls, batch: Batch) -> Batch:
        counts = batch.serialized_items.aggregate(
            completed=Count("id", filter=Q(status=SerializedItem.Status.COMPLETE)),
            started=Count("id", filter=~Q(status=SerializedItem.Status.NOT_STARTED)),
        )

        if batch.quantity > 0 and counts["completed"] >= batch.quantity:
            status = Batch.Status.COMPLETE
        elif counts["started"]:
            status = Batch.Status.IN_PROGRESS
        else:
            status = Batch.Status.PENDING

        if status != batch.status:
            batch.status = status
            batch.save(update_fields=["status", "updated_at"])
            logger.info("Batch %s is now %s", batch.id, status)

        return batch
