"""
Assembly Service - Moves serialized units through the stage sequence

Unit status and current stage are stored on SerializedItem and kept in step
with the UnitStageLog ledger: every completion appends to the ledger and
updates the unit in the same transaction. Per-stage progress is never stored;
it is recomputed from the ledger on every read.
"""
import logging
from typing import Dict, Any, List, Optional

from django.conf import settings
from django.db import transaction

from assembly.models import SerializedItem, UnitStageLog
from assembly.stages import (
    STAGE_SEQUENCE, first_stage, is_final_stage, is_valid_stage, next_stage, stage_label
)
from assembly.services.base_service import (
    BaseService, success_response, isoformat,
    ValidationError, NotFoundError, InvalidStageTransitionError
)
from assembly.services.batch_service import BatchService, calculate_progress_percent


logger = logging.getLogger(__name__)


class AssemblyService(BaseService):
    model = SerializedItem

    # ==================== SERIALIZATION ====================

    @classmethod
    def serialize_user(cls, user) -> Optional[Dict[str, Any]]:
        if user is None:
            return None
        return {"id": user.id, "name": user.full_name, "email": user.email}

    @classmethod
    def serialize_unit(cls, unit: SerializedItem) -> Dict[str, Any]:
        return {
            "id": unit.id,
            "uuid": str(unit.uuid),
            "serial_number": unit.serial_number,
            "status": unit.status,
            "status_display": unit.get_status_display(),
            "current_stage": unit.current_stage,
            "batch_id": unit.batch_id,
            "created_at": isoformat(unit.created_at),
            "updated_at": isoformat(unit.updated_at),
        }

    @classmethod
    def serialize_log(cls, log: UnitStageLog) -> Dict[str, Any]:
        return {
            "id": log.id,
            "unit_id": log.unit_id,
            "stage": log.stage,
            "stage_label": stage_label(log.stage),
            "status": log.status,
            "notes": log.notes or None,
            "completed_by_id": log.completed_by_id,
            "completed_by": cls.serialize_user(log.completed_by),
            "timestamp": isoformat(log.timestamp),
        }

    # ==================== LOOKUPS ====================

    @classmethod
    def _get_unit(cls, unit_id) -> SerializedItem:
        unit = cls.model.objects.select_related("batch").filter(id=unit_id).first() if unit_id else None
        if not unit:
            raise NotFoundError("Unit", unit_id)
        return unit

    @classmethod
    def _validate_stage(cls, stage) -> str:
        if not is_valid_stage(stage):
            raise ValidationError(
                f"Unknown assembly stage: {stage}",
                field="stage",
                details={"allowed": list(STAGE_SEQUENCE)},
            )
        return stage

    @classmethod
    def expected_stage(cls, unit: SerializedItem) -> Optional[str]:
        """Stage the unit is waiting on; None once it is complete."""
        if unit.status == SerializedItem.Status.NOT_STARTED:
            return first_stage()
        if unit.status == SerializedItem.Status.COMPLETE:
            return None
        return unit.current_stage

    # ==================== QUERIES ====================

    @classmethod
    def get_assembly_details(cls, unit_id) -> Dict[str, Any]:
        """Unit with its batch and the full ledger, oldest entry first."""
        unit = cls._get_unit(unit_id)
        logs = unit.stage_logs.select_related("completed_by").order_by("timestamp", "id")

        data = cls.serialize_unit(unit)
        data["batch"] = {"id": unit.batch_id, "name": unit.batch.name}
        data["stage_logs"] = [cls.serialize_log(log) for log in logs]

        return success_response({"unit": data})

    @classmethod
    def build_progress(cls, unit: SerializedItem, logs: List[UnitStageLog]) -> List[Dict[str, Any]]:
        """One row per stage: complete, in_progress or not_started."""
        completions = {}
        for log in logs:
            if log.status == UnitStageLog.LogStatus.COMPLETE:
                # keep the latest completion per stage
                completions[log.stage] = log

        stages = []
        for index, stage in enumerate(STAGE_SEQUENCE):
            completion = completions.get(stage)
            if completion:
                status = "complete"
            elif unit.current_stage == stage:
                status = "in_progress"
            else:
                status = "not_started"

            stages.append({
                "stage": stage,
                "label": stage_label(stage),
                "position": index + 1,
                "status": status,
                "completed_at": isoformat(completion.timestamp) if completion else None,
                "completed_by": cls.serialize_user(completion.completed_by) if completion else None,
            })
        return stages

    @classmethod
    def _progress_payload(cls, unit: SerializedItem) -> Dict[str, Any]:
        logs = list(unit.stage_logs.select_related("completed_by").order_by("timestamp", "id"))
        stages = cls.build_progress(unit, logs)
        completed = sum(1 for s in stages if s["status"] == "complete")

        data = cls.serialize_unit(unit)
        data["batch"] = {"id": unit.batch_id, "name": unit.batch.name}

        return success_response({
            "unit": data,
            "stages": stages,
            "completed_stages": completed,
            "total_stages": len(STAGE_SEQUENCE),
            "percent_complete": calculate_progress_percent(completed, len(STAGE_SEQUENCE)),
            "rejection_count": sum(1 for log in logs if log.status == UnitStageLog.LogStatus.REJECTED),
        })

    @classmethod
    def get_progress(cls, unit_id) -> Dict[str, Any]:
        return cls._progress_payload(cls._get_unit(unit_id))

    @classmethod
    def get_progress_by_serial(cls, serial_number: str) -> Dict[str, Any]:
        unit = cls.model.objects.select_related("batch").filter(
            serial_number=(serial_number or "").strip()
        ).first()
        if not unit:
            raise NotFoundError("Unit", serial_number)
        return cls._progress_payload(unit)

    @classmethod
    def get_unit_history(cls, unit_id, status: str = None) -> Dict[str, Any]:
        """Ledger entries for a unit, newest first, optionally filtered by outcome."""
        unit = cls._get_unit(unit_id)
        logs = unit.stage_logs.select_related("completed_by")

        if status:
            status = status.upper()
            if status not in UnitStageLog.LogStatus.values:
                raise ValidationError(f"Unknown log status: {status}", field="status")
            logs = logs.filter(status=status)

        logs = logs.order_by("-timestamp", "-id")
        return success_response({
            "unit_id": unit.id,
            "serial_number": unit.serial_number,
            "logs": [cls.serialize_log(log) for log in logs],
        })

    # ==================== MUTATIONS ====================

    @classmethod
    def mark_stage_complete(cls, unit_id, stage: str, actor=None) -> Dict[str, Any]:
        """
        Record a completed stage and advance the unit.

        Completing the final stage marks the unit COMPLETE and leaves it on the
        final stage; any other stage moves it to the next one IN_PROGRESS. The
        ledger entry, unit update and batch status refresh commit together.
        """
        stage = cls._validate_stage(stage)
        cls.authorize(actor, "complete_stage", stage)

        with transaction.atomic():
            unit = cls.model.objects.select_for_update().filter(id=unit_id).first() if unit_id else None
            if not unit:
                raise NotFoundError("Unit", unit_id)

            if getattr(settings, "ASSEMBLY_ENFORCE_STAGE_ORDER", True):
                expected = cls.expected_stage(unit)
                if expected is None:
                    raise InvalidStageTransitionError(
                        f"Unit {unit.serial_number} has already completed assembly"
                    )
                if stage != expected:
                    logger.warning(
                        "Out-of-order completion of %s on unit %s (expected %s)",
                        stage, unit.serial_number, expected
                    )
                    raise InvalidStageTransitionError(
                        f"Unit {unit.serial_number} is waiting on {expected}, not {stage}",
                        expected_stage=expected,
                    )

            log = UnitStageLog.objects.create(
                unit=unit,
                stage=stage,
                status=UnitStageLog.LogStatus.COMPLETE,
                completed_by=actor,
            )

            if is_final_stage(stage):
                unit.current_stage = stage
                unit.status = SerializedItem.Status.COMPLETE
            else:
                unit.current_stage = next_stage(stage)
                if unit.status != SerializedItem.Status.COMPLETE:
                    unit.status = SerializedItem.Status.IN_PROGRESS

            unit.save(update_fields=["current_stage", "status", "updated_at"])
            BatchService.refresh_status(unit.batch)

        logger.info(
            "Unit %s completed %s by user %s -> %s/%s",
            unit.serial_number, stage, actor.id, unit.status, unit.current_stage
        )

        return success_response({
            "unit": cls.serialize_unit(unit),
            "log_entry": cls.serialize_log(log),
        }, "Stage marked complete")

    @classmethod
    def reject_stage(cls, unit_id, stage: str, notes: str, actor=None) -> Dict[str, Any]:
        """Log a rejection. The unit's stage and status are left untouched."""
        stage = cls._validate_stage(stage)

        notes = (notes or "").strip() if isinstance(notes, str) else ""
        if not notes:
            raise ValidationError("Rejection notes are required.", field="notes")

        cls.authorize(actor, "reject_stage", stage)
        unit = cls._get_unit(unit_id)

        log = UnitStageLog.objects.create(
            unit=unit,
            stage=stage,
            status=UnitStageLog.LogStatus.REJECTED,
            completed_by=actor,
            notes=notes,
        )
        logger.info("Unit %s rejected at %s by user %s", unit.serial_number, stage, actor.id)

        return success_response({"log_entry": cls.serialize_log(log)}, "Stage rejected")

