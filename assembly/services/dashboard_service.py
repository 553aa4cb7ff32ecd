"""
Dashboard Service - Time-windowed production, rejection and WIP figures

All figures are read-only queries over current unit state and the stage log.
"""
from datetime import datetime
from typing import Dict, Any, List

from django.db.models import Count

from assembly.models import SerializedItem, UnitStageLog
from assembly.stages import STAGE_SEQUENCE, stage_label
from assembly.services.base_service import (
    success_response, isoformat, resolve_time_window, TimeWindow
)

DEFAULT_PERIOD = "all_time"


def _window_filter(field: str, window: TimeWindow) -> Dict[str, datetime]:
    filters = {}
    if window.start is not None:
        filters[f"{field}__gte"] = window.start
    if window.end is not None:
        filters[f"{field}__lt"] = window.end
    return filters


def _zero_filled(counts: Dict[str, int]) -> List[Dict[str, Any]]:
    return [
        {"stage": stage, "label": stage_label(stage), "count": counts.get(stage, 0)}
        for stage in STAGE_SEQUENCE
    ]


def _window_payload(period: str, window: TimeWindow) -> Dict[str, Any]:
    return {"period": period, "start": isoformat(window.start), "end": isoformat(window.end)}


class DashboardService:

    @classmethod
    def get_production_summary(cls, period: str = DEFAULT_PERIOD, now: datetime = None) -> Dict[str, Any]:
        """
        units_completed counts units whose status is COMPLETE and whose last
        update falls inside the window. units_in_progress is a current count
        and ignores the window.
        """
        period = period or DEFAULT_PERIOD
        window = resolve_time_window(period, now)

        completed = SerializedItem.objects.filter(
            status=SerializedItem.Status.COMPLETE,
            **_window_filter("updated_at", window)
        ).count()
        in_progress = SerializedItem.objects.filter(
            status=SerializedItem.Status.IN_PROGRESS
        ).count()

        return success_response({
            "window": _window_payload(period, window),
            "units_completed": completed,
            "units_in_progress": in_progress,
        })

    @classmethod
    def get_rejection_summary(cls, period: str = DEFAULT_PERIOD, now: datetime = None) -> Dict[str, Any]:
        period = period or DEFAULT_PERIOD
        window = resolve_time_window(period, now)

        rows = (
            UnitStageLog.objects
            .filter(status=UnitStageLog.LogStatus.REJECTED, **_window_filter("timestamp", window))
            .values("stage")
            .annotate(count=Count("id"))
        )
        counts = {row["stage"]: row["count"] for row in rows}

        return success_response({
            "window": _window_payload(period, window),
            "total_rejections": sum(counts.values()),
            "rejections_by_stage": _zero_filled(counts),
        })

    @classmethod
    def get_wip_by_stage(cls) -> Dict[str, Any]:
        """Units currently IN_PROGRESS grouped by their current stage."""
        rows = (
            SerializedItem.objects
            .filter(status=SerializedItem.Status.IN_PROGRESS)
            .values("current_stage")
            .annotate(count=Count("id"))
        )
        counts = {row["current_stage"]: row["count"] for row in rows}

        return success_response({
            "total_in_progress": sum(counts.values()),
            "wip_by_stage": _zero_filled(counts),
        })

    @classmethod
    def get_overview(cls, period: str = DEFAULT_PERIOD, now: datetime = None) -> Dict[str, Any]:
        production = cls.get_production_summary(period, now)
        rejections = cls.get_rejection_summary(period, now)
        wip = cls.get_wip_by_stage()

        return success_response({
            "window": production["window"],
            "production": {
                "units_completed": production["units_completed"],
                "units_in_progress": production["units_in_progress"],
            },
            "rejections": {
                "total_rejections": rejections["total_rejections"],
                "rejections_by_stage": rejections["rejections_by_stage"],
            },
            "wip": {
                "total_in_progress": wip["total_in_progress"],
                "wip_by_stage": wip["wip_by_stage"],
            },
        })
