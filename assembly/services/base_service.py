import logging
from collections import namedtuple
from datetime import datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, Optional

import pytz
from django.conf import settings
from django.db.models import Model
from django.utils import timezone
from django.utils.module_loading import import_string


logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str, code: str = "error", details: Dict = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class ValidationError(ServiceError):
    def __init__(self, message: str, field: str = None, details: Dict = None):
        super().__init__(message, "validation_error", details)
        self.field = field


class NotFoundError(ServiceError):
    status_code = 404

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} not found: {identifier}",
            "not_found",
            {"resource": resource, "identifier": str(identifier)}
        )


class ConflictError(ServiceError):
    status_code = 409

    def __init__(self, message: str, details: Dict = None):
        super().__init__(message, "conflict", details)


class BusinessRuleError(ServiceError):
    def __init__(self, message: str, rule: str = None):
        super().__init__(message, "business_rule", {"rule": rule})


class InvalidStageTransitionError(BusinessRuleError):
    status_code = 409

    def __init__(self, message: str, expected_stage: Optional[str] = None):
        super().__init__(message, "stage_order")
        self.code = "invalid_transition"
        self.details["expected_stage"] = expected_stage


class AuthenticationError(ServiceError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, "unauthorized")


class PermissionDeniedError(ServiceError):
    status_code = 403

    def __init__(self, message: str, action: str = None, stage: str = None):
        super().__init__(message, "forbidden", {"action": action, "stage": stage})


def success_response(data: Any = None, message: str = "Success") -> Dict:
    response = {"success": True, "message": message}
    if data is not None:
        if isinstance(data, dict):
            response.update(data)
        else:
            response["data"] = data
    return response


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def clean_text(value, field: str, label: str, required: bool = True) -> str:
    """Strip a text input; anything but a string or None is a ValidationError."""
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string", field=field)
    value = value.strip()
    if required and not value:
        raise ValidationError(f"{label} is required", field=field)
    return value


TIME_PERIODS = ("today", "this_week", "all_time")

TimeWindow = namedtuple("TimeWindow", ["start", "end"])
TimeWindow.__doc__ = "Half-open interval [start, end); both None means unbounded."


def resolve_time_window(period: str, now: datetime = None) -> TimeWindow:
    """
    Map a dashboard period selector to a concrete window in local time.

    today      local midnight .. now
    this_week  Monday 00:00 .. next Monday 00:00 (Sunday belongs to the week
               that started six days earlier)
    all_time   unbounded
    """
    if period not in TIME_PERIODS:
        raise ValidationError(
            f"Unknown time period: {period}. Expected one of: {', '.join(TIME_PERIODS)}",
            field="period"
        )

    if period == "all_time":
        return TimeWindow(None, None)

    local_tz = pytz.timezone(settings.TIME_ZONE)
    now = (now or timezone.now()).astimezone(local_tz)
    today = now.date()

    if period == "today":
        start = local_tz.localize(datetime.combine(today, time.min))
        return TimeWindow(start, now)

    week_start = today - timedelta(days=today.weekday())
    start = local_tz.localize(datetime.combine(week_start, time.min))
    end = local_tz.localize(datetime.combine(week_start + timedelta(days=7), time.min))
    return TimeWindow(start, end)


class BaseService:
    model = None

    @classmethod
    def get_by_id(cls, id: int) -> Optional[Model]:
        try:
            return cls.model.objects.get(id=id)
        except (cls.model.DoesNotExist, ValueError, TypeError):
            return None

    @classmethod
    def get_or_404(cls, id: int) -> Model:
        obj = cls.get_by_id(id)
        if not obj:
            raise NotFoundError(cls.model.__name__, id)
        return obj

    @classmethod
    def authorize(cls, actor, action: str, stage: str = None) -> None:
        """Run the configured authorization policy; raise when it refuses."""
        if actor is None:
            raise AuthenticationError()

        policy = import_string(settings.ASSEMBLY_AUTHORIZATION_POLICY)
        if not policy(actor.role, action, stage):
            logger.warning(
                "Refused %s%s for user %s (%s)",
                action, f" on {stage}" if stage else "", actor.id, actor.role
            )
            raise PermissionDeniedError(
                f"Role {actor.role} is not allowed to {action.replace('_', ' ')}"
                + (f" at stage {stage}" if stage else ""),
                action=action,
                stage=stage,
            )
