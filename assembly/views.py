import logging

from django.http import JsonResponse
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from django.utils.decorators import method_decorator

from assembly.stages import serialize_stages
from assembly.services import (
    ServiceError, ValidationError, BaseService,
    ProductService, BatchService, AssemblyService, DashboardService,
)
from main.helpers.require_login import user_required
from main.helpers.request import load_json_object


logger = logging.getLogger(__name__)


def error_response(message: str, code: str = "error", status: int = 400, details: dict = None):
    data = {"success": False, "error": {"code": code, "message": message}}
    if details:
        data["error"]["details"] = details
    return JsonResponse(data, status=status)


def handle_service_error(e: Exception):
    if isinstance(e, ValidationError):
        details = dict(e.details)
        if e.field:
            details["field"] = e.field
        return error_response(e.message, e.code, e.status_code, details)
    elif isinstance(e, ServiceError):
        details = {k: v for k, v in e.details.items() if v is not None}
        return error_response(e.message, e.code, e.status_code, details)
    else:
        logger.exception("Unexpected error in assembly API")
        return error_response("Internal server error", "server_error", 500)


class BaseAssemblyView(View):
    """
    JSON view with bearer-token auth. `required_action` gates read access;
    mutations are authorized by the services themselves.
    """

    required_action = None

    @method_decorator(csrf_exempt)
    @method_decorator(user_required)
    def dispatch(self, request, *args, **kwargs):
        return super().dispatch(request, *args, **kwargs)

    def get_json_body(self, request):
        try:
            return load_json_object(request.body)
        except ValueError as e:
            raise ValidationError(str(e))

    def get_actor(self, request):
        return request.current_user

    def check_read_access(self, request):
        if self.required_action:
            BaseService.authorize(self.get_actor(request), self.required_action)

    def success(self, data: dict, status: int = 200):
        return JsonResponse({"success": True, **data}, status=status)


def get_int(data: dict, key: str, required: bool = True):
    value = data.get(key)
    if value is None or value == "":
        if required:
            raise ValidationError(f"{key} is required", field=key)
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer", field=key)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer", field=key)


# ==================== STAGES ====================

class StageListView(BaseAssemblyView):

    def get(self, request):
        return self.success({"stages": serialize_stages()})


# ==================== PRODUCTS ====================

class ProductListView(BaseAssemblyView):
    required_action = "view_production"

    def get(self, request):
        try:
            self.check_read_access(request)
            return self.success(ProductService.get_all_products())
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            result = ProductService.create_product(
                name=data.get("name"),
                model_number=data.get("model_number"),
                description=data.get("description", ""),
                image_url=data.get("image_url", ""),
                actor=self.get_actor(request),
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class ProductDetailView(BaseAssemblyView):
    required_action = "view_production"

    def get(self, request, product_id):
        try:
            self.check_read_access(request)
            return self.success(ProductService.get_product(product_id))
        except Exception as e:
            return handle_service_error(e)

    def patch(self, request, product_id):
        try:
            data = self.get_json_body(request)
            result = ProductService.rename_product(
                product_id, data.get("name"), actor=self.get_actor(request)
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


# ==================== BATCHES ====================

class BatchListView(BaseAssemblyView):
    required_action = "view_production"

    def get(self, request):
        try:
            self.check_read_access(request)
            return self.success(BatchService.get_all_batches())
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            result = BatchService.create_batch(
                name=data.get("name"),
                product_id=get_int(data, "product_id"),
                quantity=get_int(data, "quantity"),
                serial_numbers=data.get("serial_numbers"),
                actor=self.get_actor(request),
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class BatchDetailView(BaseAssemblyView):
    required_action = "view_production"

    def get(self, request, batch_id):
        try:
            self.check_read_access(request)
            return self.success(BatchService.get_batch(batch_id))
        except Exception as e:
            return handle_service_error(e)


class BatchSerialsView(BaseAssemblyView):

    def post(self, request, batch_id):
        try:
            data = self.get_json_body(request)
            result = BatchService.assign_serial_numbers(
                batch_id, data.get("serial_numbers"), actor=self.get_actor(request)
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


# ==================== UNITS ====================

class UnitDetailView(BaseAssemblyView):
    required_action = "view_production"

    def get(self, request, unit_id):
        try:
            self.check_read_access(request)
            return self.success(AssemblyService.get_assembly_details(unit_id))
        except Exception as e:
            return handle_service_error(e)


class UnitProgressView(BaseAssemblyView):
    required_action = "view_production"

    def get(self, request, unit_id):
        try:
            self.check_read_access(request)
            return self.success(AssemblyService.get_progress(unit_id))
        except Exception as e:
            return handle_service_error(e)


class UnitSerialProgressView(BaseAssemblyView):
    required_action = "view_production"

    def get(self, request, serial_number):
        try:
            self.check_read_access(request)
            return self.success(AssemblyService.get_progress_by_serial(serial_number))
        except Exception as e:
            return handle_service_error(e)


class UnitHistoryView(BaseAssemblyView):
    required_action = "view_production"

    def get(self, request, unit_id):
        try:
            self.check_read_access(request)
            result = AssemblyService.get_unit_history(unit_id, status=request.GET.get("status"))
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class UnitCompleteStageView(BaseAssemblyView):

    def post(self, request, unit_id):
        try:
            data = self.get_json_body(request)
            result = AssemblyService.mark_stage_complete(
                unit_id, data.get("stage"), actor=self.get_actor(request)
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class UnitRejectStageView(BaseAssemblyView):

    def post(self, request, unit_id):
        try:
            data = self.get_json_body(request)
            result = AssemblyService.reject_stage(
                unit_id, data.get("stage"), data.get("notes"), actor=self.get_actor(request)
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


# ==================== DASHBOARD ====================

class DashboardOverviewView(BaseAssemblyView):
    required_action = "view_dashboard"

    def get(self, request):
        try:
            self.check_read_access(request)
            return self.success(DashboardService.get_overview(request.GET.get("period")))
        except Exception as e:
            return handle_service_error(e)


class ProductionSummaryView(BaseAssemblyView):
    required_action = "view_dashboard"

    def get(self, request):
        try:
            self.check_read_access(request)
            return self.success(DashboardService.get_production_summary(request.GET.get("period")))
        except Exception as e:
            return handle_service_error(e)


class RejectionSummaryView(BaseAssemblyView):
    required_action = "view_dashboard"

    def get(self, request):
        try:
            self.check_read_access(request)
            return self.success(DashboardService.get_rejection_summary(request.GET.get("period")))
        except Exception as e:
            return handle_service_error(e)


class WipByStageView(BaseAssemblyView):
    required_action = "view_dashboard"

    def get(self, request):
        try:
            self.check_read_access(request)
            return self.success(DashboardService.get_wip_by_stage())
        except Exception as e:
            return handle_service_error(e)
