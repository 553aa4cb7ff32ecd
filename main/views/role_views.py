from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from ..services.role_service import RoleService
from main.helpers.response import APIResponse
from main.helpers.require_login import user_required


@csrf_exempt
@require_http_methods(["GET"])
@user_required
def list_roles(request):
    result = RoleService.get_all_roles()
    return APIResponse.success(data=result)


@csrf_exempt
@require_http_methods(["GET"])
@user_required
def get_role(request, role_code):
    result = RoleService.get_role(role_code)

    if result['success']:
        return APIResponse.success(data={'role': result['role']})

    return APIResponse.not_found(message=result['message'])
