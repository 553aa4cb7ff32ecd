from django.views.decorators.csrf import csrf_exempt
from rest_framework.decorators import api_view

from ..services.auth_service import AuthService
from ..services.role_service import RoleService
from main.helpers.response import APIResponse
from main.helpers.request import parse_json_body, get_client_ip
from main.helpers.require_login import user_required


def serialize_user(user):
    return {
        'id': user.id,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'name': user.full_name,
        'email': user.email,
        'role': user.role,
    }


@csrf_exempt
@api_view(["POST"])
def login(request):
    data, error = parse_json_body(request)
    if error:
        return error

    missing = [field for field in ('email', 'password') if not data.get(field)]
    if missing:
        return APIResponse.validation_error(
            errors={field: f'{field} is required' for field in missing},
            message=f'Missing required fields: {", ".join(missing)}'
        )

    result = AuthService.login(
        email=data['email'],
        password=data['password'],
        ip_address=get_client_ip(request),
        user_agent=request.META.get('HTTP_USER_AGENT', ''),
    )

    if result['success']:
        return APIResponse.success(
            data={'token': result['token'], 'user': serialize_user(result['user'])},
            message=result['message']
        )

    return APIResponse.unauthorized(message=result['message'])


@csrf_exempt
@api_view(["POST"])
@user_required
def logout(request):
    result = AuthService.logout(request.auth_token)

    if result['success']:
        return APIResponse.success(message=result['message'])

    return APIResponse.unauthorized(message=result['message'])


@csrf_exempt
@api_view(["GET"])
@user_required
def me(request):
    user = request.current_user
    role = RoleService.get_role(user.role)

    return APIResponse.success(data={
        'user': serialize_user(user),
        'permissions': role['role']['permissions'] if role['success'] else [],
    })
