from functools import wraps

from main.helpers.response import APIResponse
from main.services.auth_service import AuthService


def get_bearer_token(request):
    header = request.META.get('HTTP_AUTHORIZATION', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def user_required(view_func):
    """Resolve the bearer token to a User and expose it as request.current_user."""

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        token = get_bearer_token(request)
        user = AuthService.get_user_from_token(token)
        if user is None:
            return APIResponse.unauthorized()

        request.current_user = user
        request.auth_token = token
        return view_func(request, *args, **kwargs)

    return wrapper
