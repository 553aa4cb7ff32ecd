import json

from main.helpers.response import APIResponse


def load_json_object(body):
    """Decode a request body into a dict. Raises ValueError with a client-facing message."""
    if not body:
        return {}

    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValueError('Request body must be valid JSON')

    if not isinstance(data, dict):
        raise ValueError('Request body must be a JSON object')

    return data


def parse_json_body(request):
    """Return (data, None) or (None, error_response) for a JSON request body."""
    try:
        return load_json_object(request.body), None
    except ValueError as e:
        return None, APIResponse.error(str(e), 'invalid_json')


def get_client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', '')
