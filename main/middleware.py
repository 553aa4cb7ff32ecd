import logging

from django.http import JsonResponse


logger = logging.getLogger(__name__)


class JSONOnlyMiddleware:
    """Replace Django's HTML error pages with JSON bodies under /api/."""

    API_PREFIX = '/api/'

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        if not request.path.startswith(self.API_PREFIX) or response.status_code < 400:
            return response

        content_type = response.get('Content-Type', '')
        if content_type.startswith('application/json'):
            return response

        codes = {404: 'not_found', 405: 'method_not_allowed'}
        code = codes.get(response.status_code, 'error' if response.status_code < 500 else 'server_error')
        return JsonResponse(
            {'success': False, 'error': {'code': code, 'message': response.reason_phrase}},
            status=response.status_code,
        )

    def process_exception(self, request, exception):
        if not request.path.startswith(self.API_PREFIX):
            return None

        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return JsonResponse(
            {'success': False, 'error': {'code': 'server_error', 'message': 'Internal server error'}},
            status=500,
        )
