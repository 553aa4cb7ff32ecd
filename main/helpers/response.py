from django.http import JsonResponse


class APIResponse:
    """JSON envelopes shared by every API view."""

    @staticmethod
    def success(data=None, message='Success', status=200):
        body = {'success': True, 'message': message}
        if data is not None:
            if isinstance(data, dict):
                body.update(data)
            else:
                body['data'] = data
        return JsonResponse(body, status=status)

    @staticmethod
    def created(data=None, message='Created'):
        return APIResponse.success(data=data, message=message, status=201)

    @staticmethod
    def error(message='Request failed', code='error', status=400, details=None):
        error = {'code': code, 'message': message}
        if details:
            error['details'] = details
        return JsonResponse({'success': False, 'error': error}, status=status)

    @staticmethod
    def validation_error(errors=None, message='Validation failed'):
        return APIResponse.error(message, 'validation_error', 400, errors)

    @staticmethod
    def not_found(message='Not found'):
        return APIResponse.error(message, 'not_found', 404)

    @staticmethod
    def unauthorized(message='Authentication required'):
        return APIResponse.error(message, 'unauthorized', 401)

    @staticmethod
    def forbidden(message='You do not have permission to perform this action'):
        return APIResponse.error(message, 'forbidden', 403)
