from django.conf import settings
from django.utils import timezone
from nevyra.responses import api_response, error_response


def health(request):
    return api_response('Service is running', {
        'timestamp': timezone.now().isoformat(),
        'environment': 'development' if settings.DEBUG else 'production',
    })


def not_found(request, exception=None):
    return error_response(f'Route {request.path} not found', 404)


def server_error(request):
    return error_response('Internal server error', 500)
