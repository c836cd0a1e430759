import json

from django.http import JsonResponse

from nevyra.exceptions import ValidationError


def api_response(message, data=None, status=200, pagination=None):
    """Build the standard success envelope."""
    body = {'success': True, 'message': message, 'data': data}
    if pagination is not None:
        body['pagination'] = pagination
    return JsonResponse(body, status=status)


def error_response(message, status):
    return JsonResponse({'success': False, 'message': message, 'data': None}, status=status)


def method_not_allowed():
    return error_response('Invalid request method', 405)


def parse_json_body(request):
    """Decode a JSON object body; an empty body decodes to an empty dict."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        raise ValidationError('Invalid JSON data')
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def doc_to_dict(doc):
    """Convert a Firestore snapshot into a dict with its document id under 'id'."""
    data = doc.to_dict() or {}
    data['id'] = doc.id
    return data


def paginate_params(request, default_limit=10):
    try:
        page = max(int(request.GET.get('page', 1)), 1)
        limit = max(int(request.GET.get('limit', default_limit)), 1)
    except ValueError:
        raise ValidationError('page and limit must be integers')
    return page, limit
