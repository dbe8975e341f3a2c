# utils/http.py
import json

from django.http import JsonResponse, QueryDict

# Headers the external editor front-end needs on generated files.
CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, HEAD, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type, Authorization, Bypass-Tunnel-Reminder, ngrok-skip-browser-warning',
}

FORM_CONTENT_TYPE = 'application/x-www-form-urlencoded'


def parse_json_body(request):
    """
    Return the request payload as a dict.
    JSON bodies are decoded; form posts fall back to request.POST.
    Django only parses form bodies for POST, so url-encoded PUT/PATCH bodies
    are decoded here. Raises ValueError for a body that is not valid JSON
    and for any other body type sent with PUT/PATCH.
    """
    content_type = request.content_type or ''
    if 'application/json' in content_type:
        try:
            payload = json.loads(request.body.decode('utf-8') or '{}')
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"Invalid JSON payload: {e}")
        if not isinstance(payload, dict):
            raise ValueError("JSON payload must be an object")
        return payload
    if request.method == 'POST':
        return request.POST.dict()
    if content_type == FORM_CONTENT_TYPE:
        return QueryDict(request.body, encoding=request.encoding).dict()
    if request.body:
        raise ValueError(f"Unsupported content type for {request.method}: {content_type or 'none'}")
    return {}


def json_error(message, status=500, **extra):
    body = {'error': message}
    body.update(extra)
    return JsonResponse(body, status=status)


def form_errors(form):
    return JsonResponse({'error': 'Validation failed', 'errors': form.errors.get_json_data()}, status=422)


def with_cors(response):
    for k, v in CORS_HEADERS.items():
        response[k] = v
    return response
