# dbmanager/views.py
import logging
from functools import wraps

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from utils.http import parse_json_body

from . import services
from .forms import ColumnForm, CreateTableForm

logger = logging.getLogger(__name__)


def _fail(message, status, **extra):
    body = {'success': False, 'message': message}
    body.update(extra)
    return JsonResponse(body, status=status)


def staff_required_json(view_func):
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        user = request.user
        if not user.is_authenticated or not (user.is_staff or user.is_superuser):
            return _fail('Staff access required', 403)
        return view_func(request, *args, **kwargs)
    return _wrapped


@csrf_exempt
@staff_required_json
@require_http_methods(["GET", "POST"])
def tables(request):
    if request.method == 'GET':
        try:
            return JsonResponse({'success': True, 'data': services.list_tables()})
        except Exception as e:
            logger.exception("Listing tables failed")
            return _fail(str(e), 500)

    try:
        payload = parse_json_body(request)
    except ValueError as e:
        return _fail(str(e), 400)

    form = CreateTableForm(payload)
    if not form.is_valid():
        return _fail('Validation failed', 422, errors=form.error_data())

    table = form.cleaned_data['table_name']
    try:
        services.create_table(table, form.columns)
    except ValueError as e:
        return _fail(str(e), 400)
    except Exception as e:
        logger.exception("Creating table %s failed", table)
        return _fail(str(e), 500)
    return JsonResponse({'success': True, 'message': 'Table created successfully', 'data': {'table': table}})


@csrf_exempt
@staff_required_json
@require_http_methods(["GET", "DELETE"])
def table_detail(request, table):
    if request.method == 'DELETE':
        try:
            services.drop_table(table)
        except services.ProtectedTable:
            return _fail('Cannot delete protected table', 403)
        except services.TableNotFound:
            return _fail('Table not found', 404)
        except Exception as e:
            logger.exception("Dropping table %s failed", table)
            return _fail(str(e), 500)
        return JsonResponse({'success': True, 'message': 'Table deleted successfully'})

    try:
        columns = services.column_names(table)
        rows = services.fetch_rows(table)
    except services.TableNotFound:
        return _fail('Table not found', 404)
    except Exception as e:
        logger.exception("Reading table %s failed", table)
        return _fail(str(e), 500)
    return JsonResponse({'success': True, 'data': {'columns': columns, 'data': rows}})


@csrf_exempt
@staff_required_json
@require_http_methods(["POST"])
def add_column(request, table):
    if not services.table_exists(table):
        return _fail('Table not found', 404)
    try:
        payload = parse_json_body(request)
    except ValueError as e:
        return _fail(str(e), 400)

    form = ColumnForm(payload)
    if not form.is_valid():
        return _fail('Validation failed', 422, errors=form.errors.get_json_data())
    try:
        services.add_column(table, form.cleaned_data)
    except ValueError as e:
        return _fail(str(e), 400)
    except Exception as e:
        logger.exception("Adding column to %s failed", table)
        return _fail(str(e), 500)
    return JsonResponse({'success': True, 'message': 'Column added successfully'})


@csrf_exempt
@staff_required_json
@require_http_methods(["POST"])
def insert_row(request, table):
    if not services.table_exists(table):
        return _fail('Table not found', 404)
    try:
        payload = parse_json_body(request)
        payload.pop('csrfmiddlewaretoken', None)
        row_id = services.insert_row(table, payload)
    except ValueError as e:
        return _fail(str(e), 400)
    except Exception as e:
        logger.exception("Insert into %s failed", table)
        return _fail(str(e), 500)
    return JsonResponse({'success': True, 'message': 'Row inserted successfully', 'data': {'id': row_id}})


@csrf_exempt
@staff_required_json
@require_http_methods(["PUT", "DELETE"])
def row_detail(request, table, row_id):
    if not services.table_exists(table):
        return _fail('Table not found', 404)

    if request.method == 'DELETE':
        try:
            services.delete_row(table, row_id)
        except Exception as e:
            logger.exception("Delete from %s failed", table)
            return _fail(str(e), 500)
        return JsonResponse({'success': True, 'message': 'Row deleted successfully'})

    try:
        payload = parse_json_body(request)
        payload.pop('csrfmiddlewaretoken', None)
        services.update_row(table, row_id, payload)
    except ValueError as e:
        return _fail(str(e), 400)
    except Exception as e:
        logger.exception("Update of %s #%s failed", table, row_id)
        return _fail(str(e), 500)
    return JsonResponse({'success': True, 'message': 'Row updated successfully'})
