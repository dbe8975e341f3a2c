# pdftemplates/views.py
import json
import logging

from django.conf import settings
from django.core.files.storage import default_storage
from django.http import FileResponse, HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST, require_http_methods

from dbmanager import services as tables
from utils.http import form_errors, json_error, parse_json_body, with_cors
from utils.storage import resolve_media_path

from .forms import PdfUploadForm
from .models import PdfTemplate
from .services import bulk
from .services.overlay import (
    load_template_bytes,
    page_dimensions,
    preview_values,
    render_coordinate_test,
    render_overlay,
)
from .services.repair import normalize_in_place

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('file_path', 'name', 'source_table', 'doctype')


def _pdf_response(pdf, filename=None, attachment=False):
    response = HttpResponse(pdf, content_type='application/pdf')
    disposition = 'attachment' if attachment else 'inline'
    response['Content-Disposition'] = f'{disposition}; filename="{filename}"' if filename else disposition
    return response


def _json_value(value, expected, label):
    """Accept a JSON-encoded string where a dict/list is expected."""
    if isinstance(value, str):
        try:
            value = json.loads(value) if value.strip() else expected()
        except ValueError:
            raise ValueError(f"{label} is not valid JSON")
    if value is None:
        value = expected()
    if not isinstance(value, expected):
        raise ValueError(f"{label} must be a JSON {'object' if expected is dict else 'array'}")
    return value


def _as_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _template_pdf(template):
    """Template PDF bytes, or an error response when the file is missing."""
    path = template.pdf_abspath()
    if path is None:
        return None, json_error('PDF file not found', status=404)
    return load_template_bytes(path), None


# ---------------------------
# Template store
# ---------------------------

@require_GET
def template_list(request):
    templates = PdfTemplate.objects.values(
        'id', 'key', 'name', 'file_path', 'source_table', 'data_source_type', 'doctype'
    )
    return JsonResponse(list(templates), safe=False)


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
def template_detail(request, key):
    if request.method == 'DELETE':
        template = get_object_or_404(PdfTemplate, key=key)
        template.delete()
        logger.info("Template %s deleted", key)
        return HttpResponse(status=204)

    if request.method == 'GET':
        try:
            template, created = PdfTemplate.objects.get_or_create(key=key, defaults={'fields_config': {}})
        except Exception:
            logger.exception("Error creating/fetching template %s", key)
            return json_error('Failed to create or fetch template', status=500)
        if created:
            logger.info("Template %s created", key)
        return JsonResponse(template.to_dict())

    try:
        payload = parse_json_body(request)
        if 'fields_config' not in payload:
            raise ValueError("fields_config is required")
        fields_config = _json_value(payload['fields_config'], dict, 'fields_config')
        template, _ = PdfTemplate.objects.get_or_create(key=key)
        template.fields_config = fields_config
        for name in UPDATABLE_FIELDS:
            if name in payload:
                setattr(template, name, payload[name] or (None if name != 'name' else ''))
        if 'images_config' in payload:
            template.images_config = _json_value(payload['images_config'], list, 'images_config')
        if 'use_as_background' in payload:
            template.use_as_background = _as_bool(payload['use_as_background'])
        if 'data_source_type' in payload:
            source = payload['data_source_type'] or PdfTemplate.SOURCE_DATABASE
            if source not in dict(PdfTemplate.DATA_SOURCE_CHOICES):
                raise ValueError(f"Unknown data_source_type: {source}")
            template.data_source_type = source
        if template.file_path:
            resolve_media_path(template.file_path)
    except ValueError as e:
        return json_error(str(e), status=400)

    template.save()
    return JsonResponse(template.to_dict())


@csrf_exempt
@require_POST
def upload(request, key):
    """
    Store an uploaded PDF under templates/ and return its path.
    The template itself is not modified; the editor saves the path later.
    """
    form = PdfUploadForm(request.POST, request.FILES)
    if not form.is_valid():
        return form_errors(form)

    upload_file = form.cleaned_data['pdf']
    try:
        path = default_storage.save(f"{settings.TEMPLATE_UPLOAD_DIR}/{upload_file.name}", upload_file)
    except Exception as e:
        logger.exception("Storing template upload for %s failed", key)
        return json_error(f"Upload failed: {e}", status=500)

    if not normalize_in_place(default_storage.path(path)):
        logger.warning("Ghostscript normalisation skipped for %s; keeping the original file", path)

    return JsonResponse({
        'file_path': path,
        'message': 'File uploaded successfully. Click "Save Template" to save changes.',
    })


@require_GET
def preview(request, key):
    template = PdfTemplate.objects.filter(key=key).first()
    if template is None:
        return json_error('Template not found', status=404)
    try:
        data, error = _template_pdf(template)
        if error:
            return error
        values = preview_values(template.fields, request.GET)
        pdf = render_overlay(
            data, template.fields, values,
            images_config=template.images,
            use_as_background=template.use_as_background,
        )
    except Exception as e:
        logger.exception("PDF preview error for %s", key)
        return json_error(f"Error processing PDF: {e}", status=500, details='Check server logs for more information')
    return _pdf_response(pdf)


@csrf_exempt
@require_POST
def preview_file(request):
    """Preview an uploaded PDF with an unsaved field map."""
    try:
        payload = parse_json_body(request)
        file_path = payload.get('file_path')
        if not file_path:
            return json_error('file_path parameter is required', status=400)
        fields_config = _json_value(payload.get('fields_config'), dict, 'fields_config')
        images_config = _json_value(payload.get('images_config'), list, 'images_config')
        path = resolve_media_path(file_path)
    except ValueError as e:
        return json_error(str(e), status=400)
    if not path.is_file():
        return json_error('PDF file not found', status=404)

    try:
        values = preview_values(fields_config, payload)
        use_as_background = _as_bool(payload.get('use_as_background', True))
        pdf = render_overlay(
            load_template_bytes(path), fields_config, values,
            images_config=images_config, use_as_background=use_as_background,
        )
    except Exception as e:
        logger.exception("PDF file preview error for %s", file_path)
        return json_error(f"Error processing PDF: {e}", status=500)
    return _pdf_response(pdf)


@require_GET
def dimensions(request, key):
    template = get_object_or_404(PdfTemplate, key=key)
    try:
        data, error = _template_pdf(template)
        if error:
            return error
        sizes = page_dimensions(data)
    except Exception:
        logger.exception("PDF dimensions error for %s", key)
        return json_error('Failed to get PDF dimensions', status=500)
    return JsonResponse({'dimensions': sizes, 'pageCount': len(sizes)})


@require_GET
def coordinate_test(request, key):
    template = get_object_or_404(PdfTemplate, key=key)
    try:
        x = float(request.GET.get('x', 50))
        y = float(request.GET.get('y', 50))
        page = int(request.GET.get('page', 1))
    except ValueError:
        return json_error('x, y and page must be numbers', status=400)

    logger.info("Coordinate test on %s: x=%s y=%s page=%s", key, x, y, page)
    try:
        data, error = _template_pdf(template)
        if error:
            return error
        pdf = render_coordinate_test(data, x, y, page)
    except Exception as e:
        logger.exception("Coordinate test failed for %s", key)
        return json_error(f"Test failed: {e}", status=500)
    return _pdf_response(pdf, 'coordinate_test.pdf')


# ---------------------------
# Bulk generation
# ---------------------------

@csrf_exempt
@require_POST
def generate_bulk(request, key):
    from dataimports.models import DataImport
    from dataimports.services.reader import read_records

    template = get_object_or_404(PdfTemplate, key=key)
    data_import = DataImport.objects.filter(template=template).first()
    if data_import is None:
        return json_error('No data import found', status=400)
    if not template.file_path:
        return json_error('No PDF template uploaded', status=400)

    try:
        import_path = resolve_media_path(data_import.file_path)
    except ValueError as e:
        return json_error(str(e), status=400)
    if not import_path.is_file():
        return json_error('Import file not found', status=404)
    if template.pdf_abspath() is None:
        return json_error('PDF template file not found', status=404)

    try:
        records, rows = read_records(import_path)
        logger.info("Bulk generation for %s started: %s rows", key, len(records))
        result = bulk.generate_bulk(template, records, rows=rows)
    except Exception as e:
        logger.exception("Bulk PDF generation error for %s", key)
        return json_error(f"Error generating bulk PDF: {e}", status=500)

    return JsonResponse({
        'success': True,
        'session_id': result['session_id'],
        'files': [f['path'] for f in result['files']],
        'total_records': result['total_records'],
        'skipped': result['skipped'],
        'message': f"Generated {result['total_records']} PDFs successfully",
    })


def _session_file(session_id, index):
    try:
        path = bulk.record_path(session_id, index)
    except bulk.BulkSessionError as e:
        return None, with_cors(json_error(str(e), status=400))
    if not path.is_file():
        return None, with_cors(json_error('PDF not found', status=404))
    return path, None


@require_GET
def bulk_view(request, session_id, index):
    path, error = _session_file(session_id, index)
    if error:
        return error
    response = FileResponse(open(path, 'rb'), content_type='application/pdf')
    response['Content-Disposition'] = 'inline'
    return with_cors(response)


@require_GET
def bulk_download(request, session_id, index):
    path, error = _session_file(session_id, index)
    if error:
        return error
    response = FileResponse(
        open(path, 'rb'),
        as_attachment=True,
        filename=bulk.download_name(session_id, index),
        content_type='application/pdf',
    )
    return with_cors(response)


@require_GET
def bulk_zip(request, session_id):
    try:
        archive, count = bulk.build_zip(session_id)
    except bulk.InvalidSession as e:
        return with_cors(json_error(str(e), status=400))
    except bulk.SessionNotFound:
        return with_cors(json_error('Session not found', status=404))
    except Exception as e:
        logger.exception("ZIP creation failed for %s", session_id)
        return with_cors(json_error(f"ZIP creation failed: {e}", status=500))
    if not count:
        return with_cors(json_error('No files found', status=404))

    response = HttpResponse(archive, content_type='application/zip')
    response['Content-Disposition'] = f'attachment; filename="{session_id}.zip"'
    return with_cors(response)


# ---------------------------
# Database data source
# ---------------------------

@require_GET
def available_tables(request):
    try:
        return JsonResponse({'tables': tables.available_tables()})
    except Exception:
        logger.exception("Error fetching available tables")
        return json_error('Failed to fetch available tables', status=500)


@require_GET
def table_records(request, table):
    if table not in tables.available_tables():
        return json_error('Invalid table name', status=400)
    try:
        return JsonResponse(tables.fetch_rows(table), safe=False)
    except Exception:
        logger.exception("Error fetching records of %s", table)
        return json_error('Failed to fetch table records', status=500)
