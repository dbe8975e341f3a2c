# erp/views.py
import json
import logging
import re
from datetime import timedelta

from django.conf import settings
from django.core.files.storage import default_storage
from django.db.models import Q
from django.http import HttpResponse, JsonResponse
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from pdftemplates.models import PdfTemplate
from pdftemplates.services import bulk, units
from pdftemplates.services.fallback import render_with_fallback, simple_pdf
from pdftemplates.services.overlay import PdfProcessingError, resolve_value
from utils.http import parse_json_body

from . import demo
from .services import ErpService, normalize_columns, normalize_rows

logger = logging.getLogger(__name__)

FALLBACK_TITLE = 'ERP Report Data'
ERP_TEMPLATE_DIR = 'pdf_templates'


def _fail(message, status, **extra):
    body = {'success': False, 'message': message}
    body.update(extra)
    return JsonResponse(body, status=status)


def template_key_for(name):
    """Template key derived from a display name: lowercase, non-alphanumeric runs -> '_'."""
    return re.sub(r'[^a-zA-Z0-9]+', '_', name).lower()


# ---------------------------
# Connection / records
# ---------------------------

@require_GET
def status(request):
    connected = ErpService().is_configured()
    return JsonResponse({
        'connected': connected,
        'base_url': settings.ERP_BASE_URL if connected else None,
        'message': 'ERPNext credentials configured' if connected else 'ERPNext credentials not configured',
    })


@require_GET
def records(request, doctype):
    try:
        limit = int(request.GET.get('limit', 100))
        filters = json.loads(request.GET['filters']) if request.GET.get('filters') else None
    except ValueError:
        return _fail('limit must be a number and filters valid JSON', 400, records=[])
    try:
        found = ErpService().get_records(doctype, filters=filters, limit=limit)
    except Exception as e:
        logger.exception("ERP records error for %s", doctype)
        return _fail(f"Failed to fetch records from ERPNext: {e}", 500, records=[])
    return JsonResponse({'success': True, 'records': found, 'count': len(found)})


@require_GET
def record(request, doctype, name):
    try:
        found = ErpService().get_record(doctype, name)
    except Exception:
        logger.exception("ERP record error for %s/%s", doctype, name)
        return _fail('Failed to fetch record from ERPNext', 500)
    if found is None:
        return _fail('Record not found', 404)
    return JsonResponse({'success': True, 'record': found})


@csrf_exempt
@require_POST
def generate_pdfs(request):
    """Bulk-generate one PDF per ERP record into an erp_bulk_ session."""
    try:
        payload = parse_json_body(request)
    except ValueError as e:
        return _fail(str(e), 400)

    template_key = payload.get('template_key')
    doctype = payload.get('doctype')
    record_names = payload.get('record_names')
    errors = {}
    if not template_key:
        errors['template_key'] = ['This field is required.']
    if not doctype:
        errors['doctype'] = ['This field is required.']
    if not isinstance(record_names, list) or not record_names:
        errors['record_names'] = ['At least one record name is required.']
    if errors:
        return _fail('Validation failed', 422, errors=errors)

    template = PdfTemplate.objects.filter(key=template_key).first()
    if template is None:
        return _fail('Template not found', 404)
    if template.pdf_abspath() is None:
        return _fail('Template PDF file not found', 404)

    erp = ErpService()
    try:
        fetched = []
        for name in record_names:
            found = erp.get_record(doctype, name)
            if found is None:
                logger.warning("ERP record not found: %s/%s", doctype, name)
            fetched.append(found)
        result = bulk.generate_bulk(template, fetched, prefix='erp_bulk')
    except Exception as e:
        logger.exception("ERP PDF generation error for %s", template_key)
        return _fail(f"Failed to generate PDFs: {e}", 500)

    session_id = result['session_id']
    pdf_urls = [
        request.build_absolute_uri(
            reverse('pdftemplates:bulk-view', kwargs={'session_id': session_id, 'index': f['index']})
        )
        for f in result['files']
    ]
    return JsonResponse({
        'success': True,
        'session_id': session_id,
        'pdf_urls': pdf_urls,
        'total_generated': len(pdf_urls),
        'skipped': result['skipped'],
    })


# ---------------------------
# Reports
# ---------------------------

@require_GET
def doctypes(request):
    return JsonResponse({'success': True, 'doctypes': demo.DOCTYPES})


@require_GET
def reports(request):
    return JsonResponse({'success': True, 'reports': demo.REPORTS})


def _columns_for(report_name):
    """(columns, source, debug_error) for a report."""
    erp = ErpService()
    if not erp.is_configured():
        return demo.report_columns(report_name), 'demo', 'ERP not configured'

    today = timezone.localdate()
    data = erp.get_report_data(report_name, {
        'from_date': (today - timedelta(days=365)).isoformat(),
        'to_date': today.isoformat(),
    })
    columns = normalize_columns((data or {}).get('columns'))
    if columns:
        return columns, 'erpnext', None
    return demo.report_columns(report_name), 'demo', 'No columns returned by ERPNext'


@require_GET
def report_columns(request):
    report_name = request.GET.get('report', '')
    try:
        columns, source, debug_error = _columns_for(report_name)
    except Exception as e:
        logger.warning("Failed to fetch report columns for %s: %s", report_name, e)
        columns, source, debug_error = demo.report_columns(report_name), 'demo', str(e)
    body = {'success': True, 'columns': columns, 'source': source}
    if source == 'demo':
        body['debug_error'] = debug_error
    return JsonResponse(body)


@require_GET
def report_data(request):
    report_name = request.GET.get('report', '')
    filters = {
        name: request.GET[name]
        for name in ('from_date', 'to_date', 'company')
        if request.GET.get(name)
    }
    try:
        erp = ErpService()
        if erp.is_configured():
            data = erp.get_report_data(report_name, filters)
            if data:
                columns = normalize_columns(data.get('columns'))
                return JsonResponse({
                    'success': True,
                    'columns': columns,
                    'data': normalize_rows(data.get('result'), columns),
                    'source': 'erpnext',
                })

        logger.info("Using demo data for report %s", report_name)
        return JsonResponse({
            'success': True,
            'columns': demo.report_columns(report_name),
            'data': [dict(r) for r in demo.ROWS],
            'source': 'demo',
        })
    except Exception as e:
        logger.exception("Report data error for %s", report_name)
        return _fail(f"Failed to fetch report data: {e}", 500)


@require_GET
def companies(request):
    try:
        erp = ErpService()
        if erp.is_configured():
            found = erp.get_companies()
            if found:
                return JsonResponse({
                    'success': True,
                    'companies': [
                        {'name': c.get('name', ''), 'company_name': c.get('company_name') or c.get('name', '')}
                        for c in found
                    ],
                    'source': 'erpnext',
                })
    except Exception:
        logger.exception("Fetching ERP companies failed")
        return JsonResponse({'success': True, 'companies': demo.COMPANIES[:1], 'source': 'demo'})
    return JsonResponse({'success': True, 'companies': demo.COMPANIES, 'source': 'demo'})


# ---------------------------
# Report templates
# ---------------------------

def _template_summary(template):
    return {
        'id': str(template.id),
        'key': template.key,
        'name': template.name or template.key,
        'report': template.doctype or template.source_table or 'General',
        'fields': template.fields,
        'createdAt': (template.created_at or timezone.now()).isoformat(),
    }


def _canvas_fields(fields, scale):
    """Field map in mm from editor fields placed on a pdf.js canvas rendered at `scale`."""
    config = {}
    for field in fields:
        if not isinstance(field, dict) or not field.get('fieldname'):
            continue
        name = field['fieldname']
        width = float(field.get('width') or 0)
        config[name] = {
            'x': units.editor_px_to_mm(field.get('x') or 0, scale),
            'y': units.editor_px_to_mm(field.get('y') or 0, scale),
            'width': units.editor_px_to_mm(width, scale) if width > 0 else 0,
            'wrap_text': bool(field.get('wrapText', False)),
            'align': field.get('align') or 'left',
            'page': int(field.get('page') or 1),
            'font': 'Helvetica',
            'size': float(field.get('size') or 12),
            'label': field.get('label') or name,
        }
    return config


@csrf_exempt
@require_http_methods(["GET", "POST"])
def templates(request):
    if request.method == 'GET':
        query = PdfTemplate.objects.filter(Q(doctype__isnull=False) | Q(source_table__isnull=False))
        report = request.GET.get('report')
        if report:
            query = query.filter(Q(doctype=report) | Q(source_table=report))
        return JsonResponse({'success': True, 'templates': [_template_summary(t) for t in query]})

    try:
        name = (request.POST.get('name') or '').strip()
        if not name:
            return JsonResponse({'success': False, 'error': 'name is required'}, status=400)
        try:
            fields = json.loads(request.POST.get('fields') or '[]')
            scale = float(request.POST.get('scale') or 1.5)
        except ValueError:
            return JsonResponse({'success': False, 'error': 'fields must be JSON and scale a number'}, status=400)
        if not isinstance(fields, list):
            return JsonResponse({'success': False, 'error': 'fields must be a JSON array'}, status=400)

        key = template_key_for(name)
        template, _ = PdfTemplate.objects.get_or_create(key=key)
        template.name = name
        template.doctype = request.POST.get('report') or None
        template.data_source_type = PdfTemplate.SOURCE_ERP
        template.fields_config = _canvas_fields(fields, scale)

        upload = request.FILES.get('pdf')
        if upload is not None:
            path = f"{ERP_TEMPLATE_DIR}/{key}.pdf"
            if default_storage.exists(path):
                default_storage.delete(path)
            template.file_path = default_storage.save(path, upload)
        template.save()
    except Exception as e:
        logger.exception("Save ERP template error")
        return JsonResponse({'success': False, 'error': f"Failed to save template: {e}"}, status=500)

    return JsonResponse({'success': True, 'template': template.to_dict(), 'message': 'Template saved successfully'})


def _find_template(template_id):
    if template_id in (None, ''):
        return None
    template = None
    if str(template_id).isdigit():
        template = PdfTemplate.objects.filter(pk=int(template_id)).first()
    return template or PdfTemplate.objects.filter(key=str(template_id)).first()


@csrf_exempt
@require_POST
def generate_pdf(request):
    """
    One PDF from the first report row. Falls back to a plain key/value
    document when the template or its PDF is missing or unreadable.
    """
    try:
        payload = parse_json_body(request)
    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)

    rows = payload.get('data') or []
    if not isinstance(rows, list) or not rows:
        return JsonResponse({'error': 'No data provided'}, status=400)
    row = rows[0] if isinstance(rows[0], dict) else {}
    preview = bool(payload.get('preview', False))
    disposition = 'inline' if preview else 'attachment'
    stamp = timezone.localtime().strftime('%Y%m%d_%H%M%S')

    template = _find_template(payload.get('templateId'))
    try:
        if template is None:
            raise PdfProcessingError('No template found')
        values = {name: resolve_value(name, config, row) for name, config in template.fields.items()}
        pdf, used_fallback = render_with_fallback(template, values, title=FALLBACK_TITLE, fallback_data=row)
    except Exception as e:
        logger.warning("Generating ERP PDF with the template failed, using the simple layout: %s", e)
        pdf, used_fallback = simple_pdf(FALLBACK_TITLE, row), True

    filename = f"report_{stamp}.pdf" if used_fallback else f"document_{stamp}.pdf"
    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'{disposition}; filename="{filename}"'
    return response
