# submissions/views.py
import logging

from django.conf import settings
from django.db.models import Q
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from dbmanager import services as tables
from pdftemplates.models import PdfTemplate
from pdftemplates.services.fallback import render_with_fallback
from pdftemplates.services.overlay import resolve_value
from utils.http import form_errors, json_error, parse_json_body, with_cors

from .forms import SubmissionForm
from .models import Submission

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def submission_list(request):
    if request.method == 'GET':
        return JsonResponse([s.to_dict() for s in Submission.objects.all()], safe=False)

    try:
        payload = parse_json_body(request)
    except ValueError as e:
        return json_error(str(e), status=400)
    form = SubmissionForm(payload)
    if not form.is_valid():
        return form_errors(form)
    submission = form.save()
    logger.info("Submission #%s created", submission.pk)
    return JsonResponse(submission.to_dict(), status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
def submission_detail(request, pk):
    submission = get_object_or_404(Submission, pk=pk)

    if request.method == 'GET':
        return JsonResponse(submission.to_dict())

    if request.method == 'DELETE':
        submission.delete()
        return HttpResponse(status=204)

    try:
        payload = parse_json_body(request)
    except ValueError as e:
        return json_error(str(e), status=400)
    data = submission.to_dict()
    data.update(payload)
    form = SubmissionForm(data, instance=submission)
    if not form.is_valid():
        return form_errors(form)
    form.save()
    return JsonResponse(submission.to_dict())


def _record_for(template, record_id):
    """Flat record for the template's source table, or the submissions table."""
    if template.source_table:
        return tables.fetch_row(template.source_table, record_id)
    submission = Submission.objects.filter(pk=record_id).first()
    return submission.to_dict() if submission else None


@csrf_exempt
@require_http_methods(["GET", "HEAD", "OPTIONS"])
def generate_submission_pdf(request, record_id, template_key=None):
    """
    Fill a template with one record. The template is looked up by key or name;
    the record comes from the template's source table, or from submissions
    when it has none.
    """
    if request.method == 'OPTIONS':
        return with_cors(HttpResponse(status=204))

    template_key = template_key or settings.DEFAULT_SUBMISSION_TEMPLATE
    template = PdfTemplate.objects.filter(Q(key=template_key) | Q(name=template_key)).first()
    if template is None:
        return with_cors(json_error(f"PDF Template '{template_key}' not found", status=404))
    if template.pdf_abspath() is None:
        return with_cors(json_error(f"PDF template file is missing for template '{template_key}'", status=404))

    try:
        record = _record_for(template, record_id)
    except tables.TableNotFound:
        return with_cors(json_error(f"Source table '{template.source_table}' not found", status=404))
    if record is None:
        where = f" in table '{template.source_table}'" if template.source_table else ''
        return with_cors(json_error(f"Record #{record_id} not found{where}", status=404))

    try:
        values = {name: resolve_value(name, config, record) for name, config in template.fields.items()}
        pdf, _ = render_with_fallback(template, values, title=f"Record #{record_id}", fallback_data=record)
    except Exception as e:
        logger.exception("Generating PDF for record %s with template %s failed", record_id, template.key)
        return with_cors(json_error(f"Error generating PDF: {e}", status=500))

    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'inline; filename="generated_{record_id}.pdf"'
    return with_cors(response)
