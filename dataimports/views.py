# dataimports/views.py
import logging
import os

from django.conf import settings
from django.core.files.storage import default_storage
from django.db import transaction
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from pdftemplates.models import PdfTemplate
from utils.formatting import safe_filename
from utils.http import form_errors, json_error

from .forms import DataImportForm
from .models import DataImport
from .services.reader import read_sheet

logger = logging.getLogger(__name__)


def _delete_import(data_import):
    if data_import.file_path and default_storage.exists(data_import.file_path):
        default_storage.delete(data_import.file_path)
    data_import.delete()


@csrf_exempt
@require_http_methods(["GET", "POST", "DELETE"])
def template_import(request, template_id):
    template = get_object_or_404(PdfTemplate, pk=template_id)
    current = DataImport.objects.filter(template=template).first()

    if request.method == 'GET':
        if current is None:
            return JsonResponse({'data': []})
        try:
            _, rows = read_sheet(default_storage.path(current.file_path))
        except Exception as e:
            logger.exception("Reading import %s failed", current.file_path)
            return json_error(f"Could not read import file: {e}", status=500)
        return JsonResponse({'columns': current.columns, 'data': rows, 'total_rows': current.total_rows})

    if request.method == 'DELETE':
        if current is not None:
            _delete_import(current)
            logger.info("Import removed from template %s", template.key)
        return JsonResponse({'success': True})

    form = DataImportForm(request.POST, request.FILES)
    if not form.is_valid():
        return form_errors(form)

    upload = form.cleaned_data['file']
    try:
        columns, rows = read_sheet(upload, filename=upload.name)
    except Exception as e:
        logger.exception("Could not parse uploaded import %s", upload.name)
        return json_error(f"Could not read file: {e}", status=400)

    base, extension = os.path.splitext(upload.name)
    filename = f"{int(timezone.now().timestamp())}_{safe_filename(base)}{extension.lower()}"
    upload.seek(0)
    path = default_storage.save(f"{settings.DATA_IMPORT_DIR}/{filename}", upload)

    with transaction.atomic():
        if current is not None:
            _delete_import(current)
        data_import = DataImport.objects.create(
            template=template,
            filename=filename,
            file_path=path,
            columns=columns,
            total_rows=len(rows),
        )
    logger.info("Import %s attached to template %s (%s rows)", filename, template.key, len(rows))
    return JsonResponse({
        'success': True,
        'import': data_import.to_dict(),
        'message': f"File uploaded successfully. {len(rows)} records found.",
    })
