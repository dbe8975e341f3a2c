# pdftemplates/services/bulk.py
"""
Bulk generation: one PDF per record, stored in a session directory under
MEDIA_ROOT/<BULK_SESSION_DIR>/<session_id>/record_<n>.pdf.
"""
import io
import logging
import re
import shutil
import time
import zipfile
from pathlib import Path

from django.conf import settings
from django.utils import timezone

from utils.formatting import safe_filename
from utils.storage import media_root

from .overlay import PdfProcessingError, load_template_bytes, render_record

logger = logging.getLogger(__name__)

SESSION_ID_RE = re.compile(r'^[A-Za-z0-9_.-]+$')
SESSION_TEMPLATE_RE = re.compile(r'^(?:erp_)?bulk_(.+)_\d+$')
RECORD_FILE_RE = re.compile(r'^record_(\d+)\.pdf$')


class BulkSessionError(Exception):
    pass


class InvalidSession(BulkSessionError):
    pass


class SessionNotFound(BulkSessionError):
    pass


def sessions_root():
    return media_root() / settings.BULK_SESSION_DIR


def new_session_id(template_key, prefix='bulk'):
    return f"{prefix}_{safe_filename(template_key)}_{timezone.now().strftime('%Y%m%d%H%M%S%f')}"


def session_dir(session_id):
    """Directory of a session. Raises InvalidSession for an unsafe id."""
    if not session_id or not SESSION_ID_RE.match(session_id) or session_id in ('.', '..'):
        raise InvalidSession(f"Invalid session id: {session_id}")
    return sessions_root() / session_id


def record_path(session_id, index):
    return session_dir(session_id) / f"record_{int(index)}.pdf"


def relative_media_path(path):
    return Path(path).relative_to(media_root()).as_posix()


def template_key_for_session(session_id):
    match = SESSION_TEMPLATE_RE.match(session_id or '')
    return match.group(1) if match else None


def template_for_session(session_id):
    from pdftemplates.models import PdfTemplate

    key = template_key_for_session(session_id)
    if not key:
        return None
    return PdfTemplate.objects.filter(key=key).first()


def download_name(session_id, index):
    """`<safe template name>_no.<n>.pdf` when the template has a name, else record_<n>.pdf."""
    template = template_for_session(session_id)
    if template and template.name:
        return f"{safe_filename(template.name)}_no.{int(index)}.pdf"
    return f"record_{int(index)}.pdf"


def generate_bulk(template, records, rows=None, prefix='bulk'):
    """
    Render `template` once per record.

    `records` is a sequence of flat dicts (None marks a record that could not
    be fetched), `rows` the matching positional rows for spreadsheet data.
    Output file numbers follow the 1-based position in `records`; records that
    are missing or fail to render are logged and skipped.

    Raises PdfProcessingError when the template PDF itself is unusable.
    """
    path = template.pdf_abspath()
    if path is None:
        raise PdfProcessingError(f"PDF template file not found for {template.key}")
    template_data = load_template_bytes(path)

    session_id = new_session_id(template.key, prefix)
    directory = session_dir(session_id)
    directory.mkdir(parents=True, exist_ok=True)

    files = []
    skipped = []
    for index, record in enumerate(records, start=1):
        if record is None:
            logger.warning("Bulk %s: record %s missing, skipped", session_id, index)
            skipped.append(index)
            continue
        row = rows[index - 1] if rows is not None else None
        try:
            pdf = render_record(template, template_data, record, row=row, record_index=index)
        except Exception:
            logger.exception("Bulk %s: record %s failed", session_id, index)
            skipped.append(index)
            continue
        target = directory / f"record_{index}.pdf"
        target.write_bytes(pdf)
        files.append({'index': index, 'path': relative_media_path(target)})
        logger.debug("Bulk %s: generated record %s", session_id, index)

    logger.info("Bulk %s: %s generated, %s skipped", session_id, len(files), len(skipped))
    return {
        'session_id': session_id,
        'files': files,
        'total_records': len(files),
        'skipped': skipped,
    }


def session_files(session_id):
    """(index, path) of the generated files of a session, in record order."""
    directory = session_dir(session_id)
    if not directory.is_dir():
        raise SessionNotFound(f"Session not found: {session_id}")
    found = []
    for path in directory.iterdir():
        match = RECORD_FILE_RE.match(path.name)
        if match and path.is_file():
            found.append((int(match.group(1)), path))
    return sorted(found)


def build_zip(session_id):
    """Zip every record of a session in memory; entries use the download names."""
    files = session_files(session_id)
    template = template_for_session(session_id)
    base = safe_filename(template.name) if template and template.name else None

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as archive:
        for index, path in files:
            entry = f"{base}_no.{index}.pdf" if base else path.name
            archive.write(path, entry)
    return buffer.getvalue(), len(files)


def purge_sessions(older_than_hours=24, now=None):
    """Remove session directories last modified more than `older_than_hours` ago."""
    root = sessions_root()
    if not root.is_dir():
        return []
    cutoff = (now or time.time()) - older_than_hours * 3600
    removed = []
    for directory in root.iterdir():
        if directory.is_dir() and directory.stat().st_mtime < cutoff:
            shutil.rmtree(directory)
            removed.append(directory.name)
    return removed
