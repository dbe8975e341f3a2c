# pdftemplates/services/repair.py
import logging
import os
import shutil
import subprocess
import tempfile

from django.conf import settings

logger = logging.getLogger(__name__)


def _ghostscript_args(executable, input_path, output_path):
    return [
        executable,
        '-sDEVICE=pdfwrite',
        '-dCompatibilityLevel=1.4',
        '-dNOPAUSE',
        '-dQUIET',
        '-dBATCH',
        f'-sOutputFile={output_path}',
        str(input_path),
    ]


def recompress_pdf(input_path, output_path=None):
    """
    Rewrite a PDF as version 1.4 with Ghostscript.

    Tries each executable in settings.GHOSTSCRIPT_COMMANDS. Returns the output
    path on success, or None when no Ghostscript is installed or every attempt
    failed (the partial output is removed in that case).
    """
    if output_path is None:
        fd, output_path = tempfile.mkstemp(prefix='recompressed_', suffix='.pdf')
        os.close(fd)

    for command in settings.GHOSTSCRIPT_COMMANDS:
        executable = shutil.which(command)
        if not executable:
            continue
        try:
            result = subprocess.run(
                _ghostscript_args(executable, input_path, output_path),
                capture_output=True,
                timeout=settings.GHOSTSCRIPT_TIMEOUT,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Ghostscript %s failed to run on %s: %s", command, input_path, e)
            continue

        if result.returncode == 0 and os.path.exists(output_path) and os.path.getsize(output_path) > 0:
            logger.info("PDF %s recompressed with %s", input_path, command)
            return output_path

        logger.warning(
            "Ghostscript %s returned %s for %s: %s",
            command, result.returncode, input_path,
            (result.stderr or result.stdout or b'').decode('utf-8', 'replace').strip(),
        )

    logger.info("Ghostscript not available for PDF recompression of %s", input_path)
    if os.path.exists(output_path):
        os.remove(output_path)
    return None


def normalize_in_place(path):
    """
    Replace `path` with its Ghostscript-recompressed copy.
    The original file is kept when recompression is not possible.
    """
    temp_path = f"{path}_temp.pdf"
    if recompress_pdf(path, temp_path):
        os.replace(temp_path, path)
        return True
    return False
