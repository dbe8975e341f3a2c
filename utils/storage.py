from pathlib import Path

from django.conf import settings


def media_root():
    return Path(settings.MEDIA_ROOT).resolve()


def resolve_media_path(relative_path):
    """
    Absolute path of a file stored under MEDIA_ROOT.
    Raises ValueError when the path escapes MEDIA_ROOT.
    """
    root = media_root()
    path = (root / str(relative_path).lstrip('/\\')).resolve()
    if path != root and root not in path.parents:
        raise ValueError(f"Path outside media root: {relative_path}")
    return path
