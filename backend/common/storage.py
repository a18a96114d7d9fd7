"""
Thin wrapper over Django's default storage.

Records keep storage references (file names); URLs are resolved on demand.
"""

import logging
from typing import Optional

from django.core.files.storage import default_storage

from .exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)


def get_url(ref, request=None) -> Optional[str]:
    """Resolve a storage reference (name or FieldFile) to a URL, or None."""
    if not ref:
        return None
    name = getattr(ref, "name", ref)
    if not name:
        return None
    try:
        url = default_storage.url(name)
    except OSError as e:
        raise UpstreamUnavailableError(f"Storage unavailable: {e}")
    if request is not None:
        return request.build_absolute_uri(url)
    return url


def save_upload(uploaded_file, folder: str = "uploads") -> str:
    """Persist an uploaded file and return its storage reference."""
    try:
        ref = default_storage.save(f"{folder}/{uploaded_file.name}", uploaded_file)
    except OSError as e:
        logger.exception("Failed to store upload %s", uploaded_file.name)
        raise UpstreamUnavailableError(f"Storage unavailable: {e}")
    return ref
