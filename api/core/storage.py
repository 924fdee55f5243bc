"""
Google Cloud Storage helpers.

- public URLs for files uploaded with `publicFiles` enabled
- V4 signed read URLs for private files
- splitting a stored URL back into bucket / folder path / filename
- the upload provider's file-name hook
"""

from __future__ import annotations

import base64
import json
import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from urllib.parse import urlsplit

from google.cloud import storage
from google.oauth2 import service_account
from slugify import slugify

from . import config

PUBLIC_HOST = "https://storage.googleapis.com"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileInfo:
    bucket: str | None
    folder_path: str | None
    filename: str | None


def _object_path(filename: str, folder_path: str | None) -> str:
    return f"{folder_path}/{filename}" if folder_path else filename


@lru_cache(maxsize=1)
def _client() -> storage.Client:
    settings = config.upload_settings()
    credentials = None
    if settings.service_account_b64:
        info = json.loads(base64.b64decode(settings.service_account_b64).decode("utf-8"))
        credentials = service_account.Credentials.from_service_account_info(info)
    return storage.Client(project=settings.project_id, credentials=credentials)


def reset_client() -> None:
    _client.cache_clear()


def public_url(filename: str, folder_path: str | None = None, bucket_name: str | None = None) -> str:
    bucket_name = bucket_name or config.upload_settings().bucket_name
    return f"{PUBLIC_HOST}/{bucket_name}/{_object_path(filename, folder_path)}"


def signed_url(filename: str, folder_path: str | None = None, bucket_name: str | None = None) -> str:
    """
    Return a short-lived V4 signed read URL, or "" when signing fails.

    Callers render an empty URL as a broken thumbnail rather than failing
    the whole listing.
    """
    bucket_name = bucket_name or config.upload_settings().bucket_name
    try:
        blob = _client().bucket(bucket_name).blob(_object_path(filename, folder_path))
        return blob.generate_signed_url(
            version="v4",
            method="GET",
            expiration=timedelta(minutes=config.signed_url_ttl_minutes()),
        )
    except Exception:
        logger.warning(
            "signed_url_failed bucket=%s folder=%s filename=%s",
            bucket_name,
            folder_path,
            filename,
            exc_info=True,
        )
        return ""


def file_info_from_url(url: str | None) -> FileInfo:
    """
    Split `https://host/<bucket>/<folder...>/<filename>` into its parts.

    A URL with a single path segment has no bucket; only the filename is set.
    """
    if not url:
        return FileInfo(bucket=None, folder_path=None, filename=None)

    segments = [s for s in urlsplit(url).path.split("/") if s]
    if not segments:
        return FileInfo(bucket=None, folder_path=None, filename=None)

    filename = segments[-1]
    if len(segments) == 1:
        return FileInfo(bucket=None, folder_path="", filename=filename)
    return FileInfo(
        bucket=segments[0],
        folder_path="/".join(segments[1:-1]),
        filename=filename,
    )


def generate_upload_file_name(filepath: str, file_hash: str, ext: str) -> str:
    """
    Object name for an upload: `<parent dir id>/<dir id>/<slug(hash)><ext>`.

    `filepath` is the media-library folder path of the upload, where the
    parent and leaf folder ids sit at segments 4 and 6.
    """
    dirs = (filepath or "").split("/")
    if len(dirs) < 7:
        raise ValueError(f"Upload folder path is too short: {filepath!r}")
    parent_dir_id = dirs[4]
    dir_id = dirs[6]
    file_name = slugify(os.path.basename(file_hash or ""))
    return f"{parent_dir_id}/{dir_id}/{file_name}{(ext or '').lower()}"
