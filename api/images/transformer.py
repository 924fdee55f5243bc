"""
Mapping between image rows in the store and the admin's media objects.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from core import storage

if TYPE_CHECKING:
    from .reconciler import ImageReference

UPLOAD_PROVIDER = "@strapi-community/strapi-provider-upload-google-cloud-storage"
UNSET_MEDIA_ID = -1


class ImageTransformError(ValueError):
    """
    An image reference cannot be turned into a storable record.
    """


@dataclass(frozen=True)
class ImageRecord:
    """
    Column values for a new row in `images`.
    """

    strapi_id: int | None
    url: str
    bucket: str | None
    folder_path: str | None
    filename: str
    size: float
    width: int
    height: int
    mime: str
    ext: str
    alt: str | None
    caption: str | None
    is_public: bool = True


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _require_number(value: Any, field: str) -> float:
    if value is None or isinstance(value, bool):
        raise ImageTransformError(f"missing {field}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ImageTransformError(f"{field} is not a number: {value!r}") from exc
    if not math.isfinite(number):
        raise ImageTransformError(f"{field} is not finite: {value!r}")
    if number < 0:
        raise ImageTransformError(f"{field} is negative: {value!r}")
    return number


def _legacy_media_id(image_id: str | None) -> int | None:
    if image_id is None or not image_id.isdigit():
        return None
    return int(image_id)


def from_admin(ref: ImageReference) -> ImageRecord:
    """
    Build the store record for an inline media object.

    Raises ImageTransformError when a required field is missing or invalid.
    """
    url = (ref.url or "").strip()
    if not url:
        raise ImageTransformError("missing url")

    info = storage.file_info_from_url(url)
    if not info.filename:
        raise ImageTransformError(f"url has no file name: {url!r}")

    mime = _blank_to_none(ref.mime)
    if mime is None:
        raise ImageTransformError("missing mime")
    ext = _blank_to_none(ref.ext)
    if ext is None:
        raise ImageTransformError("missing ext")

    return ImageRecord(
        strapi_id=_legacy_media_id(ref.id),
        url=url,
        bucket=info.bucket,
        folder_path=info.folder_path,
        filename=info.filename,
        size=_require_number(ref.size, "size"),
        width=int(_require_number(ref.width, "width")),
        height=int(_require_number(ref.height, "height")),
        mime=mime,
        ext=ext,
        alt=_blank_to_none(ref.alternative_text),
        caption=_blank_to_none(ref.caption),
    )


def to_admin(row: dict[str, Any]) -> dict[str, Any]:
    """
    Render an `images` row as the admin media object.

    Private files get a short-lived signed URL instead of the stored one.
    """
    if row.get("is_public", True):
        url = row.get("url") or ""
    else:
        url = storage.signed_url(row["filename"], row.get("folder_path"), row.get("bucket"))

    strapi_id = row.get("strapi_id")
    return {
        "id": int(strapi_id) if strapi_id is not None else UNSET_MEDIA_ID,
        "name": row.get("filename"),
        "size": row.get("size"),
        "width": row.get("width"),
        "height": row.get("height"),
        "mime": row.get("mime"),
        "ext": row.get("ext"),
        "alternativeText": row.get("alt"),
        "caption": row.get("caption"),
        "url": url,
        "provider": UPLOAD_PROVIDER,
        "createdAt": row.get("created_at"),
    }
