"""
Image relation reconciliation.

The admin UI always resends the complete list of images for an entity. This
module turns that list plus the currently attached images into a plan of
create / connect / disconnect operations:

- references are deduplicated by identity (URL first, then id; last wins)
- referenced ids are checked against the store; stale ids are dropped
- URL-only references reuse an existing store row when one has that URL,
  otherwise they become new records
- everything currently attached is disconnected; the plan's connect list
  describes the full desired state

The reconciler only reads through an `ImageStore`. Applying the plan is the
caller's job and must happen in a single transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Protocol, Sequence

from .transformer import ImageRecord, ImageTransformError, from_admin

logger = logging.getLogger(__name__)


def normalize_image_id(raw: Any) -> str | None:
    """
    Normalize a payload id to a string, or None when it is unset.

    `-1` (and any other non-positive number), empty strings, null and
    booleans all mean "no id".
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if isinstance(raw, (int, float)):
        return str(raw) if raw > 0 else None

    text = str(raw).strip()
    if not text:
        return None
    try:
        if int(text) <= 0:
            return None
    except ValueError:
        pass
    return text


@dataclass(frozen=True)
class ImageReference:
    """
    One client-submitted image: inline (has a URL) or by id.
    """

    id: str | None = None
    url: str | None = None
    name: str | None = None
    size: Any = None
    width: Any = None
    height: Any = None
    mime: str | None = None
    ext: str | None = None
    alternative_text: str | None = None
    caption: str | None = None

    @classmethod
    def from_payload(cls, item: Any) -> ImageReference:
        if not isinstance(item, dict):
            return cls(id=normalize_image_id(item))
        url = item.get("url")
        return cls(
            id=normalize_image_id(item.get("id")),
            url=url.strip() if isinstance(url, str) and url.strip() else None,
            name=item.get("name"),
            size=item.get("size"),
            width=item.get("width"),
            height=item.get("height"),
            mime=item.get("mime"),
            ext=item.get("ext"),
            alternative_text=item.get("alternativeText"),
            caption=item.get("caption"),
        )

    @property
    def key(self) -> str | None:
        if self.url:
            return f"url:{self.url}"
        if self.id is not None:
            return f"id:{self.id}"
        return None


@dataclass(frozen=True)
class ExistingImage:
    id: str
    url: str | None = None


@dataclass(frozen=True)
class ImageFailure:
    reference: ImageReference
    reason: str


@dataclass
class ReconciliationPlan:
    to_disconnect: list[str] = field(default_factory=list)
    to_connect: list[str] = field(default_factory=list)
    to_create: list[ImageRecord] = field(default_factory=list)
    failures: list[ImageFailure] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_disconnect or self.to_connect or self.to_create)


class ImageStore(Protocol):
    async def existing_ids(self, ids: Sequence[str]) -> Mapping[str, str]:
        """
        Map each candidate id that exists in the store to its store id.
        """

    async def ids_by_url(self, urls: Sequence[str]) -> Mapping[str, str]:
        """
        Map each URL that exists in the store to its store id.
        """


def parse_image_payload(value: Any) -> list[ImageReference]:
    """
    Accept either a list of media objects or a relation object with `connect`.
    """
    if isinstance(value, list):
        items = value
    elif isinstance(value, dict):
        items = value.get("connect") or []
        if not isinstance(items, list):
            items = []
    else:
        items = []
    return [ImageReference.from_payload(item) for item in items if item is not None]


def _unique(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def deduplicate(submitted: Sequence[ImageReference]) -> tuple[list[ImageReference], list[ImageFailure]]:
    by_key: dict[str, ImageReference] = {}
    failures: list[ImageFailure] = []
    for ref in submitted:
        key = ref.key
        if key is None:
            failures.append(ImageFailure(reference=ref, reason="missing url and id"))
            continue
        by_key[key] = ref
    return list(by_key.values()), failures


async def reconcile(
    submitted: Sequence[ImageReference],
    existing: Sequence[ExistingImage],
    store: ImageStore,
) -> ReconciliationPlan:
    unique_refs, failures = deduplicate(submitted)

    identified = [ref for ref in unique_refs if ref.id is not None]
    unidentified = [ref for ref in unique_refs if ref.id is None]

    candidate_ids = _unique(ref.id for ref in identified)
    found_ids = await store.existing_ids(candidate_ids) if candidate_ids else {}
    connect = [found_ids[i] for i in candidate_ids if i in found_ids]

    urls = _unique(ref.url for ref in unidentified)
    found_urls = await store.ids_by_url(urls) if urls else {}

    to_create: list[ImageRecord] = []
    for ref in unidentified:
        store_id = found_urls.get(ref.url)
        if store_id is not None:
            connect.append(store_id)
            continue
        try:
            to_create.append(from_admin(ref))
        except ImageTransformError as exc:
            failures.append(ImageFailure(reference=ref, reason=str(exc)))

    plan = ReconciliationPlan(
        to_disconnect=_unique(image.id for image in existing),
        to_connect=_unique(connect),
        to_create=to_create,
        failures=failures,
    )
    logger.debug(
        "image_plan disconnect=%s connect=%s create=%s failures=%s",
        plan.to_disconnect,
        plan.to_connect,
        len(plan.to_create),
        len(plan.failures),
    )
    return plan
