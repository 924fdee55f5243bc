"""
Helpers for the admin's relation payloads.

A relation field arrives as `{"connect": [{"id": ...}], "disconnect": [...]}`.
Ids may be strings or numbers; they are normalized to strings.
"""

from __future__ import annotations

from typing import Any


def _item_id(item: Any) -> str | None:
    if isinstance(item, dict):
        item = item.get("id")
    if item is None or isinstance(item, bool):
        return None
    text = str(item).strip()
    return text or None


def _ids(value: Any, key: str) -> list[str]:
    if not isinstance(value, dict):
        return []
    items = value.get(key)
    if not isinstance(items, list):
        return []
    ids = []
    for item in items:
        item_id = _item_id(item)
        if item_id is not None and item_id not in ids:
            ids.append(item_id)
    return ids


def connect_ids(value: Any) -> list[str]:
    return _ids(value, "connect")


def disconnect_ids(value: Any) -> list[str]:
    return _ids(value, "disconnect")


def first_connect_id(value: Any) -> str | None:
    ids = connect_ids(value)
    return ids[0] if ids else None
