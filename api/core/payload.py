"""
Request-body helpers shared by the content services.

The admin UI posts the whole form on every save. Empty strings mean
"unchanged", so updates only touch fields that carry a value.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

NO_DATA = "No data provided."
CREATE_FAILED = "Failed to create data."
UPDATE_FAILED = "Failed to update data."
DELETE_FAILED = "Failed to delete data."


def require_body(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict) or not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=NO_DATA)
    return data


def present(data: dict[str, Any], key: str) -> Any:
    """
    Return data[key] when it is set and truthy, else None.
    """
    value = data.get(key)
    if isinstance(value, str) and not value.strip():
        return None
    return value or None


def bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
