import html
import math
from typing import Any, Optional

import bleach


def strip_html(value: Optional[str]) -> str:
    """Remove HTML markup from user-supplied text before it is stored.

    Tags are dropped with bleach and the entities bleach leaves behind are
    decoded again, so ``"x < 3"`` and ``"Tom & Jerry"`` survive unchanged.
    Queries bind every value as a parameter, so punctuation is kept as typed.
    """
    if value is None:
        return ""
    val = value.replace("\x00", "")
    val = bleach.clean(val, tags=set(), strip=True)
    return html.unescape(val).strip()


def paginate(page: int, limit: int, total: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {units[i]}"


def envelope(data: Any = None, message: Optional[str] = None, pagination: Optional[dict] = None) -> dict:
    """Build the ``{success, data, message, pagination}`` body of a successful response."""
    body: dict = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination
    return body
