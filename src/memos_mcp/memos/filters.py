"""Memo list filter expressions and identifier normalization."""
from memos_mcp.memos.models import SearchRequest, Visibility

MEMO_NAME_PREFIX = "memos/"
USER_NAME_PREFIX = "users/"


def escape_filter_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def normalize_visibility(value: str) -> str:
    """Canonical upper-case visibility name.

    Raises:
        ValueError: value is empty or not a known visibility
    """
    clean = value.strip().upper()
    if not clean:
        raise ValueError("visibility cannot be empty")

    if clean in (Visibility.PUBLIC.value, Visibility.PROTECTED.value, Visibility.PRIVATE.value):
        return clean
    if clean in ("UNSPECIFIED", Visibility.UNSPECIFIED.value):
        return Visibility.UNSPECIFIED.value
    raise ValueError(f"invalid visibility: {value}")


def build_memo_filter(req: SearchRequest) -> str:
    """Build the CEL-style filter for GET /api/v1/memos."""
    filters = []
    if req.creator_id is not None:
        filters.append(f"creator_id == {int(req.creator_id)}")
    if req.query:
        filters.append(f'content.contains("{escape_filter_value(req.query)}")')
    if req.tag:
        filters.append(f'tag in ["{escape_filter_value(req.tag)}"]')
    if req.visibility:
        filters.append(f'visibility == "{normalize_visibility(req.visibility)}"')
    if req.pinned is not None:
        filters.append(f"pinned == {'true' if req.pinned else 'false'}")
    return " && ".join(filters)


def extract_uid(value: str) -> str:
    """'memos/abc' -> 'abc'; bare uids pass through."""
    value = value.strip()
    if value.startswith(MEMO_NAME_PREFIX):
        return value[len(MEMO_NAME_PREFIX):]
    return value


def extract_user_id(value: str) -> str:
    value = value.strip()
    if value.startswith(USER_NAME_PREFIX):
        return value[len(USER_NAME_PREFIX):]
    return value


def memo_name(value: str) -> str:
    """Resource name form of a memo identifier."""
    value = value.strip()
    if value.startswith(MEMO_NAME_PREFIX):
        return value
    return f"{MEMO_NAME_PREFIX}{value}"
