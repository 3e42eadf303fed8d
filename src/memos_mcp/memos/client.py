"""Async client for the Memos v1 REST API."""
import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlparse

import aiohttp

from memos_mcp.errors import MemosApiError
from memos_mcp.logging import get_logger
from memos_mcp.memos.filters import (
    build_memo_filter,
    extract_user_id,
    memo_name,
    normalize_visibility,
)
from memos_mcp.memos.models import (
    CreateMemoRequest,
    Memo,
    MemoRelationInput,
    SearchRequest,
    SearchResponse,
    UpdateMemoRequest,
)

logger = get_logger(__name__)

API_PREFIX = "/api/v1"
DEFAULT_PAGE_SIZE = 10
STATE_UNSPECIFIED = "STATE_UNSPECIFIED"


def _path_segment(value: str) -> str:
    return quote(value, safe="")


def _require_uid(uid: str) -> str:
    if not uid or not uid.strip():
        raise ValueError("memo uid is required")
    return uid


def _relations_payload(relations: List[MemoRelationInput]) -> List[Dict[str, str]]:
    return [
        {"relatedMemo": memo_name(r.related_memo), "type": getattr(r.type, "value", r.type)}
        for r in relations
    ]


class MemosClient:
    """Thin wrapper over the Memos REST API.

    A session is opened per request; a single MCP tool call issues at most
    one request.
    """

    def __init__(self, base_url: str, access_token: str = "", timeout: float = 30.0):
        trimmed = (base_url or "").strip()
        if not trimmed:
            raise ValueError("base URL is required")
        parsed = urlparse(trimmed)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"invalid base URL: {trimmed}")

        self.base_url = trimmed.rstrip("/")
        self.access_token = access_token or ""
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    def _headers(self, has_body: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        if self.access_token.strip():
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{API_PREFIX}{path}"
        logger.debug("memos_request", method=method, path=path)

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(
                    method,
                    url,
                    params=params,
                    json=body,
                    headers=self._headers(body is not None),
                ) as response:
                    text = await response.text()
                    if not 200 <= response.status < 300:
                        message = text.strip() or (
                            f"memos API error: {response.status} {response.reason or ''}".strip()
                        )
                        logger.debug(
                            "memos_request_failed",
                            method=method,
                            path=path,
                            status=response.status,
                        )
                        raise MemosApiError(response.status, message)

                    if method == "DELETE" or not text.strip():
                        return None
                    return await _decode_json(response, text)
        except asyncio.TimeoutError as e:
            raise TimeoutError(f"request to {path} timed out") from e

    async def search_memos(self, req: SearchRequest) -> SearchResponse:
        limit = req.limit if req.limit and req.limit > 0 else DEFAULT_PAGE_SIZE
        params = {"pageSize": str(limit)}

        memo_filter = build_memo_filter(req)
        if memo_filter:
            params["filter"] = memo_filter
        if req.order_by:
            params["orderBy"] = req.order_by
        if req.show_deleted:
            params["showDeleted"] = "true"
        if req.page_token:
            params["pageToken"] = req.page_token
        elif req.offset and req.offset > 0:
            params["pageToken"] = f"offset={req.offset}"

        data = await self._request("GET", "/memos", params=params)
        return SearchResponse.from_dict(data or {})

    async def get_memo(self, uid: str) -> Memo:
        _require_uid(uid)
        data = await self._request("GET", f"/memos/{_path_segment(uid)}")
        return Memo.from_dict(data or {})

    async def create_memo(self, req: CreateMemoRequest) -> Memo:
        if not req.content or not req.content.strip():
            raise ValueError("content is required")

        payload: Dict[str, Any] = {
            "state": STATE_UNSPECIFIED,
            "content": req.content,
            "visibility": normalize_visibility(req.visibility or "PRIVATE"),
        }
        if req.pinned is not None:
            payload["pinned"] = req.pinned
        if req.relations:
            payload["relations"] = _relations_payload(req.relations)

        data = await self._request("POST", "/memos", body=payload)
        return Memo.from_dict(data or {})

    async def update_memo(self, uid: str, req: UpdateMemoRequest) -> Memo:
        _require_uid(uid)

        payload: Dict[str, Any] = {"state": STATE_UNSPECIFIED}
        if req.content is not None:
            payload["content"] = req.content
        if req.visibility is not None:
            payload["visibility"] = normalize_visibility(req.visibility)
        if req.pinned is not None:
            payload["pinned"] = req.pinned
        if req.relations is not None:
            payload["relations"] = _relations_payload(req.relations)

        if len(payload) == 1:
            raise ValueError("at least one field must be provided for update")

        data = await self._request("PATCH", f"/memos/{_path_segment(uid)}", body=payload)
        return Memo.from_dict(data or {})

    async def delete_memo(self, uid: str, force: bool = False) -> None:
        _require_uid(uid)
        params = {"force": "true"} if force else None
        await self._request("DELETE", f"/memos/{_path_segment(uid)}", params=params)

    async def get_current_user(self) -> Dict[str, Any]:
        return await self._request("GET", "/auth/me") or {}

    async def get_user_stats(self, user: str) -> Dict[str, Any]:
        user_id = extract_user_id(user or "")
        if not user_id:
            raise ValueError("user is required")
        return await self._request("GET", f"/users/{_path_segment(user_id)}:getStats") or {}

    async def list_memo_relations(self, uid: str) -> List[Dict[str, Any]]:
        _require_uid(uid)
        data = await self._request("GET", f"/memos/{_path_segment(uid)}/relations")
        return list((data or {}).get("relations") or [])

    async def set_memo_relations(self, uid: str, relations: List[MemoRelationInput]) -> None:
        _require_uid(uid)
        await self._request(
            "PATCH",
            f"/memos/{_path_segment(uid)}/relations",
            body={"relations": _relations_payload(relations)},
        )


async def _decode_json(response: aiohttp.ClientResponse, text: str) -> Any:
    try:
        return await response.json(content_type=None)
    except ValueError as e:
        raise MemosApiError(response.status, f"decode response: {e}: {text[:200]}") from e
