"""MCP server implementation."""

import asyncio
import json
import signal
import sys
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.models import InitializationOptions
from mcp.server import stdio

from memos_mcp import __version__
from memos_mcp.logging import get_logger
from memos_mcp.memos.client import MemosClient
from memos_mcp.memos.filters import extract_uid
from memos_mcp.memos.models import (
    CreateMemoRequest,
    MemoRelationInput,
    RelationType,
    SearchRequest,
    UpdateMemoRequest,
)
from memos_mcp.types import ServerConfig

logger = get_logger("server")

SERVER_NAME = "memos-mcp"

MEMO_UID_PROPERTY = {
    "type": "string",
    "description": "Memo UID or name (e.g., 'abc123' or 'memos/abc123')",
}
VISIBILITY_PROPERTY = {
    "type": "string",
    "description": "Visibility: PUBLIC, PROTECTED, PRIVATE",
}
RELATIONS_PROPERTY = {
    "type": "array",
    "description": "Relations to set; replaces all existing relations",
    "items": {
        "type": "object",
        "properties": {
            "related_memo_uid": {"type": "string", "description": "UID of the related memo"},
            "type": {
                "type": "string",
                "enum": [t.value for t in RelationType],
                "description": "REFERENCE (linking memos) or COMMENT (memo as comment on another)",
            },
        },
        "required": ["related_memo_uid"],
    },
}

tools = [
    types.Tool(
        name="memos_search",
        description="Search memos with filters and pagination",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Text to search for in memo content"},
                "creator_id": {"type": "integer", "description": "Filter by creator user ID"},
                "tag": {"type": "string", "description": "Filter by tag name"},
                "visibility": VISIBILITY_PROPERTY,
                "pinned": {"type": "boolean", "description": "Filter by pinned status"},
                "limit": {"type": "integer", "description": "Maximum results to return (default 10)"},
                "offset": {"type": "integer", "description": "Results offset (default 0)"},
                "page_token": {"type": "string", "description": "Page token from a previous response"},
                "order_by": {
                    "type": "string",
                    "description": "Order by fields, e.g. pinned desc, display_time desc",
                },
                "show_deleted": {"type": "boolean", "description": "Include deleted memos"},
            },
        },
    ),
    types.Tool(
        name="memos_get",
        description="Get a memo by UID",
        inputSchema={
            "type": "object",
            "properties": {"memo_uid": MEMO_UID_PROPERTY},
            "required": ["memo_uid"],
        },
    ),
    types.Tool(
        name="memos_create",
        description="Create a new memo",
        inputSchema={
            "type": "object",
            "properties": {
                "content": {"type": "string", "description": "Memo content in Markdown"},
                "visibility": {
                    "type": "string",
                    "description": "Visibility: PUBLIC, PROTECTED, PRIVATE (default PRIVATE)",
                },
                "pinned": {"type": "boolean", "description": "Whether to pin the memo"},
                "relations": RELATIONS_PROPERTY,
            },
            "required": ["content"],
        },
    ),
    types.Tool(
        name="memos_update",
        description="Update an existing memo",
        inputSchema={
            "type": "object",
            "properties": {
                "memo_uid": MEMO_UID_PROPERTY,
                "content": {"type": "string", "description": "New memo content"},
                "visibility": VISIBILITY_PROPERTY,
                "pinned": {"type": "boolean", "description": "Whether to pin the memo"},
            },
            "required": ["memo_uid"],
        },
    ),
    types.Tool(
        name="memos_delete",
        description="Delete a memo by UID",
        inputSchema={
            "type": "object",
            "properties": {
                "memo_uid": MEMO_UID_PROPERTY,
                "force": {
                    "type": "boolean",
                    "description": "Force delete even if memo has associated data",
                },
            },
            "required": ["memo_uid"],
        },
    ),
    types.Tool(
        name="memos_list_relations",
        description="List the relations of a memo",
        inputSchema={
            "type": "object",
            "properties": {"memo_uid": MEMO_UID_PROPERTY},
            "required": ["memo_uid"],
        },
    ),
    types.Tool(
        name="memos_set_relations",
        description="Replace all relations of a memo",
        inputSchema={
            "type": "object",
            "properties": {"memo_uid": MEMO_UID_PROPERTY, "relations": RELATIONS_PROPERTY},
            "required": ["memo_uid", "relations"],
        },
    ),
    types.Tool(
        name="memos_current_user",
        description="Get the currently authenticated user",
        inputSchema={"type": "object", "properties": {}},
    ),
    types.Tool(
        name="memos_user_stats",
        description="Get memo statistics for a user",
        inputSchema={
            "type": "object",
            "properties": {
                "user": {"type": "string", "description": "User ID or name (e.g., '1' or 'users/1')"}
            },
            "required": ["user"],
        },
    ),
]


def _required_string(arguments: Dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} is required")
    return value


def _optional_bool(arguments: Dict[str, Any], key: str) -> Optional[bool]:
    value = arguments.get(key)
    return None if value is None else bool(value)


def _optional_int(arguments: Dict[str, Any], key: str) -> Optional[int]:
    value = arguments.get(key)
    return None if value is None else int(value)


def _relations(arguments: Dict[str, Any]) -> List[MemoRelationInput]:
    relations = arguments.get("relations")
    if relations is None:
        raise ValueError("relations is required")
    return [
        MemoRelationInput(
            related_memo=_required_string(r, "related_memo_uid"),
            type=RelationType(r.get("type") or RelationType.REFERENCE.value),
        )
        for r in relations
    ]


async def dispatch_tool(client: MemosClient, name: str, arguments: Dict[str, Any]) -> Any:
    """Run one tool against the Memos API and return a JSON-serializable result.

    Raises:
        ValueError: unknown tool or invalid arguments
        MemosApiError: the API rejected the request
    """
    if name == "memos_search":
        response = await client.search_memos(
            SearchRequest(
                query=arguments.get("query") or "",
                creator_id=_optional_int(arguments, "creator_id"),
                tag=arguments.get("tag") or "",
                visibility=arguments.get("visibility") or "",
                pinned=_optional_bool(arguments, "pinned"),
                limit=_optional_int(arguments, "limit") or 0,
                offset=_optional_int(arguments, "offset") or 0,
                page_token=arguments.get("page_token") or "",
                order_by=arguments.get("order_by") or "",
                show_deleted=bool(arguments.get("show_deleted")),
            )
        )
        result: Dict[str, Any] = {
            "count": len(response.memos),
            "memos": [m.to_summary() for m in response.memos],
        }
        if response.next_page_token:
            result["nextPageToken"] = response.next_page_token
        return result

    elif name == "memos_get":
        uid = extract_uid(_required_string(arguments, "memo_uid"))
        memo = await client.get_memo(uid)
        return memo.to_summary()

    elif name == "memos_create":
        memo = await client.create_memo(
            CreateMemoRequest(
                content=_required_string(arguments, "content"),
                visibility=arguments.get("visibility") or "",
                pinned=_optional_bool(arguments, "pinned"),
                relations=_relations(arguments) if arguments.get("relations") else [],
            )
        )
        return {"success": True, "memo": memo.to_summary()}

    elif name == "memos_update":
        uid = extract_uid(_required_string(arguments, "memo_uid"))
        memo = await client.update_memo(
            uid,
            UpdateMemoRequest(
                content=arguments.get("content") or None,
                visibility=arguments.get("visibility") or None,
                pinned=_optional_bool(arguments, "pinned"),
            ),
        )
        return {"success": True, "memo": memo.to_summary()}

    elif name == "memos_delete":
        uid = extract_uid(_required_string(arguments, "memo_uid"))
        force = bool(arguments.get("force"))
        await client.delete_memo(uid, force=force)
        return {"success": True, "uid": uid, "force": force}

    elif name == "memos_list_relations":
        uid = extract_uid(_required_string(arguments, "memo_uid"))
        return {"relations": await client.list_memo_relations(uid)}

    elif name == "memos_set_relations":
        uid = extract_uid(_required_string(arguments, "memo_uid"))
        await client.set_memo_relations(uid, _relations(arguments))
        return {"success": True, "uid": uid}

    elif name == "memos_current_user":
        return await client.get_current_user()

    elif name == "memos_user_stats":
        return await client.get_user_stats(_required_string(arguments, "user"))

    raise ValueError(f"Unknown tool: {name}")


def text_result(value: Any) -> List[types.TextContent]:
    return [types.TextContent(type="text", text=json.dumps(value, indent=2))]


async def init_server(client: MemosClient) -> Server:
    logger.info("registered_tools", tools=[t.name for t in tools])

    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        logger.debug("tools_requested")
        return tools

    @server.call_tool()
    async def call_tool(
        name: str, arguments: Dict[str, Any]
    ) -> list[types.TextContent | types.ImageContent | types.EmbeddedResource]:
        try:
            logger.debug("tool_called", tool=name)
            return text_result(await dispatch_tool(client, name, arguments or {}))
        except Exception as e:
            logger.warning("tool_failed", tool=name, error=str(e))
            return text_result({"success": False, "error": str(e)})

    return server


async def serve(config: ServerConfig) -> None:
    client = MemosClient(config.base_url, config.access_token, config.timeout)
    logger.info("starting_server", base_url=config.base_url)

    server = await init_server(client)
    async with stdio.stdio_server() as (read_stream, write_stream):
        init_options = InitializationOptions(
            server_name=SERVER_NAME,
            server_version=__version__,
            capabilities=types.ServerCapabilities(
                tools=types.ToolsCapability(listChanged=False),
                logging=types.LoggingCapability(),
            ),
        )
        await server.run(read_stream, write_stream, init_options)


def handle_shutdown(signum, frame):
    logger.info("shutting_down", signal=signum)
    sys.exit(0)


def setup_handlers() -> None:
    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)


def run(config: ServerConfig) -> None:
    """Run the MCP server on stdio until the client disconnects."""
    setup_handlers()
    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        logger.info("received_keyboard_interrupt")
    except Exception:
        logger.exception("fatal_server_error")
        sys.exit(1)
