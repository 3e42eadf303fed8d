import hashlib
from dataclasses import dataclass, field
from typing import Dict, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from memos_mcp.types import Arch, BinaryManagerConfig, OS, PlatformInfo

REPOSITORY = "jtsang4/memos-mcp"
TAG = "v1.2.3"
ASSET_NAME = "memos-mcp-linux-amd64"
ASSET_BYTES = b"#!/bin/sh\necho memos-mcp\n" * 512


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


@dataclass
class ReleaseState:
    """What the fake GitHub serves; tests mutate it before making requests."""
    base_url: str = ""
    tag: str = TAG
    latest_status: int = 200
    assets: Dict[str, bytes] = field(default_factory=lambda: {ASSET_NAME: ASSET_BYTES})
    # bytes actually sent, when they should differ from the published asset
    served: Dict[str, bytes] = field(default_factory=dict)
    asset_status: Optional[int] = None
    # close the connection after this many bytes of a declared full-length body
    drop_after: Dict[str, int] = field(default_factory=dict)
    checksums: Optional[str] = f"{sha256_hex(ASSET_BYTES)}  {ASSET_NAME}\n"
    downloads: Dict[str, int] = field(default_factory=dict)

    def download_count(self, name: str = ASSET_NAME) -> int:
        return self.downloads.get(name, 0)


def create_release_app(state: ReleaseState) -> web.Application:
    async def latest(request: web.Request) -> web.Response:
        if state.latest_status != 200:
            return web.Response(status=state.latest_status, text="rate limited")
        if state.tag is None:
            return web.json_response({"name": "untagged"})
        return web.json_response({"tag_name": state.tag})

    async def download(request: web.Request) -> web.Response:
        version = request.match_info["version"]
        filename = request.match_info["filename"]

        if filename == "checksums.txt":
            if state.checksums is None:
                return web.Response(status=404, text="Not Found")
            return web.Response(text=state.checksums)

        if state.asset_status is not None:
            return web.Response(status=state.asset_status, text="server error")
        if version != state.tag or filename not in state.assets:
            return web.Response(status=404, text="Not Found")

        state.downloads[filename] = state.downloads.get(filename, 0) + 1
        # GitHub redirects release assets to a storage host
        raise web.HTTPFound(f"/storage/{filename}")

    async def storage(request: web.Request) -> web.Response:
        filename = request.match_info["filename"]
        body = state.served.get(filename, state.assets[filename])
        if filename in state.drop_after:
            response = web.StreamResponse()
            response.content_length = len(body)
            response.content_type = "application/octet-stream"
            await response.prepare(request)
            await response.write(body[: state.drop_after[filename]])
            request.transport.close()
            return response
        return web.Response(body=body, content_type="application/octet-stream")

    app = web.Application()
    app.router.add_get("/repos/{owner}/{repo}/releases/latest", latest)
    app.router.add_get(
        "/{owner}/{repo}/releases/download/{version}/{filename}", download
    )
    app.router.add_get("/storage/{filename}", storage)
    return app


@pytest_asyncio.fixture
async def release_server():
    """In-process stand-in for the GitHub API and release downloads."""
    state = ReleaseState()
    server = TestServer(create_release_app(state))
    await server.start_server()
    state.base_url = str(server.make_url("/")).rstrip("/")
    try:
        yield state
    finally:
        await server.close()


@pytest.fixture
def linux_x64():
    return PlatformInfo(os=OS.LINUX, arch=Arch.X64)


@pytest.fixture
def binary_config(tmp_path, release_server):
    return BinaryManagerConfig(
        cache_dir=tmp_path / "cache",
        repository=REPOSITORY,
        version=TAG,
        api_base=release_server.base_url,
        download_base=release_server.base_url,
    )
