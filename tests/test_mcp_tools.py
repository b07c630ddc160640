"""Tests for MCP tool handlers.

These tests verify:
- The tool list merges remote and local tools and survives remote failures
- The three screen tools select the right asset and report tool-level errors
- Unknown tools are forwarded and their download references inlined
- No handler raises; failures come back flagged isError
"""

import asyncio
import base64
from pathlib import Path

import pytest
from mcp import types

from mcp_server.errors import (
    CODE_URL_NOT_FOUND,
    CREDENTIAL_ERROR,
    REMOTE_ERROR,
    TRANSPORT_ERROR,
    VALIDATION_ERROR,
    from_exception,
)
from mcp_server.handlers import (
    GET_SCREEN,
    call_tool,
    list_tools,
    screen_image_filename,
)
from mcp_server.schemas import (
    EXTRACT_DESIGN_CONTEXT,
    FETCH_SCREEN_CODE,
    FETCH_SCREEN_IMAGE,
    LOCAL_TOOL_NAMES,
)
from stitch_mcp.assets import Asset
from stitch_mcp.config import Settings
from stitch_mcp.errors import AssetDownloadError, AuthenticationError
from stitch_mcp.session import StitchSession
from stitch_mcp.types import ErrorCode, Failure, Success

SCREEN_ARGS = {"projectId": "p1", "screenId": "s1"}

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


class FakeGateway:
    """Gateway answering from canned remote results."""

    def __init__(self, tools=None, screen=None, call_results=None, error=None):
        self.tools = tools
        self.screen = screen
        self.call_results = call_results or {}
        self.error = error
        self.calls: list[tuple[str, dict]] = []
        self.list_calls = 0

    async def list_tools(self):
        self.list_calls += 1
        if self.error is not None:
            raise self.error
        return self.tools

    async def call_tool(self, name, arguments=None):
        self.calls.append((name, arguments))
        if self.error is not None:
            raise self.error
        if name == GET_SCREEN and self.screen is not None:
            return self.screen
        return self.call_results[name]


class FakeFetcher:
    """Asset fetcher serving fixed bodies per URL."""

    def __init__(self, bodies=None, content_type="image/png"):
        self.bodies = bodies or {}
        self.content_type = content_type
        self.urls: list[str] = []

    def _body(self, url):
        self.urls.append(url)
        body = self.bodies.get(url)
        if body is None:
            raise AssetDownloadError("Failed to download: 404", code="http_error")
        return body

    async def fetch(self, url):
        body = self._body(url)
        data = body if isinstance(body, bytes) else body.encode()
        return Asset(url=url, data=data, content_type=self.content_type)

    async def fetch_text(self, url):
        body = self._body(url)
        return body.decode() if isinstance(body, bytes) else body


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    return tmp_path


def make_session(gateway, fetcher=None, image_dir: Path | None = None) -> StitchSession:
    settings = Settings(image_dir=image_dir or Path.cwd())
    return StitchSession(
        settings=settings,
        project_id="my-project",
        gateway=gateway,
        fetcher=fetcher or FakeFetcher(),
    )


def screen_result(screen: dict) -> Success:
    return Success({"jsonrpc": "2.0", "id": 1, "result": screen})


def remote_tool(name: str) -> dict:
    return {
        "name": name,
        "description": f"Remote {name}",
        "inputSchema": {"type": "object", "properties": {}},
    }


class TestListTools:
    """Tests for tool discovery."""

    def test_remote_and_local_merged(self):
        """Remote tools come first, local tools are appended."""
        gateway = FakeGateway(
            tools=Success({"result": {"tools": [remote_tool("create_project"), remote_tool("get_screen")]}})
        )

        tools = asyncio.run(list_tools(make_session(gateway)))
        names = [t.name for t in tools]

        assert names == [
            "create_project",
            "get_screen",
            FETCH_SCREEN_CODE,
            FETCH_SCREEN_IMAGE,
            EXTRACT_DESIGN_CONTEXT,
        ]

    def test_local_definition_wins_on_collision(self):
        """A remote tool named like a local one should appear once."""
        gateway = FakeGateway(
            tools=Success({"result": {"tools": [remote_tool(FETCH_SCREEN_CODE)]}})
        )

        tools = asyncio.run(list_tools(make_session(gateway)))

        matching = [t for t in tools if t.name == FETCH_SCREEN_CODE]
        assert len(matching) == 1
        assert matching[0].description != f"Remote {FETCH_SCREEN_CODE}"

    def test_remote_failure_returns_local_tools(self):
        """A failing remote listing should not fail discovery."""
        gateway = FakeGateway(tools=Failure(ErrorCode.AUTH_ERROR, "HTTP 403: denied"))

        tools = asyncio.run(list_tools(make_session(gateway)))

        assert {t.name for t in tools} == LOCAL_TOOL_NAMES

    def test_credential_failure_returns_local_tools(self):
        """Credential errors during listing should be contained too."""
        gateway = FakeGateway(error=AuthenticationError("Authentication expired."))

        tools = asyncio.run(list_tools(make_session(gateway)))

        assert {t.name for t in tools} == LOCAL_TOOL_NAMES

    def test_remote_error_body_returns_local_tools(self):
        gateway = FakeGateway(tools=Success({"error": {"message": "boom"}}))

        tools = asyncio.run(list_tools(make_session(gateway)))

        assert {t.name for t in tools} == LOCAL_TOOL_NAMES

    def test_malformed_remote_tool_skipped(self):
        gateway = FakeGateway(
            tools=Success({"result": {"tools": [{"description": "no name"}, remote_tool("ok")]}})
        )

        tools = asyncio.run(list_tools(make_session(gateway)))

        assert [t.name for t in tools][0] == "ok"

    def test_local_tools_advertise_screen_arguments(self):
        gateway = FakeGateway(tools=Success({"result": {"tools": []}}))

        tools = asyncio.run(list_tools(make_session(gateway)))

        for tool in tools:
            assert set(tool.inputSchema["required"]) == {"projectId", "screenId"}


class TestFetchScreenCode:
    """Tests for fetch_screen_code tool."""

    def test_returns_code_verbatim(self):
        screen = {"screen": {"htmlCode": {"downloadUrl": "https://dl/code"}}}
        gateway = FakeGateway(screen=screen_result(screen))
        fetcher = FakeFetcher({"https://dl/code": "<html>code</html>"})

        result = asyncio.run(
            call_tool(make_session(gateway, fetcher), FETCH_SCREEN_CODE, SCREEN_ARGS)
        )

        assert not result.isError
        assert result.content[0].text == "<html>code</html>"
        assert gateway.calls == [(GET_SCREEN, {"projectId": "p1", "screenId": "s1"})]

    def test_missing_url_is_tool_error(self):
        gateway = FakeGateway(screen=screen_result({"screen": {"title": "Home"}}))

        result = asyncio.run(
            call_tool(make_session(gateway), FETCH_SCREEN_CODE, SCREEN_ARGS)
        )

        assert result.isError is True
        assert result.content[0].text == "No code download URL found."

    def test_download_failure_is_tool_error(self):
        screen = {"htmlCode": {"downloadUrl": "https://dl/missing"}}
        gateway = FakeGateway(screen=screen_result(screen))

        result = asyncio.run(
            call_tool(make_session(gateway), FETCH_SCREEN_CODE, SCREEN_ARGS)
        )

        assert result.isError is True
        assert result.content[0].text.startswith("Error: Failed to download")

    def test_invalid_arguments(self):
        gateway = FakeGateway()

        result = asyncio.run(
            call_tool(make_session(gateway), FETCH_SCREEN_CODE, {"projectId": "p1"})
        )

        assert result.isError is True
        assert "screenId" in result.content[0].text
        assert gateway.calls == []

    def test_screen_request_failure(self):
        gateway = FakeGateway(screen=Failure(ErrorCode.TIMEOUT, "Request timeout"))

        result = asyncio.run(
            call_tool(make_session(gateway), FETCH_SCREEN_CODE, SCREEN_ARGS)
        )

        assert result.isError is True
        assert "Request timeout" in result.content[0].text


class TestFetchScreenImage:
    """Tests for fetch_screen_image tool."""

    def test_saves_and_returns_image(self, image_dir):
        screen = {
            "screen": {
                "htmlCode": {"downloadUrl": "https://dl/code"},
                "screenshot": {"downloadUrl": "https://dl/shot"},
            }
        }
        gateway = FakeGateway(screen=screen_result(screen))
        fetcher = FakeFetcher({"https://dl/shot": PNG_BYTES})

        result = asyncio.run(
            call_tool(
                make_session(gateway, fetcher, image_dir), FETCH_SCREEN_IMAGE, SCREEN_ARGS
            )
        )

        assert not result.isError
        text, image = result.content
        assert text.text == "Image saved to screen_s1.png"
        assert image.type == "image"
        assert image.mimeType == "image/png"
        assert base64.b64decode(image.data) == PNG_BYTES
        assert (image_dir / "screen_s1.png").read_bytes() == PNG_BYTES
        assert fetcher.urls == ["https://dl/shot"]

    def test_selects_image_uri_over_code_url(self, image_dir):
        """The image-looking uri should be chosen, not the code download."""
        uri = "https://x.googleusercontent.com/abc"
        screen = {
            "htmlCode": {"downloadUrl": "https://contribution.usercontent.google.com/code"},
            "obj": {"uri": uri},
        }
        gateway = FakeGateway(screen=screen_result(screen))
        fetcher = FakeFetcher({uri: PNG_BYTES}, content_type="image/webp")

        result = asyncio.run(
            call_tool(
                make_session(gateway, fetcher, image_dir), FETCH_SCREEN_IMAGE, SCREEN_ARGS
            )
        )

        assert not result.isError
        assert fetcher.urls == [uri]
        assert result.content[1].mimeType == "image/webp"

    def test_missing_image_is_tool_error(self, image_dir):
        gateway = FakeGateway(screen=screen_result({"htmlCode": {"downloadUrl": "https://dl/code"}}))

        result = asyncio.run(
            call_tool(make_session(gateway, image_dir=image_dir), FETCH_SCREEN_IMAGE, SCREEN_ARGS)
        )

        assert result.isError is True
        assert result.content[0].text == "No image URL found."
        assert list(image_dir.iterdir()) == []

    def test_non_image_content_type_defaults_to_png(self, image_dir):
        screen = {"screenshot": {"downloadUrl": "https://dl/shot"}}
        gateway = FakeGateway(screen=screen_result(screen))
        fetcher = FakeFetcher({"https://dl/shot": PNG_BYTES}, content_type="application/octet-stream")

        result = asyncio.run(
            call_tool(make_session(gateway, fetcher, image_dir), FETCH_SCREEN_IMAGE, SCREEN_ARGS)
        )

        assert result.content[1].mimeType == "image/png"


class TestScreenImageFilename:
    """Tests for screen_image_filename function."""

    def test_plain_id(self):
        assert screen_image_filename("abc123") == "screen_abc123.png"

    def test_separators_replaced(self):
        assert screen_image_filename("../etc/passwd") == "screen_.._etc_passwd.png"
        assert "/" not in screen_image_filename("a/b\\c")


class TestExtractDesignContext:
    """Tests for extract_design_context tool."""

    def test_inline_html(self):
        html = "<script>tailwind.config = {a: 1}</script><!-- TopAppBar --><b>x</b><!-- -->"
        gateway = FakeGateway(screen=screen_result({"htmlCode": {"content": html}}))

        result = asyncio.run(
            call_tool(make_session(gateway), EXTRACT_DESIGN_CONTEXT, SCREEN_ARGS)
        )

        assert not result.isError
        text = result.content[0].text
        assert "```json\n{a: 1}\n```" in text
        assert "```html\n<b>x</b>\n```" in text

    def test_downloads_html_when_not_inline(self):
        gateway = FakeGateway(
            screen=screen_result({"htmlCode": {"downloadUrl": "https://dl/code"}})
        )
        fetcher = FakeFetcher({"https://dl/code": "<p>no markers</p>"})

        result = asyncio.run(
            call_tool(make_session(gateway, fetcher), EXTRACT_DESIGN_CONTEXT, SCREEN_ARGS)
        )

        assert not result.isError
        assert "Refer to previous screen screenshot" in result.content[0].text

    def test_missing_html_is_tool_error(self):
        gateway = FakeGateway(screen=screen_result({"screen": {}}))

        result = asyncio.run(
            call_tool(make_session(gateway), EXTRACT_DESIGN_CONTEXT, SCREEN_ARGS)
        )

        assert result.isError is True
        assert result.content[0].text == "HTML content not found in screen data."

    def test_remote_failure_prefix(self):
        gateway = FakeGateway(screen=Failure(ErrorCode.SERVER_ERROR, "HTTP 500: oops"))

        result = asyncio.run(
            call_tool(make_session(gateway), EXTRACT_DESIGN_CONTEXT, SCREEN_ARGS)
        )

        assert result.isError is True
        assert result.content[0].text == "Error extracting context: HTTP 500: oops"


class TestPassthrough:
    """Tests for forwarding unknown tools."""

    def test_forwards_and_enriches(self):
        remote = {
            "content": [{"type": "text", "text": "created"}],
            "structuredContent": {
                "screens": [{"htmlCode": {"downloadUrl": "https://dl/code"}}]
            },
        }
        gateway = FakeGateway(call_results={"generate_screen": Success({"result": remote})})
        fetcher = FakeFetcher({"https://dl/code": "<html/>"})

        result = asyncio.run(
            call_tool(make_session(gateway, fetcher), "generate_screen", {"prompt": "login"})
        )

        assert gateway.calls == [("generate_screen", {"prompt": "login"})]
        assert not result.isError
        assert result.content[0].text == "created"
        html_code = result.structuredContent["screens"][0]["htmlCode"]
        assert html_code == {"downloadUrl": "https://dl/code", "content": "<html/>"}

    def test_none_arguments(self):
        gateway = FakeGateway(
            call_results={"list_projects": Success({"result": {"content": []}})}
        )

        asyncio.run(call_tool(make_session(gateway), "list_projects", None))

        assert gateway.calls == [("list_projects", {})]

    def test_enrichment_failure_keeps_result(self):
        remote = {
            "content": [{"type": "text", "text": "ok"}],
            "structuredContent": {"file": {"downloadUrl": "https://dl/gone"}},
        }
        gateway = FakeGateway(call_results={"get_project": Success({"result": remote})})

        result = asyncio.run(call_tool(make_session(gateway), "get_project", {}))

        assert not result.isError
        assert result.structuredContent == {"file": {"downloadUrl": "https://dl/gone"}}

    def test_remote_error_object(self):
        gateway = FakeGateway(
            call_results={"bad": Success({"error": {"code": -32602, "message": "bad args"}})}
        )

        result = asyncio.run(call_tool(make_session(gateway), "bad", {}))

        assert result.isError is True
        assert result.content[0].text == "API Error: bad args"

    def test_transport_failure(self):
        gateway = FakeGateway(
            call_results={"slow": Failure(ErrorCode.TIMEOUT, "Request timeout (180 seconds)")}
        )

        result = asyncio.run(call_tool(make_session(gateway), "slow", {}))

        assert result.isError is True
        assert result.content[0].text == "Error: Request timeout (180 seconds)"

    def test_credential_failure_does_not_raise(self):
        gateway = FakeGateway(error=AuthenticationError("Authentication expired."))

        result = asyncio.run(call_tool(make_session(gateway), "list_projects", {}))

        assert result.isError is True
        assert "Authentication expired." in result.content[0].text

    def test_body_without_result_is_dumped(self):
        gateway = FakeGateway(call_results={"odd": Success({"jsonrpc": "2.0", "id": 7})})

        result = asyncio.run(call_tool(make_session(gateway), "odd", {}))

        assert not result.isError
        assert '"id": 7' in result.content[0].text

    def test_non_tool_result_is_dumped(self):
        gateway = FakeGateway(call_results={"raw": Success({"result": {"projects": []}})})

        result = asyncio.run(call_tool(make_session(gateway), "raw", {}))

        assert not result.isError
        assert '"projects": []' in result.content[0].text


class TestFromException:
    """Tests for error code mapping."""

    def test_codes(self):
        from stitch_mcp.errors import RemoteError, TransportError

        assert from_exception(RemoteError("x")).code == REMOTE_ERROR
        assert from_exception(TransportError("x", -32002)).code == TRANSPORT_ERROR
        assert from_exception(AuthenticationError("x")).code == CREDENTIAL_ERROR
        assert from_exception(ValueError("x")).code == "internal_error"

    def test_validation_code(self):
        from pydantic import ValidationError

        from mcp_server.errors import validation_error
        from mcp_server.schemas import ScreenArguments

        with pytest.raises(ValidationError) as exc_info:
            ScreenArguments.model_validate({})
        error = validation_error(FETCH_SCREEN_CODE, exc_info.value)
        assert error.code == VALIDATION_ERROR
        assert error.details == {"fields": ["projectId", "screenId"]}

    def test_code_url_constant(self):
        assert CODE_URL_NOT_FOUND == "code_url_not_found"


class TestCreateServer:
    """Tests for server construction."""

    def test_server_name_and_handlers(self):
        from mcp.server.lowlevel import Server

        from mcp_server.server import SERVER_NAME, create_server

        server = create_server(make_session(FakeGateway()))

        assert isinstance(server, Server)
        assert server.name == SERVER_NAME
        assert types.ListToolsRequest in server.request_handlers
        assert types.CallToolRequest in server.request_handlers

    def test_forwarded_calls_skip_tool_listing(self):
        """Each forwarded call should make exactly one remote exchange."""
        from mcp_server.server import create_server

        gateway = FakeGateway(
            call_results={
                "generate_screen": Success(
                    {"result": {"content": [{"type": "text", "text": "done"}]}}
                )
            }
        )
        handler = create_server(make_session(gateway)).request_handlers[
            types.CallToolRequest
        ]
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(
                name="generate_screen", arguments={"prompt": "login"}
            ),
        )

        async def call_three_times():
            return [await handler(request) for _ in range(3)]

        results = asyncio.run(call_three_times())

        assert gateway.list_calls == 0
        assert gateway.calls == [("generate_screen", {"prompt": "login"})] * 3
        assert results[0].root.content[0].text == "done"

    def test_local_tool_called_before_listing(self):
        """A local tool should be served without listing tools first."""
        from mcp_server.server import create_server

        gateway = FakeGateway(screen=screen_result({"screen": {"title": "Home"}}))
        handler = create_server(make_session(gateway)).request_handlers[
            types.CallToolRequest
        ]
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(
                name=FETCH_SCREEN_CODE, arguments=SCREEN_ARGS
            ),
        )

        result = asyncio.run(handler(request)).root

        assert gateway.list_calls == 0
        assert gateway.calls == [(GET_SCREEN, SCREEN_ARGS)]
        assert result.isError is True
        assert result.structuredContent == {
            "error": {
                "code": CODE_URL_NOT_FOUND,
                "message": "No code download URL found.",
                "details": {"screen_id": "s1"},
            }
        }
