"""MCP streamable-HTTP endpoint backed by the session services.

Tools wrap the per-session GitLab clients, and responses are recorded in the
shared event log so clients can resume a dropped SSE stream with
``Last-Event-ID``.
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from mcp import types
from mcp.server import Server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager

from labgate.mcp_events import McpEventStore
from labgate.services import SessionServices

logger = structlog.get_logger(__name__)

GITLAB_REQUEST_TOOL = "gitlab_request"


def get_tool_definitions() -> list[dict[str, Any]]:
    """Get MCP tool definitions."""
    return [
        {
            "name": GITLAB_REQUEST_TOOL,
            "description": "Call the GitLab REST API with a session's credentials",
            "input_schema": {
                "type": "object",
                "properties": {
                    "session_id": {
                        "type": "string",
                        "description": "labgate session ID",
                    },
                    "endpoint": {
                        "type": "string",
                        "description": "API path relative to the session's api_url",
                    },
                    "method": {
                        "type": "string",
                        "description": "HTTP method (default: GET)",
                        "default": "GET",
                    },
                    "body": {
                        "description": "Optional JSON body for write calls",
                    },
                },
                "required": ["session_id", "endpoint"],
            },
        }
    ]


async def run_gitlab_request(services: SessionServices, arguments: dict[str, Any]) -> str:
    """Execute the gitlab_request tool and return its text result.

    Raises:
        ValueError: if the session is unknown or expired.
        ReadOnlyViolation: for writes on a read-only session.
        ApiError: if GitLab rejects the call.
    """
    session_id = arguments["session_id"]
    logger.info("MCP tool call", tool=GITLAB_REQUEST_TOOL, session_id=session_id)
    client = services.client_for(session_id)
    if client is None:
        raise ValueError(f"Session not found: {session_id}")
    method = str(arguments.get("method") or "GET").upper()
    endpoint = arguments["endpoint"]
    if method != "GET":
        client.validate_write_operation(f"{method} /{endpoint.lstrip('/')}")
    result = await client.request(endpoint, method=method, body=arguments.get("body"))
    if isinstance(result, str):
        return result
    return json.dumps(result)


def build_mcp_server(services: SessionServices) -> Server:
    server: Server = Server("labgate")

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name=tool["name"],
                description=tool.get("description"),
                inputSchema=tool["input_schema"],
            )
            for tool in get_tool_definitions()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict | None) -> list[types.TextContent]:
        if name != GITLAB_REQUEST_TOOL:
            raise ValueError(f"Unknown tool: {name}")
        text = await run_gitlab_request(services, arguments or {})
        return [types.TextContent(type="text", text=text)]

    return server


def build_session_manager(
    services: SessionServices,
) -> tuple[StreamableHTTPSessionManager, McpEventStore]:
    """Create the MCP session manager, sharing ``services.events`` for resumability."""
    event_store = McpEventStore(services.events)
    manager = StreamableHTTPSessionManager(
        app=build_mcp_server(services),
        event_store=event_store,
    )
    return manager, event_store
