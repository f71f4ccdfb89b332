"""ASGI entrypoint for the nutrition MCP API."""

from nutrition_mcp.api.app import create_app
from nutrition_mcp.containers import build_container

app = create_app(build_container())
