"""MCP server exposing link search and add over stdio."""
import json
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from linker.config import WEIGHTS_FILE_NAME, get_config, load_weights
from linker.link_store import JsonLinkStore, get_index_dir, get_links_path
from linker.models import Link
from linker.scoring import rank


def get_store() -> JsonLinkStore:
    """Open the link store for the configured index directory."""
    return JsonLinkStore(get_links_path(get_config().index_dir))


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


async def search_links_tool(query: str) -> list[TextContent]:
    """Tool handler for search_links.

    Args:
        query: Whitespace-separated search terms

    Returns:
        List of TextContent with ranked links as JSON
    """
    try:
        weights = load_weights(get_index_dir(get_config().index_dir) / WEIGHTS_FILE_NAME)
    except ValueError as e:
        return _text(f"Error: {e}")

    store = get_store()
    results = rank(store.load(), query.split(), weights)

    if not results:
        return _text(f"No links found matching query: {query}")

    payload = [
        {
            "score": round(scored.score, 4),
            "id": scored.link.id,
            "url": scored.link.url,
            "title": scored.link.title,
            "comment": scored.link.comment,
            "tags": scored.link.tags,
            "labels": scored.link.labels,
            "open_count": scored.link.open_count,
        }
        for scored in results
    ]

    return _text(json.dumps(payload, indent=2))


async def add_link_tool(
    url: str,
    title: str = "",
    comment: str = "",
    tags: Optional[List[str]] = None,
    labels: Optional[Dict[str, str]] = None,
) -> list[TextContent]:
    """Tool handler for add_link.

    Returns:
        List of TextContent with the new link's ID, or an error
    """
    store = get_store()
    store.load()

    link = Link.create(url, title=title, comment=comment, tags=tags, labels=labels)
    store.append(link)

    try:
        store.persist()
    except OSError as e:
        return _text(f"Error: could not save link: {e}")

    return _text(json.dumps({"status": "added", "id": link.id, "url": link.url}))


def create_server() -> Server:
    """Create and configure the MCP server.

    Returns:
        Configured Server instance
    """
    server = Server("linker")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return [
            Tool(
                name="search_links",
                description="Search the local link index. Returns links ranked by tag, label, title and comment matches plus popularity and recency.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Whitespace-separated search terms; empty lists all links"
                        }
                    },
                    "required": ["query"]
                }
            ),
            Tool(
                name="add_link",
                description="Add a link to the local index.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "url": {"type": "string", "description": "URL to store"},
                        "title": {"type": "string", "description": "Optional title"},
                        "comment": {"type": "string", "description": "Optional comment"},
                        "tags": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Tags (lowercased on save)"
                        },
                        "labels": {
                            "type": "object",
                            "additionalProperties": {"type": "string"},
                            "description": "Key/value labels"
                        }
                    },
                    "required": ["url"]
                }
            ),
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> list[TextContent]:
        """Handle tool calls."""
        arguments = arguments or {}
        if name == "search_links":
            return await search_links_tool(arguments.get("query", ""))
        elif name == "add_link":
            url = arguments.get("url", "")
            if not url:
                return _text("Error: 'url' parameter is required")
            return await add_link_tool(
                url,
                title=arguments.get("title", ""),
                comment=arguments.get("comment", ""),
                tags=arguments.get("tags"),
                labels=arguments.get("labels"),
            )
        else:
            raise ValueError(f"Unknown tool: {name}")

    return server


async def main():
    """Run the MCP server on stdio."""
    server = create_server()

    async with stdio_server() as (read_stream, write_stream):
        initialization_options = server.create_initialization_options()
        await server.run(read_stream, write_stream, initialization_options)
