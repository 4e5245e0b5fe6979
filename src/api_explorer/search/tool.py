"""The `search_documentation` tool an LLM agent calls to find endpoints.

The orchestrating chat loop lives elsewhere; it registers SEARCH_TOOL with
the model and forwards each tool call to run_tool().
"""

import logging
from typing import Any, Literal

from pydantic import BaseModel
from pydantic import ValidationError as InputValidationError

from api_explorer.parser.base import (
    ArraySchema,
    Endpoint,
    NormalizedDocument,
    Parameter,
    PrimitiveSchema,
)
from api_explorer.search.ranker import search
from api_explorer.search.samples import DEFAULT_LANGUAGE, LANGUAGES, generate_sample

logger = logging.getLogger(__name__)

TOOL_NAME = "search_documentation"
MAX_RESULTS = 5
NO_RESULTS_MESSAGE = (
    "No endpoints found matching your query. "
    "Try different keywords or a more general search term."
)

SEARCH_TOOL: dict[str, Any] = {
    "name": TOOL_NAME,
    "description": (
        "Search the API documentation for relevant endpoints, their details, and code examples. "
        "Use this tool whenever you need to find information about how to perform a specific "
        "operation with the API. If the first search does not find what you need, try again "
        "with different terms."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The search term or operation (e.g., 'create customer', 'search appointments')",
            },
            "language": {
                "type": "string",
                "description": "Optional. The programming language for code examples. Default is javascript.",
                "enum": list(LANGUAGES),
            },
        },
        "required": ["query"],
    },
}


class SearchRequest(BaseModel):
    """Validated input of a search_documentation call."""

    query: str
    language: Literal["javascript", "python", "curl"] = DEFAULT_LANGUAGE


def _type_label(param: Parameter) -> str:
    schema = param.param_schema
    if isinstance(schema, PrimitiveSchema):
        return schema.type
    if isinstance(schema, ArraySchema):
        return "array"
    return "object"


def _format_endpoint(endpoint: Endpoint, language: str, base_url: str | None) -> str:
    lines = [f"## {endpoint.method} {endpoint.path}", ""]
    description = endpoint.description or endpoint.summary
    if description:
        lines.extend([description, ""])
    if endpoint.deprecated:
        lines.extend(["**Deprecated.**", ""])

    if endpoint.parameters:
        lines.extend(["### Parameters:", ""])
        for param in endpoint.parameters:
            required = " [Required]" if param.required else ""
            param_description = param.description or "No description available"
            lines.append(
                f"- **{param.name}** ({_type_label(param)}, {param.location}){required}: {param_description}"
            )
        lines.append("")

    if endpoint.request_body is not None and endpoint.request_body.media_type:
        required = " [Required]" if endpoint.request_body.required else ""
        lines.extend([f"### Request Body ({endpoint.request_body.media_type}){required}", ""])

    lines.extend([
        f"### Example Code ({language}):",
        "",
        f"```{language}",
        generate_sample(endpoint, language, base_url),
        "```",
        "",
        "---",
        "",
    ])
    return "\n".join(lines)


def search_documentation(
    document: NormalizedDocument,
    query: str,
    language: str = DEFAULT_LANGUAGE,
    limit: int = MAX_RESULTS,
    base_url: str | None = None,
) -> str:
    """Markdown block describing the best matches for ``query``, or a no-results message."""
    results = search(document.endpoints, query, limit=limit)
    logger.debug("search_documentation(%r) matched %d endpoints", query, len(results))
    if not results:
        return NO_RESULTS_MESSAGE

    parts = [f'# Search Results for "{query}"', ""]
    for result in results:
        parts.append(_format_endpoint(result.endpoint, language, base_url))
    return "\n".join(parts)


def run_tool(
    document: NormalizedDocument,
    tool_name: str,
    tool_input: dict[str, Any],
    base_url: str | None = None,
) -> str:
    """Execute a tool call from the agent. Errors come back as text, never as exceptions."""
    if tool_name != TOOL_NAME:
        return f"Error: Tool '{tool_name}' not found"
    try:
        request = SearchRequest.model_validate(tool_input)
    except InputValidationError as e:
        logger.warning("Rejected %s input %r: %s", tool_name, tool_input, e)
        return f"Error: invalid input for '{tool_name}': {e.errors()[0]['msg']}"
    return search_documentation(document, request.query, request.language, base_url=base_url)
