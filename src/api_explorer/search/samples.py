"""Code samples for endpoints: curl, Python (requests) and JavaScript (fetch).

Example values are derived from schemas and parameter names only, so the
same endpoint always yields the same sample.
"""

import json
from typing import Any
from urllib.parse import quote, urlencode

from api_explorer.parser.base import (
    ArraySchema,
    Endpoint,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
    Schema,
)

LANGUAGES = ("javascript", "python", "curl")
DEFAULT_LANGUAGE = "javascript"
DEFAULT_BASE_URL = "https://api.example.com"

MAX_EXAMPLE_DEPTH = 4
MAX_EXAMPLE_PROPERTIES = 3

# (substring of the lowercased name, example value), first match wins
_NAME_HINTS: list[tuple[str, Any]] = [
    ("email", "user@example.com"),
    ("phone", "555-123-4567"),
    ("url", "https://example.com/path"),
    ("uri", "https://example.com/path"),
    ("uuid", "123e4567-e89b-12d3-a456-426614174000"),
    ("address", "123 Main St"),
    ("city", "Anytown"),
    ("country", "US"),
    ("zip", "90210"),
    ("postal", "90210"),
    ("status", "active"),
    ("token", "abc123xyz789"),
    ("password", "********"),
    ("secret", "********"),
]

_STRING_FORMATS = {
    "date": "2024-12-31",
    "date-time": "2024-12-31T12:00:00Z",
    "uuid": "123e4567-e89b-12d3-a456-426614174000",
    "email": "user@example.com",
    "byte": "U3dhZ2dlciByb2Nrcw==",
    "binary": "<binary data>",
    "password": "********",
}


def _primitive_example(schema: PrimitiveSchema, name: str) -> Any:
    if schema.default is not None:
        return schema.default
    if schema.enum:
        return schema.enum[0]

    hint = name.lower()
    if hint == "id" or hint.endswith("id"):
        return "id_12345" if schema.type == "string" else 12345
    for needle, value in _NAME_HINTS:
        if needle in hint:
            return value
    if "name" in hint:
        if "first" in hint:
            return "John"
        if "last" in hint:
            return "Doe"
        return "Example Name"
    if "limit" in hint:
        return 25
    if "offset" in hint or "skip" in hint:
        return 0
    if "page" in hint:
        return 1

    if schema.type == "integer":
        return 1000000000 if schema.format == "int64" else 123
    if schema.type == "number":
        return 99.9
    if schema.type == "boolean":
        return True
    if schema.format in _STRING_FORMATS:
        return _STRING_FORMATS[schema.format]
    return "sample_string"


def example_value(schema: Schema | None, name: str = "", depth: int = 0) -> Any:
    """A plausible example value for ``schema``, guided by the field ``name``."""
    if schema is None:
        return "sample_string"
    if isinstance(schema, ReferenceSchema):
        return {}
    if schema.example is not None:
        return schema.example
    if isinstance(schema, PrimitiveSchema):
        return _primitive_example(schema, name)
    if depth >= MAX_EXAMPLE_DEPTH:
        return {} if isinstance(schema, ObjectSchema) else []
    if isinstance(schema, ArraySchema):
        return [example_value(schema.items, f"{name}_item", depth + 1)]
    if isinstance(schema, ObjectSchema):
        if not schema.properties:
            return {"key": "value"}
        props = list(schema.properties.items())[:MAX_EXAMPLE_PROPERTIES]
        return {prop_name: example_value(prop, prop_name, depth + 1) for prop_name, prop in props}
    return "sample_string"


def _build_url(endpoint: Endpoint, base_url: str | None) -> str:
    server = base_url or (endpoint.servers[0] if endpoint.servers else DEFAULT_BASE_URL)
    path = endpoint.path
    for param in endpoint.parameters:
        if param.location == "path":
            value = example_value(param.param_schema, param.name)
            path = path.replace("{" + param.name + "}", quote(str(value), safe=""))

    query = [
        (param.name, example_value(param.param_schema, param.name))
        for param in endpoint.parameters
        if param.location == "query"
    ]
    url = server.rstrip("/") + path
    if query:
        url += "?" + urlencode([(k, v if not isinstance(v, bool) else str(v).lower()) for k, v in query])
    return url


def _headers(endpoint: Endpoint) -> dict[str, str]:
    headers: dict[str, str] = {}
    if endpoint.request_body is not None and endpoint.request_body.media_type:
        headers["Content-Type"] = endpoint.request_body.media_type
    for param in endpoint.parameters:
        if param.location == "header":
            headers[param.name] = str(example_value(param.param_schema, param.name))
    if endpoint.security:
        headers["Authorization"] = "Bearer YOUR_ACCESS_TOKEN"
    return headers


def _body(endpoint: Endpoint) -> Any:
    if endpoint.request_body is None or endpoint.request_body.preferred_schema is None:
        return None
    return example_value(endpoint.request_body.preferred_schema, "body")


def _curl(endpoint: Endpoint, url: str, headers: dict[str, str], body: Any) -> str:
    lines = [f"# {endpoint.summary or endpoint.operation_id or 'API Request'}"]
    command = f'curl -X {endpoint.method} "{url}"'
    for key, value in headers.items():
        command += f' \\\n  -H "{key}: {value}"'
    if body is not None:
        payload = json.dumps(body, indent=2, default=str).replace("'", "'\\''")
        command += f" \\\n  -d '{payload}'"
    lines.append(command)
    return "\n".join(lines)


def _python(endpoint: Endpoint, url: str, headers: dict[str, str], body: Any) -> str:
    lines = [
        f"# {endpoint.summary or endpoint.operation_id or 'API Request'}",
        "import requests",
        "",
        f"url = {url!r}",
        f"headers = {headers!r}",
    ]
    call = f"response = requests.request({endpoint.method!r}, url, headers=headers"
    if body is not None:
        lines.append(f"payload = {body!r}")
        call += ", json=payload"
    lines.extend([
        "",
        call + ")",
        "response.raise_for_status()",
        "print(response.json())",
    ])
    return "\n".join(lines)


def _javascript(endpoint: Endpoint, url: str, headers: dict[str, str], body: Any) -> str:
    options = [f"  method: '{endpoint.method}'"]
    if headers:
        options.append("  headers: " + json.dumps(headers, indent=2).replace("\n", "\n  "))
    if body is not None:
        options.append("  body: JSON.stringify(" + json.dumps(body, indent=2, default=str).replace("\n", "\n  ") + ")")
    lines = [
        f"// {endpoint.summary or endpoint.operation_id or 'API Request'}",
        f"const response = await fetch('{url}', {{",
        ",\n".join(options),
        "});",
        "if (!response.ok) {",
        "  throw new Error(`HTTP error! Status: ${response.status}`);",
        "}",
        "const data = await response.json();",
        "console.log(data);",
    ]
    return "\n".join(lines)


_GENERATORS = {
    "curl": _curl,
    "python": _python,
    "javascript": _javascript,
}


def generate_sample(endpoint: Endpoint, language: str = DEFAULT_LANGUAGE, base_url: str | None = None) -> str:
    """Render a request sample; unknown languages fall back to JavaScript."""
    generator = _GENERATORS.get(language, _GENERATORS[DEFAULT_LANGUAGE])
    return generator(endpoint, _build_url(endpoint, base_url), _headers(endpoint), _body(endpoint))
