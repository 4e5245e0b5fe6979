"""OpenAPI 3.x normalizer.

Turns a raw OpenAPI tree into a NormalizedDocument: endpoints with their
parameters, request bodies and responses fully inlined, plus the categories
(tags) they are grouped under.
"""

import datetime
import hashlib
import logging
import re
from typing import Any

from api_explorer.errors import ReferenceResolutionError, ValidationError
from api_explorer.parser.base import (
    DEFAULT_TAG,
    HTTP_METHODS,
    PARAMETER_LOCATIONS,
    ArraySchema,
    Category,
    Endpoint,
    NormalizedDocument,
    ObjectSchema,
    Parameter,
    PrimitiveSchema,
    ReferenceSchema,
    RequestBody,
    Response,
    Schema,
    preferred_media_type,
)
from api_explorer.parser.resolver import REF_KEY, NotFound, is_reference, resolve, resolve_deep

logger = logging.getLogger(__name__)

_UNSAFE_ID_CHARS = re.compile(r"[^a-z0-9\s_-]")
_ID_SEPARATORS = re.compile(r"[\s_-]+")
_PATH_PUNCTUATION = re.compile(r"[/{}]")

# Keys copied from a Swagger-2 style parameter that declares its type inline.
_INLINE_SCHEMA_KEYS = ("type", "format", "enum", "default", "example", "items")


def create_safe_id(text: Any) -> str:
    """Build a URL-safe slug usable as an anchor id.

    Falls back to ``id-<hash>`` when nothing survives the cleanup, so the
    result is never empty and stays the same across reloads.
    """
    slug = text.lower() if isinstance(text, str) else ""
    slug = _UNSAFE_ID_CHARS.sub("", slug).strip()
    slug = _ID_SEPARATORS.sub("-", slug).strip("-")
    if slug:
        return slug
    digest = hashlib.sha1(str(text).encode("utf-8")).hexdigest()[:7]
    return f"id-{digest}"


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _schema_type(node: dict) -> str | None:
    schema_type = node.get("type")
    if isinstance(schema_type, list):
        # OpenAPI 3.1: ["string", "null"]
        non_null = [t for t in schema_type if t != "null"]
        schema_type = non_null[0] if non_null else "null"
    return schema_type if isinstance(schema_type, str) else None


def _plain(value: Any) -> Any:
    """Copy a raw value, turning YAML-only scalars (dates, timestamps) into ISO text."""
    if isinstance(value, datetime.date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def to_schema(node: Any) -> Schema:
    """Convert an already-resolved raw schema into the Schema variant tree."""
    if not isinstance(node, dict):
        return PrimitiveSchema()
    if is_reference(node):
        return ReferenceSchema(ref=node[REF_KEY], description=_text(node.get("description")))

    all_of = node.get("allOf")
    if isinstance(all_of, list) and all_of:
        return _merge_members(node, all_of)
    for key in ("oneOf", "anyOf"):
        members = node.get(key)
        if isinstance(members, list) and members:
            converted = [to_schema(member) for member in members]
            if any(isinstance(s, ObjectSchema) for s in converted):
                return _merge_members(node, members)
            first = converted[0]
            if node.get("description") and not isinstance(first, ReferenceSchema):
                first = first.model_copy(update={"description": _text(node["description"])})
            return first

    schema_type = _schema_type(node)
    title = _text(node.get("title"))
    description = _text(node.get("description"))

    if schema_type == "array":
        return ArraySchema(
            items=to_schema(node.get("items")),
            title=title,
            description=description,
            example=_plain(node.get("example")),
        )
    if schema_type == "object" or "properties" in node:
        properties = node.get("properties")
        required = node.get("required")
        return ObjectSchema(
            properties={
                str(name): to_schema(prop) for name, prop in properties.items()
            } if isinstance(properties, dict) else {},
            required=tuple(str(r) for r in required) if isinstance(required, list) else (),
            title=title,
            description=description,
            example=_plain(node.get("example")),
        )

    enum = node.get("enum")
    return PrimitiveSchema(
        type=schema_type or "any",
        format=node.get("format") if isinstance(node.get("format"), str) else None,
        enum=tuple(_plain(e) for e in enum) if isinstance(enum, list) else (),
        default=_plain(node.get("default")),
        example=_plain(node.get("example")),
        title=title,
        description=description,
    )


def _merge_members(node: dict, members: list) -> Schema:
    """Flatten a composition (allOf, or an object-bearing oneOf/anyOf) into one schema."""
    own = {k: v for k, v in node.items() if k not in ("allOf", "oneOf", "anyOf")}
    converted = [to_schema(own)] if ("properties" in own or own.get("type") == "object") else []
    converted.extend(to_schema(member) for member in members)

    objects = [s for s in converted if isinstance(s, ObjectSchema)]
    description = _text(node.get("description"))
    if not objects:
        first = converted[0]
        if description and not isinstance(first, ReferenceSchema):
            first = first.model_copy(update={"description": description})
        return first

    properties: dict[str, Schema] = {}
    required: list[str] = []
    for obj in objects:
        properties.update(obj.properties)
        required.extend(r for r in obj.required if r not in required)
    return ObjectSchema(
        properties=properties,
        required=tuple(required),
        title=_text(node.get("title")) or objects[0].title,
        description=description or next((o.description for o in objects if o.description), ""),
        example=_plain(node.get("example")),
    )


def _server_urls(servers: Any) -> tuple[str, ...]:
    if not isinstance(servers, list):
        return ()
    urls = []
    for server in servers:
        if isinstance(server, dict) and isinstance(server.get("url"), str):
            urls.append(server["url"])
        elif isinstance(server, str):
            urls.append(server)
    return tuple(urls)


def _security(requirements: Any) -> tuple[dict, ...]:
    if not isinstance(requirements, list):
        return ()
    return tuple(_plain(r) for r in requirements if isinstance(r, dict))


class _DocumentNormalizer:
    """State for a single normalize() call: the raw tree, warnings, and id/tag registries."""

    def __init__(self, raw: dict):
        self.raw = raw
        self.warnings: list[str] = []
        self.categories: dict[str, Category] = {}
        self.category_ids: set[str] = set()
        self.endpoint_ids: set[str] = set()

    # -- warnings / ids -------------------------------------------------------

    def _record(self, error: ReferenceResolutionError) -> None:
        self.warnings.append(str(error))

    def _warn(self, message: str) -> None:
        logger.warning("%s", message)
        self.warnings.append(message)

    def _unique(self, base: str, taken: set[str]) -> str:
        candidate = base
        suffix = 2
        while candidate in taken:
            candidate = f"{base}-{suffix}"
            suffix += 1
        taken.add(candidate)
        return candidate

    # -- resolution helpers ---------------------------------------------------

    def _follow(self, node: Any) -> Any:
        """Follow a chain of references to a concrete node, or None when it breaks."""
        seen: set[str] = set()
        while is_reference(node):
            pointer = node[REF_KEY]
            if pointer in seen:
                self._warn(f"Reference cycle at {pointer!r}")
                return None
            seen.add(pointer)
            target = resolve(pointer, self.raw)
            if isinstance(target, NotFound):
                error = target.to_error()
                logger.warning("%s", error)
                self._record(error)
                return None
            node = target
        return node

    def _schema(self, node: Any) -> Schema:
        resolve_errors: list[ReferenceResolutionError] = []
        resolved = resolve_deep(node, self.raw, warnings=resolve_errors)
        for error in resolve_errors:
            self._record(error)
        return to_schema(resolved)

    def _content(self, content: Any) -> dict[str, Schema]:
        if not isinstance(content, dict):
            return {}
        result = {}
        for media_type, media in content.items():
            schema = media.get("schema") if isinstance(media, dict) else None
            result[str(media_type)] = self._schema(schema) if schema is not None else PrimitiveSchema()
        return result

    # -- categories -----------------------------------------------------------

    def seed_categories(self) -> None:
        tags = self.raw.get("tags")
        if not isinstance(tags, list):
            return
        for tag in tags:
            if not isinstance(tag, dict) or not tag.get("name"):
                continue
            name = str(tag["name"])
            if name in self.categories:
                continue
            self.categories[name] = Category(
                id=self._unique(create_safe_id(name), self.category_ids),
                name=name,
                description=_text(tag.get("description")),
                external_docs=_plain(tag["externalDocs"]) if isinstance(tag.get("externalDocs"), dict) else None,
            )

    def ensure_category(self, name: str) -> None:
        if name not in self.categories:
            self.categories[name] = Category(
                id=self._unique(create_safe_id(name), self.category_ids),
                name=name,
            )

    # -- parameters / bodies / responses --------------------------------------

    def build_parameter(self, node: Any) -> Parameter | None:
        param = self._follow(node)
        if param is None:
            return None
        if not isinstance(param, dict):
            self._warn(f"Skipping parameter that is not a mapping: {param!r}")
            return None

        name = param.get("name")
        location = param.get("in")
        if not isinstance(name, str) or not name or location not in PARAMETER_LOCATIONS:
            self._warn(f"Skipping parameter with invalid name/location: {name!r} in {location!r}")
            return None

        if "schema" in param:
            schema = self._schema(param["schema"])
        elif isinstance(param.get("content"), dict) and param["content"]:
            content = self._content(param["content"])
            schema = content[preferred_media_type(content)]
        elif "type" in param:
            schema = self._schema({k: param[k] for k in _INLINE_SCHEMA_KEYS if k in param})
        else:
            schema = PrimitiveSchema()

        return Parameter(
            name=name,
            location=location,
            required=location == "path" or bool(param.get("required", False)),
            description=_text(param.get("description")),
            deprecated=bool(param.get("deprecated", False)),
            param_schema=schema,
        )

    def build_parameters(self, nodes: Any) -> list[Parameter]:
        if not isinstance(nodes, list):
            return []
        params = [self.build_parameter(node) for node in nodes]
        return [p for p in params if p is not None]

    def build_request_body(self, node: Any) -> RequestBody | None:
        if node is None:
            return None
        body = self._follow(node)
        if not isinstance(body, dict):
            return RequestBody()
        return RequestBody(
            description=_text(body.get("description")),
            required=bool(body.get("required", False)),
            content=self._content(body.get("content")),
        )

    def build_responses(self, node: Any) -> dict[str, Response]:
        if not isinstance(node, dict):
            return {}
        responses = {}
        for code, resp in node.items():
            resolved = self._follow(resp)
            if not isinstance(resolved, dict):
                responses[str(code)] = Response()
                continue
            responses[str(code)] = Response(
                description=_text(resolved.get("description")),
                content=self._content(resolved.get("content")),
            )
        return responses

    # -- endpoints ------------------------------------------------------------

    def build_endpoint(
        self,
        path: str,
        method: str,
        operation: dict,
        path_item: dict,
        path_params: list[Parameter],
    ) -> Endpoint:
        merged: dict[tuple[str, str], Parameter] = {}
        for param in path_params:
            merged[param.key] = param
        for param in self.build_parameters(operation.get("parameters")):
            merged[param.key] = param

        raw_tags = operation.get("tags")
        if isinstance(raw_tags, str):
            raw_tags = [raw_tags]
        tags = tuple(str(t) for t in raw_tags if t is not None) if isinstance(raw_tags, list) else ()
        if not tags:
            tags = (DEFAULT_TAG,)
        for tag in tags:
            self.ensure_category(tag)

        operation_id = operation.get("operationId")
        if not isinstance(operation_id, str) or not operation_id:
            operation_id = None
        id_source = operation_id or f"{method.lower()}{_PATH_PUNCTUATION.sub('_', path)}"

        if "security" in operation:
            security = _security(operation["security"])
        else:
            security = _security(self.raw.get("security"))

        servers = (
            _server_urls(operation.get("servers"))
            or _server_urls(path_item.get("servers"))
            or _server_urls(self.raw.get("servers"))
        )

        return Endpoint(
            id=self._unique(create_safe_id(id_source), self.endpoint_ids),
            operation_id=operation_id,
            path=path,
            method=method.upper(),
            summary=_text(operation.get("summary")),
            description=_text(operation.get("description")),
            parameters=tuple(merged.values()),
            request_body=self.build_request_body(operation.get("requestBody")),
            responses=self.build_responses(operation.get("responses")),
            tags=tags,
            primary_tag=tags[0],
            security=security,
            deprecated=bool(operation.get("deprecated", False)),
            servers=servers,
            external_docs=_plain(operation["externalDocs"]) if isinstance(operation.get("externalDocs"), dict) else None,
        )

    def build_endpoints(self) -> list[Endpoint]:
        endpoints = []
        for path, path_item in self.raw["paths"].items():
            path = str(path)
            path_item = self._follow(path_item)
            if not isinstance(path_item, dict):
                continue

            path_params = self.build_parameters(path_item.get("parameters"))
            for method, operation in path_item.items():
                if not isinstance(method, str) or method.upper() not in HTTP_METHODS:
                    continue
                if not isinstance(operation, dict):
                    continue
                endpoints.append(self.build_endpoint(path, method, operation, path_item, path_params))
        return endpoints

    def build_components(self) -> dict[str, Any]:
        components = self.raw.get("components")
        if not isinstance(components, dict):
            return {}
        resolved: dict[str, Any] = {}
        for section, entries in components.items():
            if not isinstance(entries, dict):
                resolved[section] = entries
                continue
            section_result = {}
            for name, entry in entries.items():
                errors: list[ReferenceResolutionError] = []
                section_result[name] = resolve_deep(entry, self.raw, warnings=errors)
                for error in errors:
                    self._record(error)
            resolved[section] = section_result
        return resolved

    def run(self) -> NormalizedDocument:
        self.seed_categories()
        endpoints = self.build_endpoints()
        components = self.build_components()

        info = self.raw.get("info") if isinstance(self.raw.get("info"), dict) else {}
        version = info.get("version", "1.0")
        security_schemes = components.get("securitySchemes")
        document = NormalizedDocument(
            title=_text(info.get("title")) or "API Documentation",
            description=_text(info.get("description")),
            version=str(version) if version is not None else "1.0",
            servers=_server_urls(self.raw.get("servers")),
            components=components,
            security_schemes=security_schemes if isinstance(security_schemes, dict) else {},
            endpoints=tuple(endpoints),
            categories=tuple(self.categories.values()),
            warnings=tuple(dict.fromkeys(self.warnings)),
        )
        logger.debug(
            "Normalized %d endpoints in %d categories (%d warnings)",
            len(document.endpoints),
            len(document.categories),
            len(document.warnings),
        )
        return document


def validate_document(raw: Any) -> None:
    """Raise ValidationError unless ``raw`` has an ``openapi`` marker and a non-empty ``paths`` mapping."""
    if not isinstance(raw, dict):
        raise ValidationError("Invalid OpenAPI specification: document root must be a mapping.")
    if not raw.get("openapi"):
        raise ValidationError("Invalid OpenAPI specification: Missing 'openapi' version.")
    paths = raw.get("paths")
    if not isinstance(paths, dict) or not paths:
        raise ValidationError("Invalid OpenAPI specification: Missing 'paths'.")


def normalize(raw: Any) -> NormalizedDocument:
    """Build the entity model for a raw OpenAPI document."""
    validate_document(raw)
    return _DocumentNormalizer(raw).run()
