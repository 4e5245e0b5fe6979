"""Entity model produced by normalizing an OpenAPI document.

Every model is frozen: a NormalizedDocument is built once per load and
shared read-only by the ranker, the grouper and the search tool.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

HTTP_METHODS = ("GET", "PUT", "POST", "DELETE", "OPTIONS", "HEAD", "PATCH", "TRACE")
PARAMETER_LOCATIONS = ("path", "query", "header", "cookie")
DEFAULT_TAG = "default"
PREFERRED_MEDIA_TYPES = (
    "application/json",
    "application/x-www-form-urlencoded",
    "multipart/form-data",
    "text/plain",
)

HttpMethod = Literal["GET", "PUT", "POST", "DELETE", "OPTIONS", "HEAD", "PATCH", "TRACE"]
ParameterLocation = Literal["path", "query", "header", "cookie"]


class FrozenModel(BaseModel):
    """Attributes cannot be reassigned.

    Mapping fields (``properties``, ``content``, ``responses``, ``components``)
    are frozen only at the attribute level. The normalizer builds them fresh,
    sharing nothing with the raw tree, and no consumer writes to them.
    """

    model_config = ConfigDict(frozen=True)


class PrimitiveSchema(FrozenModel):
    """A scalar value: string / number / integer / boolean (or unknown)."""

    kind: Literal["primitive"] = "primitive"
    type: str = "any"
    format: str | None = None
    enum: tuple[Any, ...] = ()
    default: Any = None
    example: Any = None
    title: str = ""
    description: str = ""


class ObjectSchema(FrozenModel):
    kind: Literal["object"] = "object"
    properties: dict[str, "Schema"] = {}
    required: tuple[str, ...] = ()
    title: str = ""
    description: str = ""
    example: Any = None


class ArraySchema(FrozenModel):
    kind: Literal["array"] = "array"
    items: "Schema" = Field(default_factory=PrimitiveSchema)
    title: str = ""
    description: str = ""
    example: Any = None


class ReferenceSchema(FrozenModel):
    """A pointer left unexpanded: unresolvable, or stopped by the cycle guard."""

    kind: Literal["reference"] = "reference"
    ref: str
    description: str = ""


Schema = Annotated[
    Union[PrimitiveSchema, ObjectSchema, ArraySchema, ReferenceSchema],
    Field(discriminator="kind"),
]

ObjectSchema.model_rebuild()
ArraySchema.model_rebuild()


class Parameter(FrozenModel):
    """A single API parameter (path, query, header or cookie)."""

    name: str
    location: ParameterLocation
    required: bool = False
    description: str = ""
    deprecated: bool = False
    param_schema: Schema = Field(default_factory=PrimitiveSchema)

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.location)


def preferred_media_type(content: Mapping[str, Any] | None) -> str | None:
    """Pick the media type to show first: JSON, then forms, then text, then whatever is declared."""
    if not content:
        return None
    for media_type in PREFERRED_MEDIA_TYPES:
        if media_type in content:
            return media_type
    return next(iter(content))


class _WithContent(FrozenModel):
    description: str = ""
    content: dict[str, Schema] = {}

    @property
    def media_type(self) -> str | None:
        return preferred_media_type(self.content)

    @property
    def preferred_schema(self) -> Schema | None:
        media_type = self.media_type
        return self.content[media_type] if media_type else None


class RequestBody(_WithContent):
    required: bool = False


class Response(_WithContent):
    pass


class Endpoint(FrozenModel):
    """One HTTP method on one path, with everything needed to display or search it."""

    id: str
    operation_id: str | None = None
    path: str
    method: HttpMethod
    summary: str = ""
    description: str = ""
    parameters: tuple[Parameter, ...] = ()
    request_body: RequestBody | None = None
    responses: dict[str, Response] = {}
    tags: tuple[str, ...] = (DEFAULT_TAG,)
    primary_tag: str = DEFAULT_TAG
    security: tuple[dict[str, Any], ...] = ()
    deprecated: bool = False
    servers: tuple[str, ...] = ()
    external_docs: dict[str, Any] | None = None


class Category(FrozenModel):
    """A tag used to group endpoints for navigation."""

    id: str
    name: str
    description: str = ""
    external_docs: dict[str, Any] | None = None


class NormalizedDocument(FrozenModel):
    title: str = "API Documentation"
    description: str = ""
    version: str = "1.0"
    servers: tuple[str, ...] = ()
    components: dict[str, Any] = {}
    security_schemes: dict[str, Any] = {}
    endpoints: tuple[Endpoint, ...] = ()
    categories: tuple[Category, ...] = ()
    warnings: tuple[str, ...] = ()

    def get_endpoint(self, endpoint_id: str) -> Endpoint | None:
        for endpoint in self.endpoints:
            if endpoint.id == endpoint_id:
                return endpoint
        return None

    def get_category(self, key: str) -> Category | None:
        """Look up a category by id or by tag name."""
        for category in self.categories:
            if category.id == key or category.name == key:
                return category
        return None
