"""Weighted free-text ranking of endpoints.

Each query term is matched (case-insensitive substring) against the fields of
an endpoint; every matching field adds its weight. Scores are integers and
ties are broken by path, so the same query always yields the same order.
"""

import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from api_explorer.parser.base import (
    ArraySchema,
    Endpoint,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
    Schema,
)

WEIGHTS = {
    "path": 15,
    "summary": 10,
    "operation_id": 10,
    "tag": 8,
    "parameter": 7,
    "response_code": 6,
    "schema_property": 5,
    "description": 2,
    "schema_description": 1,
    "schema_other": 1,
}
MULTI_TERM_BONUS = 5
MIN_TERM_LENGTH = 2

_TERM_SEPARATORS = re.compile(r"[\s/]+")


@dataclass(frozen=True)
class Hit:
    """One weighted match of a term in a field."""

    field: str
    term: str
    weight: int


@dataclass(frozen=True)
class RankedEndpoint:
    endpoint: Endpoint
    score: int
    hits: tuple[Hit, ...] = field(default=(), compare=False)


def tokenize(query: str) -> list[str]:
    """Lowercase, split on whitespace and '/', drop short and repeated terms."""
    if not query:
        return []
    terms = [t for t in _TERM_SEPARATORS.split(query.lower()) if len(t) >= MIN_TERM_LENGTH]
    return list(dict.fromkeys(terms))


def _scalar_texts(value: Any) -> Iterator[str]:
    if isinstance(value, (str, int, float, bool)):
        yield str(value)
    elif isinstance(value, (list, tuple)):
        for item in value:
            if isinstance(item, (str, int, float, bool)):
                yield str(item)


def _schema_texts(schema: Schema, skip_description: bool = False) -> Iterator[str]:
    """Every piece of text in a schema subtree."""
    if not skip_description:
        yield schema.description
    if isinstance(schema, ReferenceSchema):
        yield schema.ref
        return
    yield schema.title
    yield from _scalar_texts(schema.example)
    if isinstance(schema, PrimitiveSchema):
        yield schema.format or ""
        yield from _scalar_texts(schema.enum)
        yield from _scalar_texts(schema.default)
    elif isinstance(schema, ObjectSchema):
        for name, prop in schema.properties.items():
            yield name
            yield from _schema_texts(prop)
    elif isinstance(schema, ArraySchema):
        yield from _schema_texts(schema.items)


def _nested_texts(schema: Schema) -> Iterator[str]:
    """Schema text not covered by the property-name and description weights."""
    if isinstance(schema, ReferenceSchema):
        yield schema.ref
        return
    yield schema.title
    yield from _scalar_texts(schema.example)
    if isinstance(schema, PrimitiveSchema):
        yield schema.format or ""
        yield from _scalar_texts(schema.enum)
        yield from _scalar_texts(schema.default)
    elif isinstance(schema, ObjectSchema):
        for prop in schema.properties.values():
            yield from _schema_texts(prop, skip_description=True)
    elif isinstance(schema, ArraySchema):
        yield from _schema_texts(schema.items)


def _contains(text: str | None, term: str) -> bool:
    return bool(text) and term in text.lower()


def _endpoint_schemas(endpoint: Endpoint) -> Iterator[Schema]:
    for param in endpoint.parameters:
        yield param.param_schema
    if endpoint.request_body is not None and endpoint.request_body.preferred_schema is not None:
        yield endpoint.request_body.preferred_schema
    for response in endpoint.responses.values():
        if response.preferred_schema is not None:
            yield response.preferred_schema


def _term_hits(endpoint: Endpoint, term: str) -> list[Hit]:
    hits: list[Hit] = []

    def check(text: str | None, field_name: str) -> None:
        if _contains(text, term):
            hits.append(Hit(field_name, term, WEIGHTS[field_name]))

    check(endpoint.path, "path")
    check(endpoint.summary, "summary")
    check(endpoint.operation_id, "operation_id")
    for tag in endpoint.tags:
        check(tag, "tag")
    for param in endpoint.parameters:
        check(param.name, "parameter")
    for code in endpoint.responses:
        check(code, "response_code")

    check(endpoint.description, "description")
    for param in endpoint.parameters:
        check(param.description, "description")
    if endpoint.request_body is not None:
        check(endpoint.request_body.description, "description")
    for response in endpoint.responses.values():
        check(response.description, "description")

    for schema in _endpoint_schemas(endpoint):
        if isinstance(schema, ObjectSchema):
            for name, prop in schema.properties.items():
                check(name, "schema_property")
                check(prop.description, "schema_description")
        check(schema.description, "schema_description")
        if any(_contains(text, term) for text in _nested_texts(schema)):
            hits.append(Hit("schema_other", term, WEIGHTS["schema_other"]))

    return hits


def explain(endpoint: Endpoint, query_terms: Sequence[str] | str) -> list[Hit]:
    """List every weighted match behind ``score``, including the multi-term bonus."""
    terms = tokenize(query_terms) if isinstance(query_terms, str) else list(query_terms)
    hits: list[Hit] = []
    matched_terms = 0
    for term in terms:
        term_hits = _term_hits(endpoint, term)
        if term_hits:
            matched_terms += 1
            hits.extend(term_hits)

    if len(terms) > 1 and matched_terms > 1:
        hits.append(Hit("multi_term_bonus", "", MULTI_TERM_BONUS * matched_terms))
    return hits


def score(endpoint: Endpoint, query_terms: Sequence[str] | str) -> int:
    """Relevance of ``endpoint`` for the given terms (or raw query string)."""
    return sum(hit.weight for hit in explain(endpoint, query_terms))


def search(endpoints: Iterable[Endpoint], query: str, limit: int | None = None) -> list[RankedEndpoint]:
    """Score every endpoint and return the matches, best first.

    Endpoints scoring zero are left out. Ties are ordered by path.
    """
    terms = tokenize(query)
    if not terms:
        return []

    results = []
    for endpoint in endpoints:
        hits = explain(endpoint, terms)
        total = sum(hit.weight for hit in hits)
        if total > 0:
            results.append(RankedEndpoint(endpoint=endpoint, score=total, hits=tuple(hits)))

    results.sort(key=lambda r: (-r.score, r.endpoint.path))
    if limit is not None:
        results = results[:limit]
    return results


def rank(endpoints: Iterable[Endpoint], query: str) -> list[Endpoint]:
    """Order endpoints for a query. A blank query returns them all, unranked."""
    if not query or not query.strip():
        return list(endpoints)
    return [result.endpoint for result in search(endpoints, query)]
