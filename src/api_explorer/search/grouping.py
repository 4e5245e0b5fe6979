"""Group endpoints under their categories for display and tool output."""

from collections.abc import Iterable, Sequence

from api_explorer.parser.base import DEFAULT_TAG, Category, Endpoint, NormalizedDocument
from api_explorer.search.ranker import rank


def group(endpoints: Iterable[Endpoint], categories: Sequence[Category]) -> list[tuple[Category, list[Endpoint]]]:
    """Bucket endpoints by primary tag, in category declaration order.

    Endpoints whose tag has no category land in the 'default' bucket, which is
    always emitted last. Buckets left empty are omitted; endpoint order within
    a bucket follows the input order.
    """
    known = {category.name: category for category in categories}
    buckets: dict[str, list[Endpoint]] = {category.name: [] for category in categories}
    buckets.setdefault(DEFAULT_TAG, [])

    for endpoint in endpoints:
        tag = endpoint.primary_tag if endpoint.primary_tag in known else DEFAULT_TAG
        buckets[tag].append(endpoint)

    default_category = known.get(DEFAULT_TAG) or Category(id=DEFAULT_TAG, name=DEFAULT_TAG)
    grouped = [
        (category, buckets[category.name])
        for category in categories
        if category.name != DEFAULT_TAG and buckets[category.name]
    ]
    if buckets[DEFAULT_TAG]:
        grouped.append((default_category, buckets[DEFAULT_TAG]))
    return grouped


def count_endpoints_in_category(endpoints: Iterable[Endpoint], tag_name: str) -> int:
    if not tag_name:
        return 0
    return sum(1 for endpoint in endpoints if endpoint.primary_tag == tag_name)


def filter_view(document: NormalizedDocument, query: str = "") -> list[tuple[Category, list[Endpoint]]]:
    """Ranked and grouped endpoints for the interactive browser."""
    return group(rank(document.endpoints, query), document.categories)
