"""Internal $ref resolution over a raw OpenAPI tree.

Only same-document pointers of the form ``#/a/b/c`` are followed, with the
JSON pointer escapes ``~1`` and ``~0`` decoded per segment. Anything
else is reported as ``NotFound`` and left in place by the caller.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any

from api_explorer.errors import ReferenceResolutionError

logger = logging.getLogger(__name__)

REF_KEY = "$ref"
_ARRAY_INDEX = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class NotFound:
    """Result of a pointer that does not designate a node."""

    pointer: Any
    reason: str

    def to_error(self) -> ReferenceResolutionError:
        return ReferenceResolutionError(str(self.pointer), self.reason)


def is_reference(node: Any) -> bool:
    """True for a mapping carrying a string ``$ref``."""
    return isinstance(node, dict) and isinstance(node.get(REF_KEY), str)


def resolve(pointer: Any, document: Any) -> Any:
    """Return the node ``pointer`` designates inside ``document``, or ``NotFound``."""
    if not isinstance(pointer, str):
        return NotFound(pointer, "pointer is not a string")
    if not pointer.startswith("#/"):
        return NotFound(pointer, "only internal '#/...' pointers are supported")

    current = document
    for raw_segment in pointer[2:].split("/"):
        # JSON pointer escapes: "~1" is "/", "~0" is "~"
        segment = raw_segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and _ARRAY_INDEX.fullmatch(segment) and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return NotFound(pointer, f"segment {segment!r} not found")
    return current


def resolve_deep(
    node: Any,
    document: Any,
    visited: set[str] | None = None,
    warnings: list[ReferenceResolutionError] | None = None,
) -> Any:
    """Inline every reference reachable from ``node``.

    ``visited`` is shared across the whole call tree, so a pointer is expanded
    at most once per top-level call; a second encounter (a cycle or a repeat)
    leaves the reference node as it is. Unresolvable references are kept too,
    logged and appended to ``warnings`` when a list is given.
    """
    if visited is None:
        visited = set()

    if is_reference(node):
        pointer = node[REF_KEY]
        if pointer in visited:
            return dict(node)
        visited.add(pointer)

        target = resolve(pointer, document)
        if isinstance(target, NotFound):
            error = target.to_error()
            logger.warning("%s", error)
            if warnings is not None:
                warnings.append(error)
            return dict(node)
        return resolve_deep(target, document, visited, warnings)

    if isinstance(node, dict):
        return {key: resolve_deep(value, document, visited, warnings) for key, value in node.items()}
    if isinstance(node, list):
        return [resolve_deep(item, document, visited, warnings) for item in node]
    return node
