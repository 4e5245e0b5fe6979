"""Read OpenAPI documents from JSON or YAML text."""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from api_explorer.errors import ParseError
from api_explorer.parser.base import NormalizedDocument
from api_explorer.parser.openapi import normalize

logger = logging.getLogger(__name__)


def _looks_like_json(text: str) -> bool:
    stripped = text.strip()
    return stripped.startswith("{") and stripped.endswith("}")


def load_document(text: str) -> dict[str, Any]:
    """Parse document text into a raw tree.

    Text wrapped in braces is read as JSON, anything else as YAML.
    Raises ParseError with the line/column of the problem when known.
    """
    if not text or not text.strip():
        raise ParseError("No specification content provided.")

    if _looks_like_json(text):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"JSON parsing error: {e.msg}", line=e.lineno, column=e.colno) from e
    else:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            problem = getattr(e, "problem", None) or str(e)
            if mark is not None:
                raise ParseError(f"YAML parsing error: {problem}", line=mark.line + 1, column=mark.column + 1) from e
            raise ParseError(f"YAML parsing error: {problem}") from e

    if not isinstance(data, dict):
        raise ParseError("Parsed content is not a valid object.")
    return data


def load_file(file_path: Path) -> dict[str, Any]:
    """Read a JSON/YAML OpenAPI file into a raw tree."""
    text = Path(file_path).read_text(encoding="utf-8")
    logger.debug("Read %d characters from %s", len(text), file_path)
    return load_document(text)


def load_spec(file_path: Path) -> NormalizedDocument:
    """Load and normalize an OpenAPI file in one step."""
    return normalize(load_file(file_path))
