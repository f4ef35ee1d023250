"""
Structured-data convention for completion responses.

A response carries machine-readable data as the first fenced block
(```json … ``` or a bare ``` … ```). parse_response() never raises:
anything that cannot be decoded comes back as UnstructuredResponse so
callers can fall back to prose heuristics or defaults.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

_FENCED_BLOCK_RE = re.compile(r"```(?:json|JSON)?[ \t]*\n?(.*?)```", re.DOTALL)


@dataclass(frozen=True)
class StructuredResponse:
    data: Any


@dataclass(frozen=True)
class UnstructuredResponse:
    text: str


ParsedResponse = Union[StructuredResponse, UnstructuredResponse]


def extract_fenced_block(text: str) -> Optional[str]:
    """Return the body of the first fenced block, or None."""
    match = _FENCED_BLOCK_RE.search(text)
    if match is None:
        return None
    return match.group(1).strip()


def parse_response(text: str) -> ParsedResponse:
    block = extract_fenced_block(text)
    if block is None:
        return UnstructuredResponse(text)
    try:
        return StructuredResponse(json.loads(block))
    except json.JSONDecodeError as exc:
        logger.warning(f"[PARSE] Fenced block is not valid JSON: {exc}")
        return UnstructuredResponse(text)


def structured_dict(text: str) -> dict[str, Any]:
    """Decoded fenced block when it is a JSON object, else {}."""
    parsed = parse_response(text)
    if isinstance(parsed, StructuredResponse) and isinstance(parsed.data, dict):
        return parsed.data
    return {}
