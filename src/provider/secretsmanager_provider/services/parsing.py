"""Parsers turning a Secrets Manager body into a flat key/value mapping.

``parse_secret_string`` is the historical parser. It is a plain substring
scan, not a JSON decoder, and it is kept byte-for-byte compatible with
secrets already deployed against it: commas inside values split entries,
whitespace after ``:`` yields empty values and non-string values are not
understood. ``parse_secret_json`` is the strict alternative, enabled with
``cloud.secret.format=json``.
"""

from __future__ import annotations

import json
import logging
from typing import Callable

logger = logging.getLogger(__name__)

SecretParser = Callable[[str | None], dict[str, str]]


def _substring_after(text: str, separator: str) -> str:
    index = text.find(separator)
    if index < 0:
        return ""
    return text[index + len(separator):]


def _substring_before(text: str, separator: str) -> str:
    index = text.find(separator)
    if index < 0:
        return text
    return text[:index]


def parse_secret_string(secret_string: str | None) -> dict[str, str]:
    """Split a flat ``{"key":"value",...}`` body into a mapping."""
    secret_data: dict[str, str] = {}
    if not secret_string:
        return secret_data

    all_values = _substring_before(_substring_after(secret_string, "{"), "}")
    for pair in all_values.split(","):
        if not pair:
            continue
        key = _substring_after(_substring_before(pair, '":'), '"')
        logger.debug("Processing secret entry %r", key)
        secret_data[key] = _substring_before(_substring_after(pair, ':"'), '"')
    return secret_data


def parse_secret_json(secret_string: str | None) -> dict[str, str]:
    """Decode a JSON object whose values are all strings.

    Raises ``ValueError`` for anything else, including nested objects,
    arrays, numbers, booleans and null values.
    """
    if not secret_string or not secret_string.strip():
        return {}

    try:
        decoded = json.loads(secret_string)
    except json.JSONDecodeError as exc:
        raise ValueError(f"secret body is not valid JSON: {exc.msg} at position {exc.pos}") from exc

    if not isinstance(decoded, dict):
        raise ValueError(f"secret body must be a JSON object, got {type(decoded).__name__}")

    secret_data: dict[str, str] = {}
    for key, value in decoded.items():
        if not isinstance(value, str):
            raise ValueError(f"value of key '{key}' must be a string, got {type(value).__name__}")
        secret_data[key] = value
    return secret_data


PARSERS: dict[str, SecretParser] = {
    "legacy": parse_secret_string,
    "json": parse_secret_json,
}


def get_parser(name: str) -> SecretParser:
    try:
        return PARSERS[name]
    except KeyError:
        raise ValueError(f"unknown secret format '{name}'; expected one of {sorted(PARSERS)}") from None
