"""Defensive decoding of JSON fields coming from external responses.

Upstream services sometimes store a JSON document as a string and then encode
the whole response again, so a field can arrive as a string containing JSON
(occasionally twice over). ``unwrap_json`` peels those layers off at the
ingestion boundary and never raises.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3


def unwrap_json(value: Any, default: Any = None, max_depth: int = DEFAULT_MAX_DEPTH) -> Any:
    """Decode ``value`` while it is a string, up to ``max_depth`` times.

    Returns the first non-string result. A parse failure, or a value that is
    still a string once ``max_depth`` decodes have been spent, yields
    ``default`` instead of an exception.
    """

    attempts = 0
    while isinstance(value, (str, bytes, bytearray)):
        if attempts >= max_depth:
            logger.warning("JSON field still encoded after %s unwraps; using default", max_depth)
            return default
        try:
            value = json.loads(value)
        except (TypeError, ValueError) as exc:
            logger.debug("Could not decode JSON field: %s", exc)
            return default
        attempts += 1
    return value


def unwrap_json_list(value: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> list:
    """Unwrap a field expected to hold a JSON array; anything else becomes ``[]``"""

    result = unwrap_json(value, default=[], max_depth=max_depth)
    return result if isinstance(result, list) else []


def configured_max_depth(fallback: int = DEFAULT_MAX_DEPTH) -> int:
    """Max unwrap depth from the active Flask config, when there is one"""

    if has_app_context():
        return int(current_app.config.get("JSON_UNWRAP_MAX_DEPTH", fallback))
    return fallback
