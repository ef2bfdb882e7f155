# ─────────────────────────────────────────────────────────────────────────────
# Output Extraction — provider result payload → single image URL
# ─────────────────────────────────────────────────────────────────────────────
# Providers return the result as a plain URL string, an object exposing one
# of a few known fields, or a list of either. All shapes are resolved here.
# ─────────────────────────────────────────────────────────────────────────────

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from roomdesigner.exceptions import ExtractionError

logger = structlog.get_logger(__name__)

# Checked in order on object-shaped outputs.
_URL_FIELDS: tuple[str, ...] = ("url", "image", "output")


def _from_single(item: Any) -> str | None:
    if isinstance(item, str):
        return item or None
    if isinstance(item, Mapping):
        for key in _URL_FIELDS:
            value = item.get(key)
            if isinstance(value, str) and value:
                return value
    return None


def extract_output_url(output: Any) -> str:
    """Normalize a provider result into exactly one image URL.

    Lists resolve to their first element.

    Raises:
        ExtractionError: when no recognized shape yields a non-empty URL.
    """
    if isinstance(output, Sequence) and not isinstance(output, str):
        url = _from_single(output[0]) if output else None
        shape = "list"
    else:
        url = _from_single(output)
        shape = type(output).__name__

    if url is None:
        logger.error(
            "output_extraction_failed",
            shape=shape,
            keys=sorted(output) if isinstance(output, Mapping) else None,
        )
        raise ExtractionError()

    logger.debug("output_extracted", shape=shape)
    return url
