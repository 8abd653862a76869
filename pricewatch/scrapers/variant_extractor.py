# pricewatch/scrapers/variant_extractor.py

"""Recovers per-variant offer records embedded in a product page.

The page body is HTML with JSON state blobs inlined into script tags,
so it cannot be decoded as a whole. The extractor looks for the marker
that introduces the variant array (``"simples":``), captures the array
with a bracket-depth scan and decodes only that fragment.

The same key can also appear on arrays at other depths (e.g. related
products without offers). A captured array that lacks the per-record
field is skipped and the search resumes after that marker, so a
misplaced match never hides a later valid one. Resuming right after
the marker, rather than after the rejected array, also finds a valid
array nested inside the rejected one.

Only whitespace may separate the marker from its ``[``. A marker followed
by anything else (an object, a string, ``null``) is not a variant array,
and taking the next ``[`` further on would capture an unrelated array.
"""

import json
import logging
from typing import Any

from pricewatch.config.settings import Settings
from pricewatch.models.offer import VariantRecord, variant_from_dict

logger = logging.getLogger("pricewatch.extractor")


def find_array_end(body: str, start: int) -> int | None:
    """Return the index of the ``]`` closing the array opened at *start*.

    Brackets inside JSON string literals are ignored. Returns ``None``
    when the array is never closed.
    """
    depth = 0
    in_string = False
    escaped = False
    for pos in range(start, len(body)):
        char = body[pos]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return pos
    return None


def _array_start(body: str, after_marker: int) -> int | None:
    """Index of the ``[`` right after a marker, skipping whitespace.

    ``None`` when any other character comes first.
    """
    pos = after_marker
    while pos < len(body) and body[pos].isspace():
        pos += 1
    if pos < len(body) and body[pos] == "[":
        return pos
    return None


def _decode_records(fragment: str) -> list[dict[str, Any]]:
    """Decode a captured fragment, keeping only dicts with size and offer."""
    try:
        decoded: Any = json.loads(fragment)
    except json.JSONDecodeError:
        return []
    if not isinstance(decoded, list):
        return []
    return [
        rec
        for rec in decoded
        if isinstance(rec, dict) and "size" in rec and "offer" in rec
    ]


def extract_variants(
    body: str,
    marker: str = Settings.VARIANT_MARKER,
    record_field: str = Settings.VARIANT_RECORD_FIELD,
) -> list[VariantRecord]:
    """Return the variant records of the first well-formed variant array.

    An empty list means no variant data is present in *body*. Records
    whose offer has an unexpected shape raise ``KeyError``, ``TypeError``
    or ``ValueError``.
    """
    cursor = 0
    skipped = 0
    while True:
        found = body.find(marker, cursor)
        if found == -1:
            break
        cursor = found + len(marker)

        start = _array_start(body, cursor)
        if start is None:
            skipped += 1
            continue

        end = find_array_end(body, start)
        if end is None:
            logger.debug("Unterminated variant array at offset %d", start)
            break

        fragment = body[start:end + 1]
        if record_field not in fragment:
            skipped += 1
            continue

        records = _decode_records(fragment)
        if not records:
            skipped += 1
            continue

        logger.debug(
            "Extracted %d variant records at offset %d (%d candidates skipped)",
            len(records),
            start,
            skipped,
        )
        return [variant_from_dict(rec) for rec in records]

    logger.debug("No variant array found (%d candidates skipped)", skipped)
    return []


def list_sizes(body: str) -> list[str]:
    """Distinct sizes offered on a page, in page order."""
    sizes: list[str] = []
    for record in extract_variants(body):
        if record.size not in sizes:
            sizes.append(record.size)
    return sizes
