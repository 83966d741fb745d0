"""
Costing ID generation — CO-0001, CO-0002, ...

Next ID is max(existing numeric suffix) + 1, not a row count, so gaps and
out-of-order rows never produce a repeat.

KNOWN WEAK POINT: when the store can't be read, the ID falls back to the last
4 digits of the current epoch milliseconds. That keeps submissions working but
is neither monotonic nor guaranteed unique — the store's unique row key and
the service's retry loop are what actually prevent duplicates.
"""

import logging
import re
import time
from typing import Iterable

from .store import RecordStore, RecordStoreError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "CO-"
DEFAULT_WIDTH = 4
ID_COLUMN = "Costing ID"


def format_costing_id(number: int, prefix: str = DEFAULT_PREFIX, width: int = DEFAULT_WIDTH) -> str:
    return f"{prefix}{str(number).zfill(width)}"


def parse_costing_number(costing_id, prefix: str = DEFAULT_PREFIX):
    """Numeric part of an ID like 'CO-0012' -> 12. None if it doesn't match."""
    if not isinstance(costing_id, str):
        return None
    match = re.match(re.escape(prefix) + r"(\d+)", costing_id.strip())
    if not match:
        return None
    return int(match.group(1))


def next_costing_id(existing_ids: Iterable, prefix: str = DEFAULT_PREFIX,
                    width: int = DEFAULT_WIDTH) -> str:
    """Next ID after the highest valid one. No valid IDs -> prefix + 0001."""
    max_number = 0
    for costing_id in existing_ids:
        number = parse_costing_number(costing_id, prefix)
        if number is not None and number > max_number:
            max_number = number
    return format_costing_id(max_number + 1, prefix, width)


def fallback_costing_id(prefix: str = DEFAULT_PREFIX, now_ms: int = None) -> str:
    """Timestamp-derived ID: prefix + last 4 digits of epoch milliseconds."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{prefix}{str(now_ms)[-4:]}"


def generate_next_costing_id(store: RecordStore, sheet_name: str,
                             prefix: str = DEFAULT_PREFIX, width: int = DEFAULT_WIDTH) -> str:
    """Scan the sheet for the next ID; degrade to the timestamp fallback on store errors."""
    try:
        rows = store.read_all_rows(sheet_name)
    except RecordStoreError as e:
        fallback = fallback_costing_id(prefix)
        logger.warning(
            "Error generating next Costing ID from %s (%s) — using fallback %s",
            sheet_name, e, fallback,
        )
        return fallback
    return next_costing_id((row.get(ID_COLUMN) for row in rows), prefix, width)
