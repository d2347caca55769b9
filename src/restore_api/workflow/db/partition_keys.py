"""
Restore Table Keys

Partition key, row key and status location helpers.

Partition keys are week buckets, ``{iso_year}_{iso_week}``, computed from the
clock at the moment of the call. Insert and dequeue both compute the bucket
from "now", so a request left pending past the end of its week is no longer
reached by the dequeue scan. Point lookups and updates are unaffected since
their keys come from the status location URI.
"""

from datetime import datetime
from typing import Tuple
from urllib.parse import unquote
from urllib.parse import urlparse
from uuid import uuid4

from restore_api.errors import MalformedLocatorError


def week_partition_key(moment: datetime) -> str:
    """
    Week bucket for a point in time.

    Uses the ISO calendar, so the first days of January can belong to the last
    week of the previous year (2021-01-01 -> "2020_53").
    """
    iso_year, iso_week, _ = moment.isocalendar()
    return f"{iso_year}_{iso_week}"


def new_row_key() -> str:
    """Generate a fresh request identifier."""
    return str(uuid4())


def build_status_location(base_uri: str, partition_key: str, row_key: str) -> str:
    """Append the key pair to the status base URI: ``{base}/{partition_key}/{row_key}``."""
    return f"{base_uri.rstrip('/')}/{partition_key}/{row_key}"


def parse_status_location(locator: str) -> Tuple[str, str]:
    """
    Extract (partition_key, row_key) from a status location URI.

    The last path segment is the row key and the one before it the partition
    key. Absolute URLs and bare paths are both accepted; query strings and
    fragments are ignored.

    Raises:
        MalformedLocatorError: if the path does not end in two non-empty segments
    """
    if not locator or not locator.strip():
        raise MalformedLocatorError(locator, "empty locator")

    path = urlparse(locator.strip()).path
    segments = path.split("/")
    if len(segments) < 2:
        raise MalformedLocatorError(locator, "fewer than two path segments")

    partition_key = unquote(segments[-2])
    row_key = unquote(segments[-1])
    if not partition_key or not row_key:
        raise MalformedLocatorError(locator, "empty partition key or row key segment")

    return partition_key, row_key
