"""Timestamp utilities for snapshot bucketing and CLI date arguments."""

from datetime import UTC, datetime

from swap_indexer.core.models import Granularity


def bucket_id(timestamp: int, granularity: Granularity) -> int:
    """Return the bucket number containing a Unix timestamp.

    Buckets are aligned to the Unix epoch, so day ``n`` spans
    ``[n * 86400, (n + 1) * 86400)``.

    Args:
        timestamp: Unix timestamp in seconds.
        granularity: Bucket width.

    Returns:
        Zero-based bucket number.

    """
    return timestamp // granularity.value


def bucket_start(bucket: int, granularity: Granularity) -> int:
    """Return the Unix timestamp at which a bucket opens."""
    return bucket * granularity.value


def parse_timestamp(value: str) -> int:
    """Parse a date string or raw integer into a Unix timestamp.

    Accept ISO 8601 date strings (``2024-01-01``, ``2024-01-01T12:00:00``)
    or raw integer Unix timestamps.

    Args:
        value: Date string or integer timestamp.

    Returns:
        Unix timestamp in seconds.

    Raises:
        ValueError: If the value cannot be parsed.

    """
    try:
        return int(value)
    except ValueError:
        pass

    for fmt in ("%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"):
        try:
            dt = datetime.strptime(value, fmt).replace(tzinfo=UTC)
            return int(dt.timestamp())
        except ValueError:
            continue

    msg = f"Cannot parse timestamp: {value!r}. Use ISO 8601 (YYYY-MM-DD) or a Unix timestamp."
    raise ValueError(msg)
