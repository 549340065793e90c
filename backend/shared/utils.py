from datetime import datetime, timezone
from typing import Iterator, Sequence, TypeVar

T = TypeVar("T")


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: datetime) -> str:
    """Serialize a datetime for Supabase timestamptz columns."""
    return ensure_utc(value).isoformat()


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive fixed-size slices (the last one may be shorter)."""
    if size < 1:
        raise ValueError("size must be at least 1")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def print_summary(
    frequency: str,
    processed: int,
    sent: int,
    errors: int,
    skipped: int,
    deferred: int = 0,
) -> None:
    """Print saved-search run summary."""
    print(f"\n{'=' * 60}")
    print(f"[{datetime.now()}] Saved Search Run Complete ({frequency})")
    print(f"{'=' * 60}")
    print(f"✓ Processed: {processed}")
    print(f"✉ Notifications sent: {sent}")
    print(f"⊘ Skipped (no email): {skipped}")
    print(f"✗ Errors: {errors}")
    if deferred:
        print(f"⏱ Deferred to next run: {deferred}")
    print(f"{'=' * 60}\n")


_POSTGREST_RESERVED = set(',.:()" \\')


def postgrest_value(value: object) -> str:
    """
    Format a value for use inside a PostgREST logic filter (or=(...)).

    Values containing reserved characters are double-quoted with quotes and
    backslashes escaped, as PostgREST requires.
    """
    text = str(value)
    if not any(c in _POSTGREST_RESERVED for c in text):
        return text
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
