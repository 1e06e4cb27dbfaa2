from datetime import date, datetime, time, timezone
from typing import Any, Iterable, Mapping, Optional
import re

EPOCH_MS_THRESHOLD = 10**11

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_timestamp(raw: Any) -> Optional[datetime]:
    if raw is None or raw == "" or isinstance(raw, bool):
        return None

    if isinstance(raw, datetime):
        return _to_naive_utc(raw)
    if isinstance(raw, date):
        return datetime.combine(raw, time.min)

    if isinstance(raw, (int, float)):
        seconds = raw / 1000 if abs(raw) >= EPOCH_MS_THRESHOLD else raw
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(raw, str):
        return None

    s = raw.strip()
    if s.endswith("Z") or s.endswith("z"):
        s = s[:-1] + "+00:00"
    if ISO_DATE_RE.match(s):
        s += "T00:00:00"
    try:
        return _to_naive_utc(datetime.fromisoformat(s))
    except ValueError:
        return None


def resolve_timestamp(record: Mapping[str, Any], fields: Iterable[str]) -> Optional[datetime]:
    """Return the first parseable timestamp among ``fields``, in order."""
    for name in fields:
        parsed = parse_timestamp(record.get(name))
        if parsed is not None:
            return parsed
    return None
