"""
Converters: raw session records -> canonical Session models.

Session records reach the engine from several sources, and their completion
times come in heterogeneous shapes: datetime objects, plain dates, ISO-8601
strings, epoch seconds/milliseconds, and timestamp mappings such as
``{"seconds": ..., "nanoseconds": ...}``. This module is the single
ingestion boundary: every representation is normalized here into a
timezone-aware datetime so calculators never branch on date format.

Supported record shape (keys in either snake_case or camelCase):
- id / completion_id
- completed_at / completedAt / ended_at (falls back to created_at / started_at)
- status: records with a status other than "completed" are skipped
- exercises: [{name, exercise_id, muscle_group, sets: [{weight, reps}]}]
  where weight may be a number or {"components": [{"value": ...}]} and reps
  may be given as reps or reps_completed

All converters are pure functions with no side effects.
"""

import logging
from datetime import date, datetime, time, timezone, tzinfo
from typing import Any, Iterable, List, Mapping, Optional

from domain.models import ExerciseEntry, Session, SetEntry

logger = logging.getLogger(__name__)

COMPLETION_KEYS = ("completed_at", "completedAt", "ended_at")
FALLBACK_KEYS = ("created_at", "createdAt", "started_at")

# Epoch numbers at or above this are milliseconds (year 5138 in seconds)
EPOCH_MS_THRESHOLD = 100_000_000_000


def normalize_timestamp(value: Any, tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """
    Normalize any supported timestamp representation to an aware datetime.

    Naive datetimes, plain dates and offset-less ISO strings are read as
    wall-clock time in ``tz``. The result is always expressed in ``tz`` so
    that ``.date()`` yields the local calendar day.

    Args:
        value: Timestamp in any supported representation
        tz: Timezone used for naive values and for the result

    Returns:
        Aware datetime, or None if the value cannot be interpreted
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=tz)
        return value.astimezone(tz)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=tz)

    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) >= EPOCH_MS_THRESHOLD else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc).astimezone(tz)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return normalize_timestamp(parsed, tz)

    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            nanos = value.get("nanoseconds", value.get("_nanoseconds")) or 0
            moment = datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
            return moment.astimezone(tz)

    return None


def _parse_weight(value: Any) -> float:
    """Parse a set weight from a number, string, or structured load."""
    if isinstance(value, Mapping):
        components = value.get("components") or []
        if components:
            return _parse_weight(components[0].get("value"))
        return _parse_weight(value.get("value"))
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def _parse_reps(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _first(record: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None


def set_from_record(record: Mapping[str, Any]) -> Optional[SetEntry]:
    """Convert a raw set. Skipped sets are dropped."""
    if record.get("status") == "skipped":
        return None
    reps = record.get("reps")
    if reps is None:
        reps = record.get("reps_completed")
    return SetEntry(weight=_parse_weight(record.get("weight")), reps=_parse_reps(reps))


def exercise_from_record(record: Mapping[str, Any]) -> ExerciseEntry:
    """Convert a raw logged exercise."""
    sets = [set_from_record(s) for s in record.get("sets") or []]
    return ExerciseEntry(
        name=_first(record, ("name", "exercise_name", "exerciseName")) or "",
        exercise_id=_first(record, ("exercise_id", "exerciseId", "canonical_exercise_id")),
        muscle_group=_first(record, ("muscle_group", "muscleGroup")),
        sets=tuple(s for s in sets if s is not None),
    )


def session_from_record(
    record: Mapping[str, Any],
    tz: tzinfo = timezone.utc,
) -> Optional[Session]:
    """
    Convert one raw session record.

    Returns:
        Session, or None when no usable completion time is present
    """
    completed_at = normalize_timestamp(_first(record, COMPLETION_KEYS), tz)
    if completed_at is None:
        completed_at = normalize_timestamp(_first(record, FALLBACK_KEYS), tz)
    if completed_at is None:
        return None

    return Session(
        id=str(_first(record, ("id", "completion_id")) or ""),
        completed_at=completed_at,
        exercises=tuple(exercise_from_record(e) for e in record.get("exercises") or []),
    )


def sessions_from_records(
    records: Iterable[Mapping[str, Any]],
    tz: tzinfo = timezone.utc,
) -> List[Session]:
    """
    Convert raw records into completed sessions, oldest first.

    Records explicitly marked with a non-completed status are skipped, as are
    records without any interpretable timestamp.
    """
    sessions: List[Session] = []
    for record in records:
        status = record.get("status")
        if status is not None and status != "completed":
            continue
        session = session_from_record(record, tz)
        if session is None:
            logger.warning(
                f"Skipping session record {record.get('id')!r}: no usable completion time"
            )
            continue
        sessions.append(session)

    sessions.sort(key=lambda s: s.completed_at)
    return sessions
