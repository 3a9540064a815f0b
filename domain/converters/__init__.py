"""
Domain converters for transforming external formats to canonical models.

This module provides pure converter functions:

- sessions_from_records: raw session records -> Session (date normalization)
- normalize_timestamp: any supported timestamp shape -> aware datetime
- exercise_map_from_rows: catalog rows -> muscle lookup map
- db_row_to_goal / goal_to_db_row: Supabase rows <-> Goal

All converters are pure functions with no side effects.

Examples:
    >>> from domain.converters import sessions_from_records

    >>> sessions = sessions_from_records([
    ...     {"id": "s1", "completed_at": "2024-01-15T18:30:00Z", "exercises": []},
    ... ])
"""

from domain.converters.exercise_converters import (
    exercise_map_from_rows,
    muscles_from_row,
    resolve_muscles,
)
from domain.converters.goal_converters import (
    db_row_to_goal,
    goal_to_db_row,
    split_goal_fields,
)
from domain.converters.session_converters import (
    normalize_timestamp,
    session_from_record,
    sessions_from_records,
)

__all__ = [
    "normalize_timestamp",
    "session_from_record",
    "sessions_from_records",
    "exercise_map_from_rows",
    "muscles_from_row",
    "resolve_muscles",
    "db_row_to_goal",
    "goal_to_db_row",
    "split_goal_fields",
]
