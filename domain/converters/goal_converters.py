"""
Converters: Database row format <-> domain Goal.

Provides bidirectional conversion between Supabase rows and the Goal
tagged variant.

Database schema (goals table):
- id: UUID
- owner_id: User ID
- type: Goal type tag (strength, volume, frequency, streak)
- status: Lifecycle status (active, completed, failed, paused)
- milestones_reached: Array of integers
- pending_milestones: Array of integers (reached, notification not yet delivered)
- definition: JSONB (type-specific payload, e.g. target_weight, period)
- notes: Free text
- created_at, updated_at, completed_at, failed_at: Timestamps
"""

from typing import Any, Dict, Mapping, Tuple

from domain.models import Goal, parse_goal

# Columns stored directly on the goals table; everything else lives in definition
ENVELOPE_COLUMNS = (
    "id",
    "owner_id",
    "type",
    "status",
    "milestones_reached",
    "pending_milestones",
    "notes",
    "created_at",
    "updated_at",
    "completed_at",
    "failed_at",
)


def db_row_to_goal(row: Mapping[str, Any]) -> Goal:
    """
    Convert a database row to a domain Goal.

    Raises:
        pydantic.ValidationError: If the stored row does not form a valid goal.
    """
    data: Dict[str, Any] = dict(row.get("definition") or {})
    for column in ENVELOPE_COLUMNS:
        if row.get(column) is not None:
            data[column] = row[column]
    return parse_goal(data)


def goal_to_db_row(goal: Goal) -> Dict[str, Any]:
    """Convert a domain Goal to a database row (JSON-safe values)."""
    data = goal.model_dump(mode="json")
    row = {column: data.get(column) for column in ENVELOPE_COLUMNS}
    if row["id"] is None:
        del row["id"]
    row["definition"] = {k: v for k, v in data.items() if k not in ENVELOPE_COLUMNS}
    return row


def split_goal_fields(fields: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Split a partial update into envelope columns and definition keys.

    Returns:
        (column_updates, definition_updates)
    """
    columns: Dict[str, Any] = {}
    definition: Dict[str, Any] = {}
    for key, value in fields.items():
        if key in ENVELOPE_COLUMNS:
            columns[key] = value
        else:
            definition[key] = value
    return columns, definition
