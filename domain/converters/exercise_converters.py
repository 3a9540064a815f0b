"""
Converters: exercise catalog rows -> muscle lookup map.

The catalog stores primary muscles as a list (``primary_muscles``) and
assisting muscles as ``secondary_muscles``. Older rows carry a single
``muscle_group`` / ``secondaryMuscles`` pair instead. Both shapes are folded
into ExerciseMuscles and keyed by exercise id, normalized name and aliases.
"""

from typing import Any, Dict, Iterable, Mapping, Optional

from domain.models import ExerciseEntry, ExerciseMuscles, normalize_name


def muscles_from_row(row: Mapping[str, Any]) -> ExerciseMuscles:
    """Build the muscle profile of one catalog row."""
    primaries = list(row.get("primary_muscles") or [])
    single = row.get("muscle_group") or row.get("muscleGroup")
    if single and single not in primaries:
        primaries.insert(0, single)

    secondaries = list(row.get("secondary_muscles") or row.get("secondaryMuscles") or [])

    return ExerciseMuscles(
        primary_muscle=primaries[0] if primaries else None,
        secondary_muscles=tuple(primaries[1:] + secondaries),
    )


def exercise_map_from_rows(rows: Iterable[Mapping[str, Any]]) -> Dict[str, ExerciseMuscles]:
    """
    Build the catalog lookup used by muscle-group goals.

    Keys are exercise ids as stored plus normalized names and aliases, so a
    logged exercise can be resolved by whichever identifier it carries.
    """
    exercise_map: Dict[str, ExerciseMuscles] = {}
    for row in rows:
        muscles = muscles_from_row(row)
        if row.get("id"):
            exercise_map[str(row["id"])] = muscles
        if row.get("name"):
            exercise_map.setdefault(normalize_name(row["name"]), muscles)
        for alias in row.get("aliases") or []:
            exercise_map.setdefault(normalize_name(alias), muscles)
    return exercise_map


def resolve_muscles(
    entry: ExerciseEntry,
    exercise_map: Optional[Mapping[str, ExerciseMuscles]],
) -> Optional[ExerciseMuscles]:
    """Look up a logged exercise by id, then by name."""
    if not exercise_map:
        return None
    if entry.exercise_id and entry.exercise_id in exercise_map:
        return exercise_map[entry.exercise_id]
    return exercise_map.get(normalize_name(entry.name))
