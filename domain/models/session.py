"""
Completed training session - read-only input to goal evaluation.

Sessions arrive from the session provider in whatever shape the source
stores them. They are normalized once at the ingestion boundary
(domain.converters.session_converters) into these frozen models, so every
completion time seen by the calculators is a timezone-aware datetime.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


def normalize_name(name: Optional[str]) -> str:
    """Case- and whitespace-insensitive key for exercise and muscle names."""
    return " ".join((name or "").split()).lower()


class SetEntry(BaseModel):
    """A single performed set."""

    model_config = ConfigDict(frozen=True)

    weight: float = Field(default=0.0, description="Load in kg")
    reps: int = Field(default=0, description="Repetitions completed")

    @property
    def volume(self) -> float:
        if self.weight <= 0 or self.reps <= 0:
            return 0.0
        return self.weight * self.reps


class ExerciseEntry(BaseModel):
    """One exercise logged within a session."""

    model_config = ConfigDict(frozen=True)

    name: str
    exercise_id: Optional[str] = None
    muscle_group: Optional[str] = Field(
        default=None,
        description="Muscle group recorded on the entry itself (catalog fallback)",
    )
    sets: Tuple[SetEntry, ...] = ()

    def matches(self, exercise_name: str) -> bool:
        return normalize_name(self.name) == normalize_name(exercise_name)


class Session(BaseModel):
    """A completed session. Immutable once ingested."""

    model_config = ConfigDict(frozen=True)

    id: str
    completed_at: datetime
    exercises: Tuple[ExerciseEntry, ...] = ()

    def entries_for(self, exercise_name: str) -> List[ExerciseEntry]:
        """All entries of the named exercise in this session."""
        return [e for e in self.exercises if e.matches(exercise_name)]

    def has_exercise(self, exercise_name: str) -> bool:
        return any(e.matches(exercise_name) for e in self.exercises)
