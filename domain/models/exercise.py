"""
Exercise catalog value object.

The exercise catalog is an external collaborator; goal evaluation only needs
to know which muscles an exercise trains so that muscle-group volume and
frequency goals can decide which logged exercises count.

Examples:
    >>> muscles = ExerciseMuscles(
    ...     primary_muscle="chest",
    ...     secondary_muscles=("triceps", "anterior_deltoid"),
    ... )
    >>> muscles.trains("Triceps")
    True
"""

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from domain.models.session import normalize_name


class ExerciseMuscles(BaseModel):
    """Muscles trained by a catalog exercise."""

    model_config = ConfigDict(frozen=True)

    primary_muscle: Optional[str] = Field(
        default=None, description="Main muscle group (e.g., 'chest')"
    )
    secondary_muscles: Tuple[str, ...] = Field(
        default=(), description="Assisting muscle groups"
    )

    @property
    def all_muscles(self) -> Tuple[str, ...]:
        if self.primary_muscle:
            return (self.primary_muscle,) + self.secondary_muscles
        return self.secondary_muscles

    def trains(self, muscle_group: str) -> bool:
        """Check whether the primary or a secondary muscle matches."""
        target = normalize_name(muscle_group)
        return any(normalize_name(m) == target for m in self.all_muscles)
