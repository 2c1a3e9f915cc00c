"""Immutable scoring context passed into every aggregation call."""

from typing import FrozenSet, Iterable, List, Sequence, TypeVar
from pydantic import BaseModel, ConfigDict, Field

from .catalog import ActiveQuestion

Q = TypeVar("Q", bound=ActiveQuestion)


class ScoringContext(BaseModel):
    """
    Framework selection and scoring options for one computation.

    An empty selection means no framework filter. When both sets are given the
    selected frameworks win, since they are a subset chosen from the enabled ones.
    """

    model_config = ConfigDict(frozen=True)

    enabled_framework_ids: FrozenSet[str] = Field(default_factory=frozenset)
    selected_framework_ids: FrozenSet[str] = Field(default_factory=frozenset)
    missing_evidence_multiplier: float = Field(
        1.0, ge=0.0, le=1.0, description="Score multiplier for answers without evidence"
    )

    @classmethod
    def from_ids(
        cls,
        enabled: Iterable[str] = (),
        selected: Iterable[str] = (),
        missing_evidence_multiplier: float = 1.0,
    ) -> "ScoringContext":
        """Build a context from plain id lists."""
        return cls(
            enabled_framework_ids=frozenset(enabled),
            selected_framework_ids=frozenset(selected),
            missing_evidence_multiplier=missing_evidence_multiplier,
        )

    @property
    def framework_filter(self) -> FrozenSet[str]:
        """Framework ids questions must map to, empty when unfiltered."""
        if self.selected_framework_ids:
            return self.selected_framework_ids
        return self.enabled_framework_ids

    def sanitized(self) -> "ScoringContext":
        """Drop selected frameworks that are not enabled."""
        if not self.enabled_framework_ids:
            return self
        return self.model_copy(
            update={"selected_framework_ids": self.selected_framework_ids & self.enabled_framework_ids}
        )

    def includes(self, question: ActiveQuestion) -> bool:
        """Check whether a question maps to at least one filtered framework."""
        wanted = self.framework_filter
        if not wanted:
            return True
        return any(fw_id in wanted for fw_id in question.framework_ids)

    def filter_questions(self, questions: Sequence[Q]) -> List[Q]:
        """Keep only questions inside the framework filter, preserving order."""
        return [q for q in questions if self.includes(q)]
