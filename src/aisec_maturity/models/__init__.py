"""Data models for the AI security maturity engine."""

from .catalog import (
    ActiveQuestion,
    Criticality,
    CRITICALITY_RANK,
    Domain,
    Framework,
    FrameworkCategory,
    FrameworkCategoryId,
    FrameworkLifecycle,
    MaturityLevel,
    NistFunction,
    OwnershipType,
    Question,
    Subcategory,
)
from .answers import (
    Answer,
    AnswerResponse,
    get_response_score,
)
from .context import ScoringContext
from .metrics import (
    AssessmentReport,
    CriticalGap,
    DomainMetrics,
    Effort,
    FrameworkCategoryMetrics,
    FrameworkCoverage,
    NistFunctionMetrics,
    OverallMetrics,
    OwnershipMetrics,
    QuestionScore,
    RoadmapHorizon,
    RoadmapItem,
    SubcategoryMetrics,
)
from .settings import (
    BackupData,
    BackupRecord,
    ChangeAction,
    ChangeLogEntry,
    EntityType,
)

__all__ = [
    "AssessmentReport",
    "ActiveQuestion",
    "Criticality",
    "CRITICALITY_RANK",
    "Domain",
    "Framework",
    "FrameworkCategory",
    "FrameworkCategoryId",
    "FrameworkLifecycle",
    "MaturityLevel",
    "NistFunction",
    "OwnershipType",
    "Question",
    "Subcategory",
    "Answer",
    "AnswerResponse",
    "get_response_score",
    "ScoringContext",
    "CriticalGap",
    "DomainMetrics",
    "Effort",
    "FrameworkCategoryMetrics",
    "FrameworkCoverage",
    "NistFunctionMetrics",
    "OverallMetrics",
    "OwnershipMetrics",
    "QuestionScore",
    "RoadmapHorizon",
    "RoadmapItem",
    "SubcategoryMetrics",
    "BackupData",
    "BackupRecord",
    "ChangeAction",
    "ChangeLogEntry",
    "EntityType",
]
