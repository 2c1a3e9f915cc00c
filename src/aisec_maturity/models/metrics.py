"""Data models for computed metrics, gaps, coverage and roadmap items."""

from enum import Enum
from typing import Optional, List, Dict
from datetime import datetime
from pydantic import BaseModel, Field

from .answers import Answer
from .catalog import (
    ActiveQuestion,
    Criticality,
    Framework,
    FrameworkCategoryId,
    MaturityLevel,
    NistFunction,
    OwnershipType,
)


class QuestionScore(BaseModel):
    """Score of a single question."""

    question_id: str
    response_score: Optional[float] = Field(None, description="Raw response score")
    evidence_multiplier: Optional[float] = Field(None, description="Evidence adjustment applied")
    effective_score: Optional[float] = Field(None, description="Score used for maturity, None if unanswered")
    is_applicable: bool = Field(True, description="False for NA responses")
    is_answered: bool = Field(False, description="Any response recorded")


class RollupMetrics(BaseModel):
    """Fields shared by every aggregation level."""

    score: float = Field(0.0, description="Maturity score (0-1)")
    maturity_level: MaturityLevel
    total_questions: int = Field(0, description="Active questions in the group")
    answered_questions: int = Field(0, description="Questions with any response")
    applicable_questions: int = Field(0, description="Questions not answered NA")
    coverage: float = Field(0.0, description="Answered / total questions")
    critical_gaps: int = Field(0, description="High/Critical questions below the gap threshold")
    scored: bool = Field(False, description="Group has answered applicable data")


class SubcategoryMetrics(RollupMetrics):
    """Metrics for a subcategory."""

    subcat_id: str
    subcat_name: str
    domain_id: str
    criticality: Criticality = Criticality.MEDIUM
    weight: float = 1.0
    ownership_type: Optional[OwnershipType] = None


class DomainMetrics(RollupMetrics):
    """Metrics for a domain, averaged over its subcategories."""

    domain_id: str
    domain_name: str
    nist_function: Optional[NistFunction] = None
    subcategory_metrics: List[SubcategoryMetrics] = Field(default_factory=list)


class NistFunctionMetrics(RollupMetrics):
    """Metrics for a NIST AI RMF function, averaged over its domains."""

    function: NistFunction
    domain_count: int = 0


class FrameworkCategoryMetrics(RollupMetrics):
    """Metrics for a framework analysis category."""

    category_id: FrameworkCategoryId
    category_name: str


class OwnershipMetrics(RollupMetrics):
    """Metrics for an ownership type."""

    ownership_type: OwnershipType


class OverallMetrics(RollupMetrics):
    """Complete metrics snapshot."""

    overall_score: float = Field(0.0, description="Weighted mean over all active questions")
    evidence_readiness: float = Field(0.0, description="Answered questions with evidence ready")
    domain_metrics: List[DomainMetrics] = Field(default_factory=list)
    nist_function_metrics: List[NistFunctionMetrics] = Field(default_factory=list)
    framework_category_metrics: List[FrameworkCategoryMetrics] = Field(default_factory=list)
    ownership_metrics: List[OwnershipMetrics] = Field(default_factory=list)


class CriticalGap(BaseModel):
    """Active question scoring below the gap threshold."""

    question_id: str
    question_text: str
    subcat_id: str
    subcat_name: str
    domain_id: str
    domain_name: str
    criticality: Criticality
    effective_score: float = Field(..., description="Question score, 0 when unanswered")
    ranking_score: float = Field(..., description="(1 - score) x weight, used only for ordering")
    weight: float = 1.0
    response: str = Field(..., description="Response value or 'Unanswered'")
    evidence_ok: bool = False
    ownership_type: OwnershipType = OwnershipType.GRC
    nist_function: Optional[NistFunction] = None


class FrameworkCoverage(BaseModel):
    """Completion and average score for one framework."""

    framework_id: str
    framework_name: str
    total_questions: int = 0
    answered_questions: int = 0
    average_score: float = 0.0
    coverage: float = 0.0


class RoadmapHorizon(str, Enum):
    """Roadmap time horizons."""

    IMMEDIATE = "immediate"
    SHORT = "short"
    MEDIUM = "medium"


HORIZON_TIMEFRAMES = {
    RoadmapHorizon.IMMEDIATE: "0-30 days",
    RoadmapHorizon.SHORT: "30-60 days",
    RoadmapHorizon.MEDIUM: "60-90 days",
}

HORIZON_ORDER = {
    RoadmapHorizon.IMMEDIATE: 0,
    RoadmapHorizon.SHORT: 1,
    RoadmapHorizon.MEDIUM: 2,
}


class Effort(str, Enum):
    """Estimated remediation effort."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RoadmapItem(BaseModel):
    """Recommended action for one domain."""

    priority: RoadmapHorizon
    timeframe: str
    domain_id: str
    domain: str = Field(..., description="Domain display name")
    question_id: str
    subcat_id: str
    criticality: Criticality
    domain_score: float = 0.0
    action: str
    impact: str
    effort: Effort
    ownership_type: OwnershipType


class AssessmentReport(BaseModel):
    """Everything computed for one assessment run."""

    generated_at: datetime = Field(default_factory=datetime.utcnow)
    enabled_frameworks: List[str] = Field(default_factory=list)
    selected_frameworks: List[str] = Field(default_factory=list)
    frameworks: List[Framework] = Field(default_factory=list, description="Resolved frameworks")
    questions: List[ActiveQuestion] = Field(default_factory=list, description="Active questions scored")
    answers: Dict[str, Answer] = Field(default_factory=dict)
    metrics: OverallMetrics
    gaps: List[CriticalGap] = Field(default_factory=list)
    coverage: List[FrameworkCoverage] = Field(default_factory=list)
    roadmap: List[RoadmapItem] = Field(default_factory=list)
