"""Data models for the question and framework catalog."""

from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field


class Criticality(str, Enum):
    """Question and subcategory criticality levels."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


# Higher rank sorts first in gap and roadmap ordering
CRITICALITY_RANK = {
    Criticality.LOW: 1,
    Criticality.MEDIUM: 2,
    Criticality.HIGH: 3,
    Criticality.CRITICAL: 4,
}


class OwnershipType(str, Enum):
    """Ownership types used for persona views."""

    EXECUTIVE = "Executive"
    GRC = "GRC"
    ENGINEERING = "Engineering"


class NistFunction(str, Enum):
    """NIST AI RMF core functions."""

    GOVERN = "GOVERN"
    MAP = "MAP"
    MEASURE = "MEASURE"
    MANAGE = "MANAGE"


class FrameworkCategory(str, Enum):
    """Framework tier shown in framework management."""

    CORE = "core"
    HIGH_VALUE = "high-value"
    TECH_FOCUSED = "tech-focused"
    CUSTOM = "custom"


class FrameworkCategoryId(str, Enum):
    """Analysis categories that framework references roll up into."""

    NIST_AI_RMF = "NIST_AI_RMF"
    SECURITY_BASELINE = "SECURITY_BASELINE"
    AI_RISK_MGMT = "AI_RISK_MGMT"
    SECURE_DEVELOPMENT = "SECURE_DEVELOPMENT"
    PRIVACY_LGPD = "PRIVACY_LGPD"
    THREAT_EXPOSURE = "THREAT_EXPOSURE"


FRAMEWORK_CATEGORY_NAMES = {
    FrameworkCategoryId.NIST_AI_RMF: "NIST AI RMF",
    FrameworkCategoryId.SECURITY_BASELINE: "Security Baseline (ISO 27001/27002)",
    FrameworkCategoryId.AI_RISK_MGMT: "AI Risk Management (ISO/IEC 23894)",
    FrameworkCategoryId.SECURE_DEVELOPMENT: "Secure Development (NIST SSDF, CSA)",
    FrameworkCategoryId.PRIVACY_LGPD: "Privacy & Data Protection (LGPD)",
    FrameworkCategoryId.THREAT_EXPOSURE: "Threat Exposure (OWASP LLM & API)",
}


class FrameworkLifecycle(str, Enum):
    """Lifecycle state of a framework after applying user customisations."""

    DEFAULT = "default"
    DEFAULT_DISABLED = "default_disabled"
    CUSTOM_OVERRIDE = "custom_override"
    CUSTOM_NEW = "custom_new"


class Domain(BaseModel):
    """Top-level taxonomy node."""

    domain_id: str = Field(..., description="Domain ID")
    domain_name: str = Field(..., description="Display name")
    order: int = Field(0, description="Display order")
    nist_function: Optional[NistFunction] = Field(
        None, description="NIST AI RMF function this domain rolls up into"
    )
    description: Optional[str] = Field(None, description="Domain description")


class Subcategory(BaseModel):
    """Second-level taxonomy node belonging to exactly one domain."""

    subcat_id: str = Field(..., description="Subcategory ID")
    domain_id: str = Field(..., description="Parent domain ID")
    subcat_name: str = Field(..., description="Display name")
    criticality: Criticality = Field(Criticality.MEDIUM, description="Default criticality")
    weight: float = Field(1.0, gt=0, description="Subcategory weight")
    ownership_type: Optional[OwnershipType] = Field(None, description="Default owner")
    framework_refs: List[str] = Field(
        default_factory=list, description="Framework references shared by all member questions"
    )
    definition: Optional[str] = Field(None, description="Subcategory definition")


class Question(BaseModel):
    """Assessment question, either shipped by default or user-defined."""

    question_id: str = Field(..., description="Unique question ID")
    domain_id: str = Field(..., description="Domain ID")
    subcat_id: str = Field("", description="Subcategory ID")
    question_text: str = Field(..., description="Question prompt")
    expected_evidence: str = Field("", description="Evidence expected for a positive answer")
    criticality: Optional[Criticality] = Field(
        None, description="Criticality; falls back to the subcategory value"
    )
    ownership_type: Optional[OwnershipType] = Field(
        None, description="Owner; falls back to the subcategory value"
    )
    weight: float = Field(1.0, gt=0, description="Weight used for overall score and gap ranking")
    frameworks: List[str] = Field(
        default_factory=list, description="Framework references or framework IDs"
    )
    disabled: bool = Field(False, description="Excluded from active aggregation")
    is_custom: bool = Field(False, description="User-defined question")


class ActiveQuestion(BaseModel):
    """Question resolved against the taxonomy and ready for scoring."""

    question_id: str
    question_text: str
    domain_id: str
    subcat_id: str
    criticality: Criticality = Criticality.MEDIUM
    ownership_type: OwnershipType = OwnershipType.GRC
    weight: float = Field(1.0, gt=0)
    frameworks: List[str] = Field(default_factory=list, description="Merged framework references")
    framework_ids: List[str] = Field(default_factory=list, description="Resolved framework IDs")
    is_custom: bool = False


class Framework(BaseModel):
    """Regulatory or security framework."""

    framework_id: str = Field(..., description="Framework ID (e.g., NIST_AI_RMF)")
    framework_name: str = Field(..., description="Display name")
    short_name: str = Field("", description="Short display name")
    description: str = Field("", description="Framework description")
    category: FrameworkCategory = Field(FrameworkCategory.CORE, description="Framework tier")
    default_enabled: bool = Field(False, description="Enabled for new assessments")
    version: str = Field("1.0", description="Framework version")
    target_audience: List[OwnershipType] = Field(default_factory=list)
    references: List[str] = Field(default_factory=list, description="Reference links")
    lifecycle: FrameworkLifecycle = Field(FrameworkLifecycle.DEFAULT)
    notes: str = Field("", description="Notes")

    @property
    def is_active(self) -> bool:
        """Whether the framework takes part in the assessment."""
        return self.lifecycle != FrameworkLifecycle.DEFAULT_DISABLED

    @property
    def is_custom(self) -> bool:
        return self.lifecycle in (FrameworkLifecycle.CUSTOM_NEW, FrameworkLifecycle.CUSTOM_OVERRIDE)


class MaturityLevel(BaseModel):
    """Named maturity band over a 0-1 score."""

    level: int = Field(..., description="Ordinal level")
    name: str = Field(..., description="Band name")
    description: str = Field("", description="Band description")
    min_score: float = Field(..., ge=0.0, le=1.0, description="Inclusive lower bound")
    color: str = Field("#9ca3af", description="Display color")
