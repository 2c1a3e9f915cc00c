"""Data models for questionnaire answers."""

from enum import Enum
from typing import Optional, List, Dict
from datetime import datetime
from pydantic import BaseModel, Field


class AnswerResponse(str, Enum):
    """Answer response values. A missing answer means unanswered."""

    YES = "Yes"
    PARTIAL = "Partial"
    NO = "No"
    NOT_APPLICABLE = "NA"


# NA is excluded from scoring entirely
RESPONSE_SCORES: Dict[AnswerResponse, Optional[float]] = {
    AnswerResponse.YES: 1.0,
    AnswerResponse.PARTIAL: 0.5,
    AnswerResponse.NO: 0.0,
    AnswerResponse.NOT_APPLICABLE: None,
}

UNANSWERED_LABEL = "Unanswered"


def get_response_score(response: Optional[AnswerResponse]) -> Optional[float]:
    """Get numeric score for a response, None when it does not score."""
    if response is None:
        return None
    return RESPONSE_SCORES.get(response)


class Answer(BaseModel):
    """Answer to a single question."""

    question_id: str = Field(..., description="Question ID")
    response: Optional[AnswerResponse] = Field(None, description="Response, None if cleared")
    evidence_ok: bool = Field(False, description="Evidence is available and ready")
    notes: str = Field("", description="Assessor notes")
    evidence_links: List[str] = Field(default_factory=list, description="Links to evidence")
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_answered(self) -> bool:
        return self.response is not None
