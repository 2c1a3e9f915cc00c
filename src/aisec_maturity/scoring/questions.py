"""Per-question scoring."""

from typing import Mapping, Optional

from ..models.answers import Answer, AnswerResponse, get_response_score
from ..models.catalog import ActiveQuestion
from ..models.context import ScoringContext
from ..models.metrics import QuestionScore


def calculate_question_score(
    question_id: str,
    answer: Optional[Answer],
    context: Optional[ScoringContext] = None,
) -> QuestionScore:
    """
    Calculate the score of a single question.

    Yes = 1.0, Partial = 0.5, No = 0.0. NA is not applicable and never
    scores. A missing answer is applicable but has no effective score.

    Args:
        question_id: Question ID
        answer: Recorded answer, if any
        context: Scoring options (missing-evidence multiplier)

    Returns:
        Question score details
    """
    if answer is None or answer.response is None:
        return QuestionScore(question_id=question_id)

    if answer.response == AnswerResponse.NOT_APPLICABLE:
        return QuestionScore(question_id=question_id, is_applicable=False, is_answered=True)

    response_score = get_response_score(answer.response)
    multiplier = 1.0
    if not answer.evidence_ok and context is not None:
        multiplier = context.missing_evidence_multiplier

    return QuestionScore(
        question_id=question_id,
        response_score=response_score,
        evidence_multiplier=multiplier,
        effective_score=response_score * multiplier,
        is_applicable=True,
        is_answered=True,
    )


def score_for(
    question: ActiveQuestion,
    answers: Mapping[str, Answer],
    context: Optional[ScoringContext] = None,
) -> QuestionScore:
    """Score an active question against an answer snapshot."""
    return calculate_question_score(question.question_id, answers.get(question.question_id), context)


def gap_ranking_score(effective_score: float, weight: float) -> float:
    """Severity used to rank gaps; never used for maturity averages."""
    return (1.0 - effective_score) * weight
