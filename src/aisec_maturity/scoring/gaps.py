"""Critical gap analysis."""

import logging
from typing import List, Mapping, Optional, Sequence

from ..catalog.reference import ReferenceCatalog, get_default_catalog
from ..models.answers import Answer, UNANSWERED_LABEL
from ..models.catalog import ActiveQuestion, CRITICALITY_RANK
from ..models.context import ScoringContext
from ..models.metrics import CriticalGap
from .aggregator import resolve_questions
from .questions import gap_ranking_score, score_for

logger = logging.getLogger(__name__)

DEFAULT_GAP_THRESHOLD = 0.5


def get_critical_gaps(
    answers: Mapping[str, Answer],
    threshold: float = DEFAULT_GAP_THRESHOLD,
    active_questions: Optional[Sequence[ActiveQuestion]] = None,
    catalog: Optional[ReferenceCatalog] = None,
    context: Optional[ScoringContext] = None,
) -> List[CriticalGap]:
    """
    Find active questions scoring below the threshold.

    Unanswered questions score 0 and are reported; NA questions never are.
    Ordering is criticality (Critical first), then score (worst first), then
    weight (heaviest first). Truncation is left to the caller.

    Args:
        answers: Answer snapshot keyed by question ID
        threshold: Scores strictly below this are gaps
        active_questions: Active questions (defaults to the catalog questions)
        catalog: Reference catalog
        context: Framework selection and scoring options

    Returns:
        Ordered gap records
    """
    catalog = catalog or get_default_catalog()
    context = context or ScoringContext()
    gaps: List[CriticalGap] = []

    for question in resolve_questions(active_questions, catalog, context):
        result = score_for(question, answers, context)
        if not result.is_applicable:
            continue

        score = result.effective_score if result.effective_score is not None else 0.0
        if score >= threshold:
            continue

        answer = answers.get(question.question_id)
        gaps.append(
            CriticalGap(
                question_id=question.question_id,
                question_text=question.question_text,
                subcat_id=question.subcat_id,
                subcat_name=catalog.subcategory_name(question.subcat_id),
                domain_id=question.domain_id,
                domain_name=catalog.domain_name(question.domain_id),
                criticality=question.criticality,
                effective_score=score,
                ranking_score=gap_ranking_score(score, question.weight),
                weight=question.weight,
                response=answer.response.value if answer and answer.response else UNANSWERED_LABEL,
                evidence_ok=answer.evidence_ok if answer else False,
                ownership_type=question.ownership_type,
                nist_function=catalog.nist_function_for(question.domain_id),
            )
        )

    gaps.sort(
        key=lambda g: (
            -CRITICALITY_RANK[g.criticality],
            g.effective_score,
            -g.weight,
            g.question_id,
        )
    )
    logger.debug("Found %d gaps below %.2f", len(gaps), threshold)
    return gaps
