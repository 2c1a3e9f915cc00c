"""Per-framework coverage."""

from typing import Dict, List, Mapping, Optional, Sequence

from ..catalog.reference import ReferenceCatalog, get_default_catalog
from ..models.answers import Answer
from ..models.catalog import ActiveQuestion, Framework
from ..models.context import ScoringContext
from ..models.metrics import FrameworkCoverage
from .aggregator import resolve_questions
from .questions import score_for


def get_framework_coverage(
    answers: Mapping[str, Answer],
    active_questions: Optional[Sequence[ActiveQuestion]] = None,
    catalog: Optional[ReferenceCatalog] = None,
    context: Optional[ScoringContext] = None,
    frameworks: Optional[Sequence[Framework]] = None,
) -> List[FrameworkCoverage]:
    """
    Summarise completion and average score per framework.

    A question counts toward every framework it maps to, so the per-framework
    answered counts can add up to more than the distinct answered questions.

    Args:
        answers: Answer snapshot keyed by question ID
        active_questions: Active questions (defaults to the catalog questions)
        catalog: Reference catalog
        context: Framework selection; frameworks outside it are not reported
        frameworks: Resolved frameworks used for display names

    Returns:
        Coverage per framework, most questions first
    """
    catalog = catalog or get_default_catalog()
    context = context or ScoringContext()
    names = {fw.framework_id: fw.framework_name for fw in frameworks or ()}
    wanted = context.framework_filter
    stats: Dict[str, Dict[str, list]] = {}

    for question in resolve_questions(active_questions, catalog, context):
        result = score_for(question, answers, context)

        for framework_id in question.framework_ids:
            if wanted and framework_id not in wanted:
                continue
            data = stats.setdefault(framework_id, {"total": [], "answered": [], "scores": []})
            data["total"].append(question.question_id)
            if result.is_answered and result.is_applicable:
                data["answered"].append(question.question_id)
                if result.effective_score is not None:
                    data["scores"].append(result.effective_score)

    coverage = []
    for framework_id, data in stats.items():
        total = len(data["total"])
        answered = len(data["answered"])
        scores = data["scores"]
        coverage.append(
            FrameworkCoverage(
                framework_id=framework_id,
                framework_name=names.get(framework_id) or catalog.framework_name(framework_id),
                total_questions=total,
                answered_questions=answered,
                average_score=sum(scores) / len(scores) if scores else 0.0,
                coverage=answered / total if total > 0 else 0.0,
            )
        )

    coverage.sort(key=lambda c: (-c.total_questions, c.framework_id))
    return coverage
