"""
Hierarchical maturity metrics.

Scores roll up bottom-up: questions -> subcategory -> domain -> NIST AI RMF
function. Framework categories and ownership types are scored directly from
their own question subsets. The overall score is the weight-adjusted mean over
every applicable active question.

A group without answered applicable questions is reported with ``scored``
False and is left out of its parent's average instead of counting as 0.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..catalog.frameworks import get_framework_categories
from ..catalog.reference import ReferenceCatalog, get_default_catalog
from ..models.answers import Answer
from ..models.catalog import (
    ActiveQuestion,
    Criticality,
    FRAMEWORK_CATEGORY_NAMES,
    FrameworkCategoryId,
    NistFunction,
    OwnershipType,
)
from ..models.context import ScoringContext
from ..models.metrics import (
    DomainMetrics,
    FrameworkCategoryMetrics,
    NistFunctionMetrics,
    OverallMetrics,
    OwnershipMetrics,
    SubcategoryMetrics,
)
from .questions import score_for

logger = logging.getLogger(__name__)

CRITICAL_GAP_THRESHOLD = 0.5
CRITICAL_LEVELS = (Criticality.HIGH, Criticality.CRITICAL)


def resolve_questions(
    active_questions: Optional[Sequence[ActiveQuestion]],
    catalog: ReferenceCatalog,
    context: ScoringContext,
) -> List[ActiveQuestion]:
    """Apply the context filter to the given questions, or to the catalog defaults."""
    if active_questions is None:
        return catalog.active_questions(context)
    return context.filter_questions(active_questions)


def _tally(
    questions: Sequence[ActiveQuestion],
    answers: Mapping[str, Answer],
    context: ScoringContext,
) -> Dict[str, Any]:
    """Count and sum question scores for one group."""
    answered = 0
    applicable = 0
    scored = 0
    evidence_ready = 0
    critical_gaps = 0
    score_sum = 0.0
    weighted_sum = 0.0
    weight_total = 0.0

    for question in questions:
        result = score_for(question, answers, context)
        if result.is_answered:
            answered += 1
        if not result.is_applicable:
            continue

        applicable += 1
        # Unanswered applicable questions count as 0
        value = result.effective_score if result.effective_score is not None else 0.0
        score_sum += value
        weighted_sum += value * question.weight
        weight_total += question.weight

        if result.effective_score is not None:
            scored += 1
            if answers[question.question_id].evidence_ok:
                evidence_ready += 1

        if question.criticality in CRITICAL_LEVELS and value < CRITICAL_GAP_THRESHOLD:
            critical_gaps += 1

    total = len(questions)
    return {
        "total": total,
        "answered": answered,
        "applicable": applicable,
        "scored": scored,
        "evidence_ready": evidence_ready,
        "critical_gaps": critical_gaps,
        "mean": score_sum / applicable if scored > 0 else 0.0,
        "weighted_mean": weighted_sum / weight_total if scored > 0 and weight_total > 0 else 0.0,
        "coverage": answered / total if total > 0 else 0.0,
    }


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _build_subcategory(
    subcat_id: str,
    domain_id: str,
    questions: Sequence[ActiveQuestion],
    answers: Mapping[str, Answer],
    catalog: ReferenceCatalog,
    context: ScoringContext,
) -> SubcategoryMetrics:
    tally = _tally(questions, answers, context)
    subcat = catalog.get_subcategory(subcat_id)

    return SubcategoryMetrics(
        subcat_id=subcat_id,
        subcat_name=catalog.subcategory_name(subcat_id),
        domain_id=domain_id,
        score=tally["mean"],
        maturity_level=catalog.maturity_level_for(tally["mean"]),
        total_questions=tally["total"],
        answered_questions=tally["answered"],
        applicable_questions=tally["applicable"],
        coverage=tally["coverage"],
        critical_gaps=tally["critical_gaps"],
        scored=tally["scored"] > 0,
        criticality=subcat.criticality if subcat else Criticality.MEDIUM,
        weight=subcat.weight if subcat else 1.0,
        ownership_type=subcat.ownership_type if subcat else None,
    )


def _build_domain(
    domain_id: str,
    questions: Sequence[ActiveQuestion],
    answers: Mapping[str, Answer],
    catalog: ReferenceCatalog,
    context: ScoringContext,
) -> DomainMetrics:
    # Catalog subcategories first, then ids only seen on questions
    subcat_ids = [s.subcat_id for s in catalog.subcategories_for(domain_id)]
    by_subcat: Dict[str, List[ActiveQuestion]] = {sid: [] for sid in subcat_ids}
    for question in questions:
        by_subcat.setdefault(question.subcat_id, []).append(question)

    subcategory_metrics = [
        _build_subcategory(sid, domain_id, members, answers, catalog, context)
        for sid, members in by_subcat.items()
    ]

    # Mean of subcategories, not of raw questions, to avoid size bias
    scored = [sm.score for sm in subcategory_metrics if sm.scored]
    score = _mean(scored)
    total = sum(sm.total_questions for sm in subcategory_metrics)
    answered = sum(sm.answered_questions for sm in subcategory_metrics)

    return DomainMetrics(
        domain_id=domain_id,
        domain_name=catalog.domain_name(domain_id),
        nist_function=catalog.nist_function_for(domain_id),
        score=score,
        maturity_level=catalog.maturity_level_for(score),
        total_questions=total,
        answered_questions=answered,
        applicable_questions=sum(sm.applicable_questions for sm in subcategory_metrics),
        coverage=answered / total if total > 0 else 0.0,
        critical_gaps=sum(sm.critical_gaps for sm in subcategory_metrics),
        scored=bool(scored),
        subcategory_metrics=subcategory_metrics,
    )


def _group_by_domain(
    questions: Sequence[ActiveQuestion], catalog: ReferenceCatalog
) -> Dict[str, List[ActiveQuestion]]:
    grouped: Dict[str, List[ActiveQuestion]] = {d.domain_id: [] for d in catalog.domains}
    for question in questions:
        grouped.setdefault(question.domain_id, []).append(question)
    return grouped


def calculate_subcategory_metrics(
    subcat_id: str,
    answers: Mapping[str, Answer],
    active_questions: Optional[Sequence[ActiveQuestion]] = None,
    catalog: Optional[ReferenceCatalog] = None,
    context: Optional[ScoringContext] = None,
) -> SubcategoryMetrics:
    """
    Calculate metrics for a subcategory.

    Args:
        subcat_id: Subcategory ID
        answers: Answer snapshot keyed by question ID
        active_questions: Active questions (defaults to the catalog questions)
        catalog: Reference catalog
        context: Scoring context

    Returns:
        Subcategory metrics
    """
    catalog = catalog or get_default_catalog()
    context = context or ScoringContext()
    questions = [
        q for q in resolve_questions(active_questions, catalog, context) if q.subcat_id == subcat_id
    ]
    subcat = catalog.get_subcategory(subcat_id)
    if subcat is not None:
        domain_id = subcat.domain_id
    else:
        domain_id = questions[0].domain_id if questions else ""
    return _build_subcategory(subcat_id, domain_id, questions, answers, catalog, context)


def calculate_domain_metrics(
    domain_id: str,
    answers: Mapping[str, Answer],
    active_questions: Optional[Sequence[ActiveQuestion]] = None,
    catalog: Optional[ReferenceCatalog] = None,
    context: Optional[ScoringContext] = None,
) -> DomainMetrics:
    """Calculate metrics for a domain as the mean of its scored subcategories."""
    catalog = catalog or get_default_catalog()
    context = context or ScoringContext()
    questions = [
        q for q in resolve_questions(active_questions, catalog, context) if q.domain_id == domain_id
    ]
    return _build_domain(domain_id, questions, answers, catalog, context)


def calculate_all_domain_metrics(
    answers: Mapping[str, Answer],
    active_questions: Optional[Sequence[ActiveQuestion]] = None,
    catalog: Optional[ReferenceCatalog] = None,
    context: Optional[ScoringContext] = None,
) -> List[DomainMetrics]:
    """Calculate metrics for every catalog domain plus unknown domains referenced by questions."""
    catalog = catalog or get_default_catalog()
    context = context or ScoringContext()
    questions = resolve_questions(active_questions, catalog, context)
    return [
        _build_domain(domain_id, members, answers, catalog, context)
        for domain_id, members in _group_by_domain(questions, catalog).items()
    ]


def calculate_nist_function_metrics(
    domain_metrics: Sequence[DomainMetrics],
    catalog: Optional[ReferenceCatalog] = None,
) -> List[NistFunctionMetrics]:
    """Calculate NIST AI RMF function metrics as the mean of their scored domains."""
    catalog = catalog or get_default_catalog()
    results = []

    for function in NistFunction:
        members = [dm for dm in domain_metrics if dm.nist_function == function]
        scored = [dm.score for dm in members if dm.scored]
        score = _mean(scored)
        total = sum(dm.total_questions for dm in members)
        answered = sum(dm.answered_questions for dm in members)

        results.append(
            NistFunctionMetrics(
                function=function,
                score=score,
                maturity_level=catalog.maturity_level_for(score),
                total_questions=total,
                answered_questions=answered,
                applicable_questions=sum(dm.applicable_questions for dm in members),
                coverage=answered / total if total > 0 else 0.0,
                critical_gaps=sum(dm.critical_gaps for dm in members),
                scored=bool(scored),
                domain_count=len(members),
            )
        )

    return results


def calculate_ownership_metrics(
    answers: Mapping[str, Answer],
    active_questions: Optional[Sequence[ActiveQuestion]] = None,
    catalog: Optional[ReferenceCatalog] = None,
    context: Optional[ScoringContext] = None,
) -> List[OwnershipMetrics]:
    """Calculate metrics per ownership type."""
    catalog = catalog or get_default_catalog()
    context = context or ScoringContext()
    questions = resolve_questions(active_questions, catalog, context)
    results = []

    for ownership in OwnershipType:
        tally = _tally([q for q in questions if q.ownership_type == ownership], answers, context)
        results.append(
            OwnershipMetrics(
                ownership_type=ownership,
                score=tally["mean"],
                maturity_level=catalog.maturity_level_for(tally["mean"]),
                total_questions=tally["total"],
                answered_questions=tally["answered"],
                applicable_questions=tally["applicable"],
                coverage=tally["coverage"],
                critical_gaps=tally["critical_gaps"],
                scored=tally["scored"] > 0,
            )
        )

    return results


def calculate_framework_category_metrics(
    answers: Mapping[str, Answer],
    active_questions: Optional[Sequence[ActiveQuestion]] = None,
    catalog: Optional[ReferenceCatalog] = None,
    context: Optional[ScoringContext] = None,
) -> List[FrameworkCategoryMetrics]:
    """Calculate metrics per framework analysis category; a question may count in several."""
    catalog = catalog or get_default_catalog()
    context = context or ScoringContext()
    questions = resolve_questions(active_questions, catalog, context)
    wanted = context.framework_filter
    categories = {}
    for q in questions:
        # Disabled and deselected frameworks contribute no category
        allowed = [fw_id for fw_id in q.framework_ids if not wanted or fw_id in wanted]
        categories[q.question_id] = get_framework_categories(q.frameworks, allowed, allowed)
    results = []

    for category_id in FrameworkCategoryId:
        members = [q for q in questions if category_id in categories[q.question_id]]
        tally = _tally(members, answers, context)
        results.append(
            FrameworkCategoryMetrics(
                category_id=category_id,
                category_name=FRAMEWORK_CATEGORY_NAMES.get(category_id, category_id.value),
                score=tally["mean"],
                maturity_level=catalog.maturity_level_for(tally["mean"]),
                total_questions=tally["total"],
                answered_questions=tally["answered"],
                applicable_questions=tally["applicable"],
                coverage=tally["coverage"],
                critical_gaps=tally["critical_gaps"],
                scored=tally["scored"] > 0,
            )
        )

    return results


def calculate_overall_metrics(
    answers: Mapping[str, Answer],
    active_questions: Optional[Sequence[ActiveQuestion]] = None,
    catalog: Optional[ReferenceCatalog] = None,
    context: Optional[ScoringContext] = None,
) -> OverallMetrics:
    """
    Calculate the complete metrics snapshot.

    The result is a pure function of the inputs; calling twice with the
    same inputs yields identical output.

    Args:
        answers: Answer snapshot keyed by question ID
        active_questions: Active questions (defaults to the catalog questions)
        catalog: Reference catalog
        context: Framework selection and scoring options

    Returns:
        Overall metrics with every rollup level
    """
    catalog = catalog or get_default_catalog()
    context = context or ScoringContext()
    questions = resolve_questions(active_questions, catalog, context)

    tally = _tally(questions, answers, context)
    domain_metrics = calculate_all_domain_metrics(answers, questions, catalog, context)
    overall_score = tally["weighted_mean"]

    logger.debug(
        "Overall metrics: %d questions, %d answered, score %.3f",
        tally["total"],
        tally["answered"],
        overall_score,
    )

    return OverallMetrics(
        overall_score=overall_score,
        score=overall_score,
        maturity_level=catalog.maturity_level_for(overall_score),
        total_questions=tally["total"],
        answered_questions=tally["answered"],
        applicable_questions=tally["applicable"],
        coverage=tally["coverage"],
        evidence_readiness=tally["evidence_ready"] / tally["scored"] if tally["scored"] > 0 else 0.0,
        critical_gaps=tally["critical_gaps"],
        scored=tally["scored"] > 0,
        domain_metrics=domain_metrics,
        nist_function_metrics=calculate_nist_function_metrics(domain_metrics, catalog),
        framework_category_metrics=calculate_framework_category_metrics(
            answers, questions, catalog, context
        ),
        ownership_metrics=calculate_ownership_metrics(answers, questions, catalog, context),
    )
