"""30/60/90-day remediation roadmap."""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from ..catalog.reference import ReferenceCatalog, get_default_catalog
from ..models.answers import Answer, UNANSWERED_LABEL
from ..models.catalog import ActiveQuestion, Criticality, CRITICALITY_RANK
from ..models.context import ScoringContext
from ..models.metrics import (
    CriticalGap,
    Effort,
    HORIZON_ORDER,
    HORIZON_TIMEFRAMES,
    RoadmapHorizon,
    RoadmapItem,
)
from .aggregator import calculate_all_domain_metrics, resolve_questions
from .gaps import DEFAULT_GAP_THRESHOLD, get_critical_gaps

logger = logging.getLogger(__name__)

ROADMAP_CRITICALITIES = (Criticality.CRITICAL, Criticality.HIGH)
SEVERE_SCORE = 0.25


def determine_horizon(gap: CriticalGap) -> RoadmapHorizon:
    """
    Pick the time horizon for a gap.

    Critical and nearly absent -> immediate; Critical or nearly absent ->
    short; anything else -> medium.
    """
    is_critical = gap.criticality == Criticality.CRITICAL
    is_severe = gap.effective_score < SEVERE_SCORE

    if is_critical and is_severe:
        return RoadmapHorizon.IMMEDIATE
    if is_critical or is_severe:
        return RoadmapHorizon.SHORT
    return RoadmapHorizon.MEDIUM


def estimate_effort(gap: CriticalGap) -> Effort:
    """Estimate remediation effort from the current answer."""
    if gap.response == UNANSWERED_LABEL:
        return Effort.MEDIUM
    if gap.effective_score < SEVERE_SCORE:
        return Effort.HIGH
    return Effort.LOW


def generate_roadmap(
    answers: Mapping[str, Answer],
    limit: int = 10,
    active_questions: Optional[Sequence[ActiveQuestion]] = None,
    catalog: Optional[ReferenceCatalog] = None,
    context: Optional[ScoringContext] = None,
    threshold: float = DEFAULT_GAP_THRESHOLD,
) -> List[RoadmapItem]:
    """
    Build the remediation roadmap.

    Only Critical/High gaps are candidates. They are ranked by criticality,
    then by the lowest domain score, then by gap ranking score, and only the
    top gap of each domain is kept.

    Args:
        answers: Answer snapshot keyed by question ID
        limit: Maximum number of items
        active_questions: Active questions (defaults to the catalog questions)
        catalog: Reference catalog
        context: Framework selection and scoring options
        threshold: Gap threshold

    Returns:
        Roadmap items ordered by horizon, then priority
    """
    if limit <= 0:
        return []

    catalog = catalog or get_default_catalog()
    context = context or ScoringContext()
    questions = resolve_questions(active_questions, catalog, context)

    gaps = [
        gap
        for gap in get_critical_gaps(answers, threshold, questions, catalog, context)
        if gap.criticality in ROADMAP_CRITICALITIES
    ]
    if not gaps:
        return []

    domain_scores: Dict[str, float] = {
        dm.domain_id: dm.score
        for dm in calculate_all_domain_metrics(answers, questions, catalog, context)
    }

    gaps.sort(
        key=lambda g: (
            -CRITICALITY_RANK[g.criticality],
            domain_scores.get(g.domain_id, 0.0),
            -g.ranking_score,
            g.effective_score,
            g.question_id,
        )
    )

    roadmap: List[RoadmapItem] = []
    seen_domains = set()
    for gap in gaps:
        if gap.domain_id in seen_domains:
            continue
        seen_domains.add(gap.domain_id)

        horizon = determine_horizon(gap)
        roadmap.append(
            RoadmapItem(
                priority=horizon,
                timeframe=HORIZON_TIMEFRAMES[horizon],
                domain_id=gap.domain_id,
                domain=gap.domain_name,
                question_id=gap.question_id,
                subcat_id=gap.subcat_id,
                criticality=gap.criticality,
                domain_score=domain_scores.get(gap.domain_id, 0.0),
                action=f"Implement control: {gap.subcat_name}",
                impact=(
                    "High risk impact"
                    if gap.criticality == Criticality.CRITICAL
                    else "Medium risk impact"
                ),
                effort=estimate_effort(gap),
                ownership_type=gap.ownership_type,
            )
        )
        if len(roadmap) >= limit:
            break

    # Stable sort keeps priority order inside each horizon
    roadmap.sort(key=lambda item: HORIZON_ORDER[item.priority])
    logger.debug("Roadmap generated with %d items from %d gaps", len(roadmap), len(gaps))
    return roadmap
