"""Resolution of the active question set from defaults and user customisations."""

import logging
from typing import Iterable, List, Optional, Sequence

from ..models.catalog import ActiveQuestion, Framework, Question
from ..models.context import ScoringContext
from .frameworks import active_framework_ids
from .reference import ReferenceCatalog

logger = logging.getLogger(__name__)


def build_active_questions(
    catalog: ReferenceCatalog,
    custom_questions: Sequence[Question] = (),
    disabled_question_ids: Iterable[str] = (),
    frameworks: Optional[Sequence[Framework]] = None,
    context: Optional[ScoringContext] = None,
) -> List[ActiveQuestion]:
    """
    Combine default and custom questions into the ordered active set.

    Args:
        catalog: Reference catalog
        custom_questions: User-defined questions
        disabled_question_ids: IDs of disabled default questions
        frameworks: Resolved frameworks; questions mapped only to inactive
            frameworks are dropped
        context: Framework selection to filter by

    Returns:
        Default questions first, then custom questions, disabled ones excluded
    """
    disabled = set(disabled_question_ids)
    known_ids = [fw.framework_id for fw in frameworks] if frameworks is not None else None

    candidates: List[Question] = [q for q in catalog.questions if q.question_id not in disabled]
    candidates.extend(q for q in custom_questions if not q.disabled)

    # A custom question may shadow a default one with the same id
    seen = set()
    active: List[ActiveQuestion] = []
    for question in reversed(candidates):
        if question.question_id in seen or question.disabled:
            continue
        seen.add(question.question_id)
        active.append(catalog.to_active_question(question, known_ids))
    active.reverse()

    if frameworks is not None:
        live = set(active_framework_ids(frameworks))
        inactive = {fw.framework_id for fw in frameworks} - live
        filtered = []
        for question in active:
            mapped = [fw_id for fw_id in question.framework_ids if fw_id not in inactive]
            if question.framework_ids and not mapped:
                continue
            filtered.append(question.model_copy(update={"framework_ids": mapped}))
        active = filtered

    if context is not None:
        active = context.filter_questions(active)

    logger.debug(
        "Active questions: %d (%d custom, %d disabled defaults)",
        len(active),
        sum(1 for q in active if q.is_custom),
        len(disabled),
    )
    return active
